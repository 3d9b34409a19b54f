"""
Client TMDB pour le catalogue de films.

Implemente l'interface ICatalogClient pour TMDB (The Movie Database).
Chaque operation construit l'empreinte canonique de sa requete, consulte
le ResponseCache puis, sur miss, passe par le RetryingTransport (lui-meme
borne par le RateLimiter).

Usage:
    limiter = RateLimiter()
    transport = RetryingTransport(limiter, api_key="your_key")
    client = TMDBClient(transport=transport, cache=ResponseCache())
    movies = await client.discover(genre_ids=[28], page=1)
    await client.close()
"""

from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from loguru import logger

from cinereco.adapters.api.cache import ResponseCache
from cinereco.adapters.api.request import ApiRequest
from cinereco.adapters.api.retry import RetryingTransport
from cinereco.core.entities.media import Genre, Movie
from cinereco.core.errors import CatalogError, ErrorCategory
from cinereco.core.ports.catalog import ICatalogClient
from cinereco.core.ports.collaborators import IAuthProvider

MIN_RATING = 0.5
MAX_RATING = 10.0


def parse_movie(item: Mapping[str, Any]) -> Movie:
    """
    Construit un Movie depuis un objet film TMDB.

    Accepte indifferemment les objets de liste (genre_ids) et les objets
    de details (genres: [{id, name}]).

    Raises:
        CatalogError: MALFORMED_RESPONSE si l'objet est inexploitable
    """
    try:
        if "genres" in item and item["genres"] is not None:
            raw_genres = [int(genre["id"]) for genre in item["genres"]]
        else:
            raw_genres = [int(gid) for gid in item.get("genre_ids") or []]
        # Ordre conserve, doublons supprimes
        genre_ids = tuple(dict.fromkeys(raw_genres))

        rating = item.get("rating")
        return Movie(
            id=int(item["id"]),
            title=item.get("title") or item.get("original_title") or "",
            overview=item.get("overview") or "",
            poster_path=item.get("poster_path"),
            backdrop_path=item.get("backdrop_path"),
            genre_ids=genre_ids,
            vote_average=float(item.get("vote_average") or 0.0),
            release_date=item.get("release_date") or "",
            runtime=item.get("runtime"),
            user_rating=float(rating) if rating is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(
            ErrorCategory.MALFORMED_RESPONSE, f"Film TMDB invalide: {e}"
        ) from e


def parse_movie_list(data: Mapping[str, Any]) -> list[Movie]:
    """Extrait la liste "results" d'une reponse paginee TMDB."""
    results = data.get("results")
    if not isinstance(results, list):
        raise CatalogError(
            ErrorCategory.MALFORMED_RESPONSE, "Champ 'results' absent ou invalide"
        )
    return [parse_movie(item) for item in results]


def _validate_score(score: float) -> None:
    """TMDB accepte les notes de 0.5 a 10.0 par pas de 0.5."""
    if not MIN_RATING <= score <= MAX_RATING or (score * 2) != int(score * 2):
        raise CatalogError(
            ErrorCategory.CLIENT_ERROR,
            f"Note invalide {score}: attendu 0.5 a 10.0 par pas de 0.5",
        )


class TMDBClient(ICatalogClient):
    """
    Client API TMDB pour le catalogue de films.

    Implemente ICatalogClient avec:
    - Recherche, details, films similaires, genres, decouverte
    - Notes (creation/suppression) et listes du compte (session requise)
    - Cache en amont de chaque lecture (TTL par categorie)
    - Retry et rate limiting delegues au transport

    Example:
        client = TMDBClient(transport=transport, cache=cache, auth_provider=auth)
        genres = await client.list_genres()
        ok = await client.rate(550, 8.5)
    """

    def __init__(
        self,
        transport: RetryingTransport,
        cache: ResponseCache,
        auth_provider: Optional[IAuthProvider] = None,
        language: Optional[str] = None,
    ) -> None:
        """
        Initialise le client TMDB.

        Args:
            transport: Transport HTTP avec retry et rate limiting
            cache: Cache des reponses partage
            auth_provider: Source de la session courante (optionnelle)
            language: Langue des resultats (ex: "fr-FR"), None pour le defaut TMDB
        """
        self._transport = transport
        self._cache = cache
        self._auth_provider = auth_provider
        self._language = language

    @property
    def source(self) -> str:
        """Retourne l'identifiant de la source API."""
        return "tmdb"

    def _params(self, **params: Any) -> dict[str, Any]:
        if self._language:
            params.setdefault("language", self._language)
        return params

    def _require_session(self, session_id: Optional[str]) -> str:
        """
        Resout la session a utiliser.

        Raises:
            CatalogError: AUTH_ERROR si aucune session n'est disponible,
                          avant tout appel reseau
        """
        if session_id is None and self._auth_provider is not None:
            session_id = self._auth_provider.current_session()
        if not session_id:
            raise CatalogError(ErrorCategory.AUTH_ERROR, "Session TMDB requise")
        return session_id

    async def _cached(
        self,
        request: ApiRequest,
        ttl: float,
        parse: Callable[[dict[str, Any]], Any],
    ) -> Any:
        """Cache-first: le resultat parse est stocke, jamais une reponse invalide."""

        async def fetch() -> Any:
            return parse(await self._transport.execute(request))

        return await self._cache.get_or_fetch(request.fingerprint, ttl, fetch)

    async def search(self, query: str, page: int = 1) -> list[Movie]:
        """
        Recherche des films par titre.

        Les resultats sont caches pour 1 heure.
        """
        request = ApiRequest.get(
            "/search/movie",
            self._params(query=query, page=page, include_adult=False),
        )
        return await self._cached(request, ResponseCache.SEARCH_TTL, parse_movie_list)

    async def get_details(self, movie_id: int) -> Movie:
        """
        Recupere les details complets d'un film.

        Les details sont caches pour 24 heures. Un film inconnu (404) leve
        une CatalogError CLIENT_ERROR.
        """
        request = ApiRequest.get(f"/movie/{movie_id}", self._params())
        return await self._cached(request, ResponseCache.DETAILS_TTL, parse_movie)

    async def get_similar(self, movie_id: int, page: int = 1) -> list[Movie]:
        """Recommandations TMDB a partir d'un film (cachees 6 heures)."""
        request = ApiRequest.get(
            f"/movie/{movie_id}/recommendations", self._params(page=page)
        )
        return await self._cached(request, ResponseCache.LISTING_TTL, parse_movie_list)

    async def list_genres(self) -> list[Genre]:
        """Catalogue des genres (cache 7 jours)."""

        def parse(data: dict[str, Any]) -> list[Genre]:
            try:
                return [
                    Genre(id=int(genre["id"]), name=str(genre["name"]))
                    for genre in data["genres"]
                ]
            except (KeyError, TypeError, ValueError) as e:
                raise CatalogError(
                    ErrorCategory.MALFORMED_RESPONSE, f"Genres TMDB invalides: {e}"
                ) from e

        request = ApiRequest.get("/genre/movie/list", self._params())
        return await self._cached(request, ResponseCache.GENRES_TTL, parse)

    async def discover(
        self,
        genre_ids: Iterable[int] = (),
        page: int = 1,
        sort_by: str = "popularity.desc",
        filters: Optional[Mapping[str, Any]] = None,
    ) -> list[Movie]:
        """
        Decouverte de films par genres et criteres (cachee 6 heures).

        Les genres sont tries avant construction de la requete pour que
        [28, 12] et [12, 28] partagent la meme entree de cache.
        """
        params = dict(filters or {})
        params.update(
            page=page,
            sort_by=sort_by,
            include_adult=False,
            include_video=False,
        )
        genres = sorted(set(genre_ids))
        if genres:
            params["with_genres"] = genres
        request = ApiRequest.get("/discover/movie", self._params(**params))
        return await self._cached(request, ResponseCache.LISTING_TTL, parse_movie_list)

    async def _invalidate_account_lists(self) -> None:
        removed = await self._cache.invalidate_prefix("GET /account/")
        if removed:
            logger.debug(f"{removed} liste(s) de compte invalidee(s)")

    async def rate(
        self, movie_id: int, score: float, session_id: Optional[str] = None
    ) -> bool:
        """
        Note un film.

        Jamais cache. Sans session, echoue avant tout appel reseau.

        Args:
            movie_id: ID TMDB du film
            score: Note de 0.5 a 10.0 (pas de 0.5)
            session_id: Session explicite, sinon celle de l'AuthProvider

        Returns:
            True si TMDB confirme la note
        """
        session = self._require_session(session_id)
        _validate_score(score)
        request = ApiRequest.post(
            f"/movie/{movie_id}/rating",
            {"session_id": session},
            body={"value": score},
        )
        data = await self._cache.get_or_fetch(
            request.fingerprint,
            ResponseCache.NO_CACHE,
            lambda: self._transport.execute(request),
        )
        success = bool(data.get("success", False))
        if success:
            await self._invalidate_account_lists()
            logger.info(f"Film {movie_id} note {score}")
        return success

    async def delete_rating(
        self, movie_id: int, session_id: Optional[str] = None
    ) -> bool:
        """Supprime la note d'un film. Jamais cache."""
        session = self._require_session(session_id)
        request = ApiRequest.delete(
            f"/movie/{movie_id}/rating", {"session_id": session}
        )
        data = await self._cache.get_or_fetch(
            request.fingerprint,
            ResponseCache.NO_CACHE,
            lambda: self._transport.execute(request),
        )
        success = bool(data.get("success", False))
        if success:
            await self._invalidate_account_lists()
        return success

    async def list_rated(
        self, account_id: int, session_id: Optional[str] = None, page: int = 1
    ) -> list[Movie]:
        """
        Films notes par le compte (cache 1 heure).

        Chaque film porte la note de l'utilisateur et est marque vu.
        """
        session = self._require_session(session_id)
        request = ApiRequest.get(
            f"/account/{account_id}/rated/movies",
            self._params(session_id=session, page=page),
        )

        def parse(data: dict[str, Any]) -> list[Movie]:
            return [movie.mark_watched() for movie in parse_movie_list(data)]

        return await self._cached(request, ResponseCache.USER_DATA_TTL, parse)

    async def list_watchlist(
        self, account_id: int, session_id: Optional[str] = None, page: int = 1
    ) -> list[Movie]:
        """Films de la watchlist du compte (cache 1 heure), marques vus."""
        session = self._require_session(session_id)
        request = ApiRequest.get(
            f"/account/{account_id}/watchlist/movies",
            self._params(session_id=session, page=page),
        )

        def parse(data: dict[str, Any]) -> list[Movie]:
            return [movie.mark_watched() for movie in parse_movie_list(data)]

        return await self._cached(request, ResponseCache.USER_DATA_TTL, parse)

    async def get_account_id(self, session_id: Optional[str] = None) -> int:
        """Identifiant du compte de la session (jamais cache)."""
        session = self._require_session(session_id)
        request = ApiRequest.get("/account", {"session_id": session})
        data = await self._transport.execute(request)
        try:
            return int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(
                ErrorCategory.MALFORMED_RESPONSE, "Identifiant de compte absent"
            ) from e

    async def close(self) -> None:
        """Ferme le transport HTTP."""
        await self._transport.close()
