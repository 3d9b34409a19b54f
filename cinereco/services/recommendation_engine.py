"""
Moteur de recommandation.

Compose les appels au catalogue en lots de recommandations personnalises,
par genre ou populaires, puis applique le filtre d'exclusion (films deja
notes ou vus) en toute derniere etape.

Les seules substitutions autorisees sont des replis de politique:
personnalise -> populaire (profil non authentifie, pas d'historique) et
vide -> populaire. Une erreur du catalogue n'est jamais masquee en succes vide.
"""

import asyncio
from collections import defaultdict
from typing import Any, Awaitable, Callable, Collection, Iterable, Optional, TypeVar

from loguru import logger

from cinereco.core.entities.media import Movie
from cinereco.core.entities.recommendation import (
    RecommendationResult,
    RecommendationSource,
    UserProfile,
)
from cinereco.core.errors import CatalogError, ErrorCategory
from cinereco.core.ports.catalog import ICatalogClient
from cinereco.core.ports.collaborators import (
    EXCLUDED_MOVIE_IDS_KEY,
    PREFERRED_GENRE_IDS_KEY,
    IStore,
)

T = TypeVar("T")

POPULARITY_SORT = "popularity.desc"


def filter_excluded(movies: Iterable[Movie], exclude_ids: Collection[int]) -> list[Movie]:
    """
    Retire les films dont l'identifiant est exclu.

    Fonction pure: ordre conserve, pas d'effet de bord, idempotente.

    Args:
        movies: Films candidats
        exclude_ids: Identifiants a exclure (notes ou vus)

    Returns:
        Nouvelle liste des films eligibles
    """
    if not exclude_ids:
        return list(movies)
    excluded = frozenset(exclude_ids)
    return [movie for movie in movies if movie.id not in excluded]


def merge_unique(batches: Iterable[Iterable[Movie]]) -> list[Movie]:
    """Fusionne des lots en dedoublonnant par identifiant (premiere occurrence gagne)."""
    seen: set[int] = set()
    merged: list[Movie] = []
    for batch in batches:
        for movie in batch:
            if movie.id not in seen:
                seen.add(movie.id)
                merged.append(movie)
    return merged


def derive_genre_weights(
    rated_movies: Iterable[Movie],
    midpoint: float = 5.0,
    preferred_genre_ids: Collection[int] = (),
    preferred_bonus: float = 0.0,
) -> dict[int, float]:
    """
    Calcule le poids net de chaque genre a partir des notes de l'utilisateur.

    Chaque film note apporte (note - midpoint) a chacun de ses genres: une
    note au-dessus du point milieu renforce le genre, en dessous elle le
    penalise. Les genres preferes du profil recoivent preferred_bonus.

    Args:
        rated_movies: Films notes (user_rating renseigne)
        midpoint: Point milieu de l'echelle de notes
        preferred_genre_ids: Genres preferes declares par l'utilisateur
        preferred_bonus: Bonus ajoute a chaque genre prefere

    Returns:
        Dict genre_id -> poids net (positif ou non)
    """
    weights: dict[int, float] = defaultdict(float)
    for movie in rated_movies:
        if movie.user_rating is None:
            continue
        delta = movie.user_rating - midpoint
        for genre_id in movie.genre_ids:
            weights[genre_id] += delta
    if preferred_bonus:
        for genre_id in preferred_genre_ids:
            weights[genre_id] += preferred_bonus
    return dict(weights)


def top_genres(weights: dict[int, float], limit: int) -> list[int]:
    """Genres de poids strictement positif, du plus lourd au plus leger."""
    positive = [(genre_id, weight) for genre_id, weight in weights.items() if weight > 0]
    positive.sort(key=lambda item: (-item[1], item[0]))
    return [genre_id for genre_id, _ in positive[:limit]]


class RecommendationEngine:
    """
    Service de recommandation de films.

    Sans etat entre deux appels: le profil, l'historique de notes et
    l'ensemble d'exclusion sont fournis par l'appelant a chaque appel (ou,
    pour l'exclusion, lus une fois dans le Store).

    Example:
        engine = RecommendationEngine(catalog=client, store=store)
        result = await engine.get_personalized(profile, page=1, rated_movies=rated)
        for movie in result.movies:
            print(movie.title)
    """

    def __init__(
        self,
        catalog: ICatalogClient,
        store: Optional[IStore] = None,
        max_weighted_genres: int = 3,
        rating_midpoint: float = 5.0,
        preferred_genre_bonus: float = 1.0,
        similar_seed_count: int = 3,
        similar_seed_min_rating: float = 7.0,
        similar_per_seed: int = 5,
        call_deadline: Optional[float] = None,
    ) -> None:
        """
        Initialise le moteur.

        Args:
            catalog: Client du catalogue
            store: Stockage des preferences locales (lecture seule)
            max_weighted_genres: Nombre de genres interroges en mode personnalise
            rating_midpoint: Point milieu de la ponderation des genres
            preferred_genre_bonus: Bonus des genres preferes du profil
            similar_seed_count: Nombre de films bien notes servant de graines
            similar_seed_min_rating: Note minimale d'une graine
            similar_per_seed: Nombre de films similaires retenus par graine
            call_deadline: Duree maximale d'un appel du moteur (secondes), None sans limite
        """
        self._catalog = catalog
        self._store = store
        self._max_weighted_genres = max_weighted_genres
        self._rating_midpoint = rating_midpoint
        self._preferred_genre_bonus = preferred_genre_bonus
        self._similar_seed_count = similar_seed_count
        self._similar_seed_min_rating = similar_seed_min_rating
        self._similar_per_seed = similar_per_seed
        self._call_deadline = call_deadline

    async def _bounded(self, operation: Awaitable[T]) -> T:
        """Applique le plafond de duree totale d'un appel du moteur."""
        try:
            if self._call_deadline is None:
                return await operation
            try:
                return await asyncio.wait_for(operation, self._call_deadline)
            except asyncio.TimeoutError as e:
                raise CatalogError(
                    ErrorCategory.TRANSIENT_NETWORK,
                    f"Delai total de {self._call_deadline}s depasse",
                ) from e
        except CatalogError as e:
            logger.warning(f"Erreur catalogue remontee: {e}")
            raise

    def _resolve_exclusions(self, exclude_ids: Optional[Collection[int]]) -> frozenset[int]:
        if exclude_ids is not None:
            return frozenset(exclude_ids)
        if self._store is None:
            return frozenset()
        return frozenset(self._store.get(EXCLUDED_MOVIE_IDS_KEY) or ())

    def _preferred_genres(self, profile: UserProfile) -> frozenset[int]:
        if profile.preferred_genre_ids or self._store is None:
            return profile.preferred_genre_ids
        return frozenset(self._store.get(PREFERRED_GENRE_IDS_KEY) or ())

    def _similar_seeds(self, rated_movies: Iterable[Movie]) -> list[Movie]:
        """Films les mieux notes, au-dessus de la note minimale."""
        liked = [
            movie
            for movie in rated_movies
            if movie.user_rating is not None
            and movie.user_rating >= self._similar_seed_min_rating
        ]
        liked.sort(key=lambda movie: -movie.user_rating)
        return liked[: self._similar_seed_count]

    async def _top_similar(self, seed_id: int, page: int) -> list[Movie]:
        """Premiers films similaires a une graine, dans l'ordre du catalogue."""
        movies = await self._catalog.get_similar(seed_id, page=page)
        return movies[: self._similar_per_seed]

    # Operations publiques

    async def get_personalized(
        self,
        profile: UserProfile,
        page: int = 1,
        exclude_ids: Optional[Collection[int]] = None,
        rated_movies: Optional[Iterable[Movie]] = None,
    ) -> RecommendationResult:
        """
        Recommandations personnalisees a partir de l'historique de notes.

        Repli sur get_popular si le profil n'est pas authentifie, si
        l'historique est vide ou si aucun candidat ne survit au filtrage.

        Args:
            profile: Instantane du profil utilisateur
            page: Page demandee
            exclude_ids: Films a exclure, None pour lire le Store
            rated_movies: Historique de notes fourni par l'appelant

        Returns:
            RecommendationResult tague personalized (ou popular en repli)

        Raises:
            CatalogError: Erreur du catalogue, propagee telle quelle
        """
        excluded = self._resolve_exclusions(exclude_ids)
        return await self._bounded(
            self._personalized(profile, page, excluded, list(rated_movies or ()))
        )

    async def get_genre_based(
        self,
        genre_ids: Iterable[int],
        page: int = 1,
        exclude_ids: Optional[Collection[int]] = None,
    ) -> RecommendationResult:
        """Recommandations a partir de genres choisis (sans ponderation)."""
        excluded = self._resolve_exclusions(exclude_ids)
        return await self._bounded(self._genre_based(list(genre_ids), page, excluded))

    async def get_popular(
        self,
        page: int = 1,
        exclude_ids: Optional[Collection[int]] = None,
    ) -> RecommendationResult:
        """Films populaires, filtres par l'ensemble d'exclusion."""
        excluded = self._resolve_exclusions(exclude_ids)
        return await self._bounded(self._popular(page, excluded))

    async def get_similar(
        self,
        movie_id: int,
        exclude_ids: Optional[Collection[int]] = None,
        page: int = 1,
    ) -> list[Movie]:
        """Films similaires selon le fournisseur, filtres par l'exclusion."""
        excluded = self._resolve_exclusions(exclude_ids)
        movies = await self._bounded(self._catalog.get_similar(movie_id, page=page))
        return filter_excluded(movies, excluded)

    async def collect_exclusions(
        self, profile: UserProfile, pages: int = 1
    ) -> frozenset[int]:
        """
        Construit l'ensemble d'exclusion d'un utilisateur.

        Union de l'amorce du Store, des films notes et de la watchlist du
        compte (si le profil est authentifie).

        Args:
            profile: Instantane du profil utilisateur
            pages: Nombre maximum de pages lues par liste

        Returns:
            Identifiants a ne jamais recommander
        """
        seed = self._resolve_exclusions(None)
        if not profile.is_authenticated:
            return seed

        async def collect() -> frozenset[int]:
            session = profile.session_id
            account_id = profile.account_id
            if account_id is None:
                account_id = await self._catalog.get_account_id(session)

            async def ids_from(fetch: Callable[..., Awaitable[list[Movie]]]) -> set[int]:
                ids: set[int] = set()
                for page in range(1, pages + 1):
                    batch = await fetch(account_id, session, page=page)
                    if not batch:
                        break
                    ids.update(movie.id for movie in batch)
                return ids

            rated, watchlist = await asyncio.gather(
                ids_from(self._catalog.list_rated),
                ids_from(self._catalog.list_watchlist),
            )
            return seed | rated | watchlist

        return await self._bounded(collect())

    async def rate_movie(
        self,
        movie_id: int,
        score: float,
        exclude_ids: Collection[int] = (),
        session_id: Optional[str] = None,
    ) -> frozenset[int]:
        """
        Note un film et retourne le nouvel ensemble d'exclusion.

        L'appelant reste proprietaire de l'etat: l'ensemble d'origine n'est
        pas modifie.
        """
        success = await self._bounded(self._catalog.rate(movie_id, score, session_id))
        excluded = frozenset(exclude_ids)
        if success:
            return excluded | {movie_id}
        logger.warning(f"Note du film {movie_id} refusee par le catalogue")
        return excluded

    # Pipelines

    async def _personalized(
        self,
        profile: UserProfile,
        page: int,
        excluded: frozenset[int],
        rated_movies: list[Movie],
    ) -> RecommendationResult:
        if not profile.is_authenticated or not rated_movies:
            logger.info("Profil sans session ou sans historique, repli sur les films populaires")
            return await self._popular(page, excluded, fallback_from=RecommendationSource.PERSONALIZED)

        weights = derive_genre_weights(
            rated_movies,
            midpoint=self._rating_midpoint,
            preferred_genre_ids=self._preferred_genres(profile),
            preferred_bonus=self._preferred_genre_bonus,
        )
        genres = top_genres(weights, self._max_weighted_genres)
        seeds = self._similar_seeds(rated_movies)
        logger.debug(f"Genres ponderes: {genres}, graines: {[m.id for m in seeds]}")

        batches = await asyncio.gather(
            *(self._catalog.discover(genre_ids=[genre_id], page=page) for genre_id in genres),
            *(self._top_similar(seed.id, page) for seed in seeds),
        )
        candidates = merge_unique(batches)
        movies = filter_excluded(candidates, excluded)

        if not movies:
            logger.info("Aucun candidat personnalise, repli sur les films populaires")
            return await self._popular(page, excluded, fallback_from=RecommendationSource.PERSONALIZED)

        return RecommendationResult(
            movies=tuple(movies),
            source=RecommendationSource.PERSONALIZED,
            metadata={
                "page": page,
                "genre_ids": genres,
                "genre_weights": {genre_id: weights[genre_id] for genre_id in genres},
                "similar_seed_ids": [seed.id for seed in seeds],
                "rated_movies_count": len(rated_movies),
                "candidates_count": len(candidates),
                "algorithm": "genre_weighted",
            },
        )

    async def _genre_based(
        self,
        genre_ids: list[int],
        page: int,
        excluded: frozenset[int],
    ) -> RecommendationResult:
        genres = list(dict.fromkeys(genre_ids))
        if not genres:
            return await self._popular(page, excluded, fallback_from=RecommendationSource.GENRE)

        batches = await asyncio.gather(
            *(self._catalog.discover(genre_ids=[genre_id], page=page) for genre_id in genres)
        )
        candidates = merge_unique(batches)
        movies = filter_excluded(candidates, excluded)

        if not movies:
            logger.info(f"Aucun candidat pour les genres {genres}, repli sur les films populaires")
            return await self._popular(page, excluded, fallback_from=RecommendationSource.GENRE)

        return RecommendationResult(
            movies=tuple(movies),
            source=RecommendationSource.GENRE,
            metadata={
                "page": page,
                "genre_ids": genres,
                "sort_by": POPULARITY_SORT,
                "candidates_count": len(candidates),
            },
        )

    async def _popular(
        self,
        page: int,
        excluded: frozenset[int],
        fallback_from: Optional[RecommendationSource] = None,
    ) -> RecommendationResult:
        movies = await self._catalog.discover(page=page, sort_by=POPULARITY_SORT)
        metadata: dict[str, Any] = {
            "page": page,
            "sort_by": POPULARITY_SORT,
            "fallback": fallback_from is not None,
        }
        if fallback_from is not None:
            metadata["fallback_from"] = fallback_from.value
        return RecommendationResult(
            movies=tuple(filter_excluded(movies, excluded)),
            source=RecommendationSource.POPULAR,
            metadata=metadata,
        )
