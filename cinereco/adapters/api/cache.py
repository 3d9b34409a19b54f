"""
Cache des reponses API avec TTL differencies et coalescence des requetes.

Le stockage est un dict en memoire par defaut, ou un repertoire diskcache
quand cache_dir est fourni (les entrees survivent alors aux redemarrages).
Les acces a diskcache sont executes hors de la boucle evenementielle via
run_in_executor. L'expiration est toujours decidee par CacheEntry, a la
lecture: une entree perimee n'est jamais servie et elle est evincee
paresseusement, jamais par un balayage proactif.

TTL par defaut:
- Details (DETAILS_TTL): 24 heures
- Genres (GENRES_TTL): 7 jours - catalogue quasi statique
- Listes (LISTING_TTL): 6 heures - discover et recommandations
- Recherches (SEARCH_TTL): 1 heure
- Donnees du compte (USER_DATA_TTL): 1 heure - notes et watchlist
- Mutations (NO_CACHE): jamais cachees
"""

import asyncio
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from diskcache import Cache
from loguru import logger


@dataclass(frozen=True)
class CacheEntry:
    """
    Entree du cache.

    Attributes:
        fingerprint: Empreinte de la requete (endpoint + parametres normalises)
        payload: Valeur cachee
        created_at: Instant de creation (horloge du cache)
        ttl: Duree de vie en secondes
    """

    fingerprint: str
    payload: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class ResponseCache:
    """
    Cache asynchrone avec TTL, au plus une recuperation en vol par empreinte.

    Les appelants concurrents qui demandent la meme empreinte partagent une
    seule tache (lecture du stockage puis, sur miss, recuperation) et
    recoivent la meme valeur ou la meme erreur. Les erreurs ne sont jamais
    cachees. Une invalidation detache les taches en vol concernees: leur
    resultat est remis a leurs appelants mais n'est pas stocke.

    Example:
        cache = ResponseCache()
        genres = await cache.get_or_fetch(
            "GET /genre/movie/list", ResponseCache.GENRES_TTL, fetch_genres
        )
    """

    DETAILS_TTL = 24 * 60 * 60  # 24 heures
    GENRES_TTL = 7 * 24 * 60 * 60  # 7 jours
    LISTING_TTL = 6 * 60 * 60  # 6 heures
    SEARCH_TTL = 60 * 60  # 1 heure
    USER_DATA_TTL = 60 * 60  # 1 heure
    NO_CACHE = 0

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialise le cache.

        Args:
            cache_dir: Repertoire diskcache pour un cache persistant,
                       None pour un cache en memoire
            clock: Horloge en secondes (injectable pour les tests)
        """
        self._persistent = bool(cache_dir)
        self._store = Cache(cache_dir) if cache_dir else {}
        self._clock = clock
        self._inflight: dict[str, asyncio.Task] = {}

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Execute un acces au stockage, hors de la boucle si diskcache."""
        if not self._persistent:
            return fn(*args)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    # Acces synchrones au stockage

    def _lookup(self, fingerprint: str) -> Optional[CacheEntry]:
        """Retourne l'entree fraiche, evince l'entree perimee."""
        entry = self._store.get(fingerprint)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._store.pop(fingerprint, None)
            logger.debug(f"Cache perime: {fingerprint}")
            return None
        return entry

    def _write(self, entry: CacheEntry) -> None:
        self._store[entry.fingerprint] = entry

    def _delete(self, fingerprint: str) -> None:
        self._store.pop(fingerprint, None)

    def _delete_prefix(self, prefix: str) -> int:
        keys = [key for key in list(self._store) if key.startswith(prefix)]
        for key in keys:
            self._store.pop(key, None)
        return len(keys)

    def _detach_inflight(self, predicate: Callable[[str], bool]) -> None:
        """Retire les taches en vol concernees: leur resultat ne sera pas stocke."""
        for fingerprint in [fp for fp in self._inflight if predicate(fp)]:
            del self._inflight[fingerprint]

    # Recuperation coalescee

    async def _load_or_refresh(
        self,
        fingerprint: str,
        ttl: float,
        fetch_fn: Callable[[], Awaitable[Any]],
    ) -> Any:
        current = asyncio.current_task()
        try:
            entry = await self._run(self._lookup, fingerprint)
            if entry is not None:
                logger.debug(f"Cache hit: {fingerprint}")
                return entry.payload

            logger.debug(f"Cache miss: {fingerprint}")
            payload = await fetch_fn()
            if self._inflight.get(fingerprint) is not current:
                logger.debug(f"Invalide pendant la recuperation, non cache: {fingerprint}")
                return payload

            await self._run(
                self._write,
                CacheEntry(
                    fingerprint=fingerprint,
                    payload=payload,
                    created_at=self._clock(),
                    ttl=ttl,
                ),
            )
            if self._inflight.get(fingerprint) is not current:
                # Invalidation survenue pendant l'ecriture disque
                await self._run(self._delete, fingerprint)
            return payload
        finally:
            if self._inflight.get(fingerprint) is current:
                del self._inflight[fingerprint]

    @staticmethod
    def _consume_exception(task: asyncio.Task) -> None:
        # Evite "Task exception was never retrieved" quand tous les appelants ont abandonne
        if not task.cancelled():
            task.exception()

    async def get_or_fetch(
        self,
        fingerprint: str,
        ttl: float,
        fetch_fn: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Retourne la valeur cachee ou la recupere via fetch_fn.

        Args:
            fingerprint: Empreinte de la requete
            ttl: Duree de vie en secondes (<= 0: jamais cache)
            fetch_fn: Coroutine de recuperation (appel reseau)

        Returns:
            La valeur cachee ou fraichement recuperee

        Raises:
            Toute exception levee par fetch_fn, pour tous les appelants coalesces
        """
        if ttl <= 0:
            return await fetch_fn()

        task = self._inflight.get(fingerprint)
        if task is None:
            if not self._persistent:
                entry = self._lookup(fingerprint)
                if entry is not None:
                    logger.debug(f"Cache hit: {fingerprint}")
                    return entry.payload

            task = asyncio.ensure_future(self._load_or_refresh(fingerprint, ttl, fetch_fn))
            task.add_done_callback(self._consume_exception)
            self._inflight[fingerprint] = task

        # shield: un appelant annule n'annule pas la recuperation partagee
        return await asyncio.shield(task)

    # Invalidation

    async def invalidate(self, fingerprint: str) -> None:
        """Supprime une entree du cache et detache sa recuperation en vol."""
        self._detach_inflight(lambda fp: fp == fingerprint)
        await self._run(self._delete, fingerprint)

    async def invalidate_prefix(self, prefix: str) -> int:
        """
        Supprime toutes les entrees dont l'empreinte commence par prefix.

        Les recuperations en vol pour ces empreintes sont detachees: un
        resultat obtenu avant l'invalidation n'est jamais stocke.

        Returns:
            Nombre d'entrees supprimees
        """
        self._detach_inflight(lambda fp: fp.startswith(prefix))
        return await self._run(self._delete_prefix, prefix)

    async def clear(self) -> None:
        """Supprime toutes les entrees du cache."""
        self._detach_inflight(lambda fp: True)
        await self._run(self._store.clear)

    def __len__(self) -> int:
        return len(self._store)

    def close(self) -> None:
        """Ferme le stockage disque (a appeler a la fin)."""
        if isinstance(self._store, Cache):
            self._store.close()
