"""
Limiteur de debit a fenetre glissante pour l'API TMDB.

Garantit qu'au plus `max_requests` requetes sont emises sur toute fenetre
glissante de `window_seconds` secondes (TMDB: 40 requetes / 10 secondes).
Une requete n'est jamais rejetee: acquire() attend qu'un creneau se libere.

Usage:
    limiter = RateLimiter(max_requests=40, window_seconds=10.0)
    await limiter.acquire()
    response = await client.get(...)
"""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable

from loguru import logger


class RateLimiter:
    """
    Fenetre glissante de timestamps monotones, partagee par tout le processus.

    Un creneau consomme a l'instant t occupe l'intervalle [t, t + window).
    Les appelants concurrents sont servis dans l'ordre d'arrivee: le verrou
    est conserve pendant l'attente, si bien que deux acquire() simultanes ne
    peuvent jamais depasser ensemble le quota.

    Attributes:
        max_requests: Nombre maximum de requetes par fenetre
        window_seconds: Duree de la fenetre glissante en secondes
    """

    def __init__(
        self,
        max_requests: int = 40,
        window_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialise le limiteur.

        Args:
            max_requests: Quota de requetes par fenetre (defaut: 40)
            window_seconds: Duree de la fenetre en secondes (defaut: 10)
            clock: Horloge monotone (injectable pour les tests)
            sleep: Fonction d'attente asynchrone (injectable pour les tests)
        """
        if max_requests < 1:
            raise ValueError("max_requests doit etre >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds doit etre > 0")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        """Retire les timestamps sortis de la fenetre glissante."""
        while self._timestamps and self._timestamps[0] + self.window_seconds <= now:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        """
        Attend un creneau libre puis l'enregistre.

        Ne rejette jamais: retarde seulement l'appelant jusqu'a ce que le
        plus ancien creneau de la fenetre expire.
        """
        async with self._lock:
            while True:
                now = self._clock()
                self._evict(now)
                if len(self._timestamps) < self.max_requests:
                    self._timestamps.append(now)
                    return
                wait = self._timestamps[0] + self.window_seconds - now
                logger.debug(f"Quota atteint, attente de {wait:.3f}s")
                await self._sleep(wait)

    def in_window(self) -> int:
        """Nombre de creneaux consommes dans la fenetre courante."""
        self._evict(self._clock())
        return len(self._timestamps)

    def available_slots(self) -> int:
        """Nombre de creneaux encore disponibles sans attendre."""
        return self.max_requests - self.in_window()
