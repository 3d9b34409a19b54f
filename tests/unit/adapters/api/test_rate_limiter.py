"""
Tests unitaires pour le limiteur de debit a fenetre glissante.

Ces tests verifient:
- Les requetes sous le quota passent sans attente
- Une requete au-dela du quota attend l'expiration du plus ancien creneau
- Aucune fenetre glissante ne contient plus de max_requests completions,
  meme avec des appelants concurrents
- La fenetre est glissante (pas de doublement du debit a une frontiere)
"""

import asyncio

import pytest

from cinereco.adapters.api.rate_limiter import RateLimiter
from tests.conftest import FakeClock


def _max_in_any_window(times: list[float], window: float) -> int:
    """Nombre maximum de completions dans un intervalle [t, t + window)."""
    ordered = sorted(times)
    best = 0
    for i, start in enumerate(ordered):
        count = sum(1 for t in ordered[i:] if t < start + window)
        best = max(best, count)
    return best


class TestRateLimiterInit:
    """Tests pour la validation des parametres."""

    def test_rejects_zero_quota(self) -> None:
        """max_requests doit etre strictement positif."""
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0)

    def test_rejects_non_positive_window(self) -> None:
        """window_seconds doit etre strictement positif."""
        with pytest.raises(ValueError):
            RateLimiter(window_seconds=0)

    def test_defaults_match_tmdb_quota(self) -> None:
        """Par defaut: 40 requetes par 10 secondes."""
        limiter = RateLimiter()
        assert limiter.max_requests == 40
        assert limiter.window_seconds == 10.0


class TestRateLimiterAcquire:
    """Tests pour acquire()."""

    @pytest.mark.asyncio
    async def test_requests_under_quota_do_not_wait(self, clock: FakeClock) -> None:
        """Les 40 premieres requetes passent immediatement."""
        limiter = RateLimiter(40, 10.0, clock=clock, sleep=clock.sleep)

        for _ in range(40):
            await limiter.acquire()

        assert clock.sleeps == []
        assert clock.now == 0.0
        assert limiter.available_slots() == 0

    @pytest.mark.asyncio
    async def test_request_over_quota_waits_for_oldest_slot(self, clock: FakeClock) -> None:
        """La 41e requete attend que le premier creneau sorte de la fenetre."""
        limiter = RateLimiter(40, 10.0, clock=clock, sleep=clock.sleep)

        for _ in range(40):
            await limiter.acquire()
        await limiter.acquire()

        assert clock.now == pytest.approx(10.0)
        assert limiter.in_window() == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_never_exceed_quota(self, clock: FakeClock) -> None:
        """100 acquire() concurrents: aucune fenetre de 10s ne depasse 40."""
        limiter = RateLimiter(40, 10.0, clock=clock, sleep=clock.sleep)
        completions: list[float] = []

        async def worker() -> None:
            await limiter.acquire()
            completions.append(clock())

        await asyncio.gather(*[worker() for _ in range(100)])

        assert len(completions) == 100
        assert _max_in_any_window(completions, 10.0) <= 40

    @pytest.mark.asyncio
    async def test_window_is_sliding_not_fixed(self, clock: FakeClock) -> None:
        """Une rafale juste avant une frontiere ne double pas le debit."""
        limiter = RateLimiter(40, 10.0, clock=clock, sleep=clock.sleep)

        await limiter.acquire()  # t=0
        clock.advance(9.5)
        for _ in range(39):
            await limiter.acquire()  # t=9.5
        clock.advance(0.5)  # t=10.0: seul le creneau de t=0 a expire

        assert limiter.available_slots() == 1

        await limiter.acquire()
        assert clock.now == pytest.approx(10.0)

        await limiter.acquire()  # doit attendre t=19.5
        assert clock.now == pytest.approx(19.5)

    @pytest.mark.asyncio
    async def test_slots_free_up_after_window(self, clock: FakeClock) -> None:
        """Apres une fenetre complete, le quota est entierement disponible."""
        limiter = RateLimiter(5, 1.0, clock=clock, sleep=clock.sleep)

        for _ in range(5):
            await limiter.acquire()
        clock.advance(1.0)

        assert limiter.available_slots() == 5

    @pytest.mark.asyncio
    async def test_real_clock_small_quota(self) -> None:
        """Avec l'horloge reelle, un quota de 2 par 0.05s retarde la 3e requete."""
        limiter = RateLimiter(max_requests=2, window_seconds=0.05)
        loop = asyncio.get_running_loop()

        start = loop.time()
        for _ in range(3):
            await limiter.acquire()
        elapsed = loop.time() - start

        assert elapsed >= 0.04
