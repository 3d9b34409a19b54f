"""
Fixtures pytest partagees pour les tests CineReco.

Ce module contient les fixtures communes utilisees dans les tests:
- Horloge factice (limiteur de debit, TTL du cache)
- Fabrique de films
- Mock du catalogue (ICatalogClient)
- Settings de test avec chemins temporaires
"""

import asyncio
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from cinereco.config import Settings
from cinereco.core.entities.media import Movie
from cinereco.core.ports.catalog import ICatalogClient


class FakeClock:
    """
    Horloge controlee par le test.

    Appelable comme time.monotonic; sleep() avance le temps au lieu
    d'attendre reellement.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += max(seconds, 0.0)
        await asyncio.sleep(0)


def make_movie(
    movie_id: int,
    genre_ids: tuple[int, ...] = (),
    user_rating: Optional[float] = None,
    title: Optional[str] = None,
) -> Movie:
    """Film minimal pour les tests."""
    return Movie(
        id=movie_id,
        title=title or f"Film {movie_id}",
        genre_ids=genre_ids,
        vote_average=7.0,
        release_date="2020-01-01",
        user_rating=user_rating,
    )


@pytest.fixture
def clock() -> FakeClock:
    """Horloge factice demarrant a t=0."""
    return FakeClock()


@pytest.fixture
def mock_catalog() -> AsyncMock:
    """
    Mock de ICatalogClient pour les tests.

    discover et get_similar retournent une liste vide par defaut.
    Configurer le mock dans chaque test pour des comportements specifiques.
    """
    catalog = AsyncMock(spec=ICatalogClient)
    catalog.discover.return_value = []
    catalog.get_similar.return_value = []
    return catalog


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings de test isoles de l'environnement."""
    return Settings(
        _env_file=None,
        tmdb_api_key="test_api_key",
        tmdb_session_id="test_session",
        cache_dir=None,
        backoff_base_seconds=0.0,
        backoff_max_seconds=0.0,
        log_file=tmp_path / "test.log",
    )
