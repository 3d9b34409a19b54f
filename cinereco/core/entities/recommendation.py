"""
Recommendation entities: user profile snapshot and recommendation batch.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from cinereco.core.entities.media import Movie


class RecommendationSource(str, Enum):
    """Origin of a recommendation batch."""

    PERSONALIZED = "personalized"
    GENRE = "genre"
    POPULAR = "popular"


@dataclass(frozen=True)
class UserProfile:
    """
    Snapshot of the user as seen by the recommendation engine.

    Owned by the caller: a changed profile must be passed again, the engine
    never keeps a reference between calls.

    Attributes:
        session_id: TMDB session (present iff authenticated)
        account_id: TMDB account ID
        preferred_genre_ids: Genres chosen by the user
    """

    session_id: Optional[str] = None
    account_id: Optional[int] = None
    preferred_genre_ids: frozenset[int] = frozenset()

    @property
    def is_authenticated(self) -> bool:
        return self.session_id is not None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RecommendationResult:
    """
    Ordered batch of recommended movies.

    Attributes:
        movies: Recommended movies, in display order
        source: Which pipeline produced the batch
        metadata: Free-form details (page, genres, fallback...)
        created_at: Creation time (UTC), used by callers for staleness
    """

    movies: tuple[Movie, ...]
    source: RecommendationSource
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_empty(self) -> bool:
        return not self.movies

    @property
    def movie_ids(self) -> list[int]:
        return [movie.id for movie in self.movies]

    def is_stale(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        """True if the batch is older than max_age."""
        now = now or _utcnow()
        return now - self.created_at > max_age
