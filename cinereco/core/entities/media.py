"""
Media metadata entities.

Immutable values built from TMDB responses. A new user rating produces a
new Movie, never an in-place mutation.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Genre:
    """
    Movie genre from the TMDB closed catalog.

    Attributes:
        id: TMDB genre ID
        name: Display name
    """

    id: int
    name: str


@dataclass(frozen=True)
class Movie:
    """
    Movie metadata from TMDB.

    Attributes:
        id: TMDB movie ID (unique)
        title: Localized title
        overview: Plot summary
        poster_path: Path to poster image on TMDB CDN
        backdrop_path: Path to backdrop image on TMDB CDN
        genre_ids: Ordered genre IDs, without duplicates
        vote_average: Average score (0.0 - 10.0)
        release_date: Release date (YYYY-MM-DD, may be empty)
        runtime: Runtime in minutes
        user_rating: Rating given by the user (0.5 - 10.0), None if unrated
        is_watched: True if the movie is known as watched
    """

    id: int
    title: str
    overview: str = ""
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    genre_ids: tuple[int, ...] = ()
    vote_average: float = 0.0
    release_date: str = ""
    runtime: Optional[int] = None
    user_rating: Optional[float] = None
    is_watched: bool = False

    @property
    def release_year(self) -> Optional[int]:
        """Year extracted from release_date, or None."""
        if len(self.release_date) >= 4 and self.release_date[:4].isdigit():
            return int(self.release_date[:4])
        return None

    def poster_url(self, image_base_url: str) -> Optional[str]:
        """Full poster URL, or None without poster."""
        if not self.poster_path:
            return None
        return f"{image_base_url}{self.poster_path}"

    def with_rating(self, score: Optional[float]) -> "Movie":
        """Returns a copy carrying the given user rating."""
        return replace(self, user_rating=score)

    def mark_watched(self) -> "Movie":
        return replace(self, is_watched=True)
