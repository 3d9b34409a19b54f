"""
Business entities representing core domain concepts.

All entities are immutable values created per call.

Exports:
- Movie: Movie metadata from TMDB
- Genre: Genre from the TMDB genre catalog
- UserProfile: Caller-owned snapshot of the user
- RecommendationResult: Ordered batch of recommended movies
- RecommendationSource: personalized / genre / popular
"""

from cinereco.core.entities.media import Genre, Movie
from cinereco.core.entities.recommendation import (
    RecommendationResult,
    RecommendationSource,
    UserProfile,
)

__all__ = [
    "Genre",
    "Movie",
    "RecommendationResult",
    "RecommendationSource",
    "UserProfile",
]
