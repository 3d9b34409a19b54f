"""
Application services layer (use cases).

Services orchestrate the domain logic to fulfill application use cases.
They depend on ports (interfaces) from core/, never on concrete
implementations from adapters/.

This layer contains:
- RecommendationEngine: personalized, genre-based and popular batches
- filter_excluded / derive_genre_weights: pure selection helpers
"""

from cinereco.services.recommendation_engine import (
    RecommendationEngine,
    derive_genre_weights,
    filter_excluded,
    merge_unique,
    top_genres,
)

__all__ = [
    "RecommendationEngine",
    "derive_genre_weights",
    "filter_excluded",
    "merge_unique",
    "top_genres",
]
