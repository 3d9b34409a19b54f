"""
Acces a l'API TMDB.

Ce module fournit la chaine d'acces au catalogue:
- RateLimiter: Fenetre glissante (40 requetes / 10 secondes)
- RetryingTransport: Classification des erreurs et retry avec backoff exponentiel
- ResponseCache: Cache avec TTL par categorie et coalescence des requetes
- TMDBClient: Operations typees du catalogue

Le client implemente ICatalogClient defini dans core/ports/catalog.py.
"""

from cinereco.adapters.api.cache import CacheEntry, ResponseCache
from cinereco.adapters.api.rate_limiter import RateLimiter
from cinereco.adapters.api.request import ApiRequest, make_fingerprint
from cinereco.adapters.api.retry import RetryingTransport, classify_status
from cinereco.adapters.api.tmdb_client import TMDBClient

__all__ = [
    "ApiRequest",
    "CacheEntry",
    "RateLimiter",
    "ResponseCache",
    "RetryingTransport",
    "TMDBClient",
    "classify_status",
    "make_fingerprint",
]
