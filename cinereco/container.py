"""
Container d'injection de dependances via dependency-injector.

Instancie une seule fois par processus les ressources partagees (limiteur
de debit, cache, transport HTTP, client TMDB) et fabrique le moteur de
recommandation. Les ressources sont creees au demarrage et liberees par
shutdown() a l'arret.
"""

from dependency_injector import containers, providers

from .adapters.api.cache import ResponseCache
from .adapters.api.rate_limiter import RateLimiter
from .adapters.api.retry import RetryingTransport
from .adapters.api.tmdb_client import TMDBClient
from .adapters.auth import StaticAuthProvider
from .adapters.store import MemoryStore
from .config import Settings
from .services.recommendation_engine import RecommendationEngine


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        engine = container.recommendation_engine()
        result = await engine.get_popular(page=1)
        await shutdown(container)
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Etat partage du processus : fenetre du limiteur et entrees du cache
    rate_limiter = providers.Singleton(
        RateLimiter,
        max_requests=config.provided.rate_limit_max_requests,
        window_seconds=config.provided.rate_limit_window_seconds,
    )

    response_cache = providers.Singleton(
        ResponseCache,
        cache_dir=config.provided.cache_path,
    )

    transport = providers.Singleton(
        RetryingTransport,
        rate_limiter=rate_limiter,
        api_key=config.provided.tmdb_api_key,
        base_url=config.provided.tmdb_base_url,
        timeout=config.provided.request_timeout_seconds,
        max_attempts=config.provided.max_attempts,
        backoff_base=config.provided.backoff_base_seconds,
        backoff_max=config.provided.backoff_max_seconds,
    )

    # Collaborateurs externes
    auth_provider = providers.Singleton(
        StaticAuthProvider,
        session_id=config.provided.tmdb_session_id,
    )
    store = providers.Singleton(MemoryStore)

    # Client catalogue - Singleton partage par tous les appelants
    catalog_client = providers.Singleton(
        TMDBClient,
        transport=transport,
        cache=response_cache,
        auth_provider=auth_provider,
        language=config.provided.language,
    )

    # Moteur - Factory, sans etat entre deux appels
    recommendation_engine = providers.Factory(
        RecommendationEngine,
        catalog=catalog_client,
        store=store,
        max_weighted_genres=config.provided.max_weighted_genres,
        rating_midpoint=config.provided.rating_midpoint,
        preferred_genre_bonus=config.provided.preferred_genre_bonus,
        similar_per_seed=config.provided.similar_per_seed,
        call_deadline=config.provided.effective_call_deadline,
    )


async def shutdown(container: Container) -> None:
    """Libere le client HTTP et ferme le cache disque."""
    await container.catalog_client().close()
    container.response_cache().close()
