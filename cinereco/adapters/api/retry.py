"""
Transport HTTP avec classification des erreurs et retry borne.

Chaque tentative consomme un creneau du RateLimiter puis effectue l'appel
reseau. Les echecs sont classes (voir ErrorCategory); seuls les echecs
transitoires (reseau, 429, 5xx) sont relances, avec un backoff exponentiel.
Apres epuisement des tentatives, la derniere CatalogError est levee.

Usage:
    transport = RetryingTransport(rate_limiter, api_key="xxx")
    data = await transport.execute(ApiRequest.get("/genre/movie/list"))
    await transport.close()
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from cinereco.adapters.api.rate_limiter import RateLimiter
from cinereco.adapters.api.request import ApiRequest
from cinereco.core.errors import CatalogError, ErrorCategory


def classify_status(status_code: int) -> Optional[ErrorCategory]:
    """
    Classe un code HTTP.

    Args:
        status_code: Code de statut de la reponse

    Returns:
        La categorie d'erreur, ou None pour un succes (2xx)
    """
    if 200 <= status_code < 300:
        return None
    if status_code in (401, 403):
        return ErrorCategory.AUTH_ERROR
    if status_code == 429:
        return ErrorCategory.RATE_LIMITED
    if status_code >= 500:
        return ErrorCategory.SERVER_ERROR
    return ErrorCategory.CLIENT_ERROR


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    header = response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return max(float(header), 0.0)
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    """Extrait status_message du corps TMDB si present."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("status_message"):
        return str(data["status_message"])
    return f"HTTP {response.status_code}"


def _is_retryable_error(exc: BaseException) -> bool:
    return isinstance(exc, CatalogError) and exc.retryable


class RetryingTransport:
    """
    Transport asynchrone vers l'API TMDB.

    Supporte les deux modes d'authentification TMDB:
    - API Key v3 (32 caracteres hex) : passe en parametre api_key
    - Read Access Token v4 (long JWT) : passe en header Bearer

    Attributes:
        TMDB_BASE_URL: URL de base de l'API TMDB v3
    """

    TMDB_BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        rate_limiter: RateLimiter,
        api_key: Optional[str] = "",
        base_url: str = TMDB_BASE_URL,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 8.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialise le transport.

        Args:
            rate_limiter: Limiteur partage par tout le processus
            api_key: Cle API TMDB (v3) ou Read Access Token (v4)
            base_url: URL de base de l'API
            timeout: Delai maximum par tentative, en secondes
            max_attempts: Nombre maximum de tentatives (defaut: 3)
            backoff_base: Delai du premier backoff en secondes
            backoff_max: Plafond du delai de backoff en secondes
            sleep: Fonction d'attente entre tentatives (injectable pour les tests)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts doit etre >= 1")
        self._rate_limiter = rate_limiter
        self._api_key = api_key or ""
        self._base_url = base_url
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff = wait_exponential(multiplier=backoff_base, max=backoff_max)
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def timeout(self) -> float:
        return self._timeout

    def _get_client(self) -> httpx.AsyncClient:
        """
        Retourne le client HTTP, le cree si necessaire (lazy init).

        Returns:
            httpx.AsyncClient configure pour l'API TMDB
        """
        if self._client is None or self._client.is_closed:
            # Detecter le type de cle : v3 (32 hex) vs v4 (long JWT)
            is_v4_token = len(self._api_key) > 40

            headers = {"Accept": "application/json"}
            params = {}

            if is_v4_token:
                headers["Authorization"] = f"Bearer {self._api_key}"
            elif self._api_key:
                params["api_key"] = self._api_key

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                params=params,
                timeout=self._timeout,
            )
        return self._client

    def _wait(self, retry_state: RetryCallState) -> float:
        """Backoff exponentiel, au moins egal au Retry-After d'un 429."""
        delay = self._backoff(retry_state)
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            exc = outcome.exception()
            if isinstance(exc, CatalogError) and exc.retry_after is not None:
                delay = max(delay, exc.retry_after)
        return delay

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Tentative {retry_state.attempt_number} echouee ({exc}), "
            f"nouvel essai dans {delay:.2f}s"
        )

    async def _attempt(self, request: ApiRequest) -> dict[str, Any]:
        """Une tentative: creneau du limiteur, appel reseau, classification."""
        await self._rate_limiter.acquire()
        client = self._get_client()
        try:
            response = await client.request(
                request.method,
                request.path,
                params=request.query_params,
                json=request.body,
            )
        except httpx.TimeoutException as e:
            raise CatalogError(
                ErrorCategory.TRANSIENT_NETWORK, f"Delai depasse: {request.path}"
            ) from e
        except httpx.TransportError as e:
            raise CatalogError(
                ErrorCategory.TRANSIENT_NETWORK, f"Erreur reseau: {e}"
            ) from e
        except httpx.DecodingError as e:
            # Corps compresse (gzip/deflate) illisible
            raise CatalogError(
                ErrorCategory.MALFORMED_RESPONSE, f"Corps de reponse illisible: {e}"
            ) from e
        except httpx.RequestError as e:
            raise CatalogError(
                ErrorCategory.TRANSIENT_NETWORK, f"Echec de la requete: {e}"
            ) from e

        category = classify_status(response.status_code)
        if category is not None:
            raise CatalogError(
                category,
                _error_message(response),
                status_code=response.status_code,
                retry_after=_parse_retry_after(response),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogError(
                ErrorCategory.MALFORMED_RESPONSE,
                f"Reponse JSON invalide: {request.path}",
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise CatalogError(
                ErrorCategory.MALFORMED_RESPONSE,
                f"Objet JSON attendu: {request.path}",
                status_code=response.status_code,
            )
        return data

    async def execute(self, request: ApiRequest) -> dict[str, Any]:
        """
        Execute une requete avec retry sur les erreurs transitoires.

        Args:
            request: Requete a executer

        Returns:
            Corps JSON de la reponse

        Raises:
            CatalogError: Derniere erreur classee apres epuisement des
                tentatives, ou premiere erreur non relancable
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable_error),
            wait=self._wait,
            stop=stop_after_attempt(self._max_attempts),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        logger.debug(f"{request.method} {request.path}")
        return await retrying(self._attempt, request)

    async def close(self) -> None:
        """
        Ferme le client HTTP.

        Doit etre appele a la fin de l'utilisation pour liberer
        les ressources reseau.
        """
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
