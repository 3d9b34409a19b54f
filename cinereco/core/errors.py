"""
Taxonomie des erreurs du catalogue.

Toute défaillance remontée par la couche d'accès à l'API porte une catégorie
(ErrorCategory). Le transport classe les erreurs, le client et le moteur de
recommandation les propagent telles quelles.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Catégorie d'une défaillance de l'API catalogue."""

    TRANSIENT_NETWORK = "transient-network"
    RATE_LIMITED = "rate-limited"
    CLIENT_ERROR = "client-error"
    AUTH_ERROR = "auth-error"
    SERVER_ERROR = "server-error"
    MALFORMED_RESPONSE = "malformed-response"


RETRYABLE_CATEGORIES = frozenset({
    ErrorCategory.TRANSIENT_NETWORK,
    ErrorCategory.RATE_LIMITED,
    ErrorCategory.SERVER_ERROR,
})

_USER_MESSAGES = {
    ErrorCategory.TRANSIENT_NETWORK: "Vérifiez votre connexion internet et réessayez",
    ErrorCategory.RATE_LIMITED: "Trop de requêtes, réessayez dans quelques secondes",
    ErrorCategory.CLIENT_ERROR: "Requête invalide",
    ErrorCategory.AUTH_ERROR: "Authentification échouée, reconnectez-vous",
    ErrorCategory.SERVER_ERROR: "Service indisponible, réessayez plus tard",
    ErrorCategory.MALFORMED_RESPONSE: "Données reçues invalides",
}


def is_retryable(category: ErrorCategory) -> bool:
    """Indique si une erreur de cette catégorie peut être relancée."""
    return category in RETRYABLE_CATEGORIES


def user_message(category: ErrorCategory) -> str:
    """Message lisible à afficher pour une catégorie d'erreur."""
    return _USER_MESSAGES[category]


class CatalogError(Exception):
    """
    Défaillance classée de l'API catalogue.

    Attributs :
        category : Catégorie de l'erreur (voir ErrorCategory)
        message : Description technique
        status_code : Code HTTP si une réponse a été reçue
        retry_after : Délai demandé par le fournisseur (en secondes), pour les 429
    """

    def __init__(
        self,
        category: ErrorCategory,
        message: str = "",
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        self.category = category
        self.message = message or category.value
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(f"[{category.value}] {self.message}")

    @property
    def retryable(self) -> bool:
        """Raccourci pour is_retryable(self.category)."""
        return is_retryable(self.category)
