"""
Interfaces ports pour les collaborateurs externes.

- IAuthProvider : fournit la session courante (la poignée de main
  d'authentification est hors du périmètre)
- IStore : stockage clé-valeur opaque des préférences locales

Le coeur ne fait que lire ces collaborateurs, il n'écrit jamais au travers.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

# Clés lues dans le Store
EXCLUDED_MOVIE_IDS_KEY = "excluded_movie_ids"
PREFERRED_GENRE_IDS_KEY = "preferred_genre_ids"


class IAuthProvider(ABC):
    """Source de la session TMDB courante."""

    @abstractmethod
    def current_session(self) -> Optional[str]:
        """Retourne l'identifiant de session, ou None si non authentifié."""
        ...


class IStore(ABC):
    """Stockage clé-valeur opaque."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Retourne la valeur associée à key, ou default."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Associe value à key."""
        ...
