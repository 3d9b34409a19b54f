"""
Stockage cle-valeur en memoire.

Implementation minimale de IStore pour le cablage par defaut et les tests;
la persistance des preferences locales reste la responsabilite de l'hote.
"""

from typing import Any, Optional

from cinereco.core.ports.collaborators import IStore


class MemoryStore(IStore):
    """IStore adosse a un dict."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
