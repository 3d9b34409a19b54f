"""
Fournisseur de session statique.

La poignee de main d'authentification TMDB (request token, approbation,
creation de session) est hors du perimetre: la session est obtenue ailleurs
et transmise via la configuration (CINERECO_TMDB_SESSION_ID).
"""

from typing import Optional

from cinereco.core.ports.collaborators import IAuthProvider


class StaticAuthProvider(IAuthProvider):
    """IAuthProvider renvoyant une session fixe (ou aucune)."""

    def __init__(self, session_id: Optional[str] = None) -> None:
        self._session_id = session_id or None

    def current_session(self) -> Optional[str]:
        return self._session_id
