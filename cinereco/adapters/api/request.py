"""
Requete API et empreinte canonique.

L'empreinte (fingerprint) identifie une requete pour le cache: endpoint +
parametres normalises. L'ordre des parametres n'a aucune influence et les
parametres d'authentification n'en font jamais partie.

Usage:
    request = ApiRequest.get("/discover/movie", {"page": 1, "sort_by": "popularity.desc"})
    request.fingerprint  # "GET /discover/movie?page=1&sort_by=popularity.desc"
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

# Parametres de credentials exclus de l'empreinte
CREDENTIAL_PARAMS = frozenset({"api_key", "session_id"})


def _normalize_value(value: Any) -> str:
    """Convertit une valeur de parametre en chaine canonique."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) else value
        return ",".join(_normalize_value(item) for item in items)
    return str(value)


def normalize_params(params: Optional[Mapping[str, Any]]) -> tuple[tuple[str, str], ...]:
    """
    Normalise les parametres d'une requete.

    Les valeurs None sont ignorees, les valeurs converties en chaines et
    les paires triees par cle.

    Args:
        params: Parametres bruts

    Returns:
        Tuple de paires (cle, valeur) triees
    """
    if not params:
        return ()
    return tuple(
        sorted(
            (key, _normalize_value(value))
            for key, value in params.items()
            if value is not None
        )
    )


def make_fingerprint(method: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Construit l'empreinte canonique d'une requete."""
    visible = [
        (key, value)
        for key, value in normalize_params(params)
        if key not in CREDENTIAL_PARAMS
    ]
    query = urlencode(visible)
    base = f"{method.upper()} {path}"
    return f"{base}?{query}" if query else base


@dataclass(frozen=True)
class ApiRequest:
    """
    Requete vers l'API catalogue.

    Attributes:
        method: Methode HTTP (GET, POST, DELETE)
        path: Chemin relatif a l'URL de base (ex: "/movie/550")
        params: Parametres de requete normalises
        body: Corps JSON optionnel
    """

    method: str
    path: str
    params: tuple[tuple[str, str], ...] = ()
    body: Optional[Mapping[str, Any]] = None

    @classmethod
    def get(cls, path: str, params: Optional[Mapping[str, Any]] = None) -> "ApiRequest":
        return cls("GET", path, normalize_params(params))

    @classmethod
    def post(
        cls,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> "ApiRequest":
        return cls("POST", path, normalize_params(params), body)

    @classmethod
    def delete(cls, path: str, params: Optional[Mapping[str, Any]] = None) -> "ApiRequest":
        return cls("DELETE", path, normalize_params(params))

    @property
    def fingerprint(self) -> str:
        return make_fingerprint(self.method, self.path, dict(self.params))

    @property
    def query_params(self) -> dict[str, str]:
        """Parametres sous forme de dict, prets pour httpx."""
        return dict(self.params)
