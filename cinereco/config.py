"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe CINERECO_,
et peut optionnellement être fournie via un fichier .env.

La clé API TMDB est optionnelle - les appels au catalogue échouent en auth-error si absente.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Trouver le fichier .env à la racine du projet (parent de cinereco/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe CINERECO_.
    Exemple : CINERECO_LOG_LEVEL=DEBUG

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="CINERECO_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API TMDB
    tmdb_api_key: Optional[str] = Field(default=None)
    tmdb_session_id: Optional[str] = Field(default=None)
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3")
    tmdb_image_base_url: str = Field(default="https://image.tmdb.org/t/p/w500")
    language: Optional[str] = Field(default=None)

    # Quota TMDB : 40 requêtes par fenêtre glissante de 10 secondes
    rate_limit_max_requests: int = Field(default=40, ge=1)
    rate_limit_window_seconds: float = Field(default=10.0, gt=0)

    # Retry et délais
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=1.0, ge=0)
    backoff_max_seconds: float = Field(default=8.0, ge=0)
    call_deadline_seconds: Optional[float] = Field(default=None, gt=0)

    # Cache (None = en mémoire)
    cache_dir: Optional[Path] = Field(default=None)

    # Recommandation
    max_weighted_genres: int = Field(default=3, ge=1)
    rating_midpoint: float = Field(default=5.0, ge=0, le=10)
    preferred_genre_bonus: float = Field(default=1.0, ge=0)
    similar_per_seed: int = Field(default=5, ge=1)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/cinereco.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("cache_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Optional[str | Path]) -> Optional[Path]:
        """Étend ~ vers le répertoire home dans les chemins."""
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    @property
    def tmdb_enabled(self) -> bool:
        """Vérifie si l'API TMDB est configurée."""
        return self.tmdb_api_key is not None

    @property
    def effective_call_deadline(self) -> float:
        """Plafond d'un appel du moteur : tentatives x (timeout + backoff max)."""
        if self.call_deadline_seconds is not None:
            return self.call_deadline_seconds
        return self.max_attempts * (self.request_timeout_seconds + self.backoff_max_seconds)

    @property
    def cache_path(self) -> Optional[str]:
        """Répertoire du cache sous forme de chaîne, pour diskcache."""
        return str(self.cache_dir) if self.cache_dir is not None else None
