"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe REELRACK_,
et peut optionnellement être fournie via un fichier .env.

Deux backends de stockage :
- local : base SQLite (SQLModel) et répertoire de fichiers, sans serveur
- http : API de documents et stockage d'objets distants
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reelrack.utils.constants import DEFAULT_COLLECTION

# Trouver le fichier .env à la racine du projet (parent de reelrack/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe REELRACK_.
    Exemple : REELRACK_BACKEND=http

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="REELRACK_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend de stockage
    backend: Literal["local", "http"] = Field(default="local")

    # Backend local
    database_url: str = Field(default="sqlite:///reelrack.db")
    blob_dir: Path = Field(default=Path("~/.local/share/reelrack/blobs"))
    public_blob_url: Optional[str] = Field(default=None)

    # Backend HTTP
    store_url: str = Field(default="http://localhost:8080/v1")
    storage_url: str = Field(default="http://localhost:8080/storage/v1/b/reelrack")
    api_token: Optional[str] = Field(default=None)
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Catalogue
    collection: str = Field(default=DEFAULT_COLLECTION)
    poll_interval_seconds: float = Field(default=2.0, gt=0)
    upload_chunk_size: int = Field(default=256 * 1024, ge=1024)

    # Identité (la vérification réelle est faite par le stockage distant)
    admin_uid: Optional[str] = Field(default=None)
    user_uid: Optional[str] = Field(default=None)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/reelrack.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("blob_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()

    @property
    def admin_enabled(self) -> bool:
        """Vérifie si un administrateur est configuré."""
        return bool(self.admin_uid)
