"""
config/settings.py

- Reads the environment variables (or .env) and exposes them as the
  application-wide configuration.
- pydantic v2 / pydantic-settings v2.
- The Settings object is built once at startup and handed to the gateway,
  the media uploader and the PDF exporter; nothing else reads os.environ.
"""

from functools import lru_cache
from typing import List, Optional, Literal
from pydantic import field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # =========================
    # App / runtime
    # =========================
    ENV: Literal["dev", "stage", "prod"] = "dev"
    APP_TITLE: str = "Bitácora API"
    APP_DESCRIPTION: str = "Bitácora diaria de supervisión de obra: captura y revisión de reportes"
    APP_VERSION: str = "1.0.0"

    # =========================
    # CORS
    # =========================
    # comma separated string -> List[str]
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            # "a,b , c" -> ["a","b","c"]
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # =========================
    # Airtable (record store)
    # =========================
    AIRTABLE_API_KEY: str
    AIRTABLE_BASE_ID: str
    AIRTABLE_API_URL: str = "https://api.airtable.com/v0"
    AIRTABLE_TABLE_REPORTES: str = "Reportes Diarios"
    AIRTABLE_TABLE_SUPERVISORES: str = "Supervisores"
    AIRTABLE_TABLE_PROYECTOS: str = "Proyectos"
    AIRTABLE_TIMEOUT: Optional[float] = None

    @computed_field  # type: ignore[misc]
    @property
    def AIRTABLE_BASE_URL(self) -> str:
        """
        Base URL for every table request, e.g.
        https://api.airtable.com/v0/appXXXXXXXX
        """
        return f"{self.AIRTABLE_API_URL.rstrip('/')}/{self.AIRTABLE_BASE_ID}"

    # =========================
    # Cloudinary (media host, unsigned preset)
    # =========================
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_UPLOAD_PRESET: Optional[str] = None
    CLOUDINARY_API_URL: str = "https://api.cloudinary.com/v1_1"

    # =========================
    # Listing / form limits
    # =========================
    REPORTES_DEFAULT_LIMIT: int = 50
    REPORTES_MAX_LIMIT: int = 200
    SUPERVISORES_PAGE_SIZE: int = 100
    MAX_FOTOS: int = 5

    # =========================
    # PDF / WeasyPrint
    # =========================
    LETTERHEAD_LOGO_PATH: Optional[str] = None
    LETTERHEAD_TITLE: str = "Bitácora diaria de supervisión"
    PDF_PAGE_SIZE: Literal["A4", "Letter"] = "A4"
    PDF_MARGIN_MM: float = 15.0

    # =========================
    # Logging
    # =========================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # =========================
    # BaseSettings Config
    # =========================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Build the settings once per process."""
    return Settings()
