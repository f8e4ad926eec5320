"""
Application settings configuration for Crewboard.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


# Bundled mail templates live next to the backend package
_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "mail"


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        CREWBOARD_PHOTO_DIR: Directory where uploaded event photos are written
        CREWBOARD_PHOTO_BASE_URL: URL prefix returned as the stored photo reference
        CREWBOARD_MAIL_TEMPLATE_DIR: Directory holding Jinja2 mail templates
        CREWBOARD_MAIL_SENDER: From address recorded on outgoing mail
        CREWBOARD_CORS_ORIGINS: Comma-separated list of allowed CORS origins
    """

    photo_storage_dir: str = Field(
        default="data/photos",
        validation_alias="CREWBOARD_PHOTO_DIR",
        description="Filesystem directory for uploaded photos",
    )

    photo_base_url: str = Field(
        default="/media/photos",
        validation_alias="CREWBOARD_PHOTO_BASE_URL",
        description="URL prefix for stored photo references",
    )

    mail_template_dir: str = Field(
        default=str(_DEFAULT_TEMPLATE_DIR),
        validation_alias="CREWBOARD_MAIL_TEMPLATE_DIR",
        description="Directory containing Jinja2 mail templates",
    )

    mail_sender: str = Field(
        default="no-reply@crewboard.local",
        validation_alias="CREWBOARD_MAIL_SENDER",
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="CREWBOARD_CORS_ORIGINS",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("photo_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the URL prefix so references join with a single slash."""
        return v.rstrip("/") or "/"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
