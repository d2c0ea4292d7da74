"""
Configuration

Settings come from the environment (or a .env file next to the app)
through pydantic-settings. Only the Gemini API key is mandatory, and only
once a file is actually sent for extraction.
"""

import logging
import sys
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

PACKAGE_LOGGER = "statements"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RELEVES_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RELEVES_GEMINI_API_KEY", "GEMINI_API_KEY", "API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"
    default_context: str = "Relevé Bancaire Standard"
    currency: str = "MAD"
    log_level: str = "INFO"
    max_concurrent_extractions: int = Field(default=4, ge=1)

    def require_api_key(self):
        if not self.gemini_api_key:
            raise ConfigurationError(
                "Clé API Gemini manquante : définissez GEMINI_API_KEY dans l'environnement ou le fichier .env."
            )
        return self.gemini_api_key


@lru_cache(maxsize=1)
def get_settings():
    return Settings()


def configure_logging(level="INFO"):
    """
    Attaches one stream handler to the package logger.

    Safe to call on every Streamlit rerun: the handler is only added once.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
