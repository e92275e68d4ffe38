from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "beanthere-secret-change-in-production")
    backend: str = os.getenv("BEANTHERE_BACKEND", "memory")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def uses_firebase(self) -> bool:
        return self.backend.strip().lower() == "firebase"


DEFAULT_APP_CONFIG = AppConfig()


def configure_logging(config: AppConfig = DEFAULT_APP_CONFIG) -> None:
    """Configure root logging once for the whole service."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def missing_settings(config: AppConfig = DEFAULT_APP_CONFIG) -> list[str]:
    """Names of required environment settings that are not set.

    Places search always needs a Maps key; the Firebase backend additionally
    needs a service account, a web API key and a storage bucket.
    """
    from .cafes.config import DEFAULT_PLACES_CONFIG
    from .store.config import DEFAULT_FIREBASE_CONFIG

    missing: list[str] = []
    if not DEFAULT_PLACES_CONFIG.api_key:
        missing.append("GOOGLE_MAPS_API_KEY")
    if config.uses_firebase:
        missing.extend(DEFAULT_FIREBASE_CONFIG.missing())
    return missing
