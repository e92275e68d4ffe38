from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from ..errors import ConfigurationError
from .config import DEFAULT_FIREBASE_CONFIG, FirebaseConfig

logger = logging.getLogger(__name__)


def get_firebase_app(config: FirebaseConfig = DEFAULT_FIREBASE_CONFIG) -> firebase_admin.App:
    """Return the default Firebase app, initialising it on first use."""
    # Reuse the app across reloads and repeated imports
    if firebase_admin._apps:
        return firebase_admin.get_app()

    missing = config.missing()
    if missing:
        raise ConfigurationError(
            "Firebase is not configured. Set the missing settings and restart the service.",
            missing=missing,
        )

    cred = credentials.Certificate(config.credentials_path)
    logger.info("Initialising Firebase app for bucket %s", config.storage_bucket)
    return firebase_admin.initialize_app(cred, {"storageBucket": config.storage_bucket})
