from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class FirebaseConfig:
    credentials_path: str = os.getenv("FIREBASE_CREDENTIALS", "serviceAccountKey.json")
    web_api_key: str = os.getenv("FIREBASE_API_KEY", "")
    storage_bucket: str = os.getenv("FIREBASE_STORAGE_BUCKET", "")
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    timeout: float = 10.0

    def missing(self) -> list[str]:
        missing: list[str] = []
        if not self.credentials_path or not os.path.exists(self.credentials_path):
            missing.append("FIREBASE_CREDENTIALS")
        if not self.web_api_key:
            missing.append("FIREBASE_API_KEY")
        if not self.storage_bucket:
            missing.append("FIREBASE_STORAGE_BUCKET")
        return missing


DEFAULT_FIREBASE_CONFIG = FirebaseConfig()
