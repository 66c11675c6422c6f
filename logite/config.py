"""Logger configuration management."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from a .env in the working directory if available
load_dotenv(dotenv_path=Path.cwd() / ".env")


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    return int(raw)


@dataclass
class LogiteSettings:
    """Logger defaults loaded from environment variables."""

    # Storage
    path: str = os.getenv("LOGITE_PATH", os.path.join("log", "logite.db"))
    namespace: str = os.getenv("LOGITE_NAMESPACE", "logite")
    ephemeral: bool = os.getenv("LOGITE_EPHEMERAL", "False") == "True"
    readonly: bool = os.getenv("LOGITE_READONLY", "False") == "True"

    # Filtering
    level: str = os.getenv("LOGITE_LEVEL", "debug")

    # Schema versioning
    schema_version: Optional[int] = _optional_int(os.getenv("LOGITE_SCHEMA_VERSION"))
    generated_code_cache_dir: Optional[str] = os.getenv("LOGITE_CACHE_DIR") or None


# Global settings instance
settings = LogiteSettings()
