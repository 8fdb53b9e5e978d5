from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_BUNDLED_SNAPSHOT = Path(__file__).resolve().parent / "data" / "snapshot"


@dataclass(frozen=True)
class AppConfig:
    snapshot_dir: Path = Path(os.getenv("MESOB_SNAPSHOT_DIR", str(_BUNDLED_SNAPSHOT)))
    cache_ttl: float = float(os.getenv("MESOB_CACHE_TTL", "300"))
    log_level: str = os.getenv("MESOB_LOG_LEVEL", "INFO")
    popular_limit: int = int(os.getenv("MESOB_POPULAR_LIMIT", "10"))
    analytics_max_events: int = int(os.getenv("MESOB_ANALYTICS_MAX_EVENTS", "10000"))


DEFAULT_APP_CONFIG = AppConfig()
