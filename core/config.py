from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

DEFAULT_HOME = Path.home() / ".tracker_dashboard"
DEFAULT_STORAGE_KEY = "savedDashboards"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    home_dir: Path = DEFAULT_HOME
    snapshot_file: Optional[Path] = None
    storage_key: str = DEFAULT_STORAGE_KEY
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @property
    def snapshot_path(self) -> Path:
        return self.snapshot_file or (self.home_dir / "snapshots.json")


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env

    home_dir = Path(env["TRACKER_HOME"]).expanduser() if env.get("TRACKER_HOME") else DEFAULT_HOME
    snapshot_file = Path(env["TRACKER_SNAPSHOT_FILE"]).expanduser() if env.get("TRACKER_SNAPSHOT_FILE") else None
    storage_key = env.get("TRACKER_STORAGE_KEY") or DEFAULT_STORAGE_KEY
    log_level = (env.get("TRACKER_LOG_LEVEL") or "INFO").upper()
    cors = _split_csv(env["TRACKER_CORS_ORIGINS"]) if env.get("TRACKER_CORS_ORIGINS") else list(DEFAULT_CORS_ORIGINS)

    return Settings(
        home_dir=home_dir,
        snapshot_file=snapshot_file,
        storage_key=storage_key,
        log_level=log_level,
        cors_origins=cors,
    )


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
