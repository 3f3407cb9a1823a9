from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_OUTPUT = 10 * 1024 * 1024
DATA_DIR_NAME = ".hurl"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    data_dir: Path
    hurl_bin: str = "hurl"
    timeout: float = DEFAULT_TIMEOUT
    max_output_bytes: int = DEFAULT_MAX_OUTPUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, data_dir: str | Path | None = None) -> Settings:
        if data_dir is None:
            data_dir = os.getenv("HURLER_DATA_DIR") or Path.cwd() / DATA_DIR_NAME
        return cls(
            data_dir=Path(data_dir).expanduser().resolve(),
            hurl_bin=os.getenv("HURLER_HURL_BIN") or "hurl",
            timeout=_env_float("HURLER_TIMEOUT", DEFAULT_TIMEOUT),
            max_output_bytes=_env_int("HURLER_MAX_OUTPUT", DEFAULT_MAX_OUTPUT),
            log_level=(os.getenv("HURLER_LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def collections_dir(self) -> Path:
        return self.data_dir / "collections"

    @property
    def environments_dir(self) -> Path:
        return self.data_dir / "environments"

    @property
    def metadata_path(self) -> Path:
        return self.data_dir / "metadata.json"
