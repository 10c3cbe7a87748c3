from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

ADDRESSING_STYLES: tuple[str, ...] = ("auto", "path", "virtual")

MIB = 1024 * 1024


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass
class Settings:
    S3_ENDPOINT: str = "s3.amazonaws.com"
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "auto"
    S3_MULTIPART_THRESHOLD: int = 16 * MIB
    S3_MULTIPART_MIN_PART_SIZE: int = 5 * MIB
    S3_PRESIGN_EXPIRES_SECONDS: int = 3600
    ENABLE_METRICS: bool = True
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        self.S3_ADDRESSING_STYLE = (self.S3_ADDRESSING_STYLE or "auto").strip().lower()
        if self.S3_ADDRESSING_STYLE not in ADDRESSING_STYLES:
            raise ValueError(
                "S3_ADDRESSING_STYLE must be one of: " + ", ".join(ADDRESSING_STYLES)
            )
        if self.S3_MULTIPART_THRESHOLD < 0:
            raise ValueError("S3_MULTIPART_THRESHOLD must not be negative.")
        if self.S3_MULTIPART_MIN_PART_SIZE <= 0:
            raise ValueError("S3_MULTIPART_MIN_PART_SIZE must be positive.")
        if self.S3_PRESIGN_EXPIRES_SECONDS <= 0:
            raise ValueError("S3_PRESIGN_EXPIRES_SECONDS must be positive.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_ENDPOINT=os.environ.get("S3_ENDPOINT", cls.S3_ENDPOINT),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_MULTIPART_THRESHOLD=_as_int(
                os.environ.get("S3_MULTIPART_THRESHOLD"), cls.S3_MULTIPART_THRESHOLD
            ),
            S3_MULTIPART_MIN_PART_SIZE=_as_int(
                os.environ.get("S3_MULTIPART_MIN_PART_SIZE"),
                cls.S3_MULTIPART_MIN_PART_SIZE,
            ),
            S3_PRESIGN_EXPIRES_SECONDS=_as_int(
                os.environ.get("S3_PRESIGN_EXPIRES_SECONDS"),
                cls.S3_PRESIGN_EXPIRES_SECONDS,
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
