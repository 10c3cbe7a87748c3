from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from objectstore.common.config import Settings, get_settings
from objectstore.infra.storage.client import StorageClient

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ServiceError(Exception):
    """Base class for library level exceptions."""


class PreconditionViolationError(ServiceError, ValueError):
    """Raised when a call is misused; detected before any network request."""


class InvalidUploadStateError(PreconditionViolationError):
    """Raised when a multipart session is used after its terminal action."""


class BaseService:
    """Holds the storage collaborator, settings and clock shared by services."""

    def __init__(
        self,
        storage_client: StorageClient,
        *,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._storage = storage_client
        self._settings = settings or get_settings()
        self._clock = clock or utc_now

    @property
    def storage(self) -> StorageClient:
        return self._storage

    @property
    def settings(self) -> Settings:
        return self._settings

    def _now(self) -> datetime:
        return self._clock()
