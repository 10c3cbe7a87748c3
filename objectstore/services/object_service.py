"""Object-level operations on top of a storage client.

This module provides the entry point callers use: existence checks and
metadata getters, reads, deletes, writes (single or multipart), explicit
multipart sessions, presigned URLs and POST forms, public URLs, and
storage class changes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from objectstore.common.config import Settings
from objectstore.domain.objects import ObjectLocator, ObjectReference
from objectstore.infra.storage.client import (
    ObjectAttributes,
    ObjectHead,
    ObjectNotFoundError,
    StorageClient,
)
from objectstore.services.base import BaseService, Clock
from objectstore.services.multipart import (
    MultipartUploadCoordinator,
    MultipartUploadSession,
)
from objectstore.services.presign import (
    PostOptions,
    PresignedPost,
    PresignedUrlBuilder,
    UrlOptions,
)
from objectstore.services.signer import Credentials, Verb
from objectstore.services.upload import UploadSplitter, WriteOptions

STANDARD = "STANDARD"
REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"


class ObjectService(BaseService):
    """Application service for a single bucket/key at a time."""

    def __init__(
        self,
        storage_client: StorageClient,
        *,
        settings: Settings | None = None,
        clock: Clock | None = None,
        credentials: Credentials | None = None,
    ) -> None:
        super().__init__(storage_client, settings=settings, clock=clock)
        self._multipart = MultipartUploadCoordinator(
            storage_client, settings=self._settings, clock=self._clock
        )
        self._uploads = UploadSplitter(
            storage_client,
            coordinator=self._multipart,
            settings=self._settings,
            clock=self._clock,
        )
        self._urls = PresignedUrlBuilder(
            credentials=credentials, settings=self._settings, clock=self._clock
        )

    def exists(self, locator: ObjectLocator) -> bool:
        """Return False only when the service reports the object missing."""
        try:
            self.head(locator)
        except ObjectNotFoundError:
            return False
        return True

    def head(self, locator: ObjectLocator, *, version_id: str | None = None) -> ObjectHead:
        return self._storage.head_object(
            bucket=locator.bucket_name,
            object_key=locator.key,
            version_id=version_id,
        )

    def etag(self, locator: ObjectLocator) -> str | None:
        return self.head(locator).etag

    def last_modified(self, locator: ObjectLocator) -> datetime | None:
        return self.head(locator).last_modified

    def content_length(self, locator: ObjectLocator) -> int:
        return self.head(locator).size_bytes

    def content_type(self, locator: ObjectLocator) -> str | None:
        return self.head(locator).content_type

    def read(self, locator: ObjectLocator, *, version_id: str | None = None) -> bytes:
        return self._storage.get_object(
            bucket=locator.bucket_name,
            object_key=locator.key,
            version_id=version_id,
        ).data

    def delete(self, locator: ObjectLocator, *, version_id: str | None = None) -> None:
        self._storage.delete_object(
            bucket=locator.bucket_name,
            object_key=locator.key,
            version_id=version_id,
        )

    def write(
        self,
        locator: ObjectLocator,
        data: Any = None,
        options: WriteOptions | None = None,
    ) -> ObjectReference | None:
        """See ``UploadSplitter.write``."""
        return self._uploads.write(locator, data, options)

    def multipart_upload(
        self,
        locator: ObjectLocator,
        producer: Callable[[MultipartUploadSession], object],
        attributes: ObjectAttributes | None = None,
    ) -> ObjectReference | None:
        """See ``MultipartUploadCoordinator.run``."""
        return self._multipart.run(locator, producer, attributes)

    def initiate_multipart_upload(
        self,
        locator: ObjectLocator,
        attributes: ObjectAttributes | None = None,
    ) -> MultipartUploadSession:
        """Start a session the caller completes or aborts explicitly."""
        return self._multipart.initiate(locator, attributes)

    def url_for(
        self,
        locator: ObjectLocator,
        verb: Verb = "GET",
        options: UrlOptions | None = None,
    ) -> str:
        return self._urls.build_url(locator, verb, options)

    def presigned_post(
        self,
        locator: ObjectLocator,
        options: PostOptions | None = None,
    ) -> PresignedPost:
        """See ``PresignedUrlBuilder.presigned_post``."""
        return self._urls.presigned_post(locator, options)

    def public_url(
        self, locator: ObjectLocator, *, secure: bool | None = None
    ) -> str:
        return self._urls.public_url(locator, secure=secure)

    def set_reduced_redundancy(self, locator: ObjectLocator, enabled: bool) -> bool:
        """Rewrite the object onto itself with a different storage class.

        Metadata is preserved (``COPY`` directive). Returns ``enabled``.
        """
        self._storage.copy_object(
            bucket=locator.bucket_name,
            object_key=locator.key,
            copy_source=f"{locator.bucket_name}/{locator.key}",
            metadata_directive="COPY",
            storage_class=REDUCED_REDUNDANCY if enabled else STANDARD,
        )
        return enabled
