"""Storage client protocol and data types.

This module defines the interface the library consumes from an object
storage backend: object CRUD, server-side copy and the multipart upload
calls. Transport, retries and credential resolution belong to the backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Mapping, Protocol, Sequence, Union

Body = Union[bytes, BinaryIO]


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class ObjectNotFoundError(StorageError):
    """Raised when the target object or object version does not exist."""


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None
    last_modified: datetime | None = None
    version_id: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ObjectBody:
    """Payload and headers of a GET object request."""

    data: bytes
    content_type: str | None = None
    etag: str | None = None
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class PutResult:
    """Result of a single-request object upload."""

    etag: str | None = None
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class CompleteResult:
    """Result of completing a multipart upload."""

    etag: str | None = None
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class ObjectAttributes:
    """Headers stored with an object when it is written.

    ``content_md5`` only applies to single-request uploads; it is ignored
    when initiating a multipart upload.
    """

    content_type: str | None = None
    content_md5: str | None = None
    metadata: Mapping[str, str] | None = None
    storage_class: str | None = None
    cache_control: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    server_side_encryption: str | None = None
    acl: str | None = None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations must provide all methods defined here and raise
    ``ObjectNotFoundError`` for missing objects and ``StorageError`` for
    every other failure.
    """

    def head_object(
        self,
        *,
        bucket: str,
        object_key: str,
        version_id: str | None = None,
    ) -> ObjectHead:
        """Get object metadata without downloading the content.

        Raises:
            ObjectNotFoundError: If the object or version doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def get_object(
        self,
        *,
        bucket: str,
        object_key: str,
        version_id: str | None = None,
    ) -> ObjectBody:
        """Download an object.

        Raises:
            ObjectNotFoundError: If the object or version doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: Body,
        attributes: ObjectAttributes | None = None,
    ) -> PutResult:
        """Upload an object in a single request.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            body: Payload bytes or a readable binary stream.
            attributes: Headers stored with the object.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def delete_object(
        self,
        *,
        bucket: str,
        object_key: str,
        version_id: str | None = None,
    ) -> None:
        """Delete an object (or one version of it) from storage.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def copy_object(
        self,
        *,
        bucket: str,
        object_key: str,
        copy_source: str,
        metadata_directive: str = "COPY",
        storage_class: str | None = None,
    ) -> None:
        """Server-side copy of ``copy_source`` (``bucket/key``) onto the target.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        attributes: ObjectAttributes | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            attributes: Headers stored with the assembled object.

        Returns:
            MultipartUpload containing the upload_id for subsequent operations.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        """Upload one part of a multipart upload.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            upload_id: Multipart upload ID from init_multipart_upload.
            part_number: Part number (1-based, max 10000).
            body: Part payload.

        Returns:
            CompletedPart carrying the ETag the service assigned to the part.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompleteResult:
        """Complete a multipart upload by combining all parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...
