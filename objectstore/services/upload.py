"""Single-request versus multipart object writes."""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from objectstore.common.config import Settings
from objectstore.domain.objects import ObjectLocator, ObjectReference, ObjectVersion
from objectstore.infra.observability.metrics import record_single_upload
from objectstore.infra.storage.client import Body, ObjectAttributes, StorageClient
from objectstore.services.base import BaseService, Clock, PreconditionViolationError
from objectstore.services.data_source import (
    DataSource,
    InMemorySource,
    resolve_data_source,
)
from objectstore.services.multipart import (
    MultipartUploadCoordinator,
    MultipartUploadSession,
)

logger = logging.getLogger("objectstore.upload")

Reader = Callable[[int], Any]


@dataclass(frozen=True, slots=True)
class WriteOptions:
    """Options recognized by ``UploadSplitter.write``.

    ``multipart_threshold`` and ``multipart_min_part_size`` default to the
    configured ``S3_MULTIPART_THRESHOLD`` and ``S3_MULTIPART_MIN_PART_SIZE``.
    ``data`` and ``file`` are alternatives to the positional payload.
    """

    multipart_threshold: int | None = None
    multipart_min_part_size: int | None = None
    single_request: bool = False
    data: Any = None
    file: str | os.PathLike | None = None
    attributes: ObjectAttributes | None = None


def _as_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


def read_exactly(read: Reader, size: int) -> bytes:
    """Read up to ``size`` bytes, stopping early only at end of stream."""
    buffer = bytearray()
    while len(buffer) < size:
        chunk = read(size - len(buffer))
        if not chunk:
            break
        buffer += _as_bytes(chunk)
    return bytes(buffer)


def iter_parts(read: Reader, part_size: int) -> Iterator[bytes]:
    """Yield consecutive ``part_size`` chunks; the last one may be shorter."""
    while True:
        chunk = read_exactly(read, part_size)
        if not chunk:
            return
        yield chunk
        if len(chunk) < part_size:
            return


def _prefixed(head: bytes, read: Reader) -> Reader:
    buffered = io.BytesIO(head)

    def _read(size: int) -> Any:
        return buffered.read(size) or read(size)

    return _read


def _binary(body: Body) -> Body:
    if isinstance(body, io.TextIOBase):
        return _as_bytes(body.read())
    return body


def _reader(body: Body) -> Reader:
    if isinstance(body, (bytes, bytearray)):
        return io.BytesIO(body).read
    return body.read


class UploadSplitter(BaseService):
    """Writes an object in one request or as a multipart upload."""

    def __init__(
        self,
        storage_client: StorageClient,
        *,
        coordinator: MultipartUploadCoordinator | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(storage_client, settings=settings, clock=clock)
        self._coordinator = coordinator or MultipartUploadCoordinator(
            storage_client, settings=self._settings, clock=self._clock
        )

    def _limits(self, options: WriteOptions) -> tuple[int, int]:
        threshold = (
            options.multipart_threshold
            if options.multipart_threshold is not None
            else self._settings.S3_MULTIPART_THRESHOLD
        )
        part_size = (
            options.multipart_min_part_size
            if options.multipart_min_part_size is not None
            else self._settings.S3_MULTIPART_MIN_PART_SIZE
        )
        if threshold < 0:
            raise PreconditionViolationError("multipart_threshold must not be negative")
        if part_size <= 0:
            raise PreconditionViolationError("multipart_min_part_size must be positive")
        return int(threshold), int(part_size)

    def write(
        self,
        locator: ObjectLocator,
        data: Any = None,
        options: WriteOptions | None = None,
    ) -> ObjectReference | None:
        """Store ``data`` under ``locator``.

        Payloads no larger than the threshold (or any payload when
        ``single_request`` is set) go out in one put; larger ones are split
        into ``multipart_min_part_size`` parts in byte order.

        Returns:
            The object reference, an ``ObjectVersion`` when the service
            reported a version id, or None for a multipart upload that
            produced no parts.

        Raises:
            PreconditionViolationError: If data is supplied more than once
                or the size options are invalid. Raised before any request.
            StorageError: If the storage backend fails.
        """
        options = options or WriteOptions()
        source = resolve_data_source(data, option_data=options.data, file=options.file)
        threshold, part_size = self._limits(options)

        if options.single_request:
            return self._put(locator, source, options.attributes)

        size = source.size()
        if size is not None and size <= threshold:
            return self._put(locator, source, options.attributes)

        with source.open_body() as body:
            read = _reader(body)
            if size is None:
                head = read_exactly(read, threshold + 1)
                if len(head) <= threshold:
                    return self._put_bytes(locator, head, options.attributes)
                read = _prefixed(head, read)
            logger.info(
                "Upload strategy selected. [event=upload_strategy] "
                "(object=%s, strategy=multipart, size=%s, part_size=%s)",
                locator,
                size if size is not None else "unknown",
                part_size,
            )

            def produce(session: MultipartUploadSession) -> None:
                for chunk in iter_parts(read, part_size):
                    session.add_part(chunk)

            return self._coordinator.run(locator, produce, options.attributes)

    def _put(
        self,
        locator: ObjectLocator,
        source: DataSource,
        attributes: ObjectAttributes | None,
    ) -> ObjectReference:
        size = source.size()
        logger.info(
            "Upload strategy selected. [event=upload_strategy] "
            "(object=%s, strategy=single, size=%s)",
            locator,
            size if size is not None else "unknown",
        )
        with source.open_body() as body:
            result = self._storage.put_object(
                bucket=locator.bucket_name,
                object_key=locator.key,
                body=_binary(body),
                attributes=attributes,
            )
        if size is not None:
            record_single_upload(self._settings, size)
        if result.version_id:
            return ObjectVersion(object=locator, version_id=str(result.version_id))
        return locator

    def _put_bytes(
        self,
        locator: ObjectLocator,
        payload: bytes,
        attributes: ObjectAttributes | None,
    ) -> ObjectReference:
        return self._put(locator, InMemorySource(payload), attributes)
