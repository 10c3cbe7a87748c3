"""Multipart upload orchestration.

A session moves strictly through initiated -> parts added -> completed or
aborted. ``MultipartUploadCoordinator.run`` owns a session for the duration
of a caller-supplied producer and guarantees that exactly one terminal
action is issued for it:

* producer raised (or was interrupted) -> abort, then re-raise the error
* producer returned, no parts          -> abort, result is ``None``
* producer returned, parts             -> complete, result is the object reference

If initiation itself fails there is no session and nothing is aborted.
"""

from __future__ import annotations

import logging
from typing import Callable

from objectstore.common.config import Settings
from objectstore.domain.objects import ObjectLocator, ObjectReference, ObjectVersion
from objectstore.infra.observability.metrics import record_multipart_outcome, record_part
from objectstore.infra.storage.client import (
    CompletedPart,
    CompleteResult,
    ObjectAttributes,
    StorageClient,
)
from objectstore.services.base import BaseService, InvalidUploadStateError

logger = logging.getLogger("objectstore.multipart")

# Maximum part number allowed by S3
MAX_PART_NUMBER = 10000


class MultipartUploadSession:
    """Handle to a live multipart upload.

    Parts are numbered 1, 2, 3... in the order ``add_part`` is called. Only
    one producer may drive a session; concurrent ``add_part`` calls on the
    same session are not supported.
    """

    def __init__(
        self,
        storage: StorageClient,
        *,
        upload_id: str,
        locator: ObjectLocator,
        settings: Settings | None = None,
    ) -> None:
        self._storage = storage
        self._settings = settings
        self.upload_id = upload_id
        self.object = locator
        self._parts: list[CompletedPart] = []
        self._state = "active"
        self._result: ObjectReference | None = None

    def __repr__(self) -> str:
        return (
            f"<MultipartUploadSession {self.object} upload_id={self.upload_id} "
            f"parts={len(self._parts)} state={self._state}>"
        )

    @property
    def completed_parts(self) -> tuple[CompletedPart, ...]:
        return tuple(self._parts)

    @property
    def state(self) -> str:
        return self._state

    @property
    def result(self) -> ObjectReference | None:
        """Object reference produced by ``complete()``; None otherwise."""
        return self._result

    @property
    def closed(self) -> bool:
        return self._state != "active"

    def _ensure_active(self, action: str) -> None:
        if self.closed:
            raise InvalidUploadStateError(
                f"Cannot {action}: multipart upload {self.upload_id} is {self._state}"
            )

    def add_part(self, data: bytes) -> CompletedPart:
        """Upload ``data`` as the next part and record its ETag."""
        self._ensure_active("add part")
        part_number = len(self._parts) + 1
        if part_number > MAX_PART_NUMBER:
            raise InvalidUploadStateError(
                f"Multipart uploads are limited to {MAX_PART_NUMBER} parts"
            )
        part = self._storage.upload_part(
            bucket=self.object.bucket_name,
            object_key=self.object.key,
            upload_id=self.upload_id,
            part_number=part_number,
            body=bytes(data),
        )
        self._parts.append(CompletedPart(part_number=part_number, etag=part.etag))
        record_part(self._settings, len(data))
        return self._parts[-1]

    def complete(self) -> ObjectReference:
        """Assemble the uploaded parts into the final object."""
        self._ensure_active("complete")
        self._state = "completed"
        result = self._storage.complete_multipart_upload(
            bucket=self.object.bucket_name,
            object_key=self.object.key,
            upload_id=self.upload_id,
            parts=self.completed_parts,
        )
        record_multipart_outcome(self._settings, "completed")
        logger.info(
            "Multipart upload completed. [event=multipart_completed] "
            "(object=%s, upload_id=%s, parts=%s)",
            self.object,
            self.upload_id,
            len(self._parts),
        )
        self._result = _reference(self.object, result)
        return self._result

    def abort(self) -> None:
        """Discard the upload and any parts already stored."""
        self._ensure_active("abort")
        self._state = "aborted"
        self._storage.abort_multipart_upload(
            bucket=self.object.bucket_name,
            object_key=self.object.key,
            upload_id=self.upload_id,
        )
        record_multipart_outcome(self._settings, "aborted")
        logger.info(
            "Multipart upload aborted. [event=multipart_aborted] "
            "(object=%s, upload_id=%s, parts=%s)",
            self.object,
            self.upload_id,
            len(self._parts),
        )


def _reference(locator: ObjectLocator, result: CompleteResult | None) -> ObjectReference:
    version_id = getattr(result, "version_id", None)
    if version_id:
        return ObjectVersion(object=locator, version_id=str(version_id))
    return locator


class MultipartUploadCoordinator(BaseService):
    """Runs multipart uploads with a guaranteed terminal action."""

    def initiate(
        self,
        locator: ObjectLocator,
        attributes: ObjectAttributes | None = None,
    ) -> MultipartUploadSession:
        """Start a session without taking ownership of its lifecycle.

        The caller must eventually call ``complete()`` or ``abort()``.
        """
        upload = self._storage.init_multipart_upload(
            bucket=locator.bucket_name,
            object_key=locator.key,
            attributes=attributes,
        )
        logger.info(
            "Multipart upload initiated. [event=multipart_initiated] "
            "(object=%s, upload_id=%s)",
            locator,
            upload.upload_id,
        )
        return MultipartUploadSession(
            self._storage,
            upload_id=upload.upload_id,
            locator=locator,
            settings=self._settings,
        )

    def run(
        self,
        locator: ObjectLocator,
        producer: Callable[[MultipartUploadSession], object],
        attributes: ObjectAttributes | None = None,
    ) -> ObjectReference | None:
        """Initiate an upload, hand it to ``producer`` and finalize it.

        Returns:
            The object reference (an ``ObjectVersion`` when the service
            reported a version id), or None when no part was added.

        Raises:
            StorageError: If initiation, completion or abort fails.
            BaseException: Whatever ``producer`` raised, including an
                interrupt, after the abort.
        """
        session = self.initiate(locator, attributes)
        try:
            producer(session)
        except BaseException:
            # includes KeyboardInterrupt and SystemExit
            self._abort_after_error(session)
            raise

        if session.closed:
            # producer already issued the terminal action itself
            return session.result
        if not session.completed_parts:
            session.abort()
            return None
        return session.complete()

    def _abort_after_error(self, session: MultipartUploadSession) -> None:
        if session.closed:
            return
        try:
            session.abort()
        except Exception as abort_exc:
            # the producer's error is the one surfaced to the caller
            logger.error(
                "Failed to abort multipart upload after producer error. "
                "[event=multipart_abort_failed] (object=%s, upload_id=%s, error=%s)",
                session.object,
                session.upload_id,
                abort_exc,
                exc_info=abort_exc,
            )
