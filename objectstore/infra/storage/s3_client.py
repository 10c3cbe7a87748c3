"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NoReturn, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from objectstore.infra.observability.metrics import record_storage_request
from objectstore.infra.storage.client import (
    Body,
    CompletedPart,
    CompleteResult,
    MultipartUpload,
    ObjectAttributes,
    ObjectBody,
    ObjectHead,
    ObjectNotFoundError,
    PutResult,
    StorageError,
)

if TYPE_CHECKING:
    from objectstore.common.config import Settings

logger = logging.getLogger("objectstore.storage")

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchVersion", "NotFound"})

# ObjectAttributes field -> boto3 parameter name
_ATTRIBUTE_PARAMS = (
    ("content_type", "ContentType"),
    ("content_md5", "ContentMD5"),
    ("metadata", "Metadata"),
    ("storage_class", "StorageClass"),
    ("cache_control", "CacheControl"),
    ("content_disposition", "ContentDisposition"),
    ("content_encoding", "ContentEncoding"),
    ("server_side_encryption", "ServerSideEncryption"),
    ("acl", "ACL"),
)


def _attribute_params(
    attributes: ObjectAttributes | None, *, include_md5: bool = True
) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if attributes is None:
        return params
    for field_name, param in _ATTRIBUTE_PARAMS:
        if field_name == "content_md5" and not include_md5:
            continue
        value = getattr(attributes, field_name)
        if value:
            params[param] = dict(value) if field_name == "metadata" else value
    return params


def _is_not_found(exc: Exception) -> bool:
    if not isinstance(exc, ClientError):
        return False
    error = exc.response.get("Error", {}) or {}
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return str(error.get("Code", "")) in NOT_FOUND_CODES or status == 404


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing S3 configuration.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        addressing_style = settings.S3_ADDRESSING_STYLE or "auto"
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def _fail(self, operation: str, message: str, exc: Exception) -> NoReturn:
        if _is_not_found(exc):
            record_storage_request(self._settings, operation, "not_found")
            raise ObjectNotFoundError(f"{message}: {exc}") from exc
        record_storage_request(self._settings, operation, "error")
        logger.warning(
            "Storage request failed. [event=storage_request_failed] "
            "(operation=%s, error=%s)",
            operation,
            exc,
        )
        raise StorageError(f"{message}: {exc}") from exc

    def _ok(self, operation: str) -> None:
        record_storage_request(self._settings, operation, "ok")

    def head_object(
        self,
        *,
        bucket: str,
        object_key: str,
        version_id: str | None = None,
    ) -> ObjectHead:
        """Get object metadata without downloading the content."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if version_id:
            params["VersionId"] = version_id

        try:
            response = self._client.head_object(**params)
        except Exception as exc:
            self._fail("head_object", "Failed to get object metadata", exc)
        self._ok("head_object")

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            last_modified=response.get("LastModified"),
            version_id=response.get("VersionId"),
            metadata=dict(response.get("Metadata") or {}),
        )

    def get_object(
        self,
        *,
        bucket: str,
        object_key: str,
        version_id: str | None = None,
    ) -> ObjectBody:
        """Download an object into memory."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if version_id:
            params["VersionId"] = version_id

        try:
            response = self._client.get_object(**params)
            data = response["Body"].read()
        except Exception as exc:
            self._fail("get_object", "Failed to get object", exc)
        self._ok("get_object")

        return ObjectBody(
            data=data,
            content_type=response.get("ContentType"),
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
        )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: Body,
        attributes: ObjectAttributes | None = None,
    ) -> PutResult:
        """Upload an object in a single request."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key, "Body": body}
        params.update(_attribute_params(attributes))

        try:
            response = self._client.put_object(**params)
        except Exception as exc:
            self._fail("put_object", "Failed to put object", exc)
        self._ok("put_object")

        return PutResult(
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
        )

    def delete_object(
        self,
        *,
        bucket: str,
        object_key: str,
        version_id: str | None = None,
    ) -> None:
        """Delete an object from storage."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if version_id:
            params["VersionId"] = version_id

        try:
            self._client.delete_object(**params)
        except Exception as exc:
            self._fail("delete_object", "Failed to delete object", exc)
        self._ok("delete_object")

    def copy_object(
        self,
        *,
        bucket: str,
        object_key: str,
        copy_source: str,
        metadata_directive: str = "COPY",
        storage_class: str | None = None,
    ) -> None:
        """Server-side copy of ``copy_source`` onto the target object."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": object_key,
            "CopySource": copy_source,
            "MetadataDirective": metadata_directive,
        }
        if storage_class:
            params["StorageClass"] = storage_class

        try:
            self._client.copy_object(**params)
        except Exception as exc:
            self._fail("copy_object", "Failed to copy object", exc)
        self._ok("copy_object")

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        attributes: ObjectAttributes | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        params.update(_attribute_params(attributes, include_md5=False))

        try:
            response = self._client.create_multipart_upload(**params)
        except Exception as exc:
            self._fail(
                "create_multipart_upload", "Failed to create multipart upload", exc
            )

        upload_id = response.get("UploadId")
        if not upload_id:
            record_storage_request(self._settings, "create_multipart_upload", "error")
            raise StorageError("S3 response missing UploadId")
        self._ok("create_multipart_upload")

        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=bucket,
            object_key=object_key,
        )

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        """Upload one part of a multipart upload."""
        try:
            response = self._client.upload_part(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                Body=body,
            )
        except Exception as exc:
            self._fail("upload_part", f"Failed to upload part {part_number}", exc)

        etag = response.get("ETag")
        if not etag:
            record_storage_request(self._settings, "upload_part", "error")
            raise StorageError("S3 response missing ETag for uploaded part")
        self._ok("upload_part")

        return CompletedPart(part_number=int(part_number), etag=str(etag))

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompleteResult:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(parts, key=lambda p: p.part_number)
            ]
        }

        try:
            response = self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            self._fail(
                "complete_multipart_upload", "Failed to complete multipart upload", exc
            )
        self._ok("complete_multipart_upload")

        return CompleteResult(
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
        )

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        try:
            self._client.abort_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
            )
        except Exception as exc:
            self._fail(
                "abort_multipart_upload", "Failed to abort multipart upload", exc
            )
        self._ok("abort_multipart_upload")
