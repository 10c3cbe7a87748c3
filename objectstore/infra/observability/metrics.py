from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter

if TYPE_CHECKING:
    from objectstore.common.config import Settings

# 低基数标签：operation 为固定的 S3 API 名称，不包含 bucket/key
STORAGE_REQUESTS = Counter(
    "objectstore_storage_requests_total",
    "Total storage backend requests",
    ["operation", "outcome"],
)

MULTIPART_UPLOADS = Counter(
    "objectstore_multipart_uploads_total",
    "Multipart uploads by terminal action",
    ["outcome"],
)

MULTIPART_PARTS = Counter(
    "objectstore_multipart_parts_total",
    "Parts uploaded through multipart sessions",
)

UPLOADED_BYTES = Counter(
    "objectstore_uploaded_bytes_total",
    "Payload bytes handed to the storage backend",
    ["strategy"],
)


def _enabled(settings: "Settings | None") -> bool:
    return settings is None or bool(settings.ENABLE_METRICS)


def record_storage_request(
    settings: "Settings | None", operation: str, outcome: str
) -> None:
    if _enabled(settings):
        STORAGE_REQUESTS.labels(operation=operation, outcome=outcome).inc()


def record_multipart_outcome(settings: "Settings | None", outcome: str) -> None:
    if _enabled(settings):
        MULTIPART_UPLOADS.labels(outcome=outcome).inc()


def record_part(settings: "Settings | None", size_bytes: int) -> None:
    if _enabled(settings):
        MULTIPART_PARTS.inc()
        UPLOADED_BYTES.labels(strategy="multipart").inc(size_bytes)


def record_single_upload(settings: "Settings | None", size_bytes: int) -> None:
    if _enabled(settings):
        UPLOADED_BYTES.labels(strategy="single").inc(size_bytes)
