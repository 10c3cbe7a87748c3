"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    CompletedPart,
    CompleteResult,
    MultipartUpload,
    ObjectAttributes,
    ObjectBody,
    ObjectHead,
    ObjectNotFoundError,
    PutResult,
    StorageClient,
    StorageError,
)
from .endpoint import EndpointResolver, ResolvedEndpoint, is_dns_compatible_bucket

__all__ = [
    "CompletedPart",
    "CompleteResult",
    "EndpointResolver",
    "MultipartUpload",
    "ObjectAttributes",
    "ObjectBody",
    "ObjectHead",
    "ObjectNotFoundError",
    "PutResult",
    "ResolvedEndpoint",
    "StorageClient",
    "StorageError",
    "is_dns_compatible_bucket",
]
