from .base import (
    BaseService,
    InvalidUploadStateError,
    PreconditionViolationError,
    ServiceError,
)
from .data_source import (
    DataSource,
    FilePathSource,
    InMemorySource,
    StreamSource,
    resolve_data_source,
)
from .multipart import MultipartUploadCoordinator, MultipartUploadSession
from .object_service import ObjectService
from .presign import PostOptions, PresignedPost, PresignedUrlBuilder, UrlOptions
from .signer import Credentials, HttpVerb, Signature, SignedRequestSpec, sign
from .upload import UploadSplitter, WriteOptions

__all__ = [
    "BaseService",
    "Credentials",
    "DataSource",
    "FilePathSource",
    "HttpVerb",
    "InMemorySource",
    "InvalidUploadStateError",
    "MultipartUploadCoordinator",
    "MultipartUploadSession",
    "ObjectService",
    "PostOptions",
    "PreconditionViolationError",
    "PresignedPost",
    "PresignedUrlBuilder",
    "ServiceError",
    "Signature",
    "SignedRequestSpec",
    "StreamSource",
    "UploadSplitter",
    "UrlOptions",
    "WriteOptions",
    "resolve_data_source",
    "sign",
]
