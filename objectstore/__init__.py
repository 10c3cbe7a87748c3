"""Client-side object storage toolkit: presigned URLs and multipart uploads."""

__version__ = "0.1.0"
