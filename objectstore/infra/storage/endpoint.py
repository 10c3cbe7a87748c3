"""Endpoint resolution for object URLs.

Decides between subdomain-style (``bucket.endpoint/key``) and path-style
(``endpoint/bucket/key``) addressing and produces the canonical resource
path that request signatures are computed over.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote

_BUCKET_LABELS_RE = re.compile(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$")
_IPV4_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


def is_dns_compatible_bucket(bucket_name: str) -> bool:
    """Return True when the bucket name can be used as a DNS label prefix."""
    if not 3 <= len(bucket_name) <= 63:
        return False
    if not _BUCKET_LABELS_RE.match(bucket_name):
        return False
    if _IPV4_RE.match(bucket_name):
        return False
    return ".." not in bucket_name and ".-" not in bucket_name and "-." not in bucket_name


def escape_key(key: str) -> str:
    """URL-escape an object key, keeping ``/`` separators."""
    return quote(key, safe="/~")


def canonical_resource_path(bucket_name: str, key: str) -> str:
    """Path-style resource used in the string to sign, whatever the host style."""
    return f"/{bucket_name}/{escape_key(key)}"


@dataclass(frozen=True, slots=True)
class ResolvedEndpoint:
    host: str
    path: str


class EndpointResolver:
    """Maps a bucket and key onto a request host and path."""

    def __init__(self, endpoint: str, *, addressing_style: str = "auto") -> None:
        self._endpoint = endpoint.strip().rstrip("/")
        self._addressing_style = addressing_style

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def uses_subdomain(self, bucket_name: str) -> bool:
        if self._addressing_style == "path":
            return False
        compatible = is_dns_compatible_bucket(bucket_name)
        if self._addressing_style == "virtual" and not compatible:
            raise ValueError(
                f"Bucket name {bucket_name!r} cannot be addressed as a subdomain"
            )
        return compatible

    def resolve(self, bucket_name: str, key: str) -> ResolvedEndpoint:
        if self.uses_subdomain(bucket_name):
            return ResolvedEndpoint(
                host=f"{bucket_name}.{self._endpoint}",
                path=f"/{escape_key(key)}",
            )
        return ResolvedEndpoint(
            host=self._endpoint,
            path=canonical_resource_path(bucket_name, key),
        )
