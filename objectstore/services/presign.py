"""Presigned and public object URLs, and presigned POST forms."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping
from urllib.parse import quote, urlencode, urlunsplit

from objectstore.common.config import Settings, get_settings
from objectstore.domain.objects import ObjectLocator
from objectstore.infra.storage.endpoint import EndpointResolver, canonical_resource_path
from objectstore.services.base import Clock, PreconditionViolationError, utc_now
from objectstore.services.signer import (
    Credentials,
    Expiration,
    HeaderValue,
    Verb,
    encode_post_policy,
    hmac_sha1_base64,
    normalize_expiration,
    normalize_verb,
    sign,
)

logger = logging.getLogger("objectstore.presign")


@dataclass(frozen=True, slots=True)
class UrlOptions:
    """Options recognized by ``PresignedUrlBuilder.build_url``.

    ``secure`` defaults to the configured ``S3_USE_SSL`` and ``expires`` to
    the configured lifetime from now. The
    ``response_*`` overrides make the service answer the presigned request
    with those headers; they are signed and appended to the query string.
    ``signed_headers`` must be sent verbatim by whoever uses the URL.
    """

    secure: bool | None = None
    expires: Expiration = None
    response_content_type: str | None = None
    response_content_language: str | None = None
    response_expires: str | None = None
    response_cache_control: str | None = None
    response_content_disposition: str | None = None
    response_content_encoding: str | None = None
    version_id: str | None = None
    upload_id: str | None = None
    part_number: int | None = None
    signed_headers: Mapping[str, HeaderValue] = field(default_factory=dict)

    def query_params(self) -> list[tuple[str, str]]:
        """Signed query parameters, sorted by name."""
        candidates = {
            "response-cache-control": self.response_cache_control,
            "response-content-disposition": self.response_content_disposition,
            "response-content-encoding": self.response_content_encoding,
            "response-content-language": self.response_content_language,
            "response-content-type": self.response_content_type,
            "response-expires": self.response_expires,
            "partNumber": None if self.part_number is None else str(int(self.part_number)),
            "uploadId": self.upload_id,
            "versionId": self.version_id,
        }
        return sorted(
            (name, value) for name, value in candidates.items() if value is not None
        )


# Form fields the builder fills in itself.
RESERVED_POST_FIELDS = frozenset(
    {"key", "bucket", "AWSAccessKeyId", "policy", "signature", "file"}
)

FILENAME_PLACEHOLDER = "${filename}"


@dataclass(frozen=True, slots=True)
class PostOptions:
    """Options recognized by ``PresignedUrlBuilder.presigned_post``.

    ``fields`` are extra form fields (``acl``, ``Content-Type``,
    ``success_action_status``...) that the upload must send verbatim;
    ``metadata`` becomes ``x-amz-meta-*`` fields. ``content_length_range``
    bounds the uploaded size in bytes, inclusive.
    """

    secure: bool | None = None
    expires: Expiration = None
    fields: Mapping[str, str] = field(default_factory=dict)
    metadata: Mapping[str, str] = field(default_factory=dict)
    content_length_range: tuple[int, int] | None = None


@dataclass(frozen=True, slots=True)
class PresignedPost:
    """Target URL and form fields for a browser upload of one object."""

    url: str
    fields: dict[str, str]
    expires: int


def _key_condition(key: str) -> object:
    # the browser substitutes ${filename}, so only the prefix can be pinned
    if FILENAME_PLACEHOLDER in key:
        return ["starts-with", "$key", key[: key.index(FILENAME_PLACEHOLDER)]]
    return {"key": key}


def _url(scheme_secure: bool, host: str, path: str, query: str = "") -> str:
    return urlunsplit(("https" if scheme_secure else "http", host, path, query, ""))


class PresignedUrlBuilder:
    """Builds time-limited URLs that authorize one verb on one object."""

    def __init__(
        self,
        *,
        credentials: Credentials | None = None,
        resolver: EndpointResolver | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._credentials = credentials or self._credentials_from(self._settings)
        self._resolver = resolver or EndpointResolver(
            self._settings.S3_ENDPOINT,
            addressing_style=self._settings.S3_ADDRESSING_STYLE,
        )
        self._clock = clock or utc_now

    def _secure(self, secure: bool | None) -> bool:
        return self._settings.S3_USE_SSL if secure is None else secure

    def _require_credentials(self) -> Credentials:
        if self._credentials is None:
            raise PreconditionViolationError(
                "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY are required to sign URLs"
            )
        return self._credentials

    @staticmethod
    def _credentials_from(settings: Settings) -> Credentials | None:
        if not settings.S3_ACCESS_KEY_ID or not settings.S3_SECRET_ACCESS_KEY:
            return None
        return Credentials(
            access_key_id=settings.S3_ACCESS_KEY_ID,
            secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        )

    def build_url(
        self,
        locator: ObjectLocator,
        verb: Verb = "GET",
        options: UrlOptions | None = None,
    ) -> str:
        """Return a presigned URL for ``verb`` on the object.

        The query string lists the signed sub-resource and response-override
        parameters (sorted by name), then ``AWSAccessKeyId``, ``Signature``
        and ``Expires`` in that order.

        Raises:
            PreconditionViolationError: If credentials are missing or the
                verb or expiration is malformed.
        """
        credentials = self._require_credentials()
        options = options or UrlOptions()
        http_verb = normalize_verb(verb)
        params = options.query_params()
        endpoint = self._resolver.resolve(locator.bucket_name, locator.key)

        signature = sign(
            http_verb,
            canonical_resource_path(locator.bucket_name, locator.key),
            options.expires,
            options.signed_headers,
            credentials,
            query_params=params,
            now=self._clock(),
            default_expires_in=self._settings.S3_PRESIGN_EXPIRES_SECONDS,
        )

        query_pairs = [
            *params,
            ("AWSAccessKeyId", signature.access_key_id),
            ("Signature", signature.signature),
            ("Expires", str(signature.expires)),
        ]
        url = _url(
            self._secure(options.secure),
            endpoint.host,
            endpoint.path,
            urlencode(query_pairs, quote_via=quote),
        )
        logger.debug(
            "Presigned URL generated. [event=presigned_url_generated] "
            "(verb=%s, object=%s, expires=%s)",
            http_verb.value,
            locator,
            signature.expires,
        )
        return url

    def public_url(self, locator: ObjectLocator, *, secure: bool | None = None) -> str:
        """Unsigned URL of the object; only fetchable when the object is public."""
        endpoint = self._resolver.resolve(locator.bucket_name, locator.key)
        return _url(self._secure(secure), endpoint.host, endpoint.path)

    def presigned_post(
        self,
        locator: ObjectLocator,
        options: PostOptions | None = None,
    ) -> PresignedPost:
        """Return the form a browser posts to upload the object directly.

        The policy lists the bucket, the key and every extra field as
        conditions; the service rejects uploads that deviate from it or
        arrive after expiry.

        Raises:
            PreconditionViolationError: If credentials are missing, a field
                name is reserved, or the expiration or length range is
                malformed.
        """
        credentials = self._require_credentials()
        options = options or PostOptions()
        extra = dict(options.fields)
        extra.update(
            (f"x-amz-meta-{name}", value) for name, value in options.metadata.items()
        )
        reserved = sorted(RESERVED_POST_FIELDS.intersection(extra))
        if reserved:
            raise PreconditionViolationError(
                f"Reserved presigned POST fields: {', '.join(reserved)}"
            )

        conditions: list[object] = [
            {"bucket": locator.bucket_name},
            _key_condition(locator.key),
        ]
        conditions.extend({name: value} for name, value in extra.items())
        if options.content_length_range is not None:
            low, high = options.content_length_range
            if low < 0 or high < low:
                raise PreconditionViolationError(
                    f"Invalid content length range: {low}-{high}"
                )
            conditions.append(["content-length-range", int(low), int(high)])

        expires = normalize_expiration(
            options.expires,
            now=self._clock(),
            default_expires_in=self._settings.S3_PRESIGN_EXPIRES_SECONDS,
        )
        policy = encode_post_policy(expires, conditions)
        fields = {
            "key": locator.key,
            **extra,
            "AWSAccessKeyId": credentials.access_key_id,
            "policy": policy,
            "signature": hmac_sha1_base64(credentials.secret_access_key, policy),
        }
        endpoint = self._resolver.resolve(locator.bucket_name, "")
        logger.debug(
            "Presigned POST generated. [event=presigned_post_generated] "
            "(object=%s, expires=%s, fields=%s)",
            locator,
            expires,
            len(fields),
        )
        return PresignedPost(
            url=_url(self._secure(options.secure), endpoint.host, endpoint.path),
            fields=fields,
            expires=expires,
        )
