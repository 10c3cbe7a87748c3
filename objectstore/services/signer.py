"""Query-string request signing for presigned object URLs.

The string to sign is the newline-joined sequence::

    VERB
    Content-MD5 (or empty)
    Content-Type (or empty)
    Expires (integer Unix seconds)
    x-amz-* headers (lowercased, sorted, folded; one per line, if any)
    canonicalized resource

and the signature is ``base64(HMAC-SHA1(secret_key, string_to_sign))``.
Browser POST uploads sign a base64 JSON policy document with the same
HMAC instead. Every function here is pure: the current time is passed in,
never read.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Mapping, Sequence, Union

from dateutil import parser as date_parser

from objectstore.services.base import PreconditionViolationError

DEFAULT_EXPIRES_IN = 3600


class HttpVerb(str, Enum):
    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    POST = "POST"


VERB_ALIASES: dict[str, HttpVerb] = {
    "read": HttpVerb.GET,
    "write": HttpVerb.PUT,
}

RESPONSE_OVERRIDE_PARAMS: tuple[str, ...] = (
    "response-cache-control",
    "response-content-disposition",
    "response-content-encoding",
    "response-content-language",
    "response-content-type",
    "response-expires",
)

# Sub-resources that address a version or a multipart part.
SUBRESOURCE_PARAMS: tuple[str, ...] = ("partNumber", "uploadId", "versionId")

SIGNED_QUERY_PARAMS = frozenset(RESPONSE_OVERRIDE_PARAMS + SUBRESOURCE_PARAMS)

Verb = Union[str, HttpVerb]
Expiration = Union[None, int, float, timedelta, datetime, str]
QueryParams = Sequence[tuple[str, Union[str, None]]]
HeaderValue = Union[str, Sequence[str]]

_FOLD_RE = re.compile(r"\s*\n\s*")


@dataclass(frozen=True, slots=True)
class Credentials:
    access_key_id: str
    secret_access_key: str

    def __repr__(self) -> str:
        return f"Credentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"


@dataclass(frozen=True, slots=True)
class SignedRequestSpec:
    """Everything that goes into one signature; built per call."""

    http_verb: HttpVerb
    resource_path: str
    expiration: int
    extra_signed_headers: Mapping[str, HeaderValue] = field(default_factory=dict)
    extra_query_params: tuple[tuple[str, str | None], ...] = ()

    @property
    def canonicalized_resource(self) -> str:
        return canonicalize_resource(self.resource_path, self.extra_query_params)

    def string_to_sign(self) -> str:
        headers = {name.lower(): value for name, value in self.extra_signed_headers.items()}
        lines = [
            self.http_verb.value,
            _header_text(headers.get("content-md5")),
            _header_text(headers.get("content-type")),
            str(self.expiration),
            *canonicalize_amz_headers(headers),
            self.canonicalized_resource,
        ]
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class Signature:
    string_to_sign: str
    signature: str
    access_key_id: str
    expires: int


def normalize_verb(verb: Verb) -> HttpVerb:
    """Map a method token or the ``read``/``write`` aliases onto an HTTP verb."""
    if isinstance(verb, HttpVerb):
        return verb
    if not isinstance(verb, str):
        raise PreconditionViolationError(f"Unsupported HTTP verb: {verb!r}")
    token = verb.strip()
    alias = VERB_ALIASES.get(token.lower())
    if alias is not None:
        return alias
    try:
        return HttpVerb(token.upper())
    except ValueError:
        raise PreconditionViolationError(f"Unsupported HTTP verb: {verb!r}") from None


def _as_aware(moment: datetime) -> datetime:
    # naive datetimes are taken as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def normalize_expiration(
    expires: Expiration,
    *,
    now: datetime,
    default_expires_in: int = DEFAULT_EXPIRES_IN,
) -> int:
    """Resolve an expiration to integer Unix seconds.

    Accepts ``None`` (``now`` plus the default lifetime), a relative offset in
    seconds or as a ``timedelta``, an absolute ``datetime``, or a literal
    timestamp string (all digits for Unix seconds, otherwise any date/time
    format ``dateutil`` understands).
    """
    if expires is None:
        return int(_as_aware(now).timestamp()) + int(default_expires_in)
    if isinstance(expires, bool):
        raise PreconditionViolationError("expires must not be a boolean")
    if isinstance(expires, (int, float)):
        return int(_as_aware(now).timestamp() + expires)
    if isinstance(expires, timedelta):
        return int((_as_aware(now) + expires).timestamp())
    if isinstance(expires, datetime):
        return int(_as_aware(expires).timestamp())
    if isinstance(expires, str):
        text = expires.strip()
        if text.isdigit():
            return int(text)
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as exc:
            raise PreconditionViolationError(
                f"Unparseable expiration timestamp: {expires!r}"
            ) from exc
        return int(_as_aware(parsed).timestamp())
    raise PreconditionViolationError(f"Unsupported expiration value: {expires!r}")


def _header_text(value: HeaderValue | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return ",".join(value)


def canonicalize_amz_headers(headers: Mapping[str, HeaderValue]) -> list[str]:
    """Return ``name:value`` lines for ``x-amz-*`` headers, sorted by name."""
    amz_headers = {
        name.lower(): value
        for name, value in headers.items()
        if name.lower().startswith("x-amz-") and value is not None
    }
    lines = []
    for name in sorted(amz_headers):
        value = amz_headers[name]
        values = [value] if isinstance(value, str) else list(value)
        folded = ",".join(_FOLD_RE.sub(" ", v.strip()) for v in values)
        lines.append(f"{name}:{folded}")
    return lines


def canonicalize_resource(resource_path: str, query_params: QueryParams = ()) -> str:
    """Append the signed query parameters, sorted by name, to the resource path."""
    signed = sorted(
        ((name, value) for name, value in query_params if name in SIGNED_QUERY_PARAMS),
        key=lambda pair: pair[0],
    )
    if not signed:
        return resource_path
    query = "&".join(name if value is None else f"{name}={value}" for name, value in signed)
    return f"{resource_path}?{query}"


def hmac_sha1_base64(secret_key: str, message: str) -> str:
    digest = hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def post_policy_expiration(expires: int) -> str:
    return datetime.fromtimestamp(expires, timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def encode_post_policy(expires: int, conditions: Sequence[object]) -> str:
    """Base64 of the JSON policy document a browser POST upload is checked against."""
    document = {
        "expiration": post_policy_expiration(expires),
        "conditions": list(conditions),
    }
    encoded = json.dumps(document, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(encoded).decode("ascii")


def build_spec(
    verb: Verb,
    resource_path: str,
    expiration: Expiration,
    signed_headers: Mapping[str, HeaderValue] | None = None,
    *,
    query_params: QueryParams = (),
    now: datetime,
    default_expires_in: int = DEFAULT_EXPIRES_IN,
) -> SignedRequestSpec:
    return SignedRequestSpec(
        http_verb=normalize_verb(verb),
        resource_path=resource_path,
        expiration=normalize_expiration(
            expiration, now=now, default_expires_in=default_expires_in
        ),
        extra_signed_headers=dict(signed_headers or {}),
        extra_query_params=tuple(query_params),
    )


def sign(
    verb: Verb,
    resource_path: str,
    expiration: Expiration,
    signed_headers: Mapping[str, HeaderValue] | None,
    credentials: Credentials,
    *,
    query_params: QueryParams = (),
    now: datetime,
    default_expires_in: int = DEFAULT_EXPIRES_IN,
) -> Signature:
    """Build the string to sign for a request and sign it with the secret key."""
    spec = build_spec(
        verb,
        resource_path,
        expiration,
        signed_headers,
        query_params=query_params,
        now=now,
        default_expires_in=default_expires_in,
    )
    string_to_sign = spec.string_to_sign()
    return Signature(
        string_to_sign=string_to_sign,
        signature=hmac_sha1_base64(credentials.secret_access_key, string_to_sign),
        access_key_id=credentials.access_key_id,
        expires=spec.expiration,
    )
