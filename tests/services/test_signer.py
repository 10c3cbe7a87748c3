"""Tests for request signing."""

from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import datetime, timedelta, timezone

import pytest

from objectstore.services.base import PreconditionViolationError
from objectstore.services.signer import (
    Credentials,
    HttpVerb,
    canonicalize_amz_headers,
    canonicalize_resource,
    normalize_expiration,
    normalize_verb,
    sign,
)
from tests.conftest import FROZEN_NOW

CREDENTIALS = Credentials(access_key_id="ACCESS_KEY", secret_access_key="SECRET_KEY")

# "2011-05-23 18:39:04 -0700"
EXPECTED_EXPIRES = 1306201144


class TestNormalizeVerb:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("GET", HttpVerb.GET),
            ("get", HttpVerb.GET),
            ("PUT", HttpVerb.PUT),
            ("put", HttpVerb.PUT),
            ("HEAD", HttpVerb.HEAD),
            ("head", HttpVerb.HEAD),
            ("DELETE", HttpVerb.DELETE),
            ("delete", HttpVerb.DELETE),
            ("post", HttpVerb.POST),
            ("read", HttpVerb.GET),
            ("READ", HttpVerb.GET),
            ("write", HttpVerb.PUT),
            ("Write", HttpVerb.PUT),
            (HttpVerb.DELETE, HttpVerb.DELETE),
        ],
    )
    def test_maps_tokens_to_http_verbs(self, token, expected):
        assert normalize_verb(token) is expected

    @pytest.mark.parametrize("token", ["patch", "", "fetch", 42])
    def test_rejects_unknown_verbs(self, token):
        with pytest.raises(PreconditionViolationError):
            normalize_verb(token)


class TestNormalizeExpiration:
    def test_defaults_to_one_hour_from_now(self):
        assert normalize_expiration(None, now=FROZEN_NOW) == 1306200888

    def test_relative_offset_in_seconds(self):
        now = datetime(2011, 5, 23, 18, 39, 0, tzinfo=timezone(timedelta(hours=-7)))

        assert normalize_expiration(4, now=now) == EXPECTED_EXPIRES

    def test_relative_timedelta(self):
        now = datetime(2011, 5, 23, 18, 39, 0, tzinfo=timezone(timedelta(hours=-7)))

        assert normalize_expiration(timedelta(seconds=4), now=now) == EXPECTED_EXPIRES

    def test_absolute_datetime(self):
        expires = datetime(2011, 5, 23, 18, 39, 4, tzinfo=timezone(timedelta(hours=-7)))

        assert normalize_expiration(expires, now=FROZEN_NOW) == EXPECTED_EXPIRES

    def test_naive_datetime_is_utc(self):
        expires = datetime(2011, 5, 24, 1, 39, 4)

        assert normalize_expiration(expires, now=FROZEN_NOW) == EXPECTED_EXPIRES

    @pytest.mark.parametrize(
        "literal",
        [
            "2011-05-23 18:39:04 -0700",
            "2011-05-24T01:39:04Z",
            "Tue, 24 May 2011 01:39:04 GMT",
            "1306201144",
        ],
    )
    def test_literal_timestamp_string(self, literal):
        assert normalize_expiration(literal, now=FROZEN_NOW) == EXPECTED_EXPIRES

    @pytest.mark.parametrize("value", ["not a date", True, [1]])
    def test_rejects_malformed_values(self, value):
        with pytest.raises(PreconditionViolationError):
            normalize_expiration(value, now=FROZEN_NOW)


class TestCanonicalization:
    def test_amz_headers_are_lowercased_sorted_and_folded(self):
        lines = canonicalize_amz_headers(
            {
                "X-Amz-Meta-Zeta": "z",
                "x-amz-acl": "public-read",
                "Content-Type": "text/plain",
                "X-AMZ-Meta-Multi": ["a", "b"],
                "x-amz-meta-long": "first line\n   second line",
            }
        )

        assert lines == [
            "x-amz-acl:public-read",
            "x-amz-meta-long:first line second line",
            "x-amz-meta-multi:a,b",
            "x-amz-meta-zeta:z",
        ]

    def test_resource_without_signed_params(self):
        assert canonicalize_resource("/foo/bar", [("other", "x")]) == "/foo/bar"

    def test_resource_appends_whitelisted_params_sorted(self):
        resource = canonicalize_resource(
            "/foo/bar",
            [
                ("response-expires", "never"),
                ("response-content-type", "text/plain"),
                ("unrelated", "x"),
            ],
        )

        assert resource == (
            "/foo/bar?response-content-type=text/plain&response-expires=never"
        )


class TestSign:
    def test_string_to_sign_layout(self):
        result = sign("get", "/foo/bar", None, None, CREDENTIALS, now=FROZEN_NOW)
        lines = result.string_to_sign.split("\n")

        assert lines == ["GET", "", "", "1306200888", "/foo/bar"]
        assert not result.string_to_sign.endswith("\n")

    def test_signed_headers_fill_md5_type_and_amz_lines(self):
        result = sign(
            "write",
            "/foo/bar",
            str(EXPECTED_EXPIRES),
            {
                "Content-MD5": "62HurZDjuJnGvL4nrFgWYA==",
                "Content-Type": "text/plain",
                "x-amz-acl": "private",
            },
            CREDENTIALS,
            now=FROZEN_NOW,
        )

        assert result.string_to_sign == "\n".join(
            [
                "PUT",
                "62HurZDjuJnGvL4nrFgWYA==",
                "text/plain",
                str(EXPECTED_EXPIRES),
                "x-amz-acl:private",
                "/foo/bar",
            ]
        )

    def test_signature_is_base64_hmac_sha1(self):
        result = sign(
            "GET",
            "/foobucket/foo",
            "2011-05-23 18:39:04 -0700",
            None,
            CREDENTIALS,
            query_params=[("response-content-type", "text/plain")],
            now=FROZEN_NOW,
        )
        expected = base64.b64encode(
            hmac.new(
                b"SECRET_KEY",
                (
                    "GET\n\n\n1306201144\n"
                    "/foobucket/foo?response-content-type=text/plain"
                ).encode(),
                hashlib.sha1,
            ).digest()
        ).decode()

        assert result.signature == expected
        assert result.expires == EXPECTED_EXPIRES
        assert result.access_key_id == "ACCESS_KEY"

    def test_same_inputs_same_signature(self):
        first = sign("GET", "/foobucket/foo", 60, None, CREDENTIALS, now=FROZEN_NOW)
        second = sign("GET", "/foobucket/foo", 60, None, CREDENTIALS, now=FROZEN_NOW)

        assert first == second

    def test_credentials_repr_hides_secret(self):
        assert "SECRET_KEY" not in repr(CREDENTIALS)
