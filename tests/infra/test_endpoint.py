"""Tests for endpoint resolution."""

import pytest

from objectstore.infra.storage.endpoint import (
    EndpointResolver,
    canonical_resource_path,
    is_dns_compatible_bucket,
)


class TestDnsCompatibleBucket:
    @pytest.mark.parametrize(
        "name", ["foobucket", "foo-bar", "foo.bar", "a1b", "x" * 63]
    )
    def test_accepts_label_safe_names(self, name):
        assert is_dns_compatible_bucket(name)

    @pytest.mark.parametrize(
        "name",
        [
            "foo..bar",
            "ab",
            "x" * 64,
            "FooBucket",
            "foo_bar",
            "-foo",
            "foo-",
            "foo.-bar",
            "foo-.bar",
            "192.168.1.1",
        ],
    )
    def test_rejects_unsafe_names(self, name):
        assert not is_dns_compatible_bucket(name)


class TestEndpointResolver:
    def test_subdomain_style_for_compatible_bucket(self):
        resolved = EndpointResolver("s3.amazonaws.com").resolve("foobucket", "foo")

        assert resolved.host == "foobucket.s3.amazonaws.com"
        assert resolved.path == "/foo"

    def test_path_style_for_incompatible_bucket(self):
        resolved = EndpointResolver("s3.amazonaws.com").resolve("foo..bar", "foo")

        assert resolved.host == "s3.amazonaws.com"
        assert resolved.path == "/foo..bar/foo"

    def test_path_style_forced_by_configuration(self):
        resolver = EndpointResolver("localhost:9000", addressing_style="path")

        resolved = resolver.resolve("foobucket", "a/b.txt")

        assert resolved.host == "localhost:9000"
        assert resolved.path == "/foobucket/a/b.txt"

    def test_virtual_style_rejects_incompatible_bucket(self):
        resolver = EndpointResolver("s3.amazonaws.com", addressing_style="virtual")

        with pytest.raises(ValueError, match="subdomain"):
            resolver.resolve("foo..bar", "foo")

    def test_key_is_escaped_but_slashes_are_kept(self):
        resolved = EndpointResolver("s3.amazonaws.com").resolve(
            "foobucket", "dir/my file+1.txt"
        )

        assert resolved.path == "/dir/my%20file%2B1.txt"


def test_canonical_resource_path_is_always_path_style():
    assert canonical_resource_path("foobucket", "dir/a b") == "/foobucket/dir/a%20b"
