"""Tests for ObjectService."""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urlsplit

import pytest

from objectstore.infra.storage.client import StorageError
from objectstore.services.object_service import ObjectService
from objectstore.services.presign import PostOptions, UrlOptions
from objectstore.services.upload import WriteOptions
from tests.services.mock_storage import etag_of

LAST_MODIFIED = datetime(2011, 5, 24, 0, 34, 48, tzinfo=timezone.utc)


@pytest.fixture()
def service(mock_storage, settings, clock):
    return ObjectService(mock_storage, settings=settings, clock=clock)


@pytest.fixture()
def stored(mock_storage):
    mock_storage.objects["foobucket/foo"] = {
        "data": b"HELLO",
        "etag": etag_of(b"HELLO"),
        "content_type": "text/plain",
        "last_modified": LAST_MODIFIED,
    }
    return mock_storage


class TestExists:
    def test_exists(self, service, stored, locator):
        assert service.exists(locator) is True

    def test_missing(self, service, locator):
        assert service.exists(locator) is False

    def test_other_errors_propagate(self, service, mock_storage, locator):
        mock_storage.failures["head_object"] = StorageError("Failed to get object metadata: boom")

        with pytest.raises(StorageError, match="boom"):
            service.exists(locator)


class TestMetadata:
    def test_getters(self, service, stored, locator):
        assert service.etag(locator) == etag_of(b"HELLO")
        assert service.last_modified(locator) == LAST_MODIFIED
        assert service.content_length(locator) == 5
        assert service.content_type(locator) == "text/plain"

    def test_head_with_version(self, service, stored, locator):
        service.head(locator, version_id="1234")

        assert stored.calls_to("head_object") == [
            {"bucket": "foobucket", "object_key": "foo", "version_id": "1234"}
        ]

    def test_read(self, service, stored, locator):
        assert service.read(locator) == b"HELLO"


class TestDelete:
    def test_delete(self, service, stored, locator):
        service.delete(locator)

        assert "foobucket/foo" not in stored.objects

    def test_delete_version(self, service, mock_storage, locator):
        service.delete(locator, version_id="vid")

        assert mock_storage.calls_to("delete_object") == [
            {"bucket": "foobucket", "object_key": "foo", "version_id": "vid"}
        ]


class TestWrite:
    def test_write_then_read(self, service, locator):
        assert service.write(locator, "HELLO") == locator
        assert service.read(locator) == b"HELLO"

    def test_multipart_write(self, service, mock_storage, locator):
        service.write(
            locator,
            b"aabb",
            WriteOptions(multipart_threshold=2, multipart_min_part_size=2),
        )

        assert mock_storage.part_bodies() == [b"aa", b"bb"]
        assert service.read(locator) == b"aabb"

    def test_multipart_upload(self, service, mock_storage, locator):
        def produce(session):
            session.add_part(b"HELLO")

        service.multipart_upload(locator, produce)

        assert mock_storage.operations() == [
            "init_multipart_upload",
            "upload_part",
            "complete_multipart_upload",
        ]

    def test_initiate_leaves_session_open(self, service, mock_storage, locator):
        session = service.initiate_multipart_upload(locator)

        assert session.state == "active"
        assert session.object == locator
        assert mock_storage.operations() == ["init_multipart_upload"]


class TestReducedRedundancy:
    @pytest.mark.parametrize(
        ("enabled", "storage_class"),
        [(True, "REDUCED_REDUNDANCY"), (False, "STANDARD")],
    )
    def test_copies_onto_itself(self, service, mock_storage, locator, enabled, storage_class):
        assert service.set_reduced_redundancy(locator, enabled) is enabled

        assert mock_storage.calls_to("copy_object") == [
            {
                "bucket": "foobucket",
                "object_key": "foo",
                "copy_source": "foobucket/foo",
                "metadata_directive": "COPY",
                "storage_class": storage_class,
            }
        ]


class TestUrls:
    def test_url_for(self, service, locator):
        url = urlsplit(service.url_for(locator, "read", UrlOptions(secure=False)))

        assert url.scheme == "http"
        assert url.netloc == "foobucket.s3.amazonaws.com"
        assert url.path == "/foo"
        assert url.query.startswith("AWSAccessKeyId=ACCESS_KEY&Signature=")
        assert url.query.endswith("&Expires=1306200888")

    def test_public_url(self, service, locator):
        assert service.public_url(locator) == "https://foobucket.s3.amazonaws.com/foo"

    def test_url_for_makes_no_requests(self, service, mock_storage, locator):
        service.url_for(locator)

        assert mock_storage.calls == []

    def test_public_url_follows_use_ssl(self, mock_storage, settings, clock, locator):
        settings.S3_USE_SSL = False
        service = ObjectService(mock_storage, settings=settings, clock=clock)

        assert service.public_url(locator) == "http://foobucket.s3.amazonaws.com/foo"

    def test_presigned_post(self, service, mock_storage, locator):
        post = service.presigned_post(locator, PostOptions(fields={"acl": "private"}))

        assert post.url == "https://foobucket.s3.amazonaws.com/"
        assert post.fields["key"] == "foo"
        assert post.fields["acl"] == "private"
        assert mock_storage.calls == []
