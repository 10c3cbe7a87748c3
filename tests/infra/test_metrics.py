"""Tests for prometheus counters."""

from prometheus_client import REGISTRY

from objectstore.common.config import Settings
from objectstore.infra.observability.metrics import (
    record_multipart_outcome,
    record_single_upload,
)


def _sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_records_when_enabled():
    before = _sample("objectstore_multipart_uploads_total", {"outcome": "aborted"})

    record_multipart_outcome(Settings(ENABLE_METRICS=True), "aborted")

    after = _sample("objectstore_multipart_uploads_total", {"outcome": "aborted"})
    assert after == before + 1


def test_skips_when_disabled():
    labels = {"strategy": "single"}
    before = _sample("objectstore_uploaded_bytes_total", labels)

    record_single_upload(Settings(ENABLE_METRICS=False), 5)

    assert _sample("objectstore_uploaded_bytes_total", labels) == before
