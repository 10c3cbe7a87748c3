from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from objectstore.common.config import Settings, get_settings
from objectstore.domain.objects import ObjectLocator
from tests.services.mock_storage import MockStorageClient

# "2011-05-23 17:34:48 -0700"
FROZEN_NOW = datetime(2011, 5, 23, 17, 34, 48, tzinfo=timezone(timedelta(hours=-7)))


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        S3_ENDPOINT="s3.amazonaws.com",
        S3_ACCESS_KEY_ID="ACCESS_KEY",
        S3_SECRET_ACCESS_KEY="SECRET_KEY",
        ENABLE_METRICS=False,
    )


@pytest.fixture()
def clock():
    return lambda: FROZEN_NOW


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture()
def locator() -> ObjectLocator:
    return ObjectLocator("foobucket", "foo")
