"""Tests for the testing fakes themselves."""

import asyncio
import io

import pytest
from PIL import Image

from image_variants.core.observability import LogContext
from image_variants.testing.fakes import (
    FakeLogger,
    FakeObjectStore,
    create_source_image,
    create_test_image,
)


class TestFakeObjectStore:
    """Tests for FakeObjectStore."""

    def test_upload_stores_object_and_describes_it(self):
        store = FakeObjectStore()

        descriptor = asyncio.run(
            store.upload_stream(io.BytesIO(b"abc"), "uploads", "image_thumbnail_1", content_type="image/webp")
        )

        assert descriptor["public_id"] == "uploads/image_thumbnail_1"
        assert descriptor["secure_url"] == "https://cdn.example.test/uploads/image_thumbnail_1"
        assert descriptor["bytes"] == 3
        assert descriptor["format"] == "webp"
        assert store.get_object("uploads/image_thumbnail_1").body == b"abc"
        assert store.upload_count == 1

    def test_failure_mode(self):
        store = FakeObjectStore()
        store.set_failure_mode(True, "Service Unavailable")

        with pytest.raises(Exception, match="Service Unavailable"):
            asyncio.run(store.upload_stream(io.BytesIO(b"abc"), "uploads", "x"))

    def test_selective_failure(self):
        store = FakeObjectStore()
        store.fail_uploads_containing("_large_")

        asyncio.run(store.upload_stream(io.BytesIO(b"a"), "uploads", "image_medium_1"))
        with pytest.raises(Exception):
            asyncio.run(store.upload_stream(io.BytesIO(b"a"), "uploads", "image_large_1"))

    def test_no_result_mode(self):
        store = FakeObjectStore(return_no_result=True)
        assert asyncio.run(store.upload_stream(io.BytesIO(b"a"), "uploads", "x")) is None

    def test_destroy(self):
        store = FakeObjectStore()
        asyncio.run(store.upload_stream(io.BytesIO(b"a"), "uploads", "x"))

        assert asyncio.run(store.destroy("uploads/x")) == {"result": "ok"}
        assert asyncio.run(store.destroy("uploads/x")) == {"result": "not found"}
        assert store.destroy_count == 2


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_records_context_fields(self):
        logger = FakeLogger()
        context = LogContext(correlation_id="abc", operation="upload").with_metadata(variant="large")

        logger.info("Uploading", context, bytes=10)

        entry = logger.get_logs("INFO")[0]
        assert entry["message"] == "Uploading"
        assert entry["correlation_id"] == "abc"
        assert entry["operation"] == "upload"
        assert entry["variant"] == "large"
        assert entry["bytes"] == 10

    def test_filter_and_clear(self):
        logger = FakeLogger()
        logger.debug("d")
        logger.error("e")
        assert len(logger.get_logs()) == 2
        assert logger.messages("ERROR") == ["e"]
        logger.clear_logs()
        assert logger.get_logs() == []


class TestImageHelpers:
    """Tests for image creation helpers."""

    def test_create_test_image(self):
        data = create_test_image(50, 40, image_format="PNG")
        with Image.open(io.BytesIO(data)) as image:
            assert image.size == (50, 40)
            assert image.format == "PNG"

    def test_create_source_image(self):
        source = create_source_image(30, 20, filename="a.jpg")
        assert source.filename == "a.jpg"
        assert source.mimetype == "image/jpeg"
        assert source.size == len(source.buffer)
