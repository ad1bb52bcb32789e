"""Unit tests for the S3 object store backend."""

import asyncio
import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from image_variants.core.exceptions import ConfigurationError
from image_variants.core.models import UploadConfig
from image_variants.stores.s3 import S3ObjectStore


def make_store(**config_overrides):
    config = UploadConfig(bucket="media-bucket", region="eu-west-1", **config_overrides)
    s3_client = AsyncMock()
    session = MagicMock()
    session.client.return_value.__aenter__.return_value = s3_client
    session.client.return_value.__aexit__.return_value = False
    return S3ObjectStore(config, session=session), session, s3_client


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "HeadObject")


class TestS3ObjectStore:
    """Tests for S3ObjectStore."""

    def test_requires_bucket(self):
        with pytest.raises(ConfigurationError, match="S3_BUCKET"):
            S3ObjectStore(UploadConfig(), session=MagicMock())

    def test_upload_streams_to_key(self):
        store, session, s3_client = make_store()

        async def fake_upload(fileobj, bucket, key, ExtraArgs=None, Config=None):
            while fileobj.read(4):
                pass

        s3_client.upload_fileobj.side_effect = fake_upload

        descriptor = asyncio.run(
            store.upload_stream(
                io.BytesIO(b"0123456789"),
                "uploads/avatars/u1",
                "u1_avatars_thumbnail_1",
                content_type="image/webp",
            )
        )

        args, kwargs = s3_client.upload_fileobj.call_args
        assert args[1:] == ("media-bucket", "uploads/avatars/u1/u1_avatars_thumbnail_1")
        assert kwargs["ExtraArgs"] == {
            "ContentType": "image/webp",
            "Metadata": {"resource-type": "image"},
        }
        session.client.assert_called_once_with(
            "s3", region_name="eu-west-1", endpoint_url=None
        )
        assert descriptor == {
            "secure_url": "https://media-bucket.s3.eu-west-1.amazonaws.com/uploads/avatars/u1/u1_avatars_thumbnail_1",
            "public_id": "uploads/avatars/u1/u1_avatars_thumbnail_1",
            "format": "webp",
            "bytes": 10,
            "width": None,
            "height": None,
        }

    def test_public_base_url(self):
        store, _, _ = make_store(public_base_url="https://cdn.example.test/")
        assert store.public_url("uploads/a") == "https://cdn.example.test/uploads/a"

    def test_upload_errors_propagate(self):
        store, _, s3_client = make_store()
        s3_client.upload_fileobj.side_effect = client_error("AccessDenied")

        with pytest.raises(ClientError):
            asyncio.run(store.upload_stream(io.BytesIO(b"x"), "uploads", "x"))

    def test_destroy_existing_object(self):
        store, _, s3_client = make_store()

        assert asyncio.run(store.destroy("uploads/x")) == {"result": "ok"}
        s3_client.head_object.assert_awaited_once_with(Bucket="media-bucket", Key="uploads/x")
        s3_client.delete_object.assert_awaited_once_with(Bucket="media-bucket", Key="uploads/x")

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_destroy_missing_object(self, code):
        store, _, s3_client = make_store()
        s3_client.head_object.side_effect = client_error(code)

        assert asyncio.run(store.destroy("uploads/x")) == {"result": "not found"}
        s3_client.delete_object.assert_not_awaited()

    def test_destroy_other_errors_propagate(self):
        store, _, s3_client = make_store()
        s3_client.head_object.side_effect = client_error("403")

        with pytest.raises(ClientError):
            asyncio.run(store.destroy("uploads/x"))
