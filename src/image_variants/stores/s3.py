"""S3 object store backend using aioboto3 streaming uploads."""

from typing import Any, BinaryIO, Dict, Optional

import aioboto3
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError

from ..core import ConfigurationError, UploadConfig, get_logger

_MISSING_CODES = ("404", "NoSuchKey", "NotFound")


class _CountingReader:
    """File-like wrapper that counts bytes handed to the uploader."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        self.bytes_read += len(chunk)
        return chunk


class S3ObjectStore:
    """ObjectStoreBackend that stores each variant as one S3 object.

    The object key doubles as the public id, ``{folder}/{object_name}``.
    """

    def __init__(
        self,
        config: UploadConfig,
        session: Optional[Any] = None,
    ):
        if not config.bucket:
            raise ConfigurationError("An S3 bucket is required (set S3_BUCKET)")
        self._config = config
        self._session = session or aioboto3.Session()
        self._transfer_config = TransferConfig(
            multipart_threshold=config.multipart_chunk_size,
            multipart_chunksize=config.multipart_chunk_size,
        )
        self._logger = get_logger("image-variants.s3")

    def _client(self) -> Any:
        return self._session.client(
            "s3",
            region_name=self._config.region,
            endpoint_url=self._config.endpoint_url,
        )

    def public_url(self, key: str) -> str:
        if self._config.public_base_url:
            return f"{self._config.public_base_url.rstrip('/')}/{key}"
        return (
            f"https://{self._config.bucket}.s3.{self._config.region}.amazonaws.com/{key}"
        )

    async def upload_stream(
        self,
        stream: BinaryIO,
        folder: str,
        object_name: str,
        resource_type: str = "image",
        content_type: str = "application/octet-stream",
    ) -> Optional[Dict[str, Any]]:
        key = f"{folder.strip('/')}/{object_name}" if folder else object_name
        reader = _CountingReader(stream)

        self._logger.debug(f"Uploading to s3://{self._config.bucket}/{key}")
        async with self._client() as s3_client:
            await s3_client.upload_fileobj(
                reader,
                self._config.bucket,
                key,
                ExtraArgs={
                    "ContentType": content_type,
                    "Metadata": {"resource-type": resource_type},
                },
                Config=self._transfer_config,
            )

        return {
            "secure_url": self.public_url(key),
            "public_id": key,
            "format": content_type.split("/")[-1],
            "bytes": reader.bytes_read,
            "width": None,
            "height": None,
        }

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        async with self._client() as s3_client:
            try:
                await s3_client.head_object(Bucket=self._config.bucket, Key=public_id)
            except ClientError as exc:
                code = str(exc.response.get("Error", {}).get("Code", ""))
                if code in _MISSING_CODES:
                    self._logger.info(f"s3://{self._config.bucket}/{public_id} not found")
                    return {"result": "not found"}
                raise

            await s3_client.delete_object(Bucket=self._config.bucket, Key=public_id)
            self._logger.debug(f"Deleted s3://{self._config.bucket}/{public_id}")
        return {"result": "ok"}
