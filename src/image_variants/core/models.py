"""Shared data models and configuration for image-variants."""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigurationError


class SizeSpec(BaseModel):
    """A named target box for one variant."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    width: int = Field(gt=0)
    height: int = Field(gt=0)


DEFAULT_SIZES = (
    SizeSpec(name="thumbnail", width=150, height=150),
    SizeSpec(name="medium", width=500, height=500),
    SizeSpec(name="large", width=1200, height=1200),
)

DEFAULT_ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/jpg", "image/webp")


class UploadConfig(BaseModel):
    """Configuration passed to every component at construction."""

    model_config = ConfigDict(frozen=True)

    max_file_size: int = Field(default=5 * 1024 * 1024, gt=0)
    # Header-declared width x height; checked before any pixel data is decoded.
    max_image_pixels: int = Field(default=50_000_000, gt=0)
    allowed_mime_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES)
    )
    sizes: List[SizeSpec] = Field(default_factory=lambda: list(DEFAULT_SIZES))
    output_format: str = "webp"
    quality: int = Field(default=85, ge=1, le=100)
    max_batch_size: int = Field(default=10, gt=0)
    max_concurrent_uploads: int = Field(default=8, gt=0)
    transform_workers: Optional[int] = Field(default=None, gt=0)
    cleanup_orphans: bool = True

    bucket: str = ""
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = None
    multipart_chunk_size: int = Field(default=8 * 1024 * 1024, gt=0)

    @field_validator("allowed_mime_types")
    @classmethod
    def _normalise_mime_types(cls, value: List[str]) -> List[str]:
        cleaned = [item.strip().lower() for item in value if item.strip()]
        if not cleaned:
            raise ValueError("at least one mime type must be allowed")
        return cleaned

    @model_validator(mode="after")
    def _check_sizes(self) -> "UploadConfig":
        if not self.sizes:
            raise ValueError("at least one size must be configured")
        names = [size.name for size in self.sizes]
        if len(names) != len(set(names)):
            raise ValueError(f"size names must be unique, got {names}")
        return self

    @property
    def max_file_size_mb(self) -> float:
        return self.max_file_size / 1024 / 1024

    @property
    def content_type(self) -> str:
        return f"image/{self.output_format}"

    @classmethod
    def from_env(cls, **overrides: Any) -> "UploadConfig":
        """Build a config from environment variables, then apply overrides.

        Environment Variables:
            MAX_FILE_SIZE: Maximum accepted upload in bytes
            MAX_IMAGE_PIXELS: Maximum accepted width x height
            ALLOWED_MIME_TYPES: Comma separated list of accepted mime types
            S3_BUCKET, AWS_REGION, S3_ENDPOINT_URL, S3_PUBLIC_BASE_URL: Object store
            MAX_CONCURRENT_UPLOADS: Bound on concurrent upload streams
            TRANSFORM_WORKERS: Size of the transform thread pool
            CLEANUP_ORPHANS: "true"/"false", delete sibling uploads on failure
        """
        values: Dict[str, Any] = {}
        env = os.environ

        if env.get("MAX_FILE_SIZE"):
            values["max_file_size"] = env["MAX_FILE_SIZE"]
        if env.get("MAX_IMAGE_PIXELS"):
            values["max_image_pixels"] = env["MAX_IMAGE_PIXELS"]
        if env.get("ALLOWED_MIME_TYPES"):
            values["allowed_mime_types"] = env["ALLOWED_MIME_TYPES"].split(",")
        if env.get("S3_BUCKET"):
            values["bucket"] = env["S3_BUCKET"]
        if env.get("AWS_REGION"):
            values["region"] = env["AWS_REGION"]
        if env.get("S3_ENDPOINT_URL"):
            values["endpoint_url"] = env["S3_ENDPOINT_URL"]
        if env.get("S3_PUBLIC_BASE_URL"):
            values["public_base_url"] = env["S3_PUBLIC_BASE_URL"]
        if env.get("MAX_CONCURRENT_UPLOADS"):
            values["max_concurrent_uploads"] = env["MAX_CONCURRENT_UPLOADS"]
        if env.get("TRANSFORM_WORKERS"):
            values["transform_workers"] = env["TRANSFORM_WORKERS"]
        if env.get("CLEANUP_ORPHANS"):
            values["cleanup_orphans"] = env["CLEANUP_ORPHANS"]

        values.update(overrides)
        try:
            return cls(**values)
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc


class SourceImage(BaseModel):
    """An uploaded file as handed over by the transport layer."""

    model_config = ConfigDict(frozen=True)

    buffer: Optional[bytes] = None
    mimetype: str = ""
    size: int = 0
    filename: str = ""


class UploadOptions(BaseModel):
    """Caller-supplied options, accepted in snake_case or camelCase."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    category: Optional[str] = None
    folder: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: Optional[bool] = Field(default=None, alias="isPublic")


class TransformedImage(BaseModel):
    """Encoded variant bytes plus the dimensions read back from them."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    width: int
    height: int
    format: str


class StoredVariant(BaseModel):
    """A variant persisted in the object store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    width: int
    height: int
    size: int
    format: str
    public_id: str = Field(default="", alias="publicId")


class OriginalFile(BaseModel):
    filename: str
    mimetype: str
    size: int


class UploadMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    category: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
    folder: str


class UploadResult(BaseModel):
    """Response record for one source image."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Image uploaded successfully"
    original: OriginalFile
    variants: Dict[str, StoredVariant]
    metadata: UploadMetadata
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="uploadedAt"
    )

    def to_response(self) -> Dict[str, Any]:
        """Serialize to the JSON-ready wire envelope."""
        return self.model_dump(mode="json", by_alias=True)


class DeleteResult(BaseModel):
    success: bool = True
    message: str = "Image deleted successfully"


BatchResult = List[UploadResult]
