"""Core models, policies and services for image-variants."""

from .logging_config import get_logger, setup_logger
from .exceptions import (
    BatchError,
    BatchTooLargeError,
    ConfigurationError,
    CorruptImageError,
    DeleteError,
    DeleteFailedError,
    DeletionError,
    EmptyBatchError,
    FileTooLargeError,
    ImageVariantsError,
    MissingFileError,
    MissingIdError,
    NoResultError,
    TransformError,
    UnsupportedTypeError,
    UploadError,
    ValidationError,
    with_error_handling,
)
from .models import (
    BatchResult,
    DeleteResult,
    SizeSpec,
    SourceImage,
    StoredVariant,
    UploadConfig,
    UploadOptions,
    UploadResult,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "ImageVariantsError",
    "ConfigurationError",
    "ValidationError",
    "MissingFileError",
    "FileTooLargeError",
    "UnsupportedTypeError",
    "CorruptImageError",
    "TransformError",
    "UploadError",
    "NoResultError",
    "DeletionError",
    "MissingIdError",
    "DeleteFailedError",
    "DeleteError",
    "BatchError",
    "EmptyBatchError",
    "BatchTooLargeError",
    "with_error_handling",
    "SizeSpec",
    "SourceImage",
    "UploadOptions",
    "StoredVariant",
    "UploadResult",
    "BatchResult",
    "DeleteResult",
    "UploadConfig",
]
