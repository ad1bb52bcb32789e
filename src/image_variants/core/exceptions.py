"""Custom exceptions and error handling utilities for image-variants."""

from __future__ import annotations

import inspect
from functools import wraps
from typing import Any, Callable, Type, TypeVar

from .logging_config import get_logger


class ImageVariantsError(Exception):
    """Base exception for all image-variants errors."""

    kind = "ImageVariantsError"


class ConfigurationError(ImageVariantsError):
    """Error raised for invalid configuration options."""

    kind = "ConfigurationError"


class ValidationError(ImageVariantsError):
    """Base class for rejected input files."""

    kind = "ValidationError"


class MissingFileError(ValidationError):
    kind = "MissingFile"


class FileTooLargeError(ValidationError):
    kind = "TooLarge"


class UnsupportedTypeError(ValidationError):
    kind = "UnsupportedType"


class CorruptImageError(ValidationError):
    kind = "CorruptImage"


class TransformError(ImageVariantsError):
    """Error raised when resizing or encoding a variant fails."""

    kind = "TransformError"


class UploadError(ImageVariantsError):
    """Error raised when the object store rejects an upload."""

    kind = "UploadError"


class NoResultError(UploadError):
    """The object store finished the upload without describing the stored object."""

    kind = "NoResult"


class DeletionError(ImageVariantsError):
    """Base class for asset deletion failures."""

    kind = "DeletionError"


class MissingIdError(DeletionError):
    kind = "MissingId"


class DeleteFailedError(DeletionError):
    kind = "DeleteFailed"


class DeleteError(DeletionError):
    """Transport-level failure while deleting an asset."""

    kind = "DeleteError"


class BatchError(ImageVariantsError):
    """Base class for batch-level rejections."""

    kind = "BatchError"


class EmptyBatchError(BatchError):
    kind = "EmptyBatch"


class BatchTooLargeError(BatchError):
    kind = "BatchTooLarge"


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(
    error_cls: Type[ImageVariantsError] = ImageVariantsError,
    message: str = "",
) -> Callable[[F], F]:
    """Re-raise unexpected exceptions from the wrapped callable as ``error_cls``.

    Errors that already belong to the image-variants hierarchy pass through
    untouched. Works for plain functions and coroutine functions.
    """

    def decorator(func: F) -> F:
        def _convert(exc: Exception) -> ImageVariantsError:
            logger = get_logger("image-variants")
            logger.error(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            text = f"{message}: {exc}" if message else str(exc)
            return error_cls(text)

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    return await func(*args, **kwargs)
                except ImageVariantsError:
                    raise
                except Exception as exc:  # noqa: BLE001
                    raise _convert(exc) from exc

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except ImageVariantsError:
                raise
            except Exception as exc:  # noqa: BLE001
                raise _convert(exc) from exc

        return wrapper  # type: ignore[return-value]

    return decorator
