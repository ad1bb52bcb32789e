import asyncio
import logging
from unittest.mock import patch

import pytest

from image_variants.core.exceptions import (
    BatchTooLargeError,
    CorruptImageError,
    DeleteFailedError,
    DeletionError,
    EmptyBatchError,
    FileTooLargeError,
    ImageVariantsError,
    MissingFileError,
    NoResultError,
    TransformError,
    UploadError,
    ValidationError,
    with_error_handling,
)


@with_error_handling(TransformError, "Image transformation failed")
def _fail_func() -> None:
    raise ValueError("boom")


@with_error_handling(UploadError)
async def _fail_coroutine() -> None:
    raise RuntimeError("connection reset")


@with_error_handling(TransformError)
def _raise_pipeline_error() -> None:
    raise MissingFileError("No file uploaded")


def test_with_error_handling_converts_to_given_error() -> None:
    with pytest.raises(TransformError, match="Image transformation failed: boom") as exc_info:
        _fail_func()
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_with_error_handling_wraps_coroutines() -> None:
    with pytest.raises(UploadError, match="connection reset"):
        asyncio.run(_fail_coroutine())


def test_with_error_handling_passes_pipeline_errors_through() -> None:
    with pytest.raises(MissingFileError):
        _raise_pipeline_error()


def test_with_error_handling_logs_error() -> None:
    with patch("image_variants.core.exceptions.get_logger") as mock_get_logger:
        mock_get_logger.return_value = logging.getLogger("test")
        with pytest.raises(TransformError):
            _fail_func()
        assert mock_get_logger.called


def test_with_error_handling_preserves_return_value() -> None:
    @with_error_handling(TransformError)
    def ok() -> int:
        return 42

    assert ok() == 42


@pytest.mark.parametrize(
    "error_cls,kind,parent",
    [
        (MissingFileError, "MissingFile", ValidationError),
        (FileTooLargeError, "TooLarge", ValidationError),
        (CorruptImageError, "CorruptImage", ValidationError),
        (NoResultError, "NoResult", UploadError),
        (DeleteFailedError, "DeleteFailed", DeletionError),
        (EmptyBatchError, "EmptyBatch", ImageVariantsError),
        (BatchTooLargeError, "BatchTooLarge", ImageVariantsError),
    ],
)
def test_error_kinds(error_cls, kind, parent) -> None:
    assert error_cls.kind == kind
    assert issubclass(error_cls, parent)
    assert issubclass(error_cls, ImageVariantsError)
