"""Upload validation against size, type and integrity policy."""

import struct
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .exceptions import (
    CorruptImageError,
    FileTooLargeError,
    MissingFileError,
    UnsupportedTypeError,
)
from .image_utils import read_image_size, verify_image_bytes
from .models import SourceImage, UploadConfig

# Everything Pillow raises for data it cannot parse or decode.
_DECODE_ERRORS = (
    OSError,
    SyntaxError,
    ValueError,
    struct.error,
    UnidentifiedImageError,
    Image.DecompressionBombError,
)


class ImageValidator:
    """Rejects files that must never reach the transform stage.

    ``validate`` decodes the whole image, so async callers run it in an
    executor rather than on the event loop.
    """

    def __init__(self, config: Optional[UploadConfig] = None):
        self._config = config or UploadConfig()

    def validate(self, buffer: Optional[bytes], mimetype: str, size: int) -> None:
        config = self._config

        if not buffer:
            raise MissingFileError("No file uploaded")

        if size > config.max_file_size:
            raise FileTooLargeError(
                f"File too large. Maximum size is {config.max_file_size_mb:g}MB"
            )

        if (mimetype or "").lower() not in config.allowed_mime_types:
            raise UnsupportedTypeError(
                "Invalid file type. Allowed types: "
                + ", ".join(config.allowed_mime_types)
            )

        try:
            width, height = read_image_size(buffer)
        except _DECODE_ERRORS as exc:
            raise CorruptImageError("Invalid image file") from exc

        # A small, highly compressible file can still declare a huge canvas.
        if width * height > config.max_image_pixels:
            raise FileTooLargeError(
                f"Image too large. Maximum is {config.max_image_pixels} pixels, "
                f"got {width}x{height}"
            )

        try:
            verify_image_bytes(buffer)
        except _DECODE_ERRORS as exc:
            raise CorruptImageError("Invalid image file") from exc

    def validate_source(self, source: SourceImage) -> None:
        self.validate(source.buffer, source.mimetype, source.size)
