"""Image processing utilities built on Pillow."""

import io
from typing import Any, Dict, Tuple

from PIL import Image, ImageOps

# Output encoders accept these modes directly.
_ENCODER_MODES = {"RGB", "RGBA"}


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded PIL Image."""
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image


def read_image_size(image_bytes: bytes) -> Tuple[int, int]:
    """Return the (width, height) declared in the header without decoding pixels."""
    with Image.open(io.BytesIO(image_bytes)) as image:
        return image.width, image.height


def verify_image_bytes(image_bytes: bytes) -> Tuple[int, int, str]:
    """
    Check that a buffer holds a decodable image.

    ``verify()`` catches structural damage (bad chunks, CRC mismatches) and a
    full ``load()`` catches truncated pixel data, which ``verify()`` misses
    for JPEG.

    Args:
        image_bytes: Raw file contents

    Returns:
        Tuple of (width, height, format) read from the image

    Raises:
        PIL.UnidentifiedImageError, OSError, SyntaxError: If the data is not an image
    """
    with Image.open(io.BytesIO(image_bytes)) as image:
        image.verify()

    # verify() leaves the image unusable, so decode from a fresh handle
    with Image.open(io.BytesIO(image_bytes)) as image:
        image.load()
        return image.width, image.height, image.format or "unknown"


def cover_fit(img: Image.Image, width: int, height: int) -> Image.Image:
    """
    Scale and center-crop an image so it exactly fills ``width`` x ``height``.

    Args:
        img: PIL Image to resize
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Resized PIL Image of exactly the requested size
    """
    return ImageOps.fit(
        img,
        (width, height),
        method=Image.Resampling.LANCZOS,
        centering=(0.5, 0.5),
    )


def normalise_mode(img: Image.Image) -> Image.Image:
    """Convert palette, grayscale and CMYK images to RGB or RGBA."""
    if img.mode in _ENCODER_MODES:
        return img
    has_alpha = img.mode in ("LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    return img.convert("RGBA" if has_alpha else "RGB")


def encode_image(img: Image.Image, output_format: str, quality: int) -> bytes:
    """Encode a PIL Image into ``output_format`` bytes at the given quality."""
    output_stream = io.BytesIO()
    normalise_mode(img).save(output_stream, format=output_format.upper(), quality=quality)
    return output_stream.getvalue()


def extract_image_info(image_bytes: bytes) -> Dict[str, Any]:
    """
    Read basic metadata back from encoded image bytes.

    Args:
        image_bytes: Encoded image

    Returns:
        Dictionary with width, height, lower-case format and mode
    """
    with Image.open(io.BytesIO(image_bytes)) as image:
        return {
            "width": image.width,
            "height": image.height,
            "format": (image.format or "unknown").lower(),
            "mode": image.mode,
        }
