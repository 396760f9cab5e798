"""Image encoder - compresses a captured image into a JPEG transport payload."""

from __future__ import annotations

import io
import logging
from typing import Union

from PIL import Image, UnidentifiedImageError

from menu_scanner.config import JPEG_QUALITY
from menu_scanner.errors import EncodingFailed

logger = logging.getLogger(__name__)

RawImage = Union[Image.Image, bytes]


def encode_image(raw_image: RawImage, quality: int = JPEG_QUALITY) -> bytes:
    """
    Re-encodes a captured image as JPEG at a fixed quality.

    Accepts either a Pillow image or the bytes of any format Pillow can open.
    Returns the JPEG bytes.
    Raises: EncodingFailed if the image cannot be decoded or rasterized.
    """
    try:
        if isinstance(raw_image, (bytes, bytearray)):
            img = Image.open(io.BytesIO(raw_image))
        elif isinstance(raw_image, Image.Image):
            img = raw_image
        else:
            raise EncodingFailed(
                f"Unsupported image type: {type(raw_image).__name__}"
            )

        img = img.convert("RGB")  # Ensure JPEG-compatible mode
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=quality)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        raise EncodingFailed(f"Failed to encode image as JPEG: {e}") from e

    logger.debug("Encoded %dx%d image to %d bytes", img.width, img.height, buf.tell())
    return buf.getvalue()
