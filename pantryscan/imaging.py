"""Image preprocessing for the vision backend payload.

Each photograph goes through the same four stages:

1. ``decode_bounded`` - decode, sub-sampling at decode time when the source
   is far larger than needed
2. ``correct_orientation`` - undo sensor / EXIF rotation
3. ``fit_within_bounds`` - downscale so the longer side fits the limit
4. ``compress`` - JPEG encode

``prepare_image`` chains them and returns ``None`` instead of raising, so a
single bad photo is dropped from a batch rather than failing the scan.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Iterable

import cv2
import numpy as np
from PIL import Image

from .errors import DecodeError
from .models import PreparedImage, SourceImage

logger = logging.getLogger(__name__)

MAX_IMAGE_DIMENSION = 1024
COMPRESSION_QUALITY = 85

_EXIF_ORIENTATION_TAG = 0x0112
_EXIF_ROTATIONS = {3: 180, 6: 90, 8: 270}

_ROTATE_CODES = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}

# OpenCV can only sub-sample JPEG decoding by these factors.
_REDUCED_DECODE_FLAGS = {
    1: cv2.IMREAD_COLOR,
    2: cv2.IMREAD_REDUCED_COLOR_2,
    4: cv2.IMREAD_REDUCED_COLOR_4,
    8: cv2.IMREAD_REDUCED_COLOR_8,
}


def read_dimensions(data: bytes) -> tuple[int, int]:
    """Return (width, height) from the image header without decoding pixels."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Unreadable image header: {e}") from e


def calculate_sample_size(width: int, height: int, max_dimension: int) -> int:
    """Power-of-two decode factor that keeps both sides >= max_dimension."""
    factor = 1
    if height > max_dimension or width > max_dimension:
        half_height = height // 2
        half_width = width // 2
        while (
            half_height // factor >= max_dimension
            and half_width // factor >= max_dimension
        ):
            factor *= 2
    return factor


def decode_bounded(data: bytes, max_dimension: int = MAX_IMAGE_DIMENSION) -> np.ndarray:
    """Decode image bytes into a BGR array, sub-sampled for oversized sources.

    Raises:
        DecodeError: If the bytes are empty or not a decodable image.
    """
    if not data:
        raise DecodeError("Empty image data")

    width, height = read_dimensions(data)
    factor = calculate_sample_size(width, height, max_dimension)
    flag = _REDUCED_DECODE_FLAGS[min(factor, 8)] | cv2.IMREAD_IGNORE_ORIENTATION

    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, flag)
    if image is None:
        raise DecodeError(f"Failed to decode {width}x{height} image")

    if factor > 8:
        target = (max(width // factor, 1), max(height // factor, 1))
        image = cv2.resize(image, target, interpolation=cv2.INTER_AREA)
    return image


def exif_rotation(data: bytes) -> int:
    """Rotation in degrees encoded in the EXIF orientation tag (0 if absent)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            orientation = img.getexif().get(_EXIF_ORIENTATION_TAG, 1)
    except (OSError, ValueError, SyntaxError):
        return 0
    return _EXIF_ROTATIONS.get(orientation, 0)


def correct_orientation(image: np.ndarray, rotation_degrees: int) -> np.ndarray:
    """Rotate clockwise by 90/180/270 degrees. 0 returns the input as-is."""
    degrees = rotation_degrees % 360
    if degrees == 0:
        return image
    if degrees not in _ROTATE_CODES:
        raise ValueError(f"Unsupported rotation: {rotation_degrees}")
    return cv2.rotate(image, _ROTATE_CODES[degrees])


def fit_within_bounds(
    image: np.ndarray, max_dimension: int = MAX_IMAGE_DIMENSION
) -> np.ndarray:
    """Scale down uniformly so the longer side equals max_dimension.

    Images already within bounds are returned unchanged (never upscaled).
    """
    height, width = image.shape[:2]
    scale = max_dimension / max(width, height)
    if scale >= 1:
        return image
    new_size = (max(int(width * scale), 1), max(int(height * scale), 1))
    return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)


def compress(image: np.ndarray, quality: int = COMPRESSION_QUALITY) -> bytes:
    """Encode to JPEG at the given quality (0-100)."""
    if not 0 <= quality <= 100:
        raise ValueError(f"JPEG quality must be within 0-100, got {quality}")
    ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise RuntimeError("JPEG encoding failed")
    return buf.tobytes()


def prepare_image(
    data: bytes,
    rotation_degrees: int | None = None,
    *,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    quality: int = COMPRESSION_QUALITY,
) -> PreparedImage | None:
    """Run the full preprocessing chain for one image.

    Args:
        data: Encoded image bytes.
        rotation_degrees: Sensor rotation of a live capture. ``None`` reads the
            EXIF orientation tag instead.

    Returns:
        The prepared image, or None if any stage failed.
    """
    try:
        image = decode_bounded(data, max_dimension)
        if rotation_degrees is None:
            rotation_degrees = exif_rotation(data)
        image = correct_orientation(image, rotation_degrees)
        image = fit_within_bounds(image, max_dimension)
        payload = compress(image, quality)
    except (DecodeError, ValueError, RuntimeError, cv2.error) as e:
        logger.warning("Dropping image: %s", e)
        return None

    height, width = image.shape[:2]
    return PreparedImage(data=payload, width=width, height=height, quality=quality)


async def prepare_batch(
    sources: Iterable[SourceImage],
    *,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    quality: int = COMPRESSION_QUALITY,
) -> list[PreparedImage]:
    """Prepare images concurrently, keeping input order and dropping failures."""
    tasks = [
        asyncio.to_thread(
            prepare_image,
            source.data,
            source.rotation_degrees,
            max_dimension=max_dimension,
            quality=quality,
        )
        for source in sources
    ]
    results = await asyncio.gather(*tasks)
    return [image for image in results if image is not None]
