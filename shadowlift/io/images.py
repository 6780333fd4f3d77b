"""
Image decode/encode for ShadowLift

Pillow handles the compressed formats; OpenCV handles preview resampling.
Everything in between is an (h, w, 4) uint8 RGBA array.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..exceptions import ImageIOError
from .filesystem import ACCEPTED_EXTENSIONS, ACCEPTED_MIME_TYPES, MIME_TO_PIL_FORMAT, mime_type_for

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_PREVIEW_WIDTH = 1500
DEFAULT_QUALITY = 95


def _to_rgba(img: Image.Image) -> np.ndarray:
    # Honour EXIF orientation the way browsers draw images
    img = ImageOps.exif_transpose(img)
    if img.mode != 'RGBA':
        img = img.convert('RGBA')
    return np.array(img, dtype=np.uint8)


def load_image(path: PathLike) -> np.ndarray:
    """
    Decode an image file to RGBA

    Args:
        path: Image file path

    Returns:
        (h, w, 4) uint8 RGBA array
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            pixels = _to_rgba(img)
    except (OSError, UnidentifiedImageError) as e:
        raise ImageIOError(f"Could not decode {path}: {e}") from e

    logger.debug(f"Loaded {path.name}: {pixels.shape[1]}x{pixels.shape[0]}")
    return pixels


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes to RGBA"""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _to_rgba(img)
    except (OSError, UnidentifiedImageError) as e:
        raise ImageIOError(f"Could not decode image data: {e}") from e


def encode_image(pixels: np.ndarray, mime_type: Optional[str] = 'image/png',
                 quality: int = DEFAULT_QUALITY) -> bytes:
    """
    Encode RGBA pixels

    Formats without alpha (JPEG) get the alpha channel dropped.
    """
    if mime_type not in ACCEPTED_MIME_TYPES:
        raise ImageIOError(f"Unsupported output type: {mime_type}")
    fmt = MIME_TO_PIL_FORMAT[mime_type]
    img = Image.fromarray(np.ascontiguousarray(pixels))
    if fmt == 'JPEG':
        img = img.convert('RGB')

    buffer = io.BytesIO()
    save_kwargs = {'quality': quality} if fmt in ('JPEG', 'WEBP') else {}
    try:
        img.save(buffer, format=fmt, **save_kwargs)
    except (OSError, ValueError) as e:
        raise ImageIOError(f"Could not encode image as {fmt}: {e}") from e
    return buffer.getvalue()


def save_image(pixels: np.ndarray, path: PathLike,
               quality: int = DEFAULT_QUALITY) -> Path:
    """Encode pixels to a file; the format follows the extension"""
    path = Path(path)
    mime_type = mime_type_for(path)
    if mime_type is None:
        raise ImageIOError(f"Unsupported output extension '{path.suffix}' for {path.name}; "
                           f"use one of {', '.join(ACCEPTED_EXTENSIONS)}")
    data = encode_image(pixels, mime_type, quality)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.debug(f"Saved {path}")
    return path


def create_preview(pixels: np.ndarray, max_width: int = DEFAULT_PREVIEW_WIDTH) -> np.ndarray:
    """
    Downscale for interactive preview

    Images no wider than max_width are returned unchanged.
    """
    height, width = pixels.shape[:2]
    if width <= max_width:
        return pixels

    ratio = max_width / width
    new_size = (max_width, max(1, int(round(height * ratio))))
    # INTER_AREA keeps fine shadow detail when shrinking
    return cv2.resize(pixels, new_size, interpolation=cv2.INTER_AREA)
