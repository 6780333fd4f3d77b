"""
File system helpers for ShadowLift
Accepted input formats, MIME lookup and input discovery
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ACCEPTED_TYPES: Dict[str, List[str]] = {
    'image/jpeg': ['.jpg', '.jpeg'],
    'image/png': ['.png'],
    'image/webp': ['.webp'],
    'image/tiff': ['.tif', '.tiff'],
}

ACCEPTED_MIME_TYPES = list(ACCEPTED_TYPES)
ACCEPTED_EXTENSIONS = [ext for exts in ACCEPTED_TYPES.values() for ext in exts]

EXTENSION_TO_MIME = {
    ext: mime for mime, exts in ACCEPTED_TYPES.items() for ext in exts
}

# Pillow format names used when encoding
MIME_TO_PIL_FORMAT = {
    'image/jpeg': 'JPEG',
    'image/png': 'PNG',
    'image/webp': 'WEBP',
    'image/tiff': 'TIFF',
}


def mime_type_for(path: PathLike) -> Optional[str]:
    """MIME type for a file name based on its extension, or None"""
    return EXTENSION_TO_MIME.get(Path(path).suffix.lower())


def is_accepted(path: PathLike) -> bool:
    return mime_type_for(path) is not None


def filter_accepted_files(paths: Iterable[PathLike]) -> List[Path]:
    """Keep only files with an accepted image extension"""
    accepted = []
    for path in paths:
        path = Path(path)
        if is_accepted(path):
            accepted.append(path)
        else:
            logger.debug(f"Skipping unsupported file: {path}")
    return accepted


def find_images(input_path: PathLike, recursive: bool = True) -> List[Path]:
    """
    Find accepted images under a file or directory

    Args:
        input_path: File or directory to search
        recursive: Descend into subdirectories

    Returns:
        Sorted list of image paths
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise ValueError(f"Input path does not exist: {input_path}")

    if input_path.is_file():
        return filter_accepted_files([input_path])

    candidates = input_path.rglob('*') if recursive else input_path.glob('*')
    images = sorted(filter_accepted_files(p for p in candidates if p.is_file()))
    logger.info(f"Found {len(images)} images in {input_path}")
    return images


def edited_name(path: PathLike, prefix: str = 'edited_') -> str:
    """Output file name for a processed image"""
    return f"{prefix}{Path(path).name}"
