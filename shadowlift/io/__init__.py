"""
Image I/O for ShadowLift

Decoding, encoding, preview resizing and accepted-format handling.
"""

from .filesystem import (
    ACCEPTED_TYPES,
    ACCEPTED_EXTENSIONS,
    filter_accepted_files,
    find_images,
    mime_type_for,
    edited_name,
)
from .images import load_image, decode_image, encode_image, save_image, create_preview

__all__ = [
    'ACCEPTED_TYPES',
    'ACCEPTED_EXTENSIONS',
    'filter_accepted_files',
    'find_images',
    'mime_type_for',
    'edited_name',
    'load_image',
    'decode_image',
    'encode_image',
    'save_image',
    'create_preview',
]
