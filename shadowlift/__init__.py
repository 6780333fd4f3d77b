"""
ShadowLift: shadow recovery for photographs

Locally relights underexposed regions with an edge-preserving base/detail
decomposition and composes exposure, contrast, highlights, whites and blacks
adjustments on top of the recovery.
"""

__version__ = "0.1.0"

# Core imports for easy access
from .config import load_config
from .exceptions import ShadowLiftError, InvalidImageError, ImageIOError, BatchProcessingError
from .processing.tone import (
    ShadowRecoveryEngine,
    EngineSettings,
    ToneAlgorithm,
    ToneSettings,
    DEFAULT_SETTINGS,
    RESET_SETTINGS,
    process_image,
)

__all__ = [
    "load_config",
    "ShadowLiftError",
    "InvalidImageError",
    "ImageIOError",
    "BatchProcessingError",
    "ShadowRecoveryEngine",
    "EngineSettings",
    "ToneAlgorithm",
    "ToneSettings",
    "DEFAULT_SETTINGS",
    "RESET_SETTINGS",
    "process_image",
]
