"""
Exception types raised by ShadowLift.
"""


class ShadowLiftError(Exception):
    """Base class for all ShadowLift errors."""


class InvalidImageError(ShadowLiftError, ValueError):
    """Image buffer does not match its declared width/height or layout."""


class ImageIOError(ShadowLiftError):
    """An image file could not be decoded or encoded."""


class BatchProcessingError(ShadowLiftError):
    """Raised when every file in a batch failed to process."""

    def __init__(self, message: str, failures=None):
        super().__init__(message)
        self.failures = failures or []
