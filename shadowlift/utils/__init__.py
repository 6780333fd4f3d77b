"""
ShadowLift utilities module.

Provides logging helpers and processing statistics.
"""

from .logging import StructuredLogger, ProcessingStats, setup_console_logging

__all__ = [
    'StructuredLogger',
    'ProcessingStats',
    'setup_console_logging',
]
