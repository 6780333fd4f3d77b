"""
Processing modules for ShadowLift

Includes the tone engine, in-session edit history and batch processing.
"""

from .tone import ShadowRecoveryEngine, ToneSettings, ToneAlgorithm
from .history import EditHistory

__all__ = [
    "ShadowRecoveryEngine",
    "ToneSettings",
    "ToneAlgorithm",
    "EditHistory",
]
