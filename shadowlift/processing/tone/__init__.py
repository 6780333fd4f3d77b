"""
Tone processing modules for ShadowLift

Includes the guided-filter base layer, adaptive shadow tuning, the tone curve
variants and pixel reconstruction.
"""

from .algorithms import ToneAlgorithm, get_tone_algorithm, DEFAULT_TONE_ALGORITHM
from .engine import ShadowRecoveryEngine, EngineSettings, ToneAnalysis, process_image
from .histogram_tuner import HistogramTuner
from .models import (
    ToneSettings, ToneParams, AdaptiveShadowTuning,
    ReconstructionSettings, FilterSettings,
    DEFAULT_SETTINGS, RESET_SETTINGS
)
from .reconstructor import Reconstructor

__all__ = [
    "ToneAlgorithm",
    "get_tone_algorithm",
    "DEFAULT_TONE_ALGORITHM",
    "ShadowRecoveryEngine",
    "EngineSettings",
    "ToneAnalysis",
    "process_image",
    "HistogramTuner",
    "ToneSettings",
    "ToneParams",
    "AdaptiveShadowTuning",
    "ReconstructionSettings",
    "FilterSettings",
    "DEFAULT_SETTINGS",
    "RESET_SETTINGS",
    "Reconstructor",
]
