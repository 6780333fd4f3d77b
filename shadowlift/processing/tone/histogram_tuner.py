"""
Histogram-driven adaptive shadow tuning

Builds a display-domain histogram of the base luminance layer and derives the
shadow curve shaping from its low percentiles, so that the Shadows slider
feels the same on a dark interior as on a bright landscape instead of
applying one fixed curve to every exposure.
"""

import logging
from typing import Optional

import numpy as np

from .color_space import clamp01, lerp, linear_to_srgb
from .models import AdaptiveShadowTuning

logger = logging.getLogger(__name__)

HISTOGRAM_BINS = 256


def build_histogram(base_luminance: np.ndarray) -> np.ndarray:
    """
    256-bin histogram of base luminance, binned in the display (sRGB) domain.

    Args:
        base_luminance: Linear base luminance map (any shape)

    Returns:
        int64 array of 256 counts
    """
    display = linear_to_srgb(clamp01(np.asarray(base_luminance, dtype=np.float64)))
    bins = np.clip(np.round(np.ravel(display) * 255.0), 0, HISTOGRAM_BINS - 1).astype(np.int64)
    return np.bincount(bins, minlength=HISTOGRAM_BINS)


def percentile_from_histogram(hist: np.ndarray, p: float) -> float:
    """
    Display-domain value at which the cumulative count reaches p * total.

    An empty histogram yields 0.0.
    """
    total = int(np.sum(hist))
    if total == 0:
        return 0.0

    target = p * total
    cumulative = 0
    for index, count in enumerate(hist):
        cumulative += int(count)
        if cumulative >= target:
            return index / (len(hist) - 1)
    return 1.0


class HistogramTuner:
    """
    Derives AdaptiveShadowTuning from base layer percentiles.

    Each gain is a 0-1 measure of how far a percentile sits past its
    threshold; every tuned value is a lerp between two constants driven by
    one gain.
    """

    DEEP_SHADOW_THRESHOLD = 0.05   # p05
    SHADOW_THRESHOLD = 0.12        # p10
    DARK_SCENE_THRESHOLD = 0.25    # p20
    BRIGHT_SCENE_THRESHOLD = 0.45  # p50
    BRIGHT_SCENE_SPAN = 0.35

    def tune(self, base_luminance: np.ndarray) -> AdaptiveShadowTuning:
        """Compute the tuning for one image's base luminance"""
        hist = build_histogram(base_luminance)
        tuning = self.derive(
            percentile_from_histogram(hist, 0.05),
            percentile_from_histogram(hist, 0.10),
            percentile_from_histogram(hist, 0.20),
            percentile_from_histogram(hist, 0.50),
        )
        logger.debug(
            f"Shadow tuning p05={tuning.p05:.3f} p10={tuning.p10:.3f} "
            f"p20={tuning.p20:.3f} p50={tuning.p50:.3f} -> "
            f"range=({tuning.shadow_start:.3f}, {tuning.shadow_end:.3f}) "
            f"gate=({tuning.gate_start:.3f}, {tuning.gate_end:.3f}) "
            f"notch={tuning.notch_strength:.3f} midtone={tuning.midtone_lift:.3f}"
        )
        return tuning

    def derive(self, p05: float, p10: float, p20: float,
               p50: float) -> AdaptiveShadowTuning:
        deep_gain = float(clamp01((self.DEEP_SHADOW_THRESHOLD - p05) / self.DEEP_SHADOW_THRESHOLD))
        shadow_gain = float(clamp01((self.SHADOW_THRESHOLD - p10) / self.SHADOW_THRESHOLD))
        dark_gain = float(clamp01((self.DARK_SCENE_THRESHOLD - p20) / self.DARK_SCENE_THRESHOLD))
        bright_gain = float(clamp01((p50 - self.BRIGHT_SCENE_THRESHOLD) / self.BRIGHT_SCENE_SPAN))

        return AdaptiveShadowTuning(
            # Bright scenes get a wider shadow range
            shadow_start=lerp(0.45, 0.55, bright_gain),
            shadow_end=lerp(0.80, 0.95, bright_gain),
            # Deep-black dominated scenes get a narrower, weaker gate
            gate_start=lerp(0.01, 0.0, shadow_gain),
            gate_end=lerp(0.08, 0.03, deep_gain),
            notch_strength=lerp(0.40, 0.15, deep_gain),
            midtone_lift=lerp(0.0, 0.05, dark_gain) * (1.0 - bright_gain),
            p05=p05,
            p10=p10,
            p20=p20,
            p50=p50,
        )


def tune_shadows(base_luminance: np.ndarray,
                 tuner: Optional[HistogramTuner] = None) -> AdaptiveShadowTuning:
    """Convenience wrapper around HistogramTuner.tune"""
    return (tuner or HistogramTuner()).tune(base_luminance)
