"""
Pixel reconstruction from the tone-mapped base layer.

The target luminance from the tone curve is applied as a ratio over the base
luminance so that original texture and color ride along. In deep shadows,
where the ratios are largest, part of the original detail is swapped for the
base layer to keep lifted noise down, and a small additive toe lift lets pure
black leave zero.
"""

import logging
from typing import Optional

import numpy as np

from .algorithms import ToneAlgorithmStrategy
from .color_space import clamp01, linear_to_srgb, luminance
from .models import ReconstructionSettings, ToneParams

logger = logging.getLogger(__name__)


class Reconstructor:
    """Rebuilds display-encoded RGB from original, base and target luminance."""

    def __init__(self, settings: Optional[ReconstructionSettings] = None):
        self.settings = settings or ReconstructionSettings()

    def lift_ratio(self, y_target: np.ndarray, y_base: np.ndarray) -> np.ndarray:
        s = self.settings
        ratio = y_target / np.maximum(s.luminance_epsilon, y_base)
        return np.minimum(ratio, s.max_lift_ratio)

    def detail_weight(self, S: float, toe_mask: np.ndarray) -> np.ndarray:
        """1.0 outside the toe; non-increasing in Shadows for a fixed mask"""
        s = self.settings
        damp = max(0.0, S) * s.detail_damping
        return np.maximum(s.detail_floor, 1.0 - damp * toe_mask)

    def toe_lift(self, params: ToneParams, toe_mask: np.ndarray) -> np.ndarray:
        s = self.settings
        amount = max(0.0, params.S) * s.toe_lift_shadows + max(0.0, params.B) * s.toe_lift_blacks
        return amount * toe_mask

    def reconstruct_linear(self, original_lin: np.ndarray, y_original: np.ndarray,
                           y_base: np.ndarray, y_target: np.ndarray,
                           params: ToneParams,
                           algorithm: ToneAlgorithmStrategy) -> np.ndarray:
        """
        Reconstruct linear RGB.

        The toe mask comes from the base luminance before the shadow stage,
        so for a fixed image the output only brightens as Shadows rises.

        Args:
            original_lin: (..., 3) linear RGB of the original pixels
            y_original: Original linear luminance
            y_base: Base layer linear luminance (already floored at epsilon)
            y_target: Tone-mapped target luminance
            params: Normalized tone controls
            algorithm: Active tone algorithm strategy

        Returns:
            (..., 3) linear RGB, non-negative, not yet clipped above
        """
        s = self.settings
        ratio = self.lift_ratio(y_target, y_base)[..., np.newaxis]

        # Base layer colour: original chroma carried at base luminance
        base_scale = np.minimum(y_base / np.maximum(s.luminance_epsilon, y_original),
                                s.max_lift_ratio)
        base_lin = original_lin * base_scale[..., np.newaxis]

        toe_mask = algorithm.reconstruction_mask(y_base, params)
        weight = self.detail_weight(params.S, toe_mask)[..., np.newaxis]

        rgb = base_lin * ratio * (1.0 - weight) + original_lin * ratio * weight
        rgb = np.maximum(0.0, rgb + self.toe_lift(params, toe_mask)[..., np.newaxis])

        if algorithm.post_reconstruct is not None:
            rgb = algorithm.post_reconstruct(rgb, y_target, params, toe_mask)
        return rgb

    @staticmethod
    def encode(rgb_lin: np.ndarray, alpha: np.ndarray) -> np.ndarray:
        """Linear RGB + original alpha -> uint8 sRGB RGBA"""
        display = clamp01(linear_to_srgb(rgb_lin))
        rgb8 = np.round(display * 255.0).astype(np.uint8)
        return np.concatenate([rgb8, alpha[..., np.newaxis]], axis=-1)

    def reconstruct(self, original_lin: np.ndarray, alpha: np.ndarray,
                    y_base: np.ndarray, y_target: np.ndarray, params: ToneParams,
                    algorithm: ToneAlgorithmStrategy) -> np.ndarray:
        """Full per-pixel reconstruction to uint8 RGBA"""
        y_original = luminance(original_lin)
        rgb = self.reconstruct_linear(original_lin, y_original, y_base, y_target,
                                      params, algorithm)
        return self.encode(rgb, alpha)
