"""
Tone algorithm variants.

Each variant owns its shadow curve shape, its toe mask and an optional
post-reconstruction hook. Variants form a closed enumeration; the strategy
objects are stateless singletons that are safe to share across threads and
images.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from functools import partial
from typing import Optional, Union

import numpy as np

from .color_space import clamp01, lerp, linear_to_srgb, luminance, smoothstep
from .models import AdaptiveShadowTuning, ToneParams
from .tone_curve import apply_exposure, apply_tone_map

logger = logging.getLogger(__name__)


class ToneAlgorithm(Enum):
    """Available tone mapping variants."""
    CLASSIC = "classic"
    REVIEW = "review"


DEFAULT_TONE_ALGORITHM = ToneAlgorithm.CLASSIC

TONE_ALGORITHM_LABELS = {
    ToneAlgorithm.CLASSIC: "Classic",
    ToneAlgorithm.REVIEW: "Review",
}


def _midtone_bump(y_disp: np.ndarray) -> np.ndarray:
    return smoothstep(0.10, 0.35, y_disp) * (1.0 - smoothstep(0.45, 0.80, y_disp))


class ToneAlgorithmStrategy(ABC):
    """
    Base strategy: power-curve shadow lift with an exponential toe term.

    Subclasses set the toe constants and provide the blend weight and the
    toe mask.
    """

    algorithm: ToneAlgorithm = DEFAULT_TONE_ALGORITHM
    shadow_power_k = 0.65
    toe_gain = 0.05
    toe_falloff = 9.0
    toe_end = 0.25

    # Optional hook: (rgb, y_target, params, toe_mask) -> rgb
    post_reconstruct = None

    @property
    def name(self) -> str:
        return self.algorithm.value

    @abstractmethod
    def shadow_blend(self, y: np.ndarray, y_disp: np.ndarray) -> np.ndarray:
        """Weight of the lifted curve against the untouched luminance"""
        pass

    @abstractmethod
    def toe_mask(self, y: np.ndarray) -> np.ndarray:
        """1.0 in the deepest shadows falling to 0.0 at the toe boundary"""
        pass

    def reconstruction_mask(self, y_base: np.ndarray, params: ToneParams) -> np.ndarray:
        """
        Toe mask used during reconstruction.

        Evaluated on the exposure-scaled base luminance, before the shadow
        stage, so it stays fixed while Shadows moves. Detail damping and the
        toe lift then only ever grow with Shadows.
        """
        y_pre = apply_exposure(np.asarray(y_base, dtype=np.float64), params.exposure_mult)
        return np.asarray(self.toe_mask(y_pre), dtype=np.float64)

    def apply_shadows(self, y: np.ndarray, S: float,
                      tuning: Optional[AdaptiveShadowTuning] = None) -> np.ndarray:
        """
        Shadow stage on linear luminance.

        With S > 0 the per-image tuning narrows the affected range, gates the
        power-curve lift in the deepest blacks and adds a small midtone lift.
        The additive toe term is never gated so pure black can still rise.
        """
        tuning = tuning or AdaptiveShadowTuning.identity()
        y_disp = linear_to_srgb(clamp01(y))

        shadow_power = 1.0 - S * self.shadow_power_k
        lifted = np.power(np.maximum(y, 0.0), shadow_power)
        blend = self.shadow_blend(y, y_disp)

        if S > 0:
            if tuning.notch_strength > 0:
                gate = lerp(1.0 - tuning.notch_strength, 1.0,
                            smoothstep(tuning.gate_start, tuning.gate_end, y_disp))
                lifted = y + (lifted - y) * gate
            lifted = lifted + S * self.toe_gain * np.exp(-self.toe_falloff * y)
            blend = blend * (1.0 - smoothstep(tuning.shadow_start, tuning.shadow_end, y_disp))

        result = y * (1.0 - blend) + lifted * blend

        if S > 0 and tuning.midtone_lift > 0:
            result = result * (1.0 + S * tuning.midtone_lift * _midtone_bump(y_disp))
        return result

    def tone_map(self, y_base: np.ndarray, params: ToneParams,
                 tuning: Optional[AdaptiveShadowTuning] = None) -> np.ndarray:
        """Target linear luminance for the given base luminance"""
        shadows = partial(self.apply_shadows, tuning=tuning)
        return apply_tone_map(y_base, params, shadows)


class ClassicToneAlgorithm(ToneAlgorithmStrategy):
    """Strong toe lift; shadow blend weighted in the linear domain."""

    algorithm = ToneAlgorithm.CLASSIC
    toe_gain = 0.05
    toe_falloff = 9.0

    def shadow_blend(self, y, y_disp):
        return np.power(1.0 - np.minimum(1.0, y), 3.0)

    def toe_mask(self, y):
        return 1.0 - smoothstep(0.0, self.toe_end, np.minimum(1.0, y))


class ReviewToneAlgorithm(ToneAlgorithmStrategy):
    """
    Softer toe and display-domain shadow blend.

    After reconstruction it fills any luminance shortfall left by ratio-based
    reconstruction in the toe, then desaturates the lifted deep shadows
    slightly in proportion to the Shadows control.
    """

    algorithm = ToneAlgorithm.REVIEW
    toe_gain = 0.006
    toe_falloff = 25.0
    blend_exponent = 2.6
    fill_strength = 0.8
    desaturation = 0.15

    def shadow_blend(self, y, y_disp):
        return np.power(1.0 - y_disp, self.blend_exponent)

    def toe_mask(self, y):
        return 1.0 - smoothstep(0.0, self.toe_end, linear_to_srgb(clamp01(y)))

    def post_reconstruct(self, rgb: np.ndarray, y_target: np.ndarray,
                         params: ToneParams, toe_mask: np.ndarray) -> np.ndarray:
        # Neutral controls must give the original pixels back
        if params.is_neutral():
            return rgb

        toe_mask = np.asarray(toe_mask, dtype=np.float64)
        y_out = luminance(rgb)
        fill = np.maximum(0.0, y_target - y_out) * toe_mask * self.fill_strength
        rgb = rgb + fill[..., np.newaxis]

        if params.S <= 0:
            return rgb
        sat_k = (params.S * self.desaturation * toe_mask)[..., np.newaxis]
        y_fill = luminance(rgb)[..., np.newaxis]
        return rgb * (1.0 - sat_k) + y_fill * sat_k


_STRATEGIES = {
    ToneAlgorithm.CLASSIC: ClassicToneAlgorithm(),
    ToneAlgorithm.REVIEW: ReviewToneAlgorithm(),
}


def resolve_algorithm(identifier: Union[ToneAlgorithm, str, None]) -> ToneAlgorithm:
    """Map an identifier to a ToneAlgorithm, falling back to classic"""
    if isinstance(identifier, ToneAlgorithm):
        return identifier
    if identifier is None:
        return DEFAULT_TONE_ALGORITHM
    try:
        return ToneAlgorithm(str(identifier).strip().lower())
    except ValueError:
        logger.warning(f"Unknown tone algorithm '{identifier}', using "
                       f"{DEFAULT_TONE_ALGORITHM.value}")
        return DEFAULT_TONE_ALGORITHM


def get_tone_algorithm(identifier: Union[ToneAlgorithm, str, None] = None) -> ToneAlgorithmStrategy:
    """Strategy singleton for the identifier"""
    return _STRATEGIES[resolve_algorithm(identifier)]
