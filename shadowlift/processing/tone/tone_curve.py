"""
Tone curve stages shared by every tone algorithm.

All stages operate on linear-light luminance (scalar or array) and are
identity when their control is exactly zero. The order is fixed:
exposure, shadows, highlights, whites, blacks, contrast.
"""

from typing import Callable

import numpy as np

from .color_space import clamp01, smoothstep
from .models import ToneParams

ShadowFn = Callable[[np.ndarray, float], np.ndarray]


def apply_exposure(y: np.ndarray, exposure_mult: float) -> np.ndarray:
    if exposure_mult == 1:
        return y
    return y * exposure_mult


def apply_highlights(y: np.ndarray, H: float) -> np.ndarray:
    """Scale values near 1.0; the cubic mask leaves shadows alone"""
    if H == 0:
        return y
    highlight_mask = np.power(np.minimum(1.0, y), 3.0)
    return y * (1.0 + H * 0.6 * highlight_mask)


def apply_whites(y: np.ndarray, W: float) -> np.ndarray:
    """
    Asymmetric white point control.

    Positive values lift the top of the range and may push it past 1.0 so
    highlights visibly clip; negative values pull the top down into headroom.
    """
    if W == 0:
        return y

    y_clamped = clamp01(y)
    highlight_mask = smoothstep(0.35, 1.0, y_clamped)
    pos_highlight_mask = smoothstep(0.25, 1.0, y_clamped)
    wide_mask = smoothstep(0.15, 0.9, y_clamped)

    if W > 0:
        strength = W * 1.25
        base = y_clamped + strength * 0.28 * wide_mask
        rolloff = 1.0 - np.power(1.0 - clamp01(base), 1.0 + strength * 1.15)
        blow = strength * 0.7 * np.power(pos_highlight_mask, 1.4)
        mapped = rolloff + blow
        return base * (1.0 - pos_highlight_mask) + mapped * pos_highlight_mask

    strength = abs(W) * 1.6
    exponent = 1.0 / (1.0 + strength)
    mapped = 1.0 - np.power(1.0 - y_clamped, exponent)
    return y_clamped * (1.0 - highlight_mask) + mapped * highlight_mask


def apply_blacks(y: np.ndarray, B: float) -> np.ndarray:
    """
    Asymmetric black point control concentrated below ~0.22.

    Positive values raise the floor in proportion to the remaining headroom;
    negative values raise the exponent to crush toward zero.
    """
    if B == 0:
        return y

    y_clamped = clamp01(y)
    shadow_mask = 1.0 - smoothstep(0.0, 0.22, y_clamped)

    if B > 0:
        strength = B * 0.7
        lift = strength * 0.06 * np.power(shadow_mask, 1.6) * (1.0 - y_clamped)
        mapped = y_clamped + lift
    else:
        strength = abs(B) * 1.3
        mapped = np.power(y_clamped, 1.0 + strength)

    return y_clamped * (1.0 - shadow_mask) + mapped * shadow_mask


def apply_contrast(y: np.ndarray, params: ToneParams) -> np.ndarray:
    """Power curve pivoting on linear middle gray"""
    if params.C == 0:
        return y
    safe = np.maximum(y, 0.0)
    pivoted = params.pivot_lin * np.power(safe / params.pivot_lin, params.contrast_factor)
    return np.where(y > 0, pivoted, y)


def apply_tone_map(y_base: np.ndarray, params: ToneParams,
                   apply_shadows: ShadowFn) -> np.ndarray:
    """
    Run the full stage chain with a variant-specific shadow stage.

    Args:
        y_base: Linear base luminance
        params: Normalized tone controls
        apply_shadows: Shadow stage of the selected algorithm

    Returns:
        Target linear luminance, floored at 0
    """
    y = np.asarray(y_base, dtype=np.float64)

    y = apply_exposure(y, params.exposure_mult)
    if params.S != 0:
        y = apply_shadows(y, params.S)
    y = apply_highlights(y, params.H)
    y = apply_whites(y, params.W)
    y = apply_blacks(y, params.B)
    y = apply_contrast(y, params)

    return np.maximum(0.0, y)
