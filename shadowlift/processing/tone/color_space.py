"""
Color space helpers for ShadowLift

sRGB <-> linear-light conversion and the small interpolation primitives used
to build soft masks. Every function accepts a scalar or a numpy array and
returns the same kind.
"""

import numpy as np

# ITU-R BT.709 luma coefficients (applied to linear RGB)
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722


def clamp01(x):
    """Clamp to [0, 1]"""
    return np.clip(x, 0.0, 1.0)


def lerp(a, b, t):
    """Linear interpolation between a and b"""
    return a + (b - a) * t


def srgb_to_linear(c):
    """
    Decode sRGB-encoded values to linear light.

    Input is not clamped; callers clamp where needed.
    """
    c = np.asarray(c, dtype=np.float64)
    result = np.where(
        c <= 0.04045,
        c / 12.92,
        np.power((np.maximum(c, 0.04045) + 0.055) / 1.055, 2.4),
    )
    return result if result.ndim else float(result)


def linear_to_srgb(c):
    """
    Encode linear-light values to sRGB.

    Values above 1.0 are allowed (they encode above 1.0 and are clipped later).
    """
    c = np.asarray(c, dtype=np.float64)
    result = np.where(
        c <= 0.0031308,
        12.92 * c,
        1.055 * np.power(np.maximum(c, 0.0031308), 1.0 / 2.4) - 0.055,
    )
    return result if result.ndim else float(result)


def smoothstep(edge0: float, edge1: float, x):
    """
    Hermite smoothstep between edge0 and edge1.

    With edge0 == edge1 this degenerates to a step at edge1.
    """
    x = np.asarray(x, dtype=np.float64)
    if edge1 == edge0:
        result = (x >= edge1).astype(np.float64)
    else:
        t = clamp01((x - edge0) / (edge1 - edge0))
        result = t * t * (3.0 - 2.0 * t)
    return result if result.ndim else float(result)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Rec. 709 luminance of a linear RGB(A) array with channels last"""
    return LUMA_R * rgb[..., 0] + LUMA_G * rgb[..., 1] + LUMA_B * rgb[..., 2]
