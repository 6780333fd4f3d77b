"""
Edge-preserving base layer extraction.

A separable running-sum box filter and the self-guided filter built on top of
it. The guided filter output is the low-frequency "base" luminance that the
tone curve operates on; the residual (original minus base) is the detail that
reconstruction carries back.
"""

import logging

import numpy as np

from ...exceptions import InvalidImageError

logger = logging.getLogger(__name__)


def _as_plane(src: np.ndarray, width: int, height: int) -> np.ndarray:
    plane = np.asarray(src, dtype=np.float64)
    if plane.size != width * height:
        raise InvalidImageError(
            f"Plane has {plane.size} values, expected {width}x{height}={width * height}"
        )
    return plane.reshape(height, width)


def _box_pass(plane: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """One running-sum pass along axis with replicated edges"""
    k = 2 * radius + 1
    pad = [(0, 0), (0, 0)]
    pad[axis] = (radius + 1, radius)
    # The extra leading sample is zeroed so window differences yield exactly n sums
    padded = np.pad(plane, pad, mode='edge')
    if axis == 0:
        padded[0, :] = 0.0
    else:
        padded[:, 0] = 0.0

    sums = np.cumsum(padded, axis=axis)
    if axis == 0:
        window = sums[k:, :] - sums[:-k, :]
    else:
        window = sums[:, k:] - sums[:, :-k]
    return window / k


def box_filter(src: np.ndarray, width: int, height: int, radius: int) -> np.ndarray:
    """
    Mean over a (2*radius+1)^2 window, edges replicated.

    Args:
        src: Plane of width*height values (flat or 2-D)
        width: Plane width
        height: Plane height
        radius: Window radius in pixels

    Returns:
        2-D float64 array of shape (height, width)
    """
    plane = _as_plane(src, width, height)
    if radius <= 0:
        return plane.copy()

    horizontal = _box_pass(plane, radius, axis=1)
    return _box_pass(horizontal, radius, axis=0)


def guided_filter(input_plane: np.ndarray, width: int, height: int,
                  radius: int, eps: float = 1e-3) -> np.ndarray:
    """
    Self-guided edge-preserving smoothing.

    Flat regions collapse to their local mean while edges, where the local
    variance dominates eps, pass through (a -> 1).

    Args:
        input_plane: Plane to smooth, also used as its own guide
        width: Plane width
        height: Plane height
        radius: Box window radius
        eps: Regularization; larger values smooth across stronger edges

    Returns:
        2-D float64 array of shape (height, width)
    """
    guide = _as_plane(input_plane, width, height)

    mean = box_filter(guide, width, height, radius)
    mean_sq = box_filter(guide * guide, width, height, radius)
    variance = np.maximum(mean_sq - mean * mean, 0.0)

    a = variance / (variance + eps)
    b = mean - a * mean

    mean_a = box_filter(a, width, height, radius)
    mean_b = box_filter(b, width, height, radius)
    return mean_a * guide + mean_b


def base_radius(width: int, height: int, scale: float = 0.015,
                minimum: int = 4) -> int:
    """Guided filter radius proportional to the short image side"""
    return max(minimum, int(round(min(width, height) * scale)))


def extract_base_layer(luminance: np.ndarray, radius: int,
                       eps: float = 1e-3) -> np.ndarray:
    """Base luminance layer for a 2-D luminance map"""
    height, width = luminance.shape
    if radius * 2 >= min(width, height):
        logger.debug(f"Guided filter radius {radius} covers most of a "
                     f"{width}x{height} image; base layer is close to the global mean")
    return guided_filter(luminance, width, height, radius, eps)
