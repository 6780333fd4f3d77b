"""
Shared pytest fixtures for ShadowLift tests.
"""

import numpy as np
import pytest


def make_rgba(rgb: np.ndarray, alpha: int = 255) -> np.ndarray:
    """Attach a constant alpha channel to an (h, w, 3) uint8 array"""
    h, w = rgb.shape[:2]
    a = np.full((h, w, 1), alpha, dtype=np.uint8)
    return np.concatenate([rgb.astype(np.uint8), a], axis=-1)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_image(rng):
    """64x48 RGBA image with random colour and alpha"""
    return rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)


@pytest.fixture
def dark_gradient():
    """Gray horizontal ramp from 0 to 60 (8-bit), 32x32"""
    ramp = np.linspace(0, 60, 32).round().astype(np.uint8)
    gray = np.tile(ramp, (32, 1))
    return make_rgba(np.stack([gray, gray, gray], axis=-1))


@pytest.fixture
def four_pixel_image():
    """2x2: black, mid-gray / white, black"""
    rgb = np.array([
        [[0, 0, 0], [128, 128, 128]],
        [[255, 255, 255], [0, 0, 0]],
    ], dtype=np.uint8)
    return make_rgba(rgb)
