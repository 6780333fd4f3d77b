"""
Tests for pixel reconstruction.
"""

import pytest
import numpy as np

from shadowlift.processing.tone.algorithms import get_tone_algorithm
from shadowlift.processing.tone.color_space import luminance
from shadowlift.processing.tone.models import ReconstructionSettings, ToneParams
from shadowlift.processing.tone.reconstructor import Reconstructor


class TestReconstructionTerms:
    """Test ratio, detail weight and toe lift."""

    def setup_method(self):
        self.reconstructor = Reconstructor()

    def test_ratio_capped(self):
        ratio = self.reconstructor.lift_ratio(np.array([1.0]), np.array([1e-4]))
        assert ratio[0] == 64.0

    def test_ratio_epsilon_floor(self):
        ratio = self.reconstructor.lift_ratio(np.array([0.0005]), np.array([0.0]))
        assert ratio[0] == pytest.approx(5.0)

    def test_ratio_unity(self):
        y = np.array([0.01, 0.3, 0.9])
        np.testing.assert_array_equal(self.reconstructor.lift_ratio(y, y), [1.0, 1.0, 1.0])

    def test_detail_weight(self):
        toe = np.array([0.0, 0.5, 1.0])
        np.testing.assert_array_equal(self.reconstructor.detail_weight(0.0, toe), [1.0, 1.0, 1.0])
        np.testing.assert_allclose(self.reconstructor.detail_weight(1.0, toe),
                                   [1.0, 0.825, 0.65])

    def test_detail_weight_ignores_negative_shadows(self):
        toe = np.ones(2)
        np.testing.assert_array_equal(self.reconstructor.detail_weight(-1.0, toe), [1.0, 1.0])

    def test_detail_weight_floor(self):
        reconstructor = Reconstructor(ReconstructionSettings(detail_damping=0.9))
        assert reconstructor.detail_weight(1.0, np.array([1.0]))[0] == pytest.approx(0.35)

    def test_toe_lift(self):
        toe = np.array([1.0, 0.0])
        np.testing.assert_allclose(self.reconstructor.toe_lift(ToneParams(S=0.7), toe),
                                   [0.00084, 0.0])
        np.testing.assert_allclose(self.reconstructor.toe_lift(ToneParams(S=0.7, B=0.5), toe),
                                   [0.00204, 0.0])
        np.testing.assert_allclose(self.reconstructor.toe_lift(ToneParams(S=-0.5, B=-0.5), toe),
                                   [0.0, 0.0])


class TestReconstruct:
    """Test linear reconstruction and encoding."""

    def setup_method(self):
        self.reconstructor = Reconstructor()
        self.classic = get_tone_algorithm('classic')

    def test_neutral_returns_original(self, rng):
        original = rng.random((8, 8, 3))
        y_original = luminance(original)
        y_base = np.maximum(1e-4, rng.uniform(0.01, 1.0, size=(8, 8)))
        rgb = self.reconstructor.reconstruct_linear(original, y_original, y_base, y_base,
                                                    ToneParams(), self.classic)
        np.testing.assert_array_equal(rgb, original)

    def test_ratio_scales_color(self):
        original = np.array([[0.2, 0.1, 0.05]])
        y = luminance(original)
        rgb = self.reconstructor.reconstruct_linear(original, y, y, y * 2, ToneParams(),
                                                    self.classic)
        np.testing.assert_allclose(rgb, original * 2)

    def test_shadow_detail_mixes_base(self):
        original = np.array([[0.01, 0.01, 0.01]])
        y_original = np.array([0.01])
        y_base = np.array([0.02])
        y_target = np.array([0.04])
        params = ToneParams(S=1.0)

        toe = self.classic.toe_mask(y_base)
        weight = self.reconstructor.detail_weight(1.0, toe)[0]
        expected = (0.02 * 2 * (1 - weight) + 0.01 * 2 * weight
                    + self.reconstructor.toe_lift(params, toe)[0])

        rgb = self.reconstructor.reconstruct_linear(original, y_original, y_base, y_target,
                                                    params, self.classic)
        assert weight < 1.0
        np.testing.assert_allclose(rgb, [[expected] * 3])

    def test_textured_shadow_pixel_never_darkens(self):
        # Pixel far darker than its base, with the target rising as Shadows rises
        original = np.array([[0.0003, 0.0002, 0.0001]])
        y_original = luminance(original)
        y_base = np.array([0.014])
        previous = 0.0
        for S, y_target in ((0.8, 0.030), (0.9, 0.032), (1.0, 0.034)):
            rgb = self.reconstructor.reconstruct_linear(original, y_original, y_base,
                                                        np.array([y_target]), ToneParams(S=S),
                                                        self.classic)
            y_out = luminance(rgb)[0]
            assert y_out >= previous
            previous = y_out

    def test_output_non_negative(self):
        original = np.array([[0.0, 0.0, 0.0]])
        rgb = self.reconstructor.reconstruct_linear(
            original, np.array([0.0]), np.array([1e-4]), np.array([0.0]),
            ToneParams(B=-1.0), self.classic
        )
        assert np.all(rgb >= 0)

    def test_encode(self):
        rgb = np.array([[[2.0, 0.5, -0.1]]])
        alpha = np.array([[7]], dtype=np.uint8)
        out = Reconstructor.encode(rgb, alpha)
        assert out.dtype == np.uint8
        assert out.shape == (1, 1, 4)
        assert out[0, 0, 0] == 255
        assert out[0, 0, 1] == 188
        assert out[0, 0, 2] == 0
        assert out[0, 0, 3] == 7
