"""
Tests for the shadow recovery engine.
"""

import itertools

import pytest
import numpy as np

from shadowlift import process_image
from shadowlift.config import get_default_config
from shadowlift.exceptions import InvalidImageError
from shadowlift.processing.tone import (
    EngineSettings, ShadowRecoveryEngine, ToneSettings, DEFAULT_SETTINGS, RESET_SETTINGS
)
from shadowlift.processing.tone.color_space import luminance
from shadowlift.processing.tone.engine import validate_buffer
from shadowlift.processing.tone.models import AdaptiveShadowTuning

VARIANTS = ["classic", "review"]


class TestValidation:
    """Test buffer validation."""

    def test_accepts_rgba(self, random_image):
        assert validate_buffer(random_image).shape == (48, 64, 4)

    def test_flat_buffer_needs_dimensions(self, random_image):
        with pytest.raises(InvalidImageError):
            validate_buffer(random_image.ravel())

    def test_flat_buffer_reshaped(self, random_image):
        result = validate_buffer(random_image.ravel(), width=64, height=48)
        np.testing.assert_array_equal(result, random_image)

    def test_length_mismatch(self, random_image):
        with pytest.raises(InvalidImageError):
            validate_buffer(random_image.ravel(), width=64, height=47)

    def test_declared_size_mismatch(self, random_image):
        with pytest.raises(InvalidImageError):
            validate_buffer(random_image, width=10, height=48)

    def test_wrong_channel_count(self):
        with pytest.raises(InvalidImageError):
            validate_buffer(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_wrong_dtype(self):
        with pytest.raises(InvalidImageError):
            validate_buffer(np.zeros((4, 4, 4), dtype=np.float32))

    def test_empty_image(self):
        with pytest.raises(InvalidImageError):
            validate_buffer(np.zeros((0, 5, 4), dtype=np.uint8))

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_buffer(np.zeros(3, dtype=np.uint8), width=1, height=1)


class TestAnalysis:
    """Test the whole-image analysis phase."""

    def setup_method(self):
        self.engine = ShadowRecoveryEngine()

    def test_analysis_shapes(self, random_image):
        analysis = self.engine.analyze(random_image)
        assert (analysis.width, analysis.height) == (64, 48)
        assert analysis.radius == 4
        assert analysis.linear_rgb.shape == (48, 64, 3)
        assert analysis.y_base.shape == (48, 64)
        assert analysis.y_base.min() >= 1e-4

    def test_adaptive_tuning_can_be_disabled(self, random_image):
        engine = ShadowRecoveryEngine(EngineSettings(adaptive_tuning=False))
        assert engine.analyze(random_image).tuning == AdaptiveShadowTuning.identity()

    def test_tuning_recorded(self, random_image):
        tuning = self.engine.analyze(random_image).tuning
        assert tuning.p05 is not None
        assert tuning.p05 <= tuning.p10 <= tuning.p20 <= tuning.p50


class TestProcessing:
    """Test end-to-end processing."""

    def setup_method(self):
        self.engine = ShadowRecoveryEngine()

    @pytest.mark.parametrize("variant", VARIANTS)
    def test_neutral_round_trip(self, random_image, variant):
        result = self.engine.process(random_image, RESET_SETTINGS, variant)
        diff = np.abs(result.astype(int) - random_image.astype(int))
        assert diff.max() <= 1

    @pytest.mark.parametrize("variant", VARIANTS)
    def test_extreme_settings_keep_shape_and_alpha(self, random_image, variant):
        for exposure, slider in itertools.product((-5.0, 5.0), (-100.0, 100.0)):
            settings = ToneSettings(exposure=exposure, contrast=slider, highlights=slider,
                                    shadows=slider, whites=slider, blacks=slider)
            result = self.engine.process(random_image, settings, variant)
            assert result.dtype == np.uint8
            assert result.shape == random_image.shape
            np.testing.assert_array_equal(result[..., 3], random_image[..., 3])

    @pytest.mark.parametrize("variant", VARIANTS)
    @pytest.mark.parametrize("shadows", [35.0, 70.0, 100.0])
    def test_shadows_never_darken(self, dark_gradient, variant, shadows):
        result = self.engine.process(dark_gradient, ToneSettings(shadows=shadows), variant)
        assert np.all(result[..., :3].astype(int) >= dark_gradient[..., :3].astype(int))

    @pytest.mark.parametrize("variant", VARIANTS)
    @pytest.mark.parametrize("adaptive", [True, False])
    def test_shadows_sweep_never_darkens_noisy_image(self, rng, variant, adaptive):
        image = rng.integers(0, 61, size=(40, 40, 4), dtype=np.uint8)
        image[..., 3] = 255
        engine = ShadowRecoveryEngine(EngineSettings(adaptive_tuning=adaptive))
        analysis = engine.analyze(image)

        previous_y = previous_px = None
        for shadows in range(0, 101, 10):
            settings = ToneSettings(shadows=float(shadows))
            y_out = luminance(engine.render_linear(analysis, settings, variant))
            pixels = engine.process(image, settings, variant)
            if previous_y is not None:
                assert np.all(y_out >= previous_y - 1e-12), shadows
                if variant == "classic":
                    assert np.all(pixels[..., :3].astype(int) >= previous_px), shadows
            previous_y, previous_px = y_out, pixels[..., :3].astype(int)

    @pytest.mark.parametrize("variant", VARIANTS)
    def test_shadows_lift_dark_gradient(self, dark_gradient, variant):
        result = self.engine.process(dark_gradient, ToneSettings(shadows=100.0), variant)
        assert result[..., :3].mean() > dark_gradient[..., :3].mean() + 10

    def test_blacks_crush_near_black(self):
        image = np.full((16, 16, 4), 39, dtype=np.uint8)
        image[..., 3] = 255
        result = self.engine.process(image, ToneSettings(blacks=-100.0))
        assert result[..., :3].max() < 39

    @pytest.mark.parametrize("variant", VARIANTS)
    def test_four_pixel_example(self, four_pixel_image, variant):
        result = self.engine.process(four_pixel_image, DEFAULT_SETTINGS, variant)

        # Pure black leaves zero, white stays put, gray is lifted
        assert np.all(result[0, 0, :3] > 0)
        assert np.all(result[1, 1, :3] > 0)
        assert np.all(result[1, 0, :3] >= 254)
        assert np.all(result[0, 1, :3] > 128)

        analysis = self.engine.analyze(four_pixel_image)
        target = self.engine.target_luminance(analysis, DEFAULT_SETTINGS, variant)
        ratio = target / analysis.y_base
        assert ratio[0, 0] > ratio[0, 1]

    def test_deterministic(self, random_image):
        first = self.engine.process(random_image, DEFAULT_SETTINGS, 'review')
        second = self.engine.process(random_image, DEFAULT_SETTINGS, 'review')
        np.testing.assert_array_equal(first, second)

    @pytest.mark.parametrize("variant", VARIANTS)
    def test_threaded_matches_single(self, rng, variant):
        image = rng.integers(0, 256, size=(37, 29, 4), dtype=np.uint8)
        settings = ToneSettings(exposure=0.3, shadows=80, highlights=-40, blacks=20)
        single = ShadowRecoveryEngine(EngineSettings(workers=1)).process(image, settings, variant)
        threaded = ShadowRecoveryEngine(EngineSettings(workers=4)).process(image, settings, variant)
        np.testing.assert_array_equal(single, threaded)

    def test_more_workers_than_rows(self, rng):
        image = rng.integers(0, 256, size=(2, 5, 4), dtype=np.uint8)
        engine = ShadowRecoveryEngine(EngineSettings(workers=8))
        np.testing.assert_array_equal(engine.process(image), self.engine.process(image))

    def test_flat_buffer(self, random_image):
        flat = self.engine.process(random_image.ravel(), DEFAULT_SETTINGS, width=64, height=48)
        np.testing.assert_array_equal(flat, self.engine.process(random_image))

    def test_unknown_algorithm_falls_back(self, random_image):
        fallback = self.engine.process(random_image, DEFAULT_SETTINGS, 'filmic')
        classic = self.engine.process(random_image, DEFAULT_SETTINGS, 'classic')
        np.testing.assert_array_equal(fallback, classic)

    def test_variants_differ(self, dark_gradient):
        classic = self.engine.process(dark_gradient, DEFAULT_SETTINGS, 'classic')
        review = self.engine.process(dark_gradient, DEFAULT_SETTINGS, 'review')
        assert not np.array_equal(classic, review)


class TestConfiguration:
    """Test engine construction from configuration."""

    def test_from_default_config(self):
        settings = EngineSettings.from_config(get_default_config())
        assert settings.workers == 1
        assert settings.adaptive_tuning is True
        assert settings.filter.eps == pytest.approx(1e-3)
        assert settings.filter.min_radius == 4
        assert settings.reconstruction.max_lift_ratio == 64.0

    def test_from_empty_config(self):
        assert EngineSettings.from_config(None) == EngineSettings()

    def test_config_overrides(self):
        config = {'engine': {'workers': 3, 'filter': {'min_radius': 6}}}
        settings = EngineSettings.from_config(config)
        assert settings.workers == 3
        assert settings.filter.min_radius == 6
        assert ShadowRecoveryEngine(settings).analyze(
            np.zeros((10, 10, 4), dtype=np.uint8)).radius == 6

    def test_process_image_function(self, random_image):
        result = process_image(random_image, RESET_SETTINGS, 'classic',
                               config=get_default_config())
        np.testing.assert_array_equal(result, random_image)
