"""
Shadow recovery engine for ShadowLift

Runs the two whole-image analysis phases (guided-filter base layer, histogram
tuning) and then the per-pixel tone map + reconstruction pass over an 8-bit
sRGB RGBA buffer.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import numpy as np

from ...exceptions import InvalidImageError
from .algorithms import ToneAlgorithm, ToneAlgorithmStrategy, get_tone_algorithm
from .color_space import luminance, srgb_to_linear
from .guided_filter import base_radius, extract_base_layer
from .histogram_tuner import HistogramTuner
from .models import (
    AdaptiveShadowTuning, FilterSettings, ReconstructionSettings,
    ToneParams, ToneSettings, DEFAULT_SETTINGS
)
from .reconstructor import Reconstructor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Engine constants injected from configuration"""
    filter: FilterSettings = field(default_factory=FilterSettings)
    reconstruction: ReconstructionSettings = field(default_factory=ReconstructionSettings)
    adaptive_tuning: bool = True
    workers: int = 1

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> 'EngineSettings':
        """Build from the 'engine' section of a loaded config dict"""
        engine = (config or {}).get('engine') or {}
        return cls(
            filter=FilterSettings.from_dict(engine.get('filter') or {}),
            reconstruction=ReconstructionSettings.from_dict(engine.get('reconstruction') or {}),
            adaptive_tuning=bool(engine.get('adaptive_tuning', True)),
            workers=max(1, int(engine.get('workers', 1))),
        )


@dataclass
class ToneAnalysis:
    """Whole-image outputs of the analysis phase"""
    width: int
    height: int
    radius: int
    linear_rgb: np.ndarray       # (h, w, 3)
    y_original: np.ndarray       # (h, w)
    y_base: np.ndarray           # (h, w), floored at epsilon
    tuning: AdaptiveShadowTuning


def validate_buffer(pixels: np.ndarray, width: Optional[int] = None,
                    height: Optional[int] = None) -> np.ndarray:
    """
    Check an RGBA buffer against its declared size.

    Accepts a (h, w, 4) array or a flat array of w*h*4 values with explicit
    width and height.

    Returns:
        (h, w, 4) uint8 view/copy of the buffer
    """
    pixels = np.asarray(pixels)
    if pixels.dtype != np.uint8:
        raise InvalidImageError(f"Expected uint8 samples, got {pixels.dtype}")

    if pixels.ndim == 3:
        h, w, channels = pixels.shape
        if channels != 4:
            raise InvalidImageError(f"Expected 4 channels (RGBA), got {channels}")
        if (width is not None and width != w) or (height is not None and height != h):
            raise InvalidImageError(
                f"Buffer is {w}x{h} but {width}x{height} was declared"
            )
    elif pixels.ndim == 1:
        if width is None or height is None:
            raise InvalidImageError("Flat buffers need explicit width and height")
        if pixels.size != width * height * 4:
            raise InvalidImageError(
                f"Buffer length {pixels.size} does not match {width}x{height}x4"
            )
        h, w = height, width
        pixels = pixels.reshape(h, w, 4)
    else:
        raise InvalidImageError(f"Unsupported buffer shape {pixels.shape}")

    if w == 0 or h == 0:
        raise InvalidImageError("Image has no pixels")
    return pixels


class ShadowRecoveryEngine:
    """
    Base/detail shadow recovery with composable tone adjustments.

    Phase 1 (whole image): linearize, extract the guided-filter base layer and
    derive the adaptive shadow tuning. Phase 2 (per pixel): tone map the base
    luminance and reconstruct RGB. Phase 2 only starts once phase 1 is done;
    with workers > 1 it runs over row bands on a thread pool and produces the
    same bytes as the single-threaded path.
    """

    def __init__(self, settings: Optional[EngineSettings] = None,
                 tuner: Optional[HistogramTuner] = None):
        self.settings = settings or EngineSettings()
        self.tuner = tuner or HistogramTuner()
        self.reconstructor = Reconstructor(self.settings.reconstruction)

    def analyze(self, pixels: np.ndarray, width: Optional[int] = None,
                height: Optional[int] = None) -> ToneAnalysis:
        """Run the whole-image analysis phase"""
        rgba = validate_buffer(pixels, width, height)
        h, w = rgba.shape[:2]

        linear_rgb = srgb_to_linear(rgba[..., :3].astype(np.float64) / 255.0)
        y_original = luminance(linear_rgb)

        fs = self.settings.filter
        radius = base_radius(w, h, fs.radius_scale, fs.min_radius)
        y_base = extract_base_layer(y_original, radius, fs.eps)
        y_base = np.maximum(self.settings.reconstruction.luminance_epsilon, y_base)

        if self.settings.adaptive_tuning:
            tuning = self.tuner.tune(y_base)
        else:
            tuning = AdaptiveShadowTuning.identity()

        return ToneAnalysis(
            width=w,
            height=h,
            radius=radius,
            linear_rgb=linear_rgb,
            y_original=y_original,
            y_base=y_base,
            tuning=tuning,
        )

    def target_luminance(self, analysis: ToneAnalysis, settings: ToneSettings,
                         algorithm: Union[ToneAlgorithm, str, None] = None) -> np.ndarray:
        """Tone-mapped target luminance for every pixel"""
        strategy = get_tone_algorithm(algorithm)
        params = ToneParams.from_settings(settings)
        return strategy.tone_map(analysis.y_base, params, analysis.tuning)

    def process(self, pixels: np.ndarray, settings: ToneSettings = DEFAULT_SETTINGS,
                algorithm: Union[ToneAlgorithm, str, None] = None,
                width: Optional[int] = None,
                height: Optional[int] = None) -> np.ndarray:
        """
        Process one image.

        Args:
            pixels: RGBA uint8 buffer, (h, w, 4) or flat with width/height
            settings: Tone controls
            algorithm: Tone algorithm identifier (unknown values fall back to classic)
            width: Declared width (required for flat buffers)
            height: Declared height (required for flat buffers)

        Returns:
            (h, w, 4) uint8 RGBA, sRGB encoded, alpha unchanged
        """
        start = time.time()
        rgba = validate_buffer(pixels, width, height)
        strategy = get_tone_algorithm(algorithm)
        params = ToneParams.from_settings(settings)

        analysis = self.analyze(rgba)
        alpha = rgba[..., 3]

        workers = min(self.settings.workers, analysis.height)
        if workers <= 1:
            output = self._process_rows(analysis, alpha, params, strategy, 0, analysis.height)
        else:
            output = np.empty_like(rgba)
            bounds = np.linspace(0, analysis.height, workers + 1).astype(int)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {
                    (top, bottom): pool.submit(self._process_rows, analysis, alpha,
                                               params, strategy, top, bottom)
                    for top, bottom in zip(bounds[:-1], bounds[1:]) if bottom > top
                }
                for (top, bottom), future in futures.items():
                    output[top:bottom] = future.result()

        logger.debug(f"Processed {analysis.width}x{analysis.height} image with "
                     f"{strategy.name} in {time.time() - start:.3f}s "
                     f"(radius={analysis.radius}, workers={max(1, workers)})")
        return output

    def render_linear(self, analysis: ToneAnalysis, settings: ToneSettings,
                      algorithm: Union[ToneAlgorithm, str, None] = None) -> np.ndarray:
        """Reconstructed linear RGB for the whole image, before encoding"""
        strategy = get_tone_algorithm(algorithm)
        params = ToneParams.from_settings(settings)
        return self._render_rows(analysis, params, strategy, 0, analysis.height)

    def _render_rows(self, analysis: ToneAnalysis, params: ToneParams,
                     strategy: ToneAlgorithmStrategy, top: int, bottom: int) -> np.ndarray:
        y_base = analysis.y_base[top:bottom]
        y_target = strategy.tone_map(y_base, params, analysis.tuning)
        return self.reconstructor.reconstruct_linear(
            analysis.linear_rgb[top:bottom],
            analysis.y_original[top:bottom],
            y_base,
            y_target,
            params,
            strategy,
        )

    def _process_rows(self, analysis: ToneAnalysis, alpha: np.ndarray,
                      params: ToneParams, strategy: ToneAlgorithmStrategy,
                      top: int, bottom: int) -> np.ndarray:
        rgb = self._render_rows(analysis, params, strategy, top, bottom)
        return self.reconstructor.encode(rgb, alpha[top:bottom])


def process_image(pixels: np.ndarray, settings: ToneSettings = DEFAULT_SETTINGS,
                  algorithm: Union[ToneAlgorithm, str, None] = None,
                  width: Optional[int] = None, height: Optional[int] = None,
                  config: Optional[Dict[str, Any]] = None) -> np.ndarray:
    """Process one RGBA buffer with a throwaway engine"""
    engine = ShadowRecoveryEngine(EngineSettings.from_config(config))
    return engine.process(pixels, settings, algorithm, width, height)
