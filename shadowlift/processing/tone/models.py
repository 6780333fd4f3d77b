"""
Data models for the tone engine.
"""

from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Any, Optional


# Control limits (exposure in stops, the rest in slider units)
EXPOSURE_LIMITS = {'min': -5.0, 'max': 5.0, 'step': 0.05}
SLIDER_LIMITS = {'min': -100.0, 'max': 100.0, 'step': 1.0}

CONTRAST_PIVOT = 0.18  # Linear middle gray


def _clamp(value: float, limits: Dict[str, float]) -> float:
    return max(limits['min'], min(limits['max'], float(value)))


@dataclass(frozen=True)
class ToneSettings:
    """
    User-facing tone controls.

    exposure is in stops (-5..+5); the others are slider values (-100..+100).
    """
    exposure: float = 0.0
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    whites: float = 0.0
    blacks: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToneSettings':
        """Build settings from a dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})

    def with_changes(self, **changes) -> 'ToneSettings':
        return replace(self, **changes)

    def clamped(self) -> 'ToneSettings':
        """Copy with every control clamped to its documented range"""
        return ToneSettings(
            exposure=_clamp(self.exposure, EXPOSURE_LIMITS),
            contrast=_clamp(self.contrast, SLIDER_LIMITS),
            highlights=_clamp(self.highlights, SLIDER_LIMITS),
            shadows=_clamp(self.shadows, SLIDER_LIMITS),
            whites=_clamp(self.whites, SLIDER_LIMITS),
            blacks=_clamp(self.blacks, SLIDER_LIMITS),
        )

    def is_neutral(self) -> bool:
        return all(getattr(self, f.name) == 0 for f in fields(self))


DEFAULT_SETTINGS = ToneSettings(shadows=70.0)
RESET_SETTINGS = ToneSettings()


@dataclass(frozen=True)
class ToneParams:
    """Normalized tone controls as consumed by the tone curve"""
    exposure_mult: float = 1.0
    S: float = 0.0
    H: float = 0.0
    W: float = 0.0
    B: float = 0.0
    C: float = 0.0
    contrast_factor: float = 1.0
    pivot_lin: float = CONTRAST_PIVOT

    @classmethod
    def from_settings(cls, settings: ToneSettings) -> 'ToneParams':
        s = settings.clamped()
        C = s.contrast / 100.0
        return cls(
            exposure_mult=2.0 ** s.exposure,
            S=s.shadows / 100.0,
            H=s.highlights / 100.0,
            W=s.whites / 100.0,
            B=s.blacks / 100.0,
            C=C,
            contrast_factor=1.0 + C if C >= 0 else 1.0 / (1.0 - C),
        )

    def is_neutral(self) -> bool:
        return (self.exposure_mult == 1.0 and self.S == 0.0 and self.H == 0.0
                and self.W == 0.0 and self.B == 0.0 and self.C == 0.0)


@dataclass(frozen=True)
class AdaptiveShadowTuning:
    """
    Per-image shadow curve shaping derived from the base layer histogram.

    Boundaries are display-domain (sRGB encoded) luminance values.
    """
    shadow_start: float
    shadow_end: float
    gate_start: float
    gate_end: float
    notch_strength: float
    midtone_lift: float

    # Percentiles the tuning was derived from (display domain)
    p05: Optional[float] = None
    p10: Optional[float] = None
    p20: Optional[float] = None
    p50: Optional[float] = None

    @classmethod
    def identity(cls) -> 'AdaptiveShadowTuning':
        """Tuning that leaves the variant's shadow curve untouched"""
        return cls(
            shadow_start=1.0,
            shadow_end=2.0,
            gate_start=0.0,
            gate_end=0.0,
            notch_strength=0.0,
            midtone_lift=0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReconstructionSettings:
    """Constants of the pixel reconstruction step"""
    luminance_epsilon: float = 1e-4
    max_lift_ratio: float = 64.0   # Display-referred input; RAW workflows go higher
    detail_damping: float = 0.35   # Detail reduction at Shadows +100 inside the toe
    detail_floor: float = 0.35
    toe_lift_shadows: float = 0.0012
    toe_lift_blacks: float = 0.0024

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReconstructionSettings':
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})


@dataclass(frozen=True)
class FilterSettings:
    """Guided filter parameters for base layer extraction"""
    radius_scale: float = 0.015
    min_radius: int = 4
    eps: float = 1e-3

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FilterSettings':
        return cls(
            radius_scale=float(data.get('radius_scale', cls.radius_scale)),
            min_radius=int(data.get('min_radius', cls.min_radius)),
            eps=float(data.get('eps', cls.eps)),
        )
