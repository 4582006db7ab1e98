# analysis/model.py
"""
Shared data model for the synthesizer, the envelope estimator and the
formant analyzer.
"""

import math
from dataclasses import dataclass, field
from typing import List, Tuple

from utils.config import MIN_TRACT_CM, REFERENCE_TRACT_CM

DEFAULT_BANDWIDTHS = (80.0, 100.0, 120.0)
DEFAULT_PITCH = 120.0
MIN_PITCH = 80.0
MAX_PITCH = 800.0


def _clamp(x, lo, hi):
    return max(lo, min(hi, x))


def finite(x) -> bool:
    """True if x converts to a finite float."""
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


def _float_or(x, default: float) -> float:
    try:
        x = float(x)
    except (TypeError, ValueError):
        return default
    return x if math.isfinite(x) else default


def finite_positive(x) -> bool:
    """True if x is a finite number > 0 (safe to write into a live parameter)."""
    try:
        x = float(x)
    except (TypeError, ValueError):
        return False
    return math.isfinite(x) and x > 0


@dataclass
class FormantTriple:
    """F1/F2/F3 centers (Hz) with their bandwidths (Hz)."""
    f1: float = 500.0
    f2: float = 1500.0
    f3: float = 2500.0
    bandwidths: Tuple[float, float, float] = DEFAULT_BANDWIDTHS

    @classmethod
    def from_chart(cls, f1: float, f2: float) -> "FormantTriple":
        """Build a custom vowel from an (F1, F2) chart position; F3 follows F2."""
        f3 = 2300.0 + (f2 - 1000.0) * 0.25
        return cls(f1, f2, f3, DEFAULT_BANDWIDTHS)

    @property
    def centers(self) -> Tuple[float, float, float]:
        return (self.f1, self.f2, self.f3)

    def resolved_bandwidths(self) -> Tuple[float, float, float]:
        """Bandwidths with missing/zero/non-finite entries replaced by defaults."""
        bws = tuple(self.bandwidths or ())
        out = []
        for i, default in enumerate(DEFAULT_BANDWIDTHS):
            bw = bws[i] if i < len(bws) else None
            out.append(float(bw) if finite_positive(bw) else default)
        return tuple(out)

    def with_formant(self, name: str, freq: float) -> "FormantTriple":
        """Copy with one of f1/f2/f3 replaced (e.g. after a drag)."""
        if name not in ("f1", "f2", "f3"):
            raise ValueError(f"unknown formant {name!r}")
        values = {"f1": self.f1, "f2": self.f2, "f3": self.f3}
        values[name] = float(freq)
        return FormantTriple(bandwidths=self.resolved_bandwidths(), **values)


@dataclass
class VocalPhysics:
    """Vocal-tract length (cm), fold thickness (0-100) and closed quotient (0-1)."""
    tract_length: float = REFERENCE_TRACT_CM
    fold_thickness: float = 50.0
    closed_quotient: float = 0.5

    @property
    def vtl_scale(self) -> float:
        return vtl_scale(self.tract_length)

    @property
    def thickness(self) -> float:
        return _clamp(_float_or(self.fold_thickness, 50.0), 0.0, 100.0)

    @property
    def cq(self) -> float:
        return _clamp(_float_or(self.closed_quotient, 0.5), 0.0, 1.0)


def vtl_scale(tract_length: float) -> float:
    """Uniform formant scale: shorter tracts raise every formant."""
    length = _float_or(tract_length, REFERENCE_TRACT_CM)
    return REFERENCE_TRACT_CM / max(MIN_TRACT_CM, length)


@dataclass
class HarmonicBoost:
    """User parametric peak layered over the vocal-tract response."""
    active: bool = False
    freq: float = 0.0
    gain: float = 0.0
    q: float = 0.0


@dataclass
class SynthesisParameters:
    """The full control tuple shared by the synthesizer and the envelope plot."""
    pitch: float = DEFAULT_PITCH
    formants: FormantTriple = field(default_factory=FormantTriple)
    volume: float = 0.5
    singers_formant: bool = False
    harmonic_boost: HarmonicBoost = field(default_factory=HarmonicBoost)
    physics: VocalPhysics = field(default_factory=VocalPhysics)

    def scaled_formants(self) -> Tuple[float, float, float]:
        """Formant centers after vocal-tract length scaling."""
        s = self.physics.vtl_scale
        return tuple(f * s for f in self.formants.centers)

    @property
    def safe_volume(self) -> float:
        try:
            v = float(self.volume)
        except (TypeError, ValueError):
            return 0.0
        return _clamp(v, 0.0, 1.0) if math.isfinite(v) else 0.0


@dataclass
class AnalyzedFormants:
    """One analysis frame: F1/F2 (0 when unvoiced), RMS energy, display spectrum."""
    f1: float = 0.0
    f2: float = 0.0
    energy: float = 0.0
    spectrum: List[float] = field(default_factory=list)

    @classmethod
    def silent(cls) -> "AnalyzedFormants":
        return cls(0.0, 0.0, 0.0, [])

    @property
    def voiced(self) -> bool:
        return self.f1 > 0 and self.f2 > 0
