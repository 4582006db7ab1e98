# synth/glottal.py
"""
Glottal source model.

Harmonic n of the voice source has amplitude 1/n**power, where power falls
as the closed quotient (CQ) rises: pressed phonation is bright, breathy
phonation is soft. Two CQ-to-power mappings are in use:

  voicing_exponent  2.5 - 1.7*CQ   wave built when the voice starts
  sustain_exponent  3.5 - 3.0*CQ   wave swapped in on live updates
"""

import numpy as np

from synth.wavetable import PeriodicWave
from utils.config import WAVETABLE_HARMONICS

CQ_MIN = 0.1
CQ_MAX = 0.9


def voicing_exponent(cq: float) -> float:
    return 2.5 - 1.7 * cq


def sustain_exponent(cq: float) -> float:
    return 3.5 - 3.0 * cq


def clamp_cq(cq) -> float:
    cq = float(cq)
    if not np.isfinite(cq):
        return 0.5
    return min(CQ_MAX, max(CQ_MIN, cq))


def harmonic_amplitudes(cq, exponent=voicing_exponent, size: int = WAVETABLE_HARMONICS):
    """
    Fourier coefficients (real, imag) of the glottal wave.

    real is all zero and imag[0] is zero, so the wave carries no DC.
    Harmonics at or above `size` are implicitly zero.
    """
    power = exponent(clamp_cq(cq))
    real = np.zeros(size)
    imag = np.zeros(size)
    n = np.arange(1, size, dtype=float)
    imag[1:] = 1.0 / n ** power
    return real, imag


def glottal_wave(cq, exponent=voicing_exponent, size: int = WAVETABLE_HARMONICS) -> PeriodicWave:
    real, imag = harmonic_amplitudes(cq, exponent, size)
    return PeriodicWave(real, imag, normalize=True)
