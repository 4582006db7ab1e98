# analysis/envelope.py
"""
Analytic spectral envelope of the synthesized voice.

envelope_db() predicts, for one frequency, the level of
source tilt x vocal-tract resonances x peaking overlays x thickness rolloff.
It is pure and cheap enough for a dense sweep (see spectrum_curve).

The peaking overlays are drawn as Gaussian bumps. This is a display
approximation and intentionally not the biquad response the synthesizer
actually applies.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from analysis.model import SynthesisParameters

SOURCE_REF_HZ = 100.0
SINGERS_GAIN_DB = 15.0
SINGERS_Q = 1.5
ROLLOFF_DB_PER_OCTAVE = 24.0
DISPLAY_OFFSET_DB = 60.0
DISPLAY_MIN = 0.0
DISPLAY_MAX = 100.0
SWEEP_START_HZ = 20.0
SWEEP_STOP_HZ = 5500.0
SWEEP_STEP_HZ = 5.0
USER_OVERLAY_SCALE = 80.0
_EPS = 1e-7


def source_exponent(cq: float) -> float:
    """Glottal source power-law exponent: 3.5 at CQ=0, 0.5 at CQ=1."""
    return 3.5 - 3.0 * cq


def source_tilt_db(freq: float, cq: float) -> float:
    """
    Source level relative to 100 Hz.

    One power of f is cancelled by lip radiation (+6 dB/oct), so the
    radiated slope is exponent - 1. Below the reference the source is flat.
    """
    ratio = max(1.0, freq / SOURCE_REF_HZ)
    magnitude = 1.0 / ratio ** (source_exponent(cq) - 1.0)
    return 20.0 * math.log10(magnitude)


def resonance(freq: float, center: float, bandwidth: float) -> float:
    """Second-order resonator magnitude, unity at DC, peak ~Q at center."""
    q = center / bandwidth
    ratio = freq / center
    term1 = 1.0 - ratio * ratio
    term2 = ratio / q
    return 1.0 / math.sqrt(term1 * term1 + term2 * term2)


def gaussian_peak_db(freq: float, center: float, gain_db: float, q: float) -> float:
    """Gaussian bump of gain_db at center, half-width (center/q)/2, zero beyond two bandwidths."""
    if not all(math.isfinite(v) for v in (center, gain_db, q)):
        return 0.0
    if gain_db == 0 or center <= 0 or q <= 0:
        return 0.0
    bw = center / q
    if abs(freq - center) > 2.0 * bw:
        return 0.0
    x = (freq - center) / (bw / 2.0)
    return gain_db * math.exp(-0.5 * x * x)


def thickness_cutoff(fold_thickness: float) -> float:
    return 12000.0 - 110.0 * fold_thickness


def envelope_db(freq: float, params: SynthesisParameters) -> float:
    """Predicted level (dB, unclipped) of the voice at freq."""
    physics = params.physics
    scale = physics.vtl_scale

    tilt = source_tilt_db(freq, physics.cq)

    transfer = 1.0
    bandwidths = params.formants.resolved_bandwidths()
    for center, bw in zip(params.formants.centers, bandwidths):
        fn = center * scale
        if fn <= 0 or not math.isfinite(fn):
            continue
        transfer *= resonance(freq, fn, bw)
    env = 20.0 * math.log10(transfer + _EPS)

    if params.singers_formant:
        env += gaussian_peak_db(freq, 3000.0 * math.sqrt(scale), SINGERS_GAIN_DB, SINGERS_Q)
    boost = params.harmonic_boost
    if boost.active:
        env += gaussian_peak_db(freq, boost.freq, boost.gain, boost.q)

    total = tilt + env

    cutoff = thickness_cutoff(physics.thickness)
    if freq > cutoff:
        total -= math.log2(freq / cutoff) * ROLLOFF_DB_PER_OCTAVE

    return total


def display_value(db: float) -> float:
    """Map an envelope level onto the 0..100 display scale."""
    return max(DISPLAY_MIN, min(DISPLAY_MAX, db + DISPLAY_OFFSET_DB))


@dataclass
class SpectrumPoint:
    freq: float
    envelope: float
    harmonic: float
    user: float


def sweep_frequencies(start=SWEEP_START_HZ, stop=SWEEP_STOP_HZ, step=SWEEP_STEP_HZ) -> np.ndarray:
    return np.arange(start, stop + step / 2, step)


def spectrum_curve(
    params: SynthesisParameters,
    user_spectrum: Optional[Sequence[float]] = None,
    step: float = SWEEP_STEP_HZ,
    max_freq: float = SWEEP_STOP_HZ,
) -> List[SpectrumPoint]:
    """
    Display curve: clipped envelope, harmonic spikes at multiples of the
    pitch, and an optional microphone spectrum mapped onto the same axis.
    """
    pitch = float(params.pitch) if params.pitch and params.pitch > 0 else None
    n_user = len(user_spectrum) if user_spectrum else 0

    points = []
    for f in sweep_frequencies(SWEEP_START_HZ, max_freq, step):
        f = float(f)
        env = display_value(envelope_db(f, params))

        harmonic = 0.0
        if pitch is not None:
            n = f / pitch
            if abs(n - round(n)) < step / pitch:
                harmonic = env
                if harmonic > 10:
                    harmonic += 5

        user = 0.0
        if n_user:
            idx = int(math.floor(f / max_freq * n_user))
            if 0 <= idx < n_user:
                user = float(user_spectrum[idx]) * USER_OVERLAY_SCALE

        points.append(SpectrumPoint(f, env, harmonic, user))
    return points


def envelope_curve(params: SynthesisParameters, freqs) -> np.ndarray:
    """Unclipped envelope over an array of frequencies."""
    return np.array([envelope_db(float(f), params) for f in freqs])
