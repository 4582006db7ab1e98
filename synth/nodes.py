# synth/nodes.py
"""
Block-processing building blocks for the voice graph: glided parameters,
cookbook biquads, wavetable oscillators, looping noise, gain and a
feed-forward compressor.
"""

import math
from typing import Optional

import numpy as np
from scipy.signal import lfilter

from synth.wavetable import PeriodicWave, lookup
from utils.config import GLIDE_TIME_S, NOISE_BUFFER_S
from utils.music_utils import cents_to_ratio

MAX_PEAK_GAIN_DB = 40.0


# ---------------------------------------------------------
# Parameters
# ---------------------------------------------------------
class GlideParam:
    """
    A parameter that approaches its target exponentially
    (value -> target with time constant `time_constant`).
    """

    def __init__(self, value: float, sample_rate: int, time_constant: float = GLIDE_TIME_S):
        self.value = float(value)
        self.target = float(value)
        self._coef = math.exp(-1.0 / (time_constant * sample_rate))

    def set_target(self, target) -> bool:
        """Schedule a glide; non-finite targets are refused."""
        try:
            target = float(target)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(target):
            return False
        self.target = target
        return True

    def set_value(self, value: float) -> None:
        self.value = self.target = float(value)

    def _settled(self) -> bool:
        return abs(self.value - self.target) <= 1e-9 * max(1.0, abs(self.target))

    def block(self, n: int) -> np.ndarray:
        """Audio-rate values for the next n samples."""
        if self._settled():
            self.value = self.target
            return np.full(n, self.value)
        decay = self._coef ** np.arange(1, n + 1)
        out = self.target + (self.value - self.target) * decay
        self.value = float(out[-1])
        return out

    def advance(self, n: int) -> float:
        """Control-rate value for a block of n samples (value at block start)."""
        current = self.value
        if self._settled():
            self.value = self.target
        else:
            self.value = self.target + (self.value - self.target) * self._coef ** n
        return current


# ---------------------------------------------------------
# Filters
# ---------------------------------------------------------
def biquad_coefficients(kind: str, freq: float, q: float, gain_db: float, sample_rate: int):
    """
    Audio-EQ-cookbook coefficients (b, a), normalised by a0.

    lowpass: q is resonance in dB. bandpass: constant 0 dB peak.
    peaking: gain_db at freq, limited to +/- MAX_PEAK_GAIN_DB.
    """
    nyquist = sample_rate / 2.0
    freq = min(max(freq, 1.0), nyquist * 0.999)
    w0 = 2.0 * math.pi * freq / sample_rate
    cos_w0 = math.cos(w0)
    sin_w0 = math.sin(w0)

    if kind == "lowpass":
        alpha = sin_w0 / (2.0 * 10.0 ** (q / 20.0))
        b = [(1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2]
        a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    elif kind == "bandpass":
        alpha = sin_w0 / (2.0 * max(q, 1e-4))
        b = [alpha, 0.0, -alpha]
        a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    elif kind == "peaking":
        gain_db = min(max(gain_db, -MAX_PEAK_GAIN_DB), MAX_PEAK_GAIN_DB)
        A = 10.0 ** (gain_db / 40.0)
        alpha = sin_w0 / (2.0 * max(q, 1e-4))
        b = [1 + alpha * A, -2 * cos_w0, 1 - alpha * A]
        a = [1 + alpha / A, -2 * cos_w0, 1 - alpha / A]
    else:
        raise ValueError(f"unknown biquad type {kind!r}")

    a0 = a[0]
    return np.array(b) / a0, np.array(a) / a0


class Biquad:
    """Second-order filter with glided frequency / Q / gain."""

    def __init__(self, kind: str, sample_rate: int, frequency: float = 350.0,
                 q: float = 1.0, gain: float = 0.0):
        biquad_coefficients(kind, frequency, q, gain, sample_rate)
        self.kind = kind
        self.sample_rate = sample_rate
        self.frequency = GlideParam(frequency, sample_rate)
        self.q = GlideParam(q, sample_rate)
        self.gain = GlideParam(gain, sample_rate)
        self._zi = np.zeros(2)

    def coefficients(self):
        return biquad_coefficients(
            self.kind, self.frequency.value, self.q.value, self.gain.value, self.sample_rate
        )

    def process(self, x: np.ndarray) -> np.ndarray:
        n = len(x)
        f = self.frequency.advance(n)
        q = self.q.advance(n)
        g = self.gain.advance(n)
        b, a = biquad_coefficients(self.kind, f, q, g, self.sample_rate)
        y, self._zi = lfilter(b, a, x, zi=self._zi)
        return y

    def response_db(self, freqs) -> np.ndarray:
        """Magnitude response (dB) at the current parameter values."""
        b, a = self.coefficients()
        z = np.exp(-1j * 2.0 * np.pi * np.asarray(freqs, dtype=float) / self.sample_rate)
        h = (b[0] + b[1] * z + b[2] * z * z) / (a[0] + a[1] * z + a[2] * z * z)
        return 20.0 * np.log10(np.abs(h) + 1e-12)

    def reset(self) -> None:
        self._zi = np.zeros(2)


class GainStage:
    def __init__(self, sample_rate: int, gain: float = 1.0):
        self.gain = GlideParam(gain, sample_rate)

    def process(self, x: np.ndarray) -> np.ndarray:
        return x * self.gain.block(len(x))


# ---------------------------------------------------------
# Sources
# ---------------------------------------------------------
class WavetableOscillator:
    """Phase-accumulating oscillator reading a band-limited PeriodicWave."""

    def __init__(self, wave: PeriodicWave, sample_rate: int, frequency: float,
                 detune_cents: float = 0.0):
        self.wave = wave
        self.sample_rate = sample_rate
        self.frequency = GlideParam(frequency, sample_rate)
        self.detune_cents = detune_cents
        self._ratio = cents_to_ratio(detune_cents)
        self.phase = 0.0

    def set_periodic_wave(self, wave: PeriodicWave) -> None:
        self.wave = wave

    def process(self, n: int, modulation: Optional[np.ndarray] = None) -> np.ndarray:
        freq = self.frequency.block(n)
        if modulation is not None:
            freq = freq + modulation
        freq = freq * self._ratio

        incr = freq / self.sample_rate
        phases = self.phase + np.cumsum(incr) - incr
        self.phase = float((self.phase + incr.sum()) % 1.0)

        table = self.wave.table_for(float(np.max(np.abs(freq))), self.sample_rate)
        return lookup(table, np.mod(phases, 1.0))


class NoiseSource:
    """Loops a fixed buffer of uniform white noise in [-1, 1)."""

    def __init__(self, sample_rate: int, seconds: float = NOISE_BUFFER_S, rng=None):
        rng = rng if rng is not None else np.random.default_rng()
        self.buffer = rng.uniform(-1.0, 1.0, max(1, int(sample_rate * seconds)))
        self.pos = 0

    def process(self, n: int) -> np.ndarray:
        idx = (self.pos + np.arange(n)) % self.buffer.size
        self.pos = int((self.pos + n) % self.buffer.size)
        return self.buffer[idx]


# ---------------------------------------------------------
# Dynamics
# ---------------------------------------------------------
class Compressor:
    """
    Feed-forward peak compressor with a soft knee.

    Gain reduction is computed once per `division` samples, smoothed with
    separate attack/release time constants and interpolated across the
    division. Makeup gain is (1 / full-range gain) ** 0.6.
    """

    def __init__(self, sample_rate: int, threshold: float = -24.0, knee: float = 30.0,
                 ratio: float = 12.0, attack: float = 0.003, release: float = 0.25,
                 division: int = 32):
        self.sample_rate = sample_rate
        self.threshold = threshold
        self.knee = knee
        self.ratio = ratio
        self.attack = attack
        self.release = release
        self.division = division
        self.reduction_db = 0.0
        self._attack_coef = math.exp(-division / (attack * sample_rate))
        self._release_coef = math.exp(-division / (release * sample_rate))
        full_range_db = self.static_curve(0.0)
        self.makeup_db = -0.6 * full_range_db

    def static_curve(self, level_db: float) -> float:
        """Gain (dB, <= 0) applied to a steady input at level_db."""
        over = level_db - self.threshold
        if 2 * over < -self.knee:
            out = level_db
        elif 2 * abs(over) <= self.knee:
            out = level_db + (1.0 / self.ratio - 1.0) * (over + self.knee / 2) ** 2 / (2 * self.knee)
        else:
            out = self.threshold + over / self.ratio
        return out - level_db

    def process(self, x: np.ndarray) -> np.ndarray:
        y = np.empty_like(x)
        start = 0
        while start < len(x):
            stop = min(start + self.division, len(x))
            chunk = x[start:stop]
            peak = float(np.max(np.abs(chunk))) if chunk.size else 0.0
            level_db = 20.0 * math.log10(peak) if peak > 1e-6 else -120.0
            target = self.static_curve(level_db)

            coef = self._attack_coef if target < self.reduction_db else self._release_coef
            previous = self.reduction_db
            self.reduction_db = coef * self.reduction_db + (1.0 - coef) * target

            ramp_db = np.linspace(previous, self.reduction_db, stop - start, endpoint=False)
            y[start:stop] = chunk * 10.0 ** ((ramp_db + self.makeup_db) / 20.0)
            start = stop
        return y
