# synth/wavetable.py
"""
Band-limited periodic waves built from Fourier coefficients.

A PeriodicWave keeps one table per octave of harmonic content; the
oscillator picks the richest table whose top harmonic stays below Nyquist.
"""

from functools import lru_cache

import numpy as np

TABLE_SIZE = 4096


class PeriodicWave:
    """
    x(t) = sum_n real[n]*cos(2*pi*n*t) + imag[n]*sin(2*pi*n*t), n >= 1.

    The DC term is always dropped. With normalize=True every table is scaled
    by the peak of the full-bandwidth table.
    """

    def __init__(self, real, imag, normalize: bool = True, table_size: int = TABLE_SIZE):
        real = np.asarray(real, dtype=float)
        imag = np.asarray(imag, dtype=float)
        if real.shape != imag.shape or real.ndim != 1 or real.size < 2:
            raise ValueError("real and imag must be 1-D arrays of equal length >= 2")
        if not (np.all(np.isfinite(real)) and np.all(np.isfinite(imag))):
            raise ValueError("wave coefficients must be finite")

        n_harm = min(real.size - 1, table_size // 2 - 1)
        self.num_harmonics = n_harm
        self.table_size = table_size

        limits = []
        k = 1
        while k < n_harm:
            limits.append(k)
            k *= 2
        limits.append(n_harm)
        self._limits = np.array(limits)

        spectrum = np.zeros(table_size // 2 + 1, dtype=complex)
        spectrum[1:n_harm + 1] = (table_size / 2.0) * (real[1:n_harm + 1] - 1j * imag[1:n_harm + 1])

        tables = []
        for limit in limits:
            partial = spectrum.copy()
            partial[limit + 1:] = 0.0
            tables.append(np.fft.irfft(partial, table_size))

        scale = 1.0
        if normalize:
            peak = float(np.max(np.abs(tables[-1])))
            if peak > 0:
                scale = 1.0 / peak
        # closing sample makes linear interpolation wrap without a modulo
        self._tables = [np.append(t * scale, t[0] * scale) for t in tables]

    def table_for(self, max_freq: float, sample_rate: float) -> np.ndarray:
        """Richest table whose highest harmonic stays below Nyquist at max_freq."""
        if max_freq <= 0:
            return self._tables[-1]
        allowed = int((sample_rate / 2.0) // max_freq)
        idx = int(np.searchsorted(self._limits, allowed, side="right")) - 1
        return self._tables[max(0, idx)]

    def full_table(self) -> np.ndarray:
        return self._tables[-1][:-1]


def lookup(table: np.ndarray, phases: np.ndarray) -> np.ndarray:
    """Linear-interpolated read of a wrapped table at phases in [0, 1)."""
    size = table.size - 1
    pos = phases * size
    idx = np.minimum(pos.astype(np.int64), size - 1)
    frac = pos - idx
    return table[idx] + frac * (table[idx + 1] - table[idx])


@lru_cache(maxsize=None)
def builtin_wave(kind: str, harmonics: int = 512) -> PeriodicWave:
    """Standard oscillator shapes: 'sine', 'sawtooth', 'triangle'."""
    n = np.arange(harmonics, dtype=float)
    real = np.zeros(harmonics)
    imag = np.zeros(harmonics)
    if kind == "sine":
        imag[1] = 1.0
    elif kind == "sawtooth":
        imag[1:] = 2.0 / (np.pi * n[1:]) * np.where(n[1:] % 2 == 1, 1.0, -1.0)
    elif kind == "triangle":
        odd = (n % 2 == 1)
        signs = np.where(((n - 1) // 2) % 2 == 0, 1.0, -1.0)
        imag[odd] = 8.0 / (np.pi * n[odd]) ** 2 * signs[odd]
    else:
        raise ValueError(f"unknown oscillator type {kind!r}")
    return PeriodicWave(real, imag)
