# analysis/spectrum.py
"""
Rolling capture buffer with analyser-style outputs: the latest
time-domain frame and a smoothed, byte-scaled magnitude spectrum.
"""

import threading

import numpy as np

from utils.config import DEFAULT_SAMPLE_RATE, FFT_SIZE, SPECTRUM_SMOOTHING


class SpectrumAnalyser:
    """
    Byte spectrum: Blackman window, |FFT|/N, exponential smoothing across
    calls, then min_db..max_db mapped linearly onto 0..255.
    """

    def __init__(self, fft_size: int = FFT_SIZE, sample_rate: int = DEFAULT_SAMPLE_RATE,
                 smoothing: float = SPECTRUM_SMOOTHING,
                 min_db: float = -100.0, max_db: float = -30.0):
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError("fft_size must be a power of two >= 32")
        self.fft_size = fft_size
        self.sample_rate = sample_rate
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db
        self._window = np.blackman(fft_size)
        self._lock = threading.Lock()
        self.reset()

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        with self._lock:
            self._buffer = np.zeros(self.fft_size)
            self._smoothed = np.zeros(self.frequency_bin_count)

    def push(self, samples) -> None:
        """Append captured samples, keeping the newest fft_size."""
        x = np.asarray(samples, dtype=float).flatten()
        if x.size == 0:
            return
        with self._lock:
            if x.size >= self.fft_size:
                self._buffer = x[-self.fft_size:].copy()
            else:
                self._buffer = np.concatenate((self._buffer[x.size:], x))

    def time_domain(self) -> np.ndarray:
        with self._lock:
            return self._buffer.copy()

    def byte_frequency_data(self) -> np.ndarray:
        with self._lock:
            frame = self._buffer.copy()
            mags = np.abs(np.fft.rfft(frame * self._window))[:self.frequency_bin_count] / self.fft_size
            self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * mags
            smoothed = self._smoothed.copy()

        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(smoothed)
        scaled = 255.0 / (self.max_db - self.min_db) * (db - self.min_db)
        scaled = np.nan_to_num(scaled, nan=0.0, neginf=0.0, posinf=255.0)
        return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)
