from __future__ import annotations

import logging
from math import gcd
from typing import Optional

import numpy as np
from scipy.signal import resample_poly

from analysis.lpc import LPCConfig, estimate_formants
from analysis.model import AnalyzedFormants
from utils.config import (
    ANALYSIS_RATE,
    DEFAULT_SAMPLE_RATE,
    LPC_ORDER,
    NOISE_GATE_RMS,
    SPECTRUM_MAX_HZ,
    SPECTRUM_POINTS,
)

logger = logging.getLogger(__name__)

SPECTRUM_BOOST = 4.0


def frame_rms(frame) -> float:
    x = np.asarray(frame, dtype=float)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def downsample_spectrum(freq_bytes, sample_rate: float,
                        points: int = SPECTRUM_POINTS,
                        max_hz: float = SPECTRUM_MAX_HZ) -> list[float]:
    """
    Pick every step-th byte bin below max_hz (about `points` values),
    scaled to 0..SPECTRUM_BOOST for display.
    """
    if freq_bytes is None:
        return []
    data = np.asarray(freq_bytes, dtype=float)
    bins = data.size
    if bins == 0:
        return []
    nyquist = sample_rate / 2.0
    end = min(bins, int(np.floor(bins * (max_hz / nyquist))))
    step = max(1, end // points)
    return [float(v) / 255.0 * SPECTRUM_BOOST for v in data[0:end:step]]


def resample_frame(frame: np.ndarray, sr: int, target: Optional[int]) -> tuple[np.ndarray, int]:
    if not target or target >= sr:
        return frame, sr
    g = gcd(int(sr), int(target))
    return resample_poly(frame, int(target) // g, int(sr) // g), int(target)


class FormantAnalysisEngine:
    """
    Per-tick analysis: noise gate, LPC formants on the (resampled) time
    frame, and a small display spectrum from the byte magnitude frame.
    """

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE,
                 analysis_rate: Optional[int] = ANALYSIS_RATE,
                 order: int = LPC_ORDER,
                 noise_gate: float = NOISE_GATE_RMS):
        self.sample_rate = int(sample_rate)
        self.analysis_rate = analysis_rate
        self.lpc_config = LPCConfig(order=order)
        self.noise_gate = noise_gate
        self._latest: Optional[AnalyzedFormants] = None

    def get_latest(self) -> Optional[AnalyzedFormants]:
        return self._latest

    def process_frame(self, signal, freq_bytes=None) -> AnalyzedFormants:
        x = np.asarray(signal, dtype=float).flatten() if signal is not None else np.zeros(0)
        if x.size == 0 or not np.all(np.isfinite(x)):
            result = AnalyzedFormants.silent()
            self._latest = result
            return result

        rms = frame_rms(x)
        if rms < self.noise_gate:
            result = AnalyzedFormants.silent()
            self._latest = result
            return result

        spectrum = downsample_spectrum(freq_bytes, self.sample_rate)

        y, sr = resample_frame(x, self.sample_rate, self.analysis_rate)
        lpc = estimate_formants(y, sr, self.lpc_config)

        if lpc is None:
            result = AnalyzedFormants(0.0, 0.0, rms, spectrum)
        else:
            result = AnalyzedFormants(lpc.f1, lpc.f2, rms, spectrum)
            logger.debug("LPC f1=%.0f f2=%.0f rms=%.3f", lpc.f1, lpc.f2, rms)

        self._latest = result
        return result
