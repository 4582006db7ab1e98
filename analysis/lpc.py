import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from utils.config import LPC_ORDER, PRE_EMPHASIS

logger = logging.getLogger(__name__)


@dataclass
class LPCConfig:
    order: int = LPC_ORDER
    pre_emphasis: float = PRE_EMPHASIS
    scan_start: float = 200.0
    scan_stop: float = 4000.0
    scan_step: float = 25.0


@dataclass
class LPCResult:
    f1: float
    f2: float
    peaks: List[float] = field(default_factory=list)
    coefficients: Optional[NDArray[np.float64]] = None


def prepare_frame(frame, pre_emphasis: float = PRE_EMPHASIS) -> NDArray[np.float64]:
    """
    Pre-emphasis x[i] - k*x[i-1] (first sample untouched) followed by a
    Hamming window 0.54 - 0.46*cos(2*pi*i/(N-1)).
    """
    x = np.asarray(frame, dtype=float).flatten()
    n = x.size
    emphasized = x.copy()
    emphasized[1:] = x[1:] - pre_emphasis * x[:-1]
    if n < 2:
        return emphasized
    i = np.arange(n)
    window = 0.54 - 0.46 * np.cos(2.0 * np.pi * i / (n - 1))
    return emphasized * window


def autocorrelation(x: NDArray[np.float64], order: int) -> NDArray[np.float64]:
    """R[k] = sum_i x[i]*x[i+k] for k = 0..order."""
    n = x.size
    return np.array([np.dot(x[:n - k], x[k:]) for k in range(order + 1)])


def levinson_durbin(r: NDArray[np.float64], order: int) -> Optional[NDArray[np.float64]]:
    """
    Levinson-Durbin recursion on autocorrelation r[0..order].

    Returns predictor coefficients a[1..order] (x[n] ~ sum a[j]*x[n-j]),
    or None when the prediction error is not strictly positive.
    """
    if r.size < order + 1:
        return None

    a = np.zeros(order + 1, dtype=float)
    e = float(r[0])

    for k in range(1, order + 1):
        if not e > 0:
            return None
        acc = np.dot(a[1:k], r[k - 1:0:-1]) if k > 1 else 0.0
        lam = (r[k] - acc) / e

        a_prev = a.copy()
        a[k] = lam
        a[1:k] = a_prev[1:k] - lam * a_prev[k - 1:0:-1]
        e *= (1.0 - lam * lam)

    return a[1:]


def inverse_filter(a: NDArray[np.float64]) -> NDArray[np.float64]:
    """Coefficients c[0..p] of A(z) = 1 + sum c[k] z^-k, i.e. [1, -a1, ..., -ap]."""
    return np.concatenate(([1.0], -np.asarray(a, dtype=float)))


def lpc_magnitude_response(a, sr: float, freqs) -> NDArray[np.float64]:
    """|1 / A(e^jw)| at each frequency, by direct summation."""
    c = inverse_filter(a)
    k = np.arange(c.size)
    w = 2.0 * np.pi * np.asarray(freqs, dtype=float) / sr
    A = np.exp(-1j * np.outer(w, k)) @ c
    return 1.0 / np.maximum(np.abs(A), 1e-12)


def find_local_maxima(freqs, mags) -> List[float]:
    """Frequencies whose magnitude is strictly greater than both neighbours."""
    mags = np.asarray(mags)
    if mags.size < 3:
        return []
    inner = (mags[1:-1] > mags[:-2]) & (mags[1:-1] > mags[2:])
    idx = np.nonzero(inner)[0] + 1
    return sorted(float(freqs[i]) for i in idx)


def scan_frequencies(config: LPCConfig) -> NDArray[np.float64]:
    return np.arange(config.scan_start, config.scan_stop + config.scan_step / 2, config.scan_step)


def estimate_formants(frame, sr: float, config: Optional[LPCConfig] = None) -> Optional[LPCResult]:
    """
    LPC formant estimate for one frame.

    Returns the two lowest spectral peaks of the all-pole model in the
    scan band, or None when the frame is degenerate or fewer than two
    peaks are found.
    """
    cfg = config or LPCConfig()
    x = np.asarray(frame, dtype=float).flatten()
    if x.size <= cfg.order or sr <= 0 or not np.all(np.isfinite(x)):
        return None

    y = prepare_frame(x, cfg.pre_emphasis)
    r = autocorrelation(y, cfg.order)
    a = levinson_durbin(r, cfg.order)
    if a is None:
        logger.debug("Levinson-Durbin degenerate (r0=%.3g)", r[0])
        return None

    freqs = scan_frequencies(cfg)
    mags = lpc_magnitude_response(a, sr, freqs)
    peaks = find_local_maxima(freqs, mags)
    if len(peaks) < 2:
        return None

    return LPCResult(f1=peaks[0], f2=peaks[1], peaks=peaks, coefficients=a)
