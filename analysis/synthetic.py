import numpy as np
from scipy.signal import lfilter


def _resonator(freq, bw, sr):
    """Two-pole resonator coefficients (b, a) for one formant."""
    r = np.exp(-np.pi * bw / sr)
    theta = 2.0 * np.pi * freq / sr
    a = [1.0, -2.0 * r * np.cos(theta), r * r]
    b = [1.0 - r]
    return b, a


def synthetic_vowel(f1, f2, sr=11025, dur=0.2, f0=120.0, bandwidths=(80.0, 100.0)):
    """
    Generate a vowel-like signal with two formants.

    An impulse train at f0 is passed through resonators at f1 and f2 in
    cascade. The result is peak-normalised to 0.5.

    Parameters
    ----------
    f1, f2 : float
        Formant frequencies in Hz.
    sr : int
        Sample rate.
    dur : float
        Duration in seconds.
    f0 : float
        Pitch of the impulse train in Hz.

    Returns
    -------
    np.ndarray
        The synthetic audio signal.
    """
    n = int(sr * dur)
    sig = np.zeros(n)
    period = max(1, int(round(sr / f0)))
    sig[::period] = 1.0

    for freq, bw in zip((f1, f2), bandwidths):
        b, a = _resonator(freq, bw, sr)
        sig = lfilter(b, a, sig)

    peak = np.max(np.abs(sig))
    if peak > 0:
        sig *= 0.5 / peak
    return sig


def all_pole_noise(coefficients, n=4096, seed=0):
    """
    White noise shaped by 1 / (1 - sum a_k z^-k).

    `coefficients` are predictor coefficients a_1..a_p, so Levinson-Durbin
    on the output should recover them approximately.
    """
    rng = np.random.default_rng(seed)
    a = np.concatenate(([1.0], -np.asarray(coefficients, dtype=float)))
    return lfilter([1.0], a, rng.standard_normal(n))
