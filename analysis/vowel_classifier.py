# analysis.vowel_classifier.py
"""
Closest preset vowel to a measured or target formant pair.

Distance is weighted toward F1: sqrt(dF1^2 + 0.5*dF2^2 [+ 0.3*dF3^2]).
"""

import numpy as np

from analysis.vowel_data import VOWELS


def classify_vowel(f1, f2, f3=None, voice="male"):
    """Return (symbol, distance) of the nearest preset, or (None, inf)."""
    if f1 is None or f2 is None or not np.isfinite(f1) or not np.isfinite(f2):
        return None, float("inf")
    if f1 <= 0 or f2 <= 0:
        return None, float("inf")

    best, best_dist = None, float("inf")
    for symbol, definition in VOWELS.items():
        ref = getattr(definition, voice)
        d1 = ref.f1 - f1
        d2 = ref.f2 - f2
        if f3:
            d3 = ref.f3 - f3
            dist = np.sqrt(d1 * d1 + d2 * d2 * 0.5 + d3 * d3 * 0.3)
        else:
            dist = np.sqrt(d1 * d1 + d2 * d2 * 0.5)
        if dist < best_dist:
            best, best_dist = symbol, float(dist)

    return best, best_dist
