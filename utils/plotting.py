# utils/plotting.py
"""Static rendering of the envelope/harmonic display curve to an image file."""

import logging

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

logger = logging.getLogger(__name__)


def plot_spectrum_curve(points, path, title=None, formants=None):
    """
    Draw envelope (line), harmonics (stems) and, if present, the user
    overlay from a list of SpectrumPoint; save to `path`.
    """
    freqs = [p.freq for p in points]
    envelope = [p.envelope for p in points]
    harmonics = [(p.freq, p.harmonic) for p in points if p.harmonic > 0]
    user = [p.user for p in points]

    fig, ax = plt.subplots(figsize=(9, 4))
    try:
        ax.plot(freqs, envelope, color="tab:blue", label="envelope")
        if harmonics:
            hx, hy = zip(*harmonics)
            ax.vlines(hx, 0, hy, color="tab:orange", linewidth=0.8, label="harmonics")
        if any(u > 0 for u in user):
            ax.plot(freqs, user, color="tab:green", alpha=0.7, label="microphone")
        for f in formants or ():
            ax.axvline(f, color="gray", linestyle="--", linewidth=0.8)

        ax.set_xlim(0, freqs[-1] if freqs else 5500)
        ax.set_ylim(0, 110)
        ax.set_xlabel("Frequency (Hz)")
        ax.set_ylabel("Level")
        if title:
            ax.set_title(title)
        ax.grid(True, alpha=0.3)
        ax.legend(loc="upper right")
        fig.tight_layout()
        fig.savefig(path)
    finally:
        plt.close(fig)
    logger.info("Saved spectrum plot to %s", path)
    return path
