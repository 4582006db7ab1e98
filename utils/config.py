# utils/config.py
"""
Configuration constants and runtime audio settings for the vocal lab.

Module constants are the defaults; an optional JSON file can override the
fields of AudioConfig (see load_config).
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# Audio I/O
# ---------------------------------------------------------
DEFAULT_SAMPLE_RATE = 48000
RENDER_QUANTUM = 128          # frames per internal render step
STREAM_BLOCKSIZE = 512        # frames per sounddevice callback

# ---------------------------------------------------------
# Synthesis
# ---------------------------------------------------------
GLIDE_TIME_S = 0.05           # setTargetAtTime-style time constant
REFERENCE_TRACT_CM = 17.5
MIN_TRACT_CM = 10.0
WAVETABLE_HARMONICS = 512
NOISE_BUFFER_S = 2.0

# ---------------------------------------------------------
# Analysis
# ---------------------------------------------------------
FFT_SIZE = 2048               # time-domain frame length
ANALYSIS_RATE = 11025         # LPC runs at this rate
LPC_ORDER = 12
PRE_EMPHASIS = 0.95
NOISE_GATE_RMS = 0.02
TICK_INTERVAL_S = 0.05        # ~20 Hz analysis loop
SPECTRUM_POINTS = 60
SPECTRUM_MAX_HZ = 5500.0
SPECTRUM_SMOOTHING = 0.5


@dataclass
class AudioConfig:
    """Runtime audio configuration."""
    sample_rate: int = DEFAULT_SAMPLE_RATE
    blocksize: int = STREAM_BLOCKSIZE
    output_device: Optional[int] = None
    input_device: Optional[int] = None
    fft_size: int = FFT_SIZE
    analysis_rate: Optional[int] = ANALYSIS_RATE
    lpc_order: int = LPC_ORDER
    noise_gate: float = NOISE_GATE_RMS
    tick_interval_s: float = TICK_INTERVAL_S


def load_config(path: Optional[str]) -> AudioConfig:
    """
    Load an AudioConfig from a JSON file of the form {"audio": {...}}.
    A missing path or file yields the defaults.
    """
    cfg = AudioConfig()
    if not path or not os.path.exists(path):
        return cfg

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    audio = data.get("audio", {}) if isinstance(data, dict) else {}
    known = {f.name for f in fields(AudioConfig)}
    for key, value in audio.items():
        if key not in known:
            logger.warning("Ignoring unknown audio config key %r", key)
            continue
        setattr(cfg, key, value)
    return cfg


def save_config(cfg: AudioConfig, path: str) -> None:
    """Save configuration to JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"audio": asdict(cfg)}, f, indent=2)
