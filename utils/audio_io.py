# utils/audio_io.py
"""
sounddevice stream factories used by the synthesizer and the analyzer.

Both return an unstarted stream; the owner calls start()/stop()/close().
sounddevice is imported on first use: PortAudio is only needed once a live
stream is opened.
"""

import logging

from utils.config import AudioConfig

logger = logging.getLogger(__name__)


def open_output_stream(config: AudioConfig, callback):
    import sounddevice as sd

    logger.debug(
        "Opening output stream sr=%d blocksize=%d device=%s",
        config.sample_rate, config.blocksize, config.output_device,
    )
    return sd.OutputStream(
        samplerate=config.sample_rate,
        blocksize=config.blocksize,
        channels=1,
        dtype="float32",
        device=config.output_device,
        callback=callback,
    )


def open_input_stream(config: AudioConfig, callback):
    """Raw mono capture: PortAudio applies no echo cancellation, noise suppression or AGC."""
    import sounddevice as sd

    logger.debug(
        "Opening input stream sr=%d blocksize=%d device=%s",
        config.sample_rate, config.blocksize, config.input_device,
    )
    return sd.InputStream(
        samplerate=config.sample_rate,
        blocksize=config.blocksize,
        channels=1,
        dtype="float32",
        device=config.input_device,
        callback=callback,
    )
