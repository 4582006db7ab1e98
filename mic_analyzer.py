# mic_analyzer.py
import logging
import threading
from typing import Any, Callable, Optional

import numpy as np

from analysis.engine import FormantAnalysisEngine
from analysis.model import AnalyzedFormants
from analysis.spectrum import SpectrumAnalyser
from utils.audio_io import open_input_stream
from utils.config import SPECTRUM_SMOOTHING, AudioConfig

logger = logging.getLogger(__name__)


class MicAccessError(RuntimeError):
    """The microphone could not be opened (denied, missing or busy)."""


class MicAnalyzer:
    """Real-time microphone analyzer that estimates formants and posts results at ~20 Hz."""

    def __init__(
        self,
        config: Optional[AudioConfig] = None,
        engine: Optional[FormantAnalysisEngine] = None,
        stream_factory=open_input_stream,
    ) -> None:
        self.config = config or AudioConfig()
        self.engine = engine or FormantAnalysisEngine(
            sample_rate=self.config.sample_rate,
            analysis_rate=self.config.analysis_rate,
            order=self.config.lpc_order,
            noise_gate=self.config.noise_gate,
        )
        self.analyser = SpectrumAnalyser(
            fft_size=self.config.fft_size,
            sample_rate=self.config.sample_rate,
            smoothing=SPECTRUM_SMOOTHING,
        )
        self._stream_factory = stream_factory
        self.stream = None
        self.callback: Optional[Callable[[AnalyzedFormants], Any]] = None

        self._worker_stop = threading.Event()
        self._worker: Optional[threading.Thread] = None

        # running flag for diagnostics
        self.is_running = False

    # -------------------------
    # Audio callback (fast)
    # -------------------------
    def audio_callback(self, indata: np.ndarray, _frames: int, _time_info: Any, status: Any) -> None:
        """Sounddevice callback: feed the newest mono samples to the analyser."""
        if status:
            logger.debug("input stream status: %s", status)
        self.analyser.push(np.asarray(indata)[:, 0])

    # -------------------------
    # Analysis tick
    # -------------------------
    def tick(self) -> AnalyzedFormants:
        """Analyse the current frame and post the result to the callback."""
        frame = self.analyser.time_domain()
        freq_bytes = self.analyser.byte_frequency_data()
        result = self.engine.process_frame(frame, freq_bytes)

        callback = self.callback
        if callback is not None:
            try:
                callback(result)
            except Exception:  # noqa: BLE001
                logger.exception("MicAnalyzer result callback failed")
        return result

    def _processing_worker(self) -> None:
        interval = float(self.config.tick_interval_s)
        while not self._worker_stop.wait(interval):
            try:
                self.tick()
            except Exception:  # noqa: BLE001
                logger.exception("MicAnalyzer tick failed")

    # -------------------------
    # Public control
    # -------------------------
    def start(self, callback: Callable[[AnalyzedFormants], Any]) -> None:
        """Open the microphone and begin posting AnalyzedFormants to callback."""
        if self.is_running:
            self.stop()

        self.callback = callback
        try:
            self.stream = self._stream_factory(self.config, self.audio_callback)
            self.stream.start()
        except Exception as exc:
            logger.exception("Failed to open microphone")
            self.stop()
            raise MicAccessError(f"Microphone unavailable: {exc}") from exc

        self._worker_stop.clear()
        self._worker = threading.Thread(target=self._processing_worker, daemon=True)
        self._worker.start()
        self.is_running = True
        logger.info(
            "MicAnalyzer listening at %d Hz, frame %d",
            self.config.sample_rate, self.config.fft_size,
        )

    def stop(self, _event: Optional[Any] = None) -> None:
        """Stop the analysis loop and release the microphone. Safe in any state."""
        if self._worker is not None:
            self._worker_stop.set()
            if self._worker is not threading.current_thread():
                self._worker.join(timeout=1.0)
                if self._worker.is_alive():
                    logger.warning("MicAnalyzer worker did not exit within 1 s")
            self._worker = None
            logger.info("MicAnalyzer worker stopped")

        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                if getattr(stream, "active", True):
                    stream.stop()
            except Exception:  # noqa: BLE001
                logger.debug("input stream already stopped", exc_info=True)
            try:
                stream.close()
            except Exception:  # noqa: BLE001
                logger.debug("input stream already closed", exc_info=True)
            logger.info("MicAnalyzer audio stream stopped")

        self.analyser.reset()
        self.callback = None
        self.is_running = False
