# synth/engine.py
"""
Real-time voice synthesizer.

Sources (summed):
  main     glottal wavetable at F0            level 0.9
  chorus   two sawtooths at F0 +/- 3 cents    level 0.5 each
  sub      triangle at F0/2                   level 0.7
  breath   lowpassed noise, level (1 - CQ) * 0.2

Every pitched source gets vibrato (5.5 Hz, +/-3 Hz) and jitter
(50 Hz lowpassed noise, +/-8 Hz) added to its frequency.

Chain: tilt lowpass -> F1 -> F2 -> F3 bandpass -> singer's peaking ->
boost peaking -> master gain -> compressor -> output.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from analysis.model import SynthesisParameters, finite, finite_positive
from synth.glottal import clamp_cq, glottal_wave, sustain_exponent, voicing_exponent
from synth.graph import SignalChain, Stage
from synth.nodes import (
    Biquad,
    Compressor,
    GainStage,
    MAX_PEAK_GAIN_DB,
    GlideParam,
    NoiseSource,
    WavetableOscillator,
)
from synth.wavetable import builtin_wave
from utils.audio_io import open_output_stream
from utils.config import RENDER_QUANTUM, AudioConfig

logger = logging.getLogger(__name__)

VIBRATO_RATE_HZ = 5.5
VIBRATO_DEPTH_HZ = 3.0
JITTER_DEPTH_HZ = 8.0
JITTER_CUTOFF_HZ = 50.0
BREATH_CUTOFF_HZ = 1000.0
CHORUS_DETUNE_CENTS = 3.0
SINGERS_GAIN_DB = 8.0
SINGERS_Q = 1.5
MASTER_SCALE = 6.0
TILT_MIN_HZ = 800.0
FORMANT_STAGES = ("f1", "f2", "f3")


class SynthStartError(RuntimeError):
    """The voice graph could not be built or the output stream not opened."""


def thickness_boost(thickness: float) -> float:
    """Thicker folds are louder: 1.0 at 0, 3.0 at 100."""
    return 1.0 + 2.0 * (thickness / 100.0)


def tilt_cutoff(thickness: float) -> float:
    return max(TILT_MIN_HZ, 12000.0 - 112.0 * thickness)


def breath_level(cq: float) -> float:
    return max(0.0, (1.0 - cq) * 0.2)


@dataclass
class _Voice:
    name: str
    osc: WavetableOscillator
    level: float
    octave_down: bool = False


class VoiceSynth:
    """
    One voice, one output device. start() rebuilds the whole graph,
    update() retunes it in place, stop() tears it down.

    With stream_factory=None the engine runs offline: nothing is opened and
    blocks are pulled with render().
    """

    IDLE = "idle"
    RUNNING = "running"

    def __init__(self, config: Optional[AudioConfig] = None,
                 stream_factory=open_output_stream, seed: Optional[int] = None):
        self.config = config or AudioConfig()
        self._stream_factory = stream_factory
        self._seed = seed
        self._lock = threading.RLock()
        self._state = self.IDLE
        self._stream = None
        self._params: Optional[SynthesisParameters] = None
        self._clear_graph()

    # -------------------------
    # State
    # -------------------------
    @property
    def state(self) -> str:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == self.RUNNING

    @property
    def chain(self) -> Optional[SignalChain]:
        return self._chain

    @property
    def voices(self) -> List[_Voice]:
        return list(self._voices)

    def _clear_graph(self) -> None:
        self._chain = None
        self._voices = []
        self._vibrato = None
        self._jitter_noise = None
        self._jitter_filter = None
        self._breath_noise = None
        self._breath_filter = None
        self._breath_gain = None
        self._wave_cq = None

    # -------------------------
    # Lifecycle
    # -------------------------
    def start(self, params: SynthesisParameters) -> None:
        """Build a fresh graph for params and begin output."""
        if self.is_running:
            logger.info("VoiceSynth restarting")
        self.stop()

        try:
            with self._lock:
                self._build_graph(params)
                self._state = self.RUNNING
                self.update(params)

            if self._stream_factory is not None:
                stream = self._stream_factory(self.config, self._audio_callback)
                with self._lock:
                    self._stream = stream
                stream.start()
            logger.info(
                "VoiceSynth started at %.1f Hz (%s)",
                params.pitch, "offline" if self._stream_factory is None else "live",
            )
        except Exception as exc:
            logger.exception("VoiceSynth start failed")
            self.stop()
            raise SynthStartError(f"Could not start voice: {exc}") from exc

    def stop(self) -> None:
        """Halt output and release the graph. Safe in any state."""
        with self._lock:
            stream, self._stream = self._stream, None
            was_running = self._state == self.RUNNING
            self._state = self.IDLE

        if stream is not None:
            try:
                stream.stop()
            except Exception:  # noqa: BLE001
                logger.debug("output stream already stopped", exc_info=True)
            try:
                stream.close()
            except Exception:  # noqa: BLE001
                logger.debug("output stream already closed", exc_info=True)

        with self._lock:
            self._clear_graph()

        if was_running:
            logger.info("VoiceSynth stopped")

    # -------------------------
    # Graph construction
    # -------------------------
    def _build_graph(self, params: SynthesisParameters) -> None:
        sr = self.config.sample_rate
        rng = np.random.default_rng(self._seed)
        pitch = float(params.pitch) if finite_positive(params.pitch) else 120.0
        cq = clamp_cq(params.physics.cq)

        self._chain = SignalChain([
            Stage("tilt", Biquad("lowpass", sr, frequency=10000.0, q=0.5)),
            Stage("f1", Biquad("bandpass", sr)),
            Stage("f2", Biquad("bandpass", sr)),
            Stage("f3", Biquad("bandpass", sr)),
            Stage("singers", Biquad("peaking", sr, frequency=3000.0, q=SINGERS_Q)),
            Stage("boost", Biquad("peaking", sr)),
            Stage("master", GainStage(sr, gain=0.0)),
            Stage("compressor", Compressor(sr)),
        ])

        glottal = glottal_wave(cq, voicing_exponent)
        saw = builtin_wave("sawtooth")
        self._voices = [
            _Voice("main", WavetableOscillator(glottal, sr, pitch), 0.9),
            _Voice("chorus_up", WavetableOscillator(saw, sr, pitch, CHORUS_DETUNE_CENTS), 0.5),
            _Voice("chorus_down", WavetableOscillator(saw, sr, pitch, -CHORUS_DETUNE_CENTS), 0.5),
            _Voice("sub", WavetableOscillator(builtin_wave("triangle"), sr, pitch / 2.0), 0.7,
                   octave_down=True),
        ]
        self._wave_cq = None

        self._vibrato = WavetableOscillator(builtin_wave("sine"), sr, VIBRATO_RATE_HZ)
        self._jitter_noise = NoiseSource(sr, rng=rng)
        self._jitter_filter = Biquad("lowpass", sr, frequency=JITTER_CUTOFF_HZ)
        self._breath_noise = NoiseSource(sr, rng=rng)
        self._breath_filter = Biquad("lowpass", sr, frequency=BREATH_CUTOFF_HZ)
        self._breath_gain = GlideParam(0.08, sr)
        logger.debug("VoiceSynth graph built: %s", " -> ".join(self._chain.names))

    # -------------------------
    # Control-rate updates
    # -------------------------
    def update(self, params: SynthesisParameters) -> bool:
        """
        Retune the running graph toward params. Returns False (and does
        nothing) while idle. Non-finite or non-positive values are skipped.
        """
        with self._lock:
            if self._state != self.RUNNING or self._chain is None:
                logger.debug("VoiceSynth.update ignored while idle")
                return False

            physics = params.physics
            scale = physics.vtl_scale
            thickness = physics.thickness
            cq = physics.cq

            if finite_positive(params.pitch):
                pitch = float(params.pitch)
                for voice in self._voices:
                    voice.osc.frequency.set_target(pitch / 2.0 if voice.octave_down else pitch)

            master = self._chain["master"]
            master.gain.set_target(params.safe_volume * MASTER_SCALE * thickness_boost(thickness))

            bandwidths = params.formants.resolved_bandwidths()
            for name, center, bw in zip(FORMANT_STAGES, params.formants.centers, bandwidths):
                stage = self._chain[name]
                freq = center * scale
                q = freq / bw if finite_positive(freq) else float("nan")
                if finite_positive(freq):
                    stage.frequency.set_target(freq)
                if finite_positive(q):
                    stage.q.set_target(q)

            singers = self._chain["singers"]
            singers.gain.set_target(SINGERS_GAIN_DB if params.singers_formant else 0.0)
            singers.frequency.set_target(3000.0 * math.sqrt(scale))

            boost = self._chain["boost"]
            hb = params.harmonic_boost
            if hb.active:
                if finite_positive(hb.freq):
                    boost.frequency.set_target(hb.freq)
                if finite(hb.gain):
                    gain = min(max(float(hb.gain), -MAX_PEAK_GAIN_DB), MAX_PEAK_GAIN_DB)
                    boost.gain.set_target(gain)
                if finite_positive(hb.q):
                    boost.q.set_target(hb.q)
            else:
                boost.gain.set_target(0.0)

            self._chain["tilt"].frequency.set_target(tilt_cutoff(thickness))

            self._swap_glottal(cq)
            self._breath_gain.set_target(breath_level(cq))

            self._params = params
            return True

    def _swap_glottal(self, cq: float) -> None:
        """Regenerate the main voice's wave; keep the old one if that fails."""
        cq = clamp_cq(cq)
        if self._wave_cq is not None and cq == self._wave_cq:
            return
        try:
            wave = glottal_wave(cq, sustain_exponent)
        except (ValueError, FloatingPointError):
            logger.warning("Keeping previous glottal wave (cq=%.3f)", cq, exc_info=True)
            return
        self._voices[0].osc.set_periodic_wave(wave)
        self._wave_cq = cq

    # -------------------------
    # Rendering
    # -------------------------
    def render(self, frames: int) -> np.ndarray:
        """Pull `frames` samples of output. Silence while idle."""
        with self._lock:
            if self._state != self.RUNNING or self._chain is None:
                return np.zeros(frames)
            out = np.empty(frames)
            pos = 0
            while pos < frames:
                n = min(RENDER_QUANTUM, frames - pos)
                out[pos:pos + n] = self._render_quantum(n)
                pos += n
            return out

    def _render_quantum(self, n: int) -> np.ndarray:
        modulation = (
            self._vibrato.process(n) * VIBRATO_DEPTH_HZ
            + self._jitter_filter.process(self._jitter_noise.process(n)) * JITTER_DEPTH_HZ
        )

        mix = np.zeros(n)
        for voice in self._voices:
            mix += voice.osc.process(n, modulation) * voice.level

        breath = self._breath_filter.process(self._breath_noise.process(n))
        mix += breath * self._breath_gain.block(n)

        return self._chain.process(mix)

    def _audio_callback(self, outdata, frames, _time_info, status) -> None:
        if status:
            logger.debug("output stream status: %s", status)
        try:
            outdata[:, 0] = self.render(frames)
        except Exception:  # noqa: BLE001
            logger.exception("render failed; emitting silence")
            outdata.fill(0.0)
