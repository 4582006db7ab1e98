# tests/conftest.py
import numpy as np
import pytest

from analysis.model import FormantTriple, SynthesisParameters, VocalPhysics
from analysis.synthetic import synthetic_vowel
from synth.engine import VoiceSynth
from utils.config import AudioConfig


# ---------------------------------------------------------
# Fake sounddevice streams
# ---------------------------------------------------------
class FakeStream:
    """Stands in for sd.InputStream / sd.OutputStream."""

    def __init__(self, config=None, callback=None, fail_on_start=False):
        self.config = config
        self.callback = callback
        self.fail_on_start = fail_on_start
        self.started = False
        self.stopped = False
        self.closed = False

    @property
    def active(self):
        return self.started and not self.stopped

    def start(self):
        if self.fail_on_start:
            raise RuntimeError("device busy")
        self.started = True

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True


class StreamRecorder:
    """Stream factory that remembers every stream it opened."""

    def __init__(self, fail_on_start=False):
        self.fail_on_start = fail_on_start
        self.streams = []

    def __call__(self, config, callback):
        stream = FakeStream(config, callback, fail_on_start=self.fail_on_start)
        self.streams.append(stream)
        return stream

    @property
    def last(self):
        return self.streams[-1] if self.streams else None


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def synth_vowel(formants, sr=11025, dur=0.2, f0=120.0):
    """Two-formant impulse-train vowel (see analysis.synthetic)."""
    f1, f2 = formants[:2]
    return synthetic_vowel(f1, f2, sr=sr, dur=dur, f0=f0)


def make_params(pitch=120.0, f1=500.0, f2=1500.0, f3=2500.0, **physics):
    return SynthesisParameters(
        pitch=pitch,
        formants=FormantTriple(f1, f2, f3),
        physics=VocalPhysics(**physics),
    )


def tone(freq, sr, seconds=0.5, amp=0.5):
    t = np.arange(int(sr * seconds)) / sr
    return amp * np.sin(2 * np.pi * freq * t)


@pytest.fixture
def config():
    return AudioConfig(sample_rate=16000, blocksize=256)


@pytest.fixture
def recorder():
    return StreamRecorder()


@pytest.fixture
def offline_synth(config):
    synth = VoiceSynth(config, stream_factory=None, seed=1)
    yield synth
    synth.stop()
