from unittest.mock import MagicMock

import pytest

from analysis.model import AnalyzedFormants, FormantTriple
from analysis.vowel_data import formants_for
from lab.controller import MAX_DRAG_HZ, MIN_DRAG_HZ, LabSession
from mic_analyzer import MicAccessError, MicAnalyzer
from synth.engine import SynthStartError, VoiceSynth
from tests.conftest import StreamRecorder


@pytest.fixture
def session(config):
    synth = VoiceSynth(config, stream_factory=None, seed=0)
    analyzer = MicAnalyzer(config, stream_factory=StreamRecorder())
    s = LabSession(synth=synth, analyzer=analyzer)
    yield s
    s.close()


def test_session_starts_with_default_vowel(session):
    assert session.params.formants == formants_for("@", "male")
    assert not session.is_playing
    assert not session.is_listening


def test_unknown_voice_rejected(config):
    with pytest.raises(ValueError):
        LabSession(synth=MagicMock(), analyzer=MagicMock(), voice="alto")


def test_toggle_play_starts_and_stops(session):
    assert session.toggle_play() is True
    assert session.synth.is_running
    assert session.toggle_play() is False
    assert not session.synth.is_running


def test_set_params_updates_running_synth(session):
    session.toggle_play()
    session.set_params(pitch=220.0)
    main = session.synth.voices[0]
    assert main.osc.frequency.target == pytest.approx(220.0)


def test_set_params_while_stopped_only_stores(session):
    session.synth = MagicMock()
    session.set_params(volume=0.2)
    assert session.params.volume == 0.2
    session.synth.update.assert_not_called()


def test_set_vowel_switches_voice(session):
    session.set_vowel("i", voice="female")
    assert session.voice == "female"
    assert session.params.formants == formants_for("i", "female")


def test_custom_and_dragged_formants(session):
    session.set_custom_formants(400.0, 2000.0)
    assert session.vowel is None
    assert session.params.formants == FormantTriple.from_chart(400.0, 2000.0)

    session.drag_formant("f1", 50.0)
    assert session.params.formants.f1 == MIN_DRAG_HZ
    session.drag_formant("f3", 9000.0)
    assert session.params.formants.f3 == MAX_DRAG_HZ


def test_failed_playback_sets_error(session):
    session.synth = MagicMock()
    session.synth.start.side_effect = SynthStartError("Could not start voice: busy")

    assert session.toggle_play() is False
    assert not session.is_playing
    assert "busy" in session.last_error


def test_toggle_mic_and_failure(session):
    assert session.toggle_mic() is True
    assert session.analyzer.is_running
    assert session.toggle_mic() is False
    assert not session.analyzer.is_running

    session.analyzer = MagicMock()
    session.analyzer.start.side_effect = MicAccessError("Microphone unavailable: denied")
    assert session.toggle_mic() is False
    assert not session.is_listening
    assert "denied" in session.last_error


def test_analysis_results_are_classified(session):
    ref = formants_for("A", "male")
    session._on_analysis(AnalyzedFormants(ref.f1, ref.f2, 0.1, [0.5] * 60))
    assert session.detected_vowel == "A"

    session._on_analysis(AnalyzedFormants.silent())
    assert session.detected_vowel is None


def test_spectrum_overlays_mic_only_while_listening(session):
    session._on_analysis(AnalyzedFormants(500.0, 1500.0, 0.1, [1.0] * 60))
    assert all(p.user == 0.0 for p in session.spectrum())

    session.is_listening = True
    assert any(p.user > 0.0 for p in session.spectrum())


def test_close_stops_everything(session):
    session.toggle_play()
    session.toggle_mic()
    session.close()
    assert not session.is_playing and not session.is_listening
    assert not session.synth.is_running
    assert not session.analyzer.is_running
