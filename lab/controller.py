# lab/controller.py
import logging
import threading
from dataclasses import replace

from analysis.envelope import spectrum_curve
from analysis.model import FormantTriple, SynthesisParameters
from analysis.vowel_classifier import classify_vowel
from analysis.vowel_data import DEFAULT_VOWEL, VOICES, formants_for
from mic_analyzer import MicAccessError, MicAnalyzer
from synth.engine import SynthStartError, VoiceSynth

logger = logging.getLogger(__name__)

MIN_DRAG_HZ = 100.0
MAX_DRAG_HZ = 5500.0


class LabSession:
    """
    One interactive session: a synthesizer, a microphone analyzer and the
    shared synthesis parameters they are driven from.

    Failures to open audio devices never raise out of the toggles; they
    leave the flag off and store a message in last_error.
    """

    def __init__(self, synth=None, analyzer=None, voice="male", vowel=DEFAULT_VOWEL):
        if voice not in VOICES:
            raise ValueError(f"unknown voice {voice!r}")
        self.synth = synth or VoiceSynth()
        self.analyzer = analyzer or MicAnalyzer()
        self.voice = voice
        self.vowel = vowel
        self.params = SynthesisParameters(formants=formants_for(vowel, voice))

        self.is_playing = False
        self.is_listening = False
        self.last_error = None

        self._lock = threading.Lock()
        self.latest = None
        self.detected_vowel = None

    # ---------------------------------------------------------
    # Parameter editing
    # ---------------------------------------------------------
    def set_vowel(self, vowel, voice=None):
        """Load a preset vowel (optionally switching voice) and retune."""
        voice = voice or self.voice
        formants = formants_for(vowel, voice)
        self.vowel = vowel
        self.voice = voice
        return self.set_params(formants=formants)

    def set_custom_formants(self, f1, f2):
        """Custom vowel from an F1/F2 chart position."""
        self.vowel = None
        return self.set_params(formants=FormantTriple.from_chart(f1, f2))

    def drag_formant(self, name, freq):
        """Move one formant (f1/f2/f3), clamped to the display range."""
        freq = min(MAX_DRAG_HZ, max(MIN_DRAG_HZ, float(freq)))
        self.vowel = None
        return self.set_params(formants=self.params.formants.with_formant(name, freq))

    def set_params(self, **changes):
        """
        Replace fields of the current SynthesisParameters and push them to
        the synthesizer if it is playing.
        """
        self.params = replace(self.params, **changes)
        if self.is_playing:
            self.synth.update(self.params)
        return self.params

    # ---------------------------------------------------------
    # Audio toggles
    # ---------------------------------------------------------
    def toggle_play(self):
        if self.is_playing:
            self.synth.stop()
            self.is_playing = False
            return False

        try:
            self.synth.start(self.params)
        except SynthStartError as exc:
            logger.warning("Playback failed: %s", exc)
            self.last_error = str(exc)
            self.is_playing = False
            return False

        self.last_error = None
        self.is_playing = True
        return True

    def toggle_mic(self):
        if self.is_listening:
            self.analyzer.stop()
            self.is_listening = False
            return False

        try:
            self.analyzer.start(self._on_analysis)
        except MicAccessError as exc:
            logger.warning("Microphone failed: %s", exc)
            self.last_error = str(exc)
            self.is_listening = False
            return False

        self.last_error = None
        self.is_listening = True
        return True

    # ---------------------------------------------------------
    # Analysis results
    # ---------------------------------------------------------
    def _on_analysis(self, result):
        vowel = None
        if result.voiced:
            vowel, _ = classify_vowel(result.f1, result.f2, voice=self.voice)
        with self._lock:
            self.latest = result
            self.detected_vowel = vowel

    def spectrum(self):
        """Envelope/harmonic display curve with the live mic spectrum overlaid."""
        with self._lock:
            latest = self.latest
        user = latest.spectrum if (self.is_listening and latest is not None) else None
        return spectrum_curve(self.params, user_spectrum=user)

    def close(self):
        """Stop both audio paths."""
        self.synth.stop()
        self.analyzer.stop()
        self.is_playing = False
        self.is_listening = False
