import pytest

from utils.music_utils import cents_to_ratio, freq_to_note_name, hz_to_midi


def test_hz_to_midi():
    assert hz_to_midi(440.0) == 69
    assert hz_to_midi(261.63) == 60
    assert hz_to_midi(0) is None
    assert hz_to_midi(None) is None


def test_cents_to_ratio():
    assert cents_to_ratio(0.0) == 1.0
    assert cents_to_ratio(1200.0) == pytest.approx(2.0)
    assert cents_to_ratio(3.0) * cents_to_ratio(-3.0) == pytest.approx(1.0)


def test_freq_to_note_name():
    assert freq_to_note_name(440.0) == "A4"
    assert freq_to_note_name(123.47) == "B2"
    assert freq_to_note_name(0) == "N/A"
    assert freq_to_note_name(1e6) == "N/A"
