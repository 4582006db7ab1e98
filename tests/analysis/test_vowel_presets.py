import math

import pytest

from analysis.vowel_classifier import classify_vowel
from analysis.vowel_data import DEFAULT_VOWEL, VOICES, VOWELS, formants_for


def test_every_preset_is_ordered_and_complete():
    for symbol, definition in VOWELS.items():
        assert definition.symbol == symbol
        for voice in VOICES:
            ft = getattr(definition, voice)
            assert 0 < ft.f1 < ft.f2 < ft.f3, (symbol, voice)
            assert len(ft.resolved_bandwidths()) == 3


def test_formants_for_returns_a_copy():
    ft = formants_for("i", "male")
    ft.f1 = 1.0
    assert formants_for("i", "male").f1 == 342


def test_formants_for_unknown_inputs():
    with pytest.raises(ValueError):
        formants_for("zz")
    with pytest.raises(ValueError):
        formants_for("i", voice="robot")


def test_default_vowel_exists():
    assert DEFAULT_VOWEL in VOWELS


@pytest.mark.parametrize("symbol", ["i", "A", "u", "ae"])
def test_preset_classifies_as_itself(symbol):
    ft = formants_for(symbol, "male")
    found, dist = classify_vowel(ft.f1, ft.f2, ft.f3)
    assert found == symbol
    assert dist == pytest.approx(0.0)


def test_classifier_uses_voice_table():
    ft = formants_for("i", "female")
    assert classify_vowel(ft.f1, ft.f2, voice="female")[0] == "i"


def test_classifier_weights_f1_more_than_f2():
    # 20 Hz off in F1 costs more than 20 Hz off in F2
    ref = formants_for("A", "male")
    _, d1 = classify_vowel(ref.f1 + 20, ref.f2)
    _, d2 = classify_vowel(ref.f1, ref.f2 + 20)
    assert d1 > d2


@pytest.mark.parametrize("f1,f2", [(None, 1000), (500, None), (0, 1000), (float("nan"), 1000)])
def test_classifier_rejects_unvoiced(f1, f2):
    found, dist = classify_vowel(f1, f2)
    assert found is None
    assert math.isinf(dist)
