"""
Vowel presets: mean formants per vowel for male, female and child voices.

Front/back core vowels follow Hillenbrand (1995) means; the rounded and
rarer vowels are rough interpolations.
"""

from dataclasses import dataclass, replace

from analysis.model import FormantTriple

VOICES = ("male", "female", "child")


@dataclass(frozen=True)
class VowelDefinition:
    symbol: str
    ipa: str
    name: str
    male: FormantTriple
    female: FormantTriple
    child: FormantTriple


def _v(symbol, ipa, name, male, female, child):
    return VowelDefinition(
        symbol, ipa, name,
        FormantTriple(*male[:3], bandwidths=male[3]),
        FormantTriple(*female[:3], bandwidths=female[3]),
        FormantTriple(*child[:3], bandwidths=child[3]),
    )


# ---------------------------------------------------------
# symbol -> definition; values are (F1, F2, F3, (B1, B2, B3))
# ---------------------------------------------------------
VOWELS = {
    # front
    "i": _v("i", "i", "close front",
            (342, 2322, 3000, (60, 90, 100)), (437, 2761, 3372, (70, 100, 120)),
            (430, 3200, 3700, (80, 110, 130))),
    "I": _v("I", "ɪ", "near-close near-front",
            (427, 2034, 2684, (70, 100, 120)), (483, 2365, 3053, (80, 100, 120)),
            (530, 2730, 3400, (90, 120, 140))),
    "e": _v("e", "e", "close-mid front",
            (476, 2089, 2691, (70, 90, 110)), (536, 2530, 3047, (80, 100, 120)),
            (600, 2600, 3200, (90, 110, 130))),
    "E": _v("E", "ɛ", "open-mid front",
            (580, 1799, 2605, (70, 90, 110)), (731, 2058, 2979, (80, 100, 120)),
            (700, 2600, 3400, (90, 110, 130))),
    "ae": _v("ae", "æ", "near-open front",
             (588, 1720, 2434, (80, 100, 120)), (669, 2349, 2972, (90, 110, 130)),
             (1010, 2320, 3320, (100, 120, 140))),
    # back / central
    "A": _v("A", "ɑ", "open back",
            (768, 1333, 2522, (80, 100, 120)), (936, 1551, 2815, (90, 110, 130)),
            (1030, 1370, 3170, (100, 120, 140))),
    "c": _v("c", "ɔ", "open-mid back rounded",
            (652, 997, 2538, (80, 90, 110)), (781, 1136, 2824, (90, 100, 120)),
            (680, 1060, 3180, (100, 110, 130))),
    "o": _v("o", "o", "close-mid back rounded",
            (497, 910, 2459, (75, 90, 110)), (555, 1035, 2828, (85, 100, 120)),
            (580, 1100, 3100, (95, 110, 130))),
    "U": _v("U", "ʊ", "near-close near-back",
            (469, 1122, 2434, (70, 90, 110)), (519, 1225, 2827, (80, 100, 120)),
            (560, 1410, 3310, (90, 110, 130))),
    "u": _v("u", "u", "close back rounded",
            (378, 997, 2343, (65, 80, 100)), (459, 1105, 2735, (75, 90, 110)),
            (430, 1170, 3260, (85, 100, 120))),
    "v": _v("v", "ʌ", "open-mid back",
            (623, 1200, 2550, (80, 100, 120)), (753, 1426, 2933, (90, 110, 130)),
            (860, 1590, 3280, (100, 120, 140))),
    "3": _v("3", "ɜː", "open-mid central",
            (474, 1379, 1710, (75, 90, 110)), (523, 1588, 1929, (85, 100, 120)),
            (560, 1820, 2250, (95, 110, 130))),
    "@": _v("@", "ə", "mid central",
            (500, 1500, 2500, (70, 90, 110)), (590, 1750, 2900, (80, 100, 120)),
            (670, 2000, 3300, (90, 110, 130))),
    # interpolated
    "y": _v("y", "y", "close front rounded",
            (270, 1900, 2300, (60, 90, 100)), (320, 2400, 3000, (70, 100, 120)),
            (430, 2800, 3400, (80, 110, 130))),
    "ø": _v("ø", "ø", "close-mid front rounded",
            (470, 1600, 2400, (70, 90, 110)), (530, 1900, 2800, (80, 100, 120)),
            (600, 2200, 3100, (90, 110, 130))),
    "oe": _v("oe", "œ", "open-mid front rounded",
             (530, 1500, 2400, (70, 90, 110)), (610, 1800, 2900, (80, 100, 120)),
             (700, 2100, 3300, (90, 110, 130))),
    "a": _v("a", "a", "open front",
            (700, 1500, 2400, (80, 100, 120)), (850, 1800, 2800, (90, 110, 130)),
            (1000, 2100, 3300, (100, 120, 140))),
    "Q": _v("Q", "ɒ", "open back rounded",
            (730, 900, 2400, (80, 100, 120)), (850, 1100, 2800, (90, 110, 130)),
            (1030, 1200, 3170, (100, 120, 140))),
    "7": _v("7", "ɤ", "close-mid back unrounded",
            (450, 1300, 2400, (80, 90, 110)), (500, 1500, 2800, (90, 100, 120)),
            (580, 1800, 3100, (95, 110, 130))),
    "W": _v("W", "ɯ", "close back unrounded",
            (300, 1400, 2200, (70, 90, 110)), (370, 1600, 2700, (80, 100, 120)),
            (430, 1900, 3300, (85, 100, 120))),
}

DEFAULT_VOWEL = "@"


def formants_for(vowel: str, voice: str = "male") -> FormantTriple:
    """Preset formants for a vowel symbol and voice ('male', 'female', 'child')."""
    if voice not in VOICES:
        raise ValueError(f"unknown voice {voice!r}; expected one of {VOICES}")
    try:
        definition = VOWELS[vowel]
    except KeyError:
        raise ValueError(f"unknown vowel {vowel!r}") from None
    return replace(getattr(definition, voice))
