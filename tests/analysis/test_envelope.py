import math

import numpy as np
import pytest

from analysis.envelope import (
    display_value,
    envelope_curve,
    envelope_db,
    gaussian_peak_db,
    resonance,
    source_tilt_db,
    spectrum_curve,
    thickness_cutoff,
)
from analysis.model import HarmonicBoost, SynthesisParameters, VocalPhysics
from synth.engine import tilt_cutoff
from tests.conftest import make_params


def _peak_near(params, center, half_width):
    freqs = np.arange(center - half_width, center + half_width + 1, 1.0)
    curve = envelope_curve(params, freqs)
    return freqs, curve, int(np.argmax(curve))


def test_resonance_is_unity_at_dc_and_q_at_center():
    assert resonance(0.0, 500.0, 80.0) == pytest.approx(1.0)
    assert resonance(500.0, 500.0, 80.0) == pytest.approx(500.0 / 80.0)


@pytest.mark.parametrize("tract", [14.0, 17.5, 21.0])
def test_f1_peak_lands_at_scaled_center(tract):
    """
    Holds at the default closed quotient (0.5). With a steep source tilt
    (low CQ) and a low, narrow F1 the tilt can outweigh the resonance and
    the maximum slides to the lower edge of the window.
    """
    params = make_params(f1=500.0, f2=1500.0, f3=2500.0, tract_length=tract)
    f1_scaled = params.scaled_formants()[0]
    bw = params.formants.resolved_bandwidths()[0]

    freqs, curve, idx = _peak_near(params, f1_scaled, bw)

    # interior maximum inside +/- one bandwidth of the scaled F1
    assert 0 < idx < len(freqs) - 1
    assert abs(freqs[idx] - f1_scaled) < bw


def test_shorter_tract_moves_peak_up_by_scale():
    ref = make_params(tract_length=17.5)
    short = make_params(tract_length=17.5 / 1.25)

    assert short.scaled_formants() == pytest.approx(tuple(f * 1.25 for f in ref.formants.centers))

    _, _, ref_idx = _peak_near(ref, 1500.0, 100.0)
    f_ref = 1400.0 + ref_idx
    _, _, short_idx = _peak_near(short, 1875.0, 100.0)
    f_short = 1775.0 + short_idx
    assert f_short / f_ref == pytest.approx(1.25, rel=0.02)


def test_pressed_phonation_is_brighter_than_breathy():
    assert source_tilt_db(2000.0, 0.9) > source_tilt_db(2000.0, 0.1)

    pressed = make_params(closed_quotient=0.9)
    breathy = make_params(closed_quotient=0.1)
    assert envelope_db(2000.0, pressed) > envelope_db(2000.0, breathy)


def test_source_is_flat_below_reference():
    assert source_tilt_db(50.0, 0.2) == pytest.approx(0.0)
    assert source_tilt_db(100.0, 0.2) == pytest.approx(0.0)


def test_harmonic_boost_bump_is_local():
    off = make_params()
    on = make_params()
    on.harmonic_boost = HarmonicBoost(active=True, freq=2000.0, gain=12.0, q=2.0)

    assert envelope_db(2000.0, on) - envelope_db(2000.0, off) > 5.0
    assert abs(envelope_db(500.0, on) - envelope_db(500.0, off)) < 1.0


def test_inactive_boost_is_ignored():
    params = make_params()
    base = envelope_db(2000.0, params)
    params.harmonic_boost = HarmonicBoost(active=False, freq=2000.0, gain=12.0, q=2.0)
    assert envelope_db(2000.0, params) == pytest.approx(base)


def test_singers_formant_adds_gain_near_3khz():
    params = make_params()
    base = envelope_db(3000.0, params)
    params.singers_formant = True
    assert envelope_db(3000.0, params) - base == pytest.approx(15.0, abs=0.01)


def test_thick_folds_roll_off_highs():
    assert tilt_cutoff(100.0) <= 800.0

    thin = make_params(fold_thickness=0.0)
    thick = make_params(fold_thickness=100.0)
    check = 2.0 * thickness_cutoff(100.0)

    assert envelope_db(check, thin) - envelope_db(check, thick) > 20.0
    # below both cutoffs thickness changes nothing
    assert envelope_db(500.0, thin) == pytest.approx(envelope_db(500.0, thick))


def test_gaussian_peak_degenerate_inputs():
    assert gaussian_peak_db(1000.0, 1000.0, 0.0, 2.0) == 0.0
    assert gaussian_peak_db(1000.0, 0.0, 6.0, 2.0) == 0.0
    assert gaussian_peak_db(1000.0, 1000.0, 6.0, 0.0) == 0.0


def test_display_value_clips():
    assert display_value(-80.0) == 0.0
    assert display_value(0.0) == 60.0
    assert display_value(70.0) == 100.0


def test_envelope_db_is_finite_for_odd_inputs():
    params = SynthesisParameters(physics=VocalPhysics(float("nan"), float("nan"), float("nan")))
    params.formants.bandwidths = (0.0, None, float("nan"))
    value = envelope_db(1000.0, params)
    assert math.isfinite(value)


def test_spectrum_curve_axis_and_harmonics():
    params = make_params(pitch=200.0)
    points = spectrum_curve(params)

    assert points[0].freq == pytest.approx(20.0)
    assert points[-1].freq == pytest.approx(5500.0)
    assert points[1].freq - points[0].freq == pytest.approx(5.0)
    assert all(0.0 <= p.envelope <= 100.0 for p in points)

    by_freq = {round(p.freq): p for p in points}
    assert by_freq[400].harmonic > 0
    assert by_freq[500].harmonic == 0.0
    assert all(p.user == 0.0 for p in points)


def test_spectrum_curve_maps_user_overlay():
    params = make_params()
    user = [0.0] * 30 + [1.0] * 30
    points = spectrum_curve(params, user_spectrum=user)

    by_freq = {round(p.freq): p for p in points}
    assert by_freq[1000].user == 0.0
    assert by_freq[4000].user == pytest.approx(80.0)


def test_gaussian_peak_is_cut_beyond_two_bandwidths():
    # bandwidth 1000 Hz at 2 kHz, Q 2
    assert gaussian_peak_db(2000.0, 2000.0, 12.0, 2.0) == pytest.approx(12.0)
    assert gaussian_peak_db(3900.0, 2000.0, 12.0, 2.0) > 0.0
    assert gaussian_peak_db(4100.0, 2000.0, 12.0, 2.0) == 0.0
