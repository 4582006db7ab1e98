import math

import pytest

from analysis.model import (
    DEFAULT_BANDWIDTHS,
    AnalyzedFormants,
    FormantTriple,
    SynthesisParameters,
    VocalPhysics,
    finite_positive,
    vtl_scale,
)


def test_vtl_scale_reference_is_identity():
    assert vtl_scale(17.5) == pytest.approx(1.0)
    params = SynthesisParameters()
    assert params.scaled_formants() == pytest.approx(params.formants.centers)


@pytest.mark.parametrize("k", [0.8, 1.25])
def test_vtl_scale_is_inverse_in_length(k):
    assert vtl_scale(17.5 * k) == pytest.approx(1.0 / k)


def test_vtl_scale_clamps_short_and_bad_lengths():
    assert vtl_scale(2.0) == pytest.approx(17.5 / 10.0)
    assert vtl_scale(float("nan")) == pytest.approx(1.0)
    assert vtl_scale("long") == pytest.approx(1.0)


def test_from_chart_derives_f3():
    ft = FormantTriple.from_chart(400.0, 2000.0)
    assert ft.f3 == pytest.approx(2300.0 + 250.0)
    assert ft.bandwidths == DEFAULT_BANDWIDTHS


def test_resolved_bandwidths_fill_gaps():
    ft = FormantTriple(bandwidths=(50.0,))
    assert ft.resolved_bandwidths() == (50.0, 100.0, 120.0)
    ft = FormantTriple(bandwidths=(0.0, -5.0, float("inf")))
    assert ft.resolved_bandwidths() == DEFAULT_BANDWIDTHS
    ft = FormantTriple(bandwidths=None)
    assert ft.resolved_bandwidths() == DEFAULT_BANDWIDTHS


def test_with_formant_replaces_one_value():
    ft = FormantTriple(500.0, 1500.0, 2500.0)
    moved = ft.with_formant("f2", 1800.0)
    assert moved.centers == (500.0, 1800.0, 2500.0)
    assert ft.f2 == 1500.0
    with pytest.raises(ValueError):
        ft.with_formant("f4", 100.0)


def test_physics_clamps():
    p = VocalPhysics(fold_thickness=150.0, closed_quotient=-1.0)
    assert p.thickness == 100.0
    assert p.cq == 0.0
    p = VocalPhysics(fold_thickness=float("nan"), closed_quotient=float("nan"))
    assert p.thickness == 50.0
    assert p.cq == 0.5
    p = VocalPhysics(tract_length=None, fold_thickness=None, closed_quotient="loud")
    assert p.vtl_scale == 1.0
    assert p.thickness == 50.0
    assert p.cq == 0.5


def test_safe_volume():
    assert SynthesisParameters(volume=2.0).safe_volume == 1.0
    assert SynthesisParameters(volume=float("nan")).safe_volume == 0.0
    assert SynthesisParameters(volume=None).safe_volume == 0.0


def test_finite_positive():
    assert finite_positive(1)
    assert not finite_positive(0)
    assert not finite_positive(math.inf)
    assert not finite_positive(None)


def test_analyzed_formants_silent():
    s = AnalyzedFormants.silent()
    assert (s.f1, s.f2, s.energy, s.spectrum) == (0.0, 0.0, 0.0, [])
    assert not s.voiced
    assert AnalyzedFormants(500.0, 1500.0, 0.1).voiced
