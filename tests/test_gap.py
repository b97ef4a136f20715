"""
test_gap.py
-----------
Unit tests for treatment gap compensation.
"""

import math
import pytest

from radiobio.schemas import FractionationScheme
from radiobio.services.errors import InvalidGap, InvalidScheme
from radiobio.services.gap_service import compensate


SCHEME = FractionationScheme(
    dose_per_fraction=2.0, number_of_fractions=35, treatment_time=46.0, alpha_beta=10.0
)


def test_no_gap_is_all_zero():
    result = compensate(SCHEME, 0)
    assert result.bed_lost == 0.0
    assert result.eqd2_lost == 0.0
    assert result.extra_physical_dose == 0.0
    assert result.extra_fractions == 0


def test_three_missed_days():
    """
    3 days at 0.9 Gy/day: BED lost 2.7 Gy, EQD2 lost 2.7 / 1.2 = 2.25 Gy.
    At 2 Gy per fraction and alpha/beta 10 the restoring dose is also 2.25 Gy,
    which needs 2 whole fractions.
    """
    result = compensate(SCHEME, 3, daily_bed_loss=0.9)
    assert math.isclose(result.bed_lost, 2.7, rel_tol=1e-12)
    assert math.isclose(result.eqd2_lost, 2.25, rel_tol=1e-12)
    assert math.isclose(result.extra_physical_dose, 2.25, rel_tol=1e-12)
    assert result.extra_fractions == 2


def test_reference_default_loss_rate():
    assert compensate(SCHEME, 3) == compensate(SCHEME, 3, daily_bed_loss=0.9)


def test_exact_multiple_is_not_rounded_up():
    """
    bed_lost = 4.8 Gy, RE at 2 Gy / ab 10 = 1.2, dose = 4.0 Gy = exactly 2 fractions.
    """
    result = compensate(SCHEME, 4, daily_bed_loss=1.2)
    assert math.isclose(result.extra_physical_dose, 4.0, rel_tol=1e-12)
    assert result.extra_fractions == 2


def test_loss_grows_with_gap_length():
    results = [compensate(SCHEME, days) for days in range(0, 10)]
    doses = [r.extra_physical_dose for r in results]
    fractions = [r.extra_fractions for r in results]
    assert all(a < b for a, b in zip(doses, doses[1:]))
    assert all(a <= b for a, b in zip(fractions, fractions[1:]))


def test_zero_loss_rate_needs_nothing():
    result = compensate(SCHEME, 5, daily_bed_loss=0.0)
    assert result.bed_lost == 0.0
    assert result.extra_fractions == 0


def test_negative_missed_days():
    with pytest.raises(InvalidGap):
        compensate(SCHEME, -1)


@pytest.mark.parametrize("loss", [-0.5, float("nan"), float("inf")])
def test_invalid_loss_rate(loss):
    with pytest.raises(InvalidGap):
        compensate(SCHEME, 2, daily_bed_loss=loss)


def test_nan_scheme_rejected():
    bad = FractionationScheme(
        dose_per_fraction=float("nan"), number_of_fractions=35, treatment_time=46.0, alpha_beta=10.0
    )
    with pytest.raises(InvalidScheme):
        compensate(bad, 3)


def test_invalid_scheme_rejected():
    bad = FractionationScheme(
        dose_per_fraction=2.0, number_of_fractions=35, treatment_time=46.0, alpha_beta=0.0
    )
    with pytest.raises(InvalidScheme):
        compensate(bad, 2)
