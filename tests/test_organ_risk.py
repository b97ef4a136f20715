"""
test_organ_risk.py
------------------
Unit tests for organ-at-risk classification against dose limits.
"""

import math
import pytest

from radiobio.schemas import OrganDose, RiskClassification
from radiobio.services.risk_service import classify, evaluate


LIMITS = {"Spinal cord": 50.0, "Parotid": 26.0, "Heart": 40.0}


@pytest.mark.parametrize(
    "ratio,expected",
    [
        (1.2, RiskClassification.fail),
        (1.0, RiskClassification.fail),
        (0.95, RiskClassification.warn),
        (0.9, RiskClassification.warn),
        (0.8999999, RiskClassification.ok),
        (0.0, RiskClassification.ok),
    ],
)
def test_classify_boundaries(ratio, expected):
    assert classify(ratio) is expected


def test_eqd2_at_limit_fails():
    out = evaluate([OrganDose(label="Spinal cord", eqd2=50.0)], LIMITS)
    assert out.organs[0].ratio == 1.0
    assert out.organs[0].classification is RiskClassification.fail


def test_ninety_percent_warns():
    out = evaluate([OrganDose(label="Spinal cord", eqd2=45.0)], LIMITS)
    assert out.organs[0].ratio == 0.9
    assert out.organs[0].classification is RiskClassification.warn


def test_just_below_ninety_percent_is_ok():
    out = evaluate([OrganDose(label="Spinal cord", eqd2=44.99)], LIMITS)
    assert out.organs[0].classification is RiskClassification.ok


def test_worst_case_is_highest_ratio():
    organs = [
        OrganDose(label="Spinal cord", eqd2=40.0),   # 0.8
        OrganDose(label="Parotid", eqd2=30.0),       # 1.15
        OrganDose(label="Heart", eqd2=38.0),         # 0.95
    ]
    out = evaluate(organs, LIMITS)
    assert out.worst.label == "Parotid"
    assert math.isclose(out.worst.ratio, 30.0 / 26.0, rel_tol=1e-12)
    assert [o.classification for o in out.organs] == [
        RiskClassification.ok,
        RiskClassification.fail,
        RiskClassification.warn,
    ]


def test_tie_keeps_first_in_input_order():
    limits = {"Left lung": 20.0, "Right lung": 20.0}
    organs = [
        OrganDose(label="Right lung", eqd2=15.0),
        OrganDose(label="Left lung", eqd2=15.0),
    ]
    out = evaluate(organs, limits)
    assert out.worst.label == "Right lung"


def test_unknown_organ_reported_but_not_classified():
    organs = [OrganDose(label="Unknown", eqd2=40.0), OrganDose(label="Heart", eqd2=10.0)]
    out = evaluate(organs, LIMITS)
    unknown = out.organs[0]
    assert unknown.label == "Unknown"
    assert unknown.limit is None
    assert unknown.ratio is None
    assert unknown.classification is None
    # The unknown organ has the larger EQD2 but cannot be the worst case.
    assert out.worst.label == "Heart"


def test_missing_limit_is_no_classification():
    out = evaluate([OrganDose(label="Unknown", eqd2=40.0)], {})
    assert out.worst is None
    assert out.organs[0].classification is None


def test_empty_organ_list():
    out = evaluate([], LIMITS)
    assert out.organs == []
    assert out.worst is None


@pytest.mark.parametrize("limit", [0.0, -5.0, float("nan")])
def test_unusable_limit_is_unclassified(limit):
    out = evaluate([OrganDose(label="Heart", eqd2=10.0)], {"Heart": limit})
    assert out.organs[0].classification is None
    assert out.worst is None


def test_limits_mapping_not_modified():
    limits = dict(LIMITS)
    evaluate([OrganDose(label="Unknown", eqd2=1.0), OrganDose(label="Heart", eqd2=1.0)], limits)
    assert limits == LIMITS
