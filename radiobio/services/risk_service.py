"""
risk_service.py
---------------
Classify organ-at-risk EQD2 against published dose limits.

    ratio = EQD2 / limit
    fail  if ratio >= 1.0
    warn  if ratio >= 0.9
    ok    otherwise

Organs without a limit are reported but not classified. That is an
expected outcome, not an error, and an evaluation where nothing could be
classified simply has no worst organ.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from radiobio.schemas import OrganDose, OrganRisk, OrganRiskEvaluation, RiskClassification
from radiobio.services.dose_service import is_positive


logger = logging.getLogger(__name__)

FAIL_RATIO = 1.0
WARN_RATIO = 0.9


def classify(ratio: float) -> RiskClassification:
    if ratio >= FAIL_RATIO:
        return RiskClassification.fail
    if ratio >= WARN_RATIO:
        return RiskClassification.warn
    return RiskClassification.ok


def _assess(organ: OrganDose, limits: Mapping[str, float]) -> OrganRisk:
    limit = limits.get(organ.label)
    if limit is None or not is_positive(limit):
        return OrganRisk(label=organ.label, eqd2=organ.eqd2)
    ratio = organ.eqd2 / limit
    return OrganRisk(
        label=organ.label,
        eqd2=organ.eqd2,
        limit=limit,
        ratio=ratio,
        classification=classify(ratio),
    )


def evaluate(organs: Sequence[OrganDose], limits: Mapping[str, float]) -> OrganRiskEvaluation:
    """
    Classify every organ and pick the worst case.

    The worst organ has the highest ratio among classified organs. On a tie
    the earlier organ in input order wins.
    """
    assessed = [_assess(organ, limits) for organ in organs]

    worst: Optional[OrganRisk] = None
    for risk in assessed:
        if risk.ratio is None:
            continue
        if worst is None or risk.ratio > worst.ratio:
            worst = risk

    if worst is None:
        logger.debug("evaluate: no classifiable organ among %d", len(assessed))
    else:
        logger.debug("evaluate: worst organ %s ratio=%.3f", worst.label, worst.ratio)
    return OrganRiskEvaluation(organs=assessed, worst=worst)
