"""
dose_service.py
---------------
Linear-quadratic (LQ) dose conversion for the radiobiology engine.

Responsibilities:
- Validate a fractionation scheme.
- Convert it to LQ metrics:
    total_dose = n * d
    BED        = total_dose * (1 + d / (alpha/beta))
    EQD2       = BED / (1 + 2 / (alpha/beta))
- Correct BED for repopulation during protracted treatment.
- Estimate clonogen survival from BED.

Design notes:
- Internal arithmetic for total dose, BED and EQD2 uses Decimal for stable
  products and quotients. Conversion to float happens only at the boundary.
- Clinical constants (alpha, repopulation kickoff and daily loss) are
  parameters with defaults taken from the reference data, never literals
  in the formulas.

This module is intentionally free of FastAPI specifics. It operates on
Pydantic domain records and returns Pydantic domain records.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal, getcontext
from typing import Optional

from radiobio.schemas import DoseMetrics, FractionationScheme, TimeCorrection
from radiobio.services.errors import InvalidScheme
from radiobio.services.reference import get_reference_data


# Set a reasonably high precision for Decimal to avoid accumulation errors.
# We convert to float only at the API boundary.
getcontext().prec = 28

logger = logging.getLogger(__name__)

# EQD2 reference dose per fraction in Gy.
REFERENCE_DOSE_PER_FRACTION = Decimal("2")


def as_decimal(x: float) -> Decimal:
    return Decimal(str(x))


# Both reject NaN and infinities.
def is_positive(x: float) -> bool:
    return math.isfinite(x) and x > 0


def is_non_negative(x: float) -> bool:
    return math.isfinite(x) and x >= 0


def validate_scheme(scheme: FractionationScheme) -> None:
    """
    Reject schemes the LQ formulas cannot handle.

    Raises:
        InvalidScheme if dose per fraction, fraction count or alpha/beta is
        not a positive number, or if treatment time is negative or not finite.
        NaN and infinite values are rejected.
    """
    if not is_positive(scheme.dose_per_fraction):
        raise InvalidScheme("dose_per_fraction must be a finite number greater than zero.")
    if not scheme.number_of_fractions > 0:
        raise InvalidScheme("number_of_fractions must be greater than zero.")
    if not is_positive(scheme.alpha_beta):
        raise InvalidScheme("alpha_beta must be a finite number greater than zero.")
    if not is_non_negative(scheme.treatment_time):
        raise InvalidScheme("treatment_time must be a finite, non-negative number.")


def relative_effectiveness(dose_per_fraction: float, alpha_beta: float) -> Decimal:
    """
    RE = 1 + d / (alpha/beta). BED = total dose * RE.
    """
    return 1 + as_decimal(dose_per_fraction) / as_decimal(alpha_beta)


def eqd2_factor(alpha_beta: float) -> Decimal:
    """
    RE of the 2 Gy reference schedule. EQD2 = BED / eqd2_factor.
    """
    return 1 + REFERENCE_DOSE_PER_FRACTION / as_decimal(alpha_beta)


def time_corrected_bed(bed: float, treatment_time: float, correction: TimeCorrection) -> float:
    """
    Subtract repopulation from BED:

        BED_t = BED - daily_bed_loss * max(0, T - kickoff_days)

    The result is floored at zero. For T at or below the kickoff day BED is
    returned unchanged, so BED_t -> BED as T -> 0.
    """
    days_after_kickoff = max(0.0, treatment_time - correction.kickoff_days)
    return max(0.0, bed - correction.daily_bed_loss * days_after_kickoff)


def survival_fraction(bed: float, alpha: float) -> float:
    """
    LQ survival S = exp(-n (alpha d + beta d^2)).

    With beta = alpha / (alpha/beta) the exponent is alpha * BED, so alpha
    is the only constant needed besides the scheme's own alpha/beta.
    """
    if not is_positive(alpha):
        raise InvalidScheme("alpha must be a finite number greater than zero.")
    return math.exp(-alpha * bed)


def convert(
    scheme: FractionationScheme,
    correction: Optional[TimeCorrection] = None,
    alpha: Optional[float] = None,
) -> DoseMetrics:
    """
    Convert a fractionation scheme into LQ metrics.

    :param scheme: the schedule and the tissue's alpha/beta
    :param correction: repopulation correction, reference default if None
    :param alpha: LQ alpha in 1/Gy for the survival fraction, reference default if None
    :raises InvalidScheme: for non-positive inputs
    """
    validate_scheme(scheme)
    if correction is None or alpha is None:
        constants = get_reference_data().constants
        correction = correction if correction is not None else constants.time_correction
        alpha = alpha if alpha is not None else constants.alpha

    total = as_decimal(scheme.dose_per_fraction) * scheme.number_of_fractions
    bed = total * relative_effectiveness(scheme.dose_per_fraction, scheme.alpha_beta)
    eqd2 = bed / eqd2_factor(scheme.alpha_beta)

    bed_f = float(bed)
    metrics = DoseMetrics(
        total_dose=float(total),
        bed=bed_f,
        eqd2=float(eqd2),
        time_corrected_bed=time_corrected_bed(bed_f, scheme.treatment_time, correction),
        survival_fraction=survival_fraction(bed_f, alpha),
    )
    logger.debug("convert %s -> %s", scheme, metrics)
    return metrics
