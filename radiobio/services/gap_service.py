"""
gap_service.py
--------------
Compensation for unplanned treatment interruptions.

Each missed day lets the tumour repopulate, modelled as a fixed BED loss
per day. The lost BED is restored with extra fractions at the original
dose per fraction:

    bed_lost            = missed_days * daily_bed_loss
    eqd2_lost           = bed_lost / (1 + 2 / (alpha/beta))
    extra_physical_dose = bed_lost / (1 + d / (alpha/beta))
    extra_fractions     = ceil(extra_physical_dose / d)

Partial fractions cannot be delivered, so extra_fractions rounds up.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Optional

from radiobio.schemas import FractionationScheme, GapCompensationResult
from radiobio.services.dose_service import (
    as_decimal,
    eqd2_factor,
    is_non_negative,
    relative_effectiveness,
    validate_scheme,
)
from radiobio.services.errors import InvalidGap
from radiobio.services.reference import get_reference_data


logger = logging.getLogger(__name__)

# Fractions within this distance of a whole number are not rounded up.
_FRACTION_TOL = Decimal("1e-9")


def compensate(
    scheme: FractionationScheme,
    missed_days: int,
    daily_bed_loss: Optional[float] = None,
) -> GapCompensationResult:
    """
    Lost biological effect of a gap and the extra dose that restores it.

    :param scheme: the intended, uninterrupted schedule
    :param missed_days: treatment days lost to the interruption
    :param daily_bed_loss: BED lost per missed day in Gy/day, reference default if None
    :raises InvalidGap: if missed_days or daily_bed_loss is negative
    :raises InvalidScheme: if the scheme itself is invalid
    """
    if missed_days < 0:
        raise InvalidGap("missed_days must not be negative.")
    validate_scheme(scheme)
    if daily_bed_loss is None:
        daily_bed_loss = get_reference_data().constants.gap_daily_bed_loss
    if not is_non_negative(daily_bed_loss):
        raise InvalidGap("daily_bed_loss must be a finite, non-negative number.")

    if missed_days == 0:
        return GapCompensationResult(
            bed_lost=0.0, eqd2_lost=0.0, extra_physical_dose=0.0, extra_fractions=0
        )

    bed_lost = missed_days * as_decimal(daily_bed_loss)
    eqd2_lost = bed_lost / eqd2_factor(scheme.alpha_beta)
    extra_dose = bed_lost / relative_effectiveness(scheme.dose_per_fraction, scheme.alpha_beta)
    fractions = extra_dose / as_decimal(scheme.dose_per_fraction)
    extra_fractions = max(0, math.ceil(fractions - _FRACTION_TOL))

    result = GapCompensationResult(
        bed_lost=float(bed_lost),
        eqd2_lost=float(eqd2_lost),
        extra_physical_dose=float(extra_dose),
        extra_fractions=extra_fractions,
    )
    logger.debug("compensate %s missed_days=%d -> %s", scheme, missed_days, result)
    return result
