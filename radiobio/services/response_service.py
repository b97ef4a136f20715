"""
response_service.py
-------------------
Logistic dose-response model (TCP or NTCP) and its inverse.

    P(D) = 1 / (1 + exp(-4 * gamma50 * (D - D50) / D50))

P(D50) = 0.5 and the normalised slope at D50 is gamma50. The inverse,

    D = D50 * (1 - ln(1/p - 1) / (4 * gamma50))

turns a tolerated response probability into a dose limit, which is then
expressed in EQD2 so it can be compared with the plan's own EQD2.
"""

from __future__ import annotations

import logging
import math
from typing import Iterator, Tuple

from radiobio.schemas import RiskLimitResult, TissueResponseModel
from radiobio.services.dose_service import (
    as_decimal,
    eqd2_factor,
    is_positive,
    relative_effectiveness,
)
from radiobio.services.errors import InvalidCurve, InvalidModel, InvalidRisk, InvalidScheme


logger = logging.getLogger(__name__)

# Upper bound on the points a single curve may hold.
MAX_CURVE_POINTS = 10_000


def validate_model(model: TissueResponseModel) -> None:
    if not is_positive(model.D50):
        raise InvalidModel(f"D50 must be a finite number greater than zero for '{model.label}'.")
    if not is_positive(model.gamma50):
        raise InvalidModel(f"gamma50 must be a finite number greater than zero for '{model.label}'.")


def _logistic(z: float) -> float:
    # Two branches so exp() never sees a large positive argument.
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)


def probability(model: TissueResponseModel, dose: float) -> float:
    """
    Response probability at dose D (Gy).

    :raises InvalidModel: if D50 or gamma50 is not positive
    """
    validate_model(model)
    return _logistic(4.0 * model.gamma50 * (dose - model.D50) / model.D50)


class DoseResponseCurve:
    """
    (dose, probability) pairs over a regular dose axis.

    Points are computed lazily on iteration, and the curve can be iterated
    any number of times. The axis includes stop when it falls on a step.

    >>> curve = DoseResponseCurve(TissueResponseModel(label="cord", D50=60, gamma50=2.5))
    >>> len(curve)
    101
    """

    def __init__(
        self,
        model: TissueResponseModel,
        start: float = 0.0,
        stop: float = 100.0,
        step: float = 1.0,
    ) -> None:
        validate_model(model)
        if not is_positive(step):
            raise InvalidCurve("step must be a finite number greater than zero.")
        if not (math.isfinite(start) and math.isfinite(stop)):
            raise InvalidCurve("start and stop must be finite numbers.")
        if stop < start:
            raise InvalidCurve("stop must not be below start.")
        self.model = model
        self.start = start
        self.stop = stop
        self.step = step
        # Small tolerance so 0..100 by 0.1 still ends on 100.
        self._count = int(math.floor((stop - start) / step + 1e-9)) + 1
        if self._count > MAX_CURVE_POINTS:
            raise InvalidCurve(
                f"curve would have {self._count} points, the maximum is {MAX_CURVE_POINTS}."
            )

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        for i in range(self._count):
            # Index based, so rounding errors do not accumulate along the axis.
            dose = self.start + i * self.step
            yield dose, probability(self.model, dose)


def response_curve(
    model: TissueResponseModel,
    start: float = 0.0,
    stop: float = 100.0,
    step: float = 1.0,
) -> DoseResponseCurve:
    return DoseResponseCurve(model, start=start, stop=stop, step=step)


def dose_at_probability(model: TissueResponseModel, target_probability: float) -> float:
    """
    Closed-form inverse of probability().

    :raises InvalidRisk: if target_probability is not strictly between 0 and 1
    :raises InvalidModel: if D50 or gamma50 is not positive
    """
    if not 0.0 < target_probability < 1.0:
        raise InvalidRisk(
            f"target probability must be strictly between 0 and 1, got {target_probability}."
        )
    validate_model(model)
    return model.D50 * (1.0 - math.log(1.0 / target_probability - 1.0) / (4.0 * model.gamma50))


def invert(
    model: TissueResponseModel,
    target_probability: float,
    scheme_ab: float,
    dose_per_fraction: float,
) -> RiskLimitResult:
    """
    Dose limit for a tolerated response probability, expressed in EQD2.

    The physical dose D from the inverse curve is treated as D / d fractions
    of dose_per_fraction, converted to BED with scheme_ab and then to EQD2.

    :raises InvalidRisk: if target_probability is not in (0, 1)
    :raises InvalidModel: if D50 or gamma50 is not positive
    :raises InvalidScheme: if scheme_ab or dose_per_fraction is not positive
    """
    dose = dose_at_probability(model, target_probability)
    if not is_positive(scheme_ab):
        raise InvalidScheme("alpha_beta must be a finite number greater than zero.")
    if not is_positive(dose_per_fraction):
        raise InvalidScheme("dose_per_fraction must be a finite number greater than zero.")

    bed = as_decimal(dose) * relative_effectiveness(dose_per_fraction, scheme_ab)
    eqd2_limit = bed / eqd2_factor(scheme_ab)

    result = RiskLimitResult(
        eqd2_limit=float(eqd2_limit),
        dose=dose,
        number_of_fractions=dose / dose_per_fraction,
    )
    logger.debug("invert %s p=%s -> %s", model.label, target_probability, result)
    return result
