"""
plan_service.py
---------------
Combine the engine components for requests that cover more than one tissue.

- evaluate_dual: tumour and one organ at risk from the same schedule.
- evaluate_multi: tumour plus any number of organs at risk. Each tissue is
  converted independently with its own alpha/beta, probabilities are read
  off the response models at the tissue's EQD2, and the organs are
  classified against the reference dose limits.

Constants come from the ReferenceData passed in, never from module state.
"""

from __future__ import annotations

from typing import List

from radiobio.models import RadiobiologyConstants, ReferenceData
from radiobio.schemas import (
    DoseMetrics,
    DualTissueRequest,
    DualTissueResponse,
    FractionationScheme,
    MultiOrganRequest,
    MultiOrganResponse,
    OrganResult,
    TumourResult,
)
from radiobio.services.dose_service import convert
from radiobio.services.reference import get_dose_limits
from radiobio.services.response_service import probability
from radiobio.services.risk_service import evaluate


def convert_with(scheme: FractionationScheme, constants: RadiobiologyConstants) -> DoseMetrics:
    return convert(scheme, correction=constants.time_correction, alpha=constants.alpha)


def evaluate_dual(
    req: DualTissueRequest, oar_ab: float, constants: RadiobiologyConstants
) -> DualTissueResponse:
    return DualTissueResponse(
        tumour=convert_with(req.scheme(req.alpha_beta), constants),
        oar=convert_with(req.scheme(oar_ab), constants),
    )


def evaluate_multi(req: MultiOrganRequest, ref: ReferenceData) -> MultiOrganResponse:
    """
    Tumour metrics with optional TCP, per-organ metrics with optional NTCP,
    and the organ risk classification.
    """
    constants = ref.constants
    tumour_ab = req.tumour_alpha_beta
    metrics = convert_with(req.scheme(tumour_ab), constants)
    tumour = TumourResult(
        **metrics.model_dump(),
        label=req.tumour.label if req.tumour is not None else None,
        alpha_beta=tumour_ab,
        tcp=probability(req.tumour, metrics.eqd2) if req.tumour is not None else None,
    )

    oars: List[OrganResult] = []
    for oar in req.oars:
        m = convert_with(req.scheme(oar.alpha_beta), constants)
        model = oar.response_model()
        oars.append(
            OrganResult(
                label=oar.label,
                alpha_beta=oar.alpha_beta,
                eqd2=m.eqd2,
                bed=m.bed,
                time_corrected_bed=m.time_corrected_bed,
                ntcp=probability(model, m.eqd2) if model is not None else None,
            )
        )

    return MultiOrganResponse(
        tumour=tumour,
        oars=oars,
        risk=evaluate(oars, get_dose_limits(ref)),
    )
