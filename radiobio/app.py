"""
app.py
------
FastAPI entry point for the Radiobiology Fractionation API.

Routes:
- GET  /health
- GET  /presets/tumours
- GET  /presets/organs
- GET  /limits
- POST /calculate
- POST /calculate/dual
- POST /calculate/multi
- POST /gap
- POST /risk-limit
- POST /curve
- POST /risk/evaluate

Run locally:
    uvicorn radiobio.app:app --reload

Swagger docs:
    http://127.0.0.1:8000/docs
"""

import logging
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from radiobio.config import configure_logging, get_settings
from radiobio.models import ReferenceData, TissuePreset
from radiobio.schemas import (
    CurvePoint,
    CurveRequest,
    CurveResponse,
    DoseMetrics,
    DualTissueRequest,
    DualTissueResponse,
    FractionationScheme,
    GapCompensationResult,
    GapRequest,
    MultiOrganRequest,
    MultiOrganResponse,
    OrganRiskEvaluation,
    RiskEvaluateRequest,
    RiskLimitRequest,
    RiskLimitResult,
)
from radiobio.services.errors import RadiobiologyError
from radiobio.services.gap_service import compensate
from radiobio.services.plan_service import convert_with, evaluate_dual, evaluate_multi
from radiobio.services.reference import (
    get_dose_limits,
    get_organ_presets,
    get_reference_data,
    get_tumour_presets,
)
from radiobio.services.response_service import invert, response_curve
from radiobio.services.risk_service import evaluate

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

# FastAPI app metadata
app = FastAPI(
    title="Radiobiology Fractionation API",
    version="0.1.0",
    description="""
Linear-quadratic evaluation of radiotherapy fractionation schemes.

Notes:
- Units: doses in gray (Gy), treatment time in days, alpha/beta in Gy.
- TCP/NTCP use a logistic model in (D50, gamma50). Results are model
  outputs, not validated clinical predictions.
""",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


def _bad_request(e: RadiobiologyError) -> HTTPException:
    logger.warning("Rejected request: %s: %s", type(e).__name__, e)
    return HTTPException(status_code=400, detail=str(e))


@app.get("/health")
def health() -> dict:
    """Simple health check to confirm API is alive."""
    return {"status": "ok"}


@app.get("/presets/tumours", response_model=List[TissuePreset])
def tumour_presets(ref: ReferenceData = Depends(get_reference_data)) -> List[TissuePreset]:
    """Return the tumour catalog (label, D50, gamma50, ab)."""
    return list(get_tumour_presets(ref))


@app.get("/presets/organs", response_model=List[TissuePreset])
def organ_presets(ref: ReferenceData = Depends(get_reference_data)) -> List[TissuePreset]:
    """Return the organ-at-risk catalog (label, D50, gamma50, ab)."""
    return list(get_organ_presets(ref))


@app.get("/limits")
def dose_limits(ref: ReferenceData = Depends(get_reference_data)) -> Dict[str, float]:
    """Return published EQD2 limits in Gy keyed by organ label."""
    return dict(get_dose_limits(ref))


@app.post("/calculate", response_model=DoseMetrics)
def calculate(
    scheme: FractionationScheme, ref: ReferenceData = Depends(get_reference_data)
) -> DoseMetrics:
    """
    Total dose, BED, EQD2, time corrected BED and survival fraction for one tissue.
    """
    try:
        return convert_with(scheme, ref.constants)
    except RadiobiologyError as e:
        raise _bad_request(e)


@app.post("/calculate/dual", response_model=DualTissueResponse)
def calculate_dual(
    req: DualTissueRequest,
    oar_ab: Optional[float] = Query(None, description="Organ at risk alpha/beta, if not in the body."),
    ref: ReferenceData = Depends(get_reference_data),
) -> DualTissueResponse:
    """
    Tumour and organ at risk metrics for the same schedule.

    Example:
        POST /calculate/dual?oar_ab=3
        {
            "dose_per_fraction": 2, "number_of_fractions": 30,
            "treatment_time": 40, "alpha_beta": 10
        }
    """
    resolved_ab = req.oar_ab if req.oar_ab is not None else oar_ab
    if resolved_ab is None:
        raise HTTPException(status_code=400, detail="oar_ab is required in the body or the query string.")
    try:
        return evaluate_dual(req, resolved_ab, ref.constants)
    except RadiobiologyError as e:
        raise _bad_request(e)


@app.post("/calculate/multi", response_model=MultiOrganResponse)
def calculate_multi(
    req: MultiOrganRequest, ref: ReferenceData = Depends(get_reference_data)
) -> MultiOrganResponse:
    """
    Tumour plus any number of organs at risk, each with its own alpha/beta,
    classified against the reference dose limits.
    """
    try:
        return evaluate_multi(req, ref)
    except RadiobiologyError as e:
        raise _bad_request(e)


@app.post("/gap", response_model=GapCompensationResult)
def gap_compensation(
    req: GapRequest, ref: ReferenceData = Depends(get_reference_data)
) -> GapCompensationResult:
    """
    BED and EQD2 lost to missed treatment days and the extra dose that restores them.
    """
    daily_loss = (
        req.daily_bed_loss if req.daily_bed_loss is not None else ref.constants.gap_daily_bed_loss
    )
    try:
        return compensate(req.scheme(), req.missed_days, daily_bed_loss=daily_loss)
    except RadiobiologyError as e:
        raise _bad_request(e)


@app.post("/risk-limit", response_model=RiskLimitResult)
def risk_limit(req: RiskLimitRequest) -> RiskLimitResult:
    """
    EQD2 dose limit at which the response model reaches the probability `prob`.
    """
    try:
        return invert(req.response_model(), req.prob, req.alpha_beta, req.dose_per_fraction)
    except RadiobiologyError as e:
        raise _bad_request(e)


@app.post("/curve", response_model=CurveResponse)
def curve(req: CurveRequest) -> CurveResponse:
    """
    Dose-response curve for plotting, 0-100 Gy at 1 Gy steps by default.
    """
    try:
        points = response_curve(req.response_model(), start=req.start, stop=req.stop, step=req.step)
        return CurveResponse(
            label=req.label,
            points=[CurvePoint(dose=d, probability=p) for d, p in points],
        )
    except RadiobiologyError as e:
        raise _bad_request(e)


@app.post("/risk/evaluate", response_model=OrganRiskEvaluation)
def risk_evaluate(
    req: RiskEvaluateRequest, ref: ReferenceData = Depends(get_reference_data)
) -> OrganRiskEvaluation:
    """
    Classify organ EQD2 values against the reference dose limits.
    Organs without a limit are returned unclassified.
    """
    return evaluate(req.organs, get_dose_limits(ref))
