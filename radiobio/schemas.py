"""
schemas.py
----------
Pydantic models for the radiobiology engine and the API payloads built on it.

Key conventions
- Units:
    dose_per_fraction, total_dose, bed, eqd2, D50, limits: gray (Gy)
    treatment_time: days
    alpha_beta: gray (Gy)
    gamma50, probabilities, survival_fraction: dimensionless
- Domain records (FractionationScheme, DoseMetrics, ...) are frozen. Every
  computation returns a new record; nothing is mutated in place.
- Positivity of the biological inputs is not enforced here. The engine
  validates them and raises the errors in radiobio.services.errors, so the
  caller sees the same message whether it goes through HTTP or Python.
  Pydantic only enforces types and shape.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _clean_label(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("label must be a non-empty string.")
    return v


# -------------------------------
# Domain records
# -------------------------------

class FractionationScheme(BaseModel):
    """
    One fractionation schedule evaluated against one tissue.

    An organ may carry a different alpha_beta than the tumour, so a request
    usually produces one scheme per tissue from the same physical schedule.
    """
    model_config = ConfigDict(frozen=True)

    dose_per_fraction: float = Field(..., description="Physical dose per fraction in Gy. Must be > 0.")
    number_of_fractions: int = Field(..., description="Number of fractions. Must be > 0.")
    treatment_time: float = Field(0.0, description="Overall treatment time in days. Must be >= 0.")
    alpha_beta: float = Field(..., description="Tissue alpha/beta ratio in Gy. Must be > 0.")


class TissueResponseModel(BaseModel):
    """
    Logistic dose-response parameters for a tumour (TCP) or organ (NTCP).
    """
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Identifier shown next to the curve, e.g. 'Spinal cord'.")
    D50: float = Field(..., description="Dose in Gy giving 50% response probability.")
    gamma50: float = Field(..., description="Normalised slope of the curve at D50.")

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: str) -> str:
        return _clean_label(v)


class TimeCorrection(BaseModel):
    """
    Repopulation correction applied to BED for protracted schedules.

    BED is reduced by daily_bed_loss for every day of treatment beyond
    kickoff_days.
    """
    model_config = ConfigDict(frozen=True)

    kickoff_days: float = Field(..., ge=0.0, description="Day on which accelerated repopulation starts.")
    daily_bed_loss: float = Field(..., ge=0.0, description="BED lost per day after kickoff, in Gy/day.")


class DoseMetrics(BaseModel):
    """
    LQ-model metrics for one scheme.
    """
    model_config = ConfigDict(frozen=True)

    total_dose: float
    bed: float
    eqd2: float
    time_corrected_bed: float
    survival_fraction: float


class OrganDose(BaseModel):
    """
    Minimal per-organ input to the risk evaluator: a label and its EQD2.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    eqd2: float

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: str) -> str:
        return _clean_label(v)


class OrganResult(OrganDose):
    """
    Per-organ result of a multi-organ evaluation.

    Fields
    - alpha_beta: the organ's own alpha/beta used for the conversion.
    - ntcp: complication probability at eqd2, only when the request carried
      a response model for the organ.
    """
    alpha_beta: float
    bed: float
    time_corrected_bed: float
    ntcp: Optional[float] = None


class RiskClassification(str, Enum):
    ok = "ok"
    warn = "warn"
    fail = "fail"


class OrganRisk(BaseModel):
    """
    Classification of one organ against its dose limit.

    limit, ratio and classification are all None when the organ has no
    known limit. That is a normal outcome, not an error.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    eqd2: float
    limit: Optional[float] = None
    ratio: Optional[float] = None
    classification: Optional[RiskClassification] = None


class OrganRiskEvaluation(BaseModel):
    model_config = ConfigDict(frozen=True)

    organs: List[OrganRisk]
    worst: Optional[OrganRisk] = None


class GapCompensationResult(BaseModel):
    """
    Biological cost of a treatment interruption and the dose that restores it.
    """
    model_config = ConfigDict(frozen=True)

    bed_lost: float
    eqd2_lost: float
    extra_physical_dose: float
    extra_fractions: int


class RiskLimitResult(BaseModel):
    """
    Dose limit derived from a target response probability.

    Fields
    - dose: physical total dose at which the model reaches the target.
    - number_of_fractions: dose / dose_per_fraction, not rounded.
    - eqd2_limit: dose expressed in EQD2 for the given alpha/beta.
    """
    model_config = ConfigDict(frozen=True)

    eqd2_limit: float
    dose: float
    number_of_fractions: float


class CurvePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    dose: float
    probability: float


# -------------------------------
# Request envelopes
# -------------------------------

class DualTissueRequest(BaseModel):
    """
    Tumour plus one organ at risk sharing the same physical schedule.

    oar_ab may also be supplied as a query parameter; the body value wins.
    """
    dose_per_fraction: float
    number_of_fractions: int
    treatment_time: float = 0.0
    alpha_beta: float = Field(..., description="Tumour alpha/beta in Gy.")
    oar_ab: Optional[float] = Field(None, description="Organ at risk alpha/beta in Gy.")

    def scheme(self, alpha_beta: float) -> FractionationScheme:
        return FractionationScheme(
            dose_per_fraction=self.dose_per_fraction,
            number_of_fractions=self.number_of_fractions,
            treatment_time=self.treatment_time,
            alpha_beta=alpha_beta,
        )


class OarSpec(BaseModel):
    """
    One organ at risk in a multi-organ request.

    D50 and gamma50 are optional, but must come together. When present the
    response carries the organ's NTCP at its EQD2.
    """
    label: str
    alpha_beta: float
    D50: Optional[float] = None
    gamma50: Optional[float] = None

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: str) -> str:
        return _clean_label(v)

    @model_validator(mode="after")
    def _model_pair(self) -> "OarSpec":
        if (self.D50 is None) != (self.gamma50 is None):
            raise ValueError("D50 and gamma50 must be given together.")
        return self

    def response_model(self) -> Optional[TissueResponseModel]:
        if self.D50 is None:
            return None
        return TissueResponseModel(label=self.label, D50=self.D50, gamma50=self.gamma50)


class MultiOrganRequest(BaseModel):
    """
    Tumour plus any number of organs at risk.

    The tumour alpha/beta is tumour_ab when given, else alpha_beta.
    """
    dose_per_fraction: float
    number_of_fractions: int
    treatment_time: float = 0.0
    alpha_beta: Optional[float] = None
    tumour_ab: Optional[float] = None
    tumour: Optional[TissueResponseModel] = Field(None, description="Tumour TCP model.")
    oars: List[OarSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _tumour_ab_present(self) -> "MultiOrganRequest":
        if self.tumour_ab is None and self.alpha_beta is None:
            raise ValueError("tumour_ab or alpha_beta is required.")
        return self

    @property
    def tumour_alpha_beta(self) -> float:
        return self.tumour_ab if self.tumour_ab is not None else self.alpha_beta

    def scheme(self, alpha_beta: float) -> FractionationScheme:
        return FractionationScheme(
            dose_per_fraction=self.dose_per_fraction,
            number_of_fractions=self.number_of_fractions,
            treatment_time=self.treatment_time,
            alpha_beta=alpha_beta,
        )


class GapRequest(BaseModel):
    dose_per_fraction: float
    num_fractions: int
    alpha_beta: float
    missed_days: int
    treatment_time: float = 0.0
    daily_bed_loss: Optional[float] = Field(
        None, description="Override for the BED lost per missed day, in Gy/day."
    )

    def scheme(self) -> FractionationScheme:
        return FractionationScheme(
            dose_per_fraction=self.dose_per_fraction,
            number_of_fractions=self.num_fractions,
            treatment_time=self.treatment_time,
            alpha_beta=self.alpha_beta,
        )


class RiskLimitRequest(BaseModel):
    label: str = "custom"
    D50: float
    gamma50: float
    prob: float = Field(..., description="Target response probability, strictly between 0 and 1.")
    alpha_beta: float
    dose_per_fraction: float

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: str) -> str:
        return _clean_label(v)

    def response_model(self) -> TissueResponseModel:
        return TissueResponseModel(label=self.label, D50=self.D50, gamma50=self.gamma50)


class CurveRequest(BaseModel):
    """
    Dose-response curve over a regular dose axis, 0-100 Gy at 1 Gy by default.
    """
    label: str
    D50: float
    gamma50: float
    start: float = 0.0
    stop: float = 100.0
    step: float = 1.0

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: str) -> str:
        return _clean_label(v)

    def response_model(self) -> TissueResponseModel:
        return TissueResponseModel(label=self.label, D50=self.D50, gamma50=self.gamma50)


class RiskEvaluateRequest(BaseModel):
    organs: List[OrganDose] = Field(default_factory=list)


# -------------------------------
# Response envelopes
# -------------------------------

class DualTissueResponse(BaseModel):
    tumour: DoseMetrics
    oar: DoseMetrics


class TumourResult(DoseMetrics):
    label: Optional[str] = None
    alpha_beta: float
    tcp: Optional[float] = None


class MultiOrganResponse(BaseModel):
    tumour: TumourResult
    oars: List[OrganResult]
    risk: OrganRiskEvaluation


class CurveResponse(BaseModel):
    label: str
    points: List[CurvePoint]
