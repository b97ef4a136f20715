"""
models.py
---------
Validated loader for the static radiobiology reference data stored in
radiobio/data/reference.json.

The file holds:
- tumour_models: tumour presets (label, D50, gamma50, ab)
- organ_models: organ-at-risk presets with the same shape
- dose_limits: published EQD2 ceilings in Gy keyed by organ label
- constants: default clinical constants for the LQ engine

Usage example
-------------
from radiobio.models import load_reference_data
ref = load_reference_data()                # validated, cached object model
ref.dose_limits["Spinal cord"]             # 50.0
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from radiobio.schemas import TimeCorrection


logger = logging.getLogger(__name__)


# -------------------------------
# Pydantic models for the JSON
# -------------------------------

class TissuePreset(BaseModel):
    """
    Catalog entry: response model parameters plus the tissue's alpha/beta.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    D50: float = Field(..., gt=0.0)
    gamma50: float = Field(..., gt=0.0)
    ab: float = Field(..., gt=0.0)


class RadiobiologyConstants(BaseModel):
    """
    Defaults for the constants the LQ engine needs but a request does not carry.

    - alpha: LQ alpha in 1/Gy, used for the survival fraction.
    - time_correction: repopulation correction applied to BED.
    - gap_daily_bed_loss: BED lost per missed treatment day, in Gy/day.
    """
    model_config = ConfigDict(frozen=True)

    alpha: float = Field(..., gt=0.0)
    time_correction: TimeCorrection
    gap_daily_bed_loss: float = Field(..., ge=0.0)


class ReferenceData(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    units: Dict[str, str]
    tumour_models: List[TissuePreset]
    organ_models: List[TissuePreset]
    dose_limits: Dict[str, float]
    constants: RadiobiologyConstants

    @field_validator("units")
    @classmethod
    def _validate_units(cls, u: Dict[str, str]) -> Dict[str, str]:
        exp = {"dose": "Gy", "time": "days", "alpha": "1/Gy"}
        for key, expected in exp.items():
            if key not in u:
                raise ValueError(f"units must contain '{key}'")
            if u[key] != expected:
                raise ValueError(f"units['{key}'] should be '{expected}', got '{u[key]}'")
        return u

    @field_validator("dose_limits")
    @classmethod
    def _validate_limits(cls, limits: Dict[str, float]) -> Dict[str, float]:
        for label, limit in limits.items():
            if limit <= 0:
                raise ValueError(f"dose limit for '{label}' must be > 0, got {limit}")
        return limits

    @model_validator(mode="after")
    def _validate_unique_labels(self) -> "ReferenceData":
        for name in ("tumour_models", "organ_models"):
            labels = [p.label for p in getattr(self, name)]
            dupes = sorted({lbl for lbl in labels if labels.count(lbl) > 1})
            if dupes:
                raise ValueError(f"{name} has duplicate labels: {dupes}")
        return self


# -------------------------------
# Loader helpers
# -------------------------------

def _default_json_path() -> Path:
    """
    Compute the default absolute path to radiobio/data/reference.json.
    """
    return Path(__file__).resolve().parent / "data" / "reference.json"


@lru_cache(maxsize=None)
def load_reference_data(path: Optional[str] = None) -> ReferenceData:
    """
    Load and validate the reference data from JSON.

    Results are cached per path, since the file is static for a given process.

    :param path: optional explicit path to the JSON file
    :return: validated ReferenceData model
    :raises FileNotFoundError: if the file does not exist
    :raises ValueError: if validation fails
    """
    json_path = Path(path) if path is not None else _default_json_path()
    if not json_path.exists():
        raise FileNotFoundError(f"Reference data file not found at {json_path}")

    with json_path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    ref = ReferenceData(**data)
    logger.info(
        "Loaded reference data %s from %s (%d tumour presets, %d organ presets, %d limits)",
        ref.version, json_path, len(ref.tumour_models), len(ref.organ_models), len(ref.dose_limits),
    )
    return ref
