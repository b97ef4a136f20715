"""
reference.py
------------
Read-only accessors over the reference data loaded by radiobio.models.

This module exposes:
- get_reference_data() -> validated ReferenceData for this process
- get_tumour_presets(ref) -> tuple of tumour catalog entries
- get_organ_presets(ref) -> tuple of organ catalog entries
- get_dose_limits(ref) -> read-only mapping of organ label to EQD2 limit in Gy

The routes receive ReferenceData through FastAPI dependency injection, so
tests can swap in synthetic tables. The accessors never hand out the
model's own containers, so nothing downstream can mutate the tables.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from radiobio.config import get_settings
from radiobio.models import ReferenceData, TissuePreset, load_reference_data


def get_reference_data() -> ReferenceData:
    """
    Return the reference data for this process.

    The path comes from RADIOBIO_REFERENCE_PATH when set. Loading is cached
    in radiobio.models, so repeated calls return the same object.
    """
    return load_reference_data(get_settings().reference_path)


def get_tumour_presets(ref: Optional[ReferenceData] = None) -> Tuple[TissuePreset, ...]:
    ref = ref if ref is not None else get_reference_data()
    return tuple(ref.tumour_models)


def get_organ_presets(ref: Optional[ReferenceData] = None) -> Tuple[TissuePreset, ...]:
    ref = ref if ref is not None else get_reference_data()
    return tuple(ref.organ_models)


def get_dose_limits(ref: Optional[ReferenceData] = None) -> Mapping[str, float]:
    """
    Return published EQD2 ceilings in Gy keyed by organ label.

    The mapping is a read-only view over a private copy.
    """
    ref = ref if ref is not None else get_reference_data()
    return MappingProxyType(dict(ref.dose_limits))
