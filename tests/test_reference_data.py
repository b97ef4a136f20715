"""
test_reference_data.py
----------------------
Validation of the bundled reference JSON and its loader.
"""

import json
import pytest

from radiobio.models import ReferenceData, load_reference_data
from radiobio.services.reference import get_dose_limits, get_organ_presets, get_tumour_presets


def _raw():
    return load_reference_data().model_dump()


def test_bundled_file_loads():
    ref = load_reference_data()
    assert ref.constants.alpha == 0.3
    assert ref.constants.time_correction.kickoff_days == 28.0
    assert ref.constants.time_correction.daily_bed_loss == 0.9
    assert ref.constants.gap_daily_bed_loss == 0.9


def test_loader_is_cached():
    assert load_reference_data() is load_reference_data()


def test_every_limited_organ_has_a_preset():
    ref = load_reference_data()
    organ_labels = {p.label for p in ref.organ_models}
    assert set(ref.dose_limits).issubset(organ_labels)


def test_dose_limits_are_read_only():
    limits = get_dose_limits()
    with pytest.raises(TypeError):
        limits["Spinal cord"] = 99.0
    assert get_dose_limits()["Spinal cord"] == 50.0


def test_presets_are_tuples_of_frozen_models():
    tumours = get_tumour_presets()
    organs = get_organ_presets()
    assert isinstance(tumours, tuple) and isinstance(organs, tuple)
    with pytest.raises(Exception):
        organs[0].D50 = 1.0


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_reference_data(str(tmp_path / "nope.json"))


def test_explicit_path(tmp_path):
    data = _raw()
    data["version"] = "test"
    path = tmp_path / "ref.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    assert load_reference_data(str(path)).version == "test"


def test_rejects_non_positive_limit():
    data = _raw()
    data["dose_limits"]["Heart"] = 0.0
    with pytest.raises(ValueError):
        ReferenceData(**data)


def test_rejects_duplicate_labels():
    data = _raw()
    data["organ_models"].append(dict(data["organ_models"][0]))
    with pytest.raises(ValueError):
        ReferenceData(**data)


def test_rejects_non_positive_model_parameter():
    data = _raw()
    data["tumour_models"][0]["D50"] = -1.0
    with pytest.raises(ValueError):
        ReferenceData(**data)


def test_rejects_wrong_units():
    data = _raw()
    data["units"]["dose"] = "cGy"
    with pytest.raises(ValueError):
        ReferenceData(**data)
