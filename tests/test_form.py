from __future__ import annotations

import pytest
from pydantic import ValidationError

from client.form import FormCollector, FormValidationError
from schemas.generation import DescriptionLength, Tone


def fill(form: FormCollector) -> FormCollector:
    form.title = "Focus Timer"
    form.set_feature(0, "Pomodoro mode")
    form.add_feature("Dark theme")
    form.audience = "remote workers"
    return form


def test_defaults() -> None:
    form = FormCollector()

    assert form.features == [""]
    assert form.tone == "professional"
    assert form.length == "medium"
    assert form.keywords == ""


def test_removing_last_feature_is_a_noop() -> None:
    form = FormCollector()

    form.remove_feature(0)

    assert form.features == [""]


def test_remove_feature_by_index() -> None:
    form = FormCollector()
    form.set_feature(0, "one")
    form.add_feature("two")
    form.add_feature("three")

    form.remove_feature(1)
    form.remove_feature(0)
    form.remove_feature(0)

    assert form.features == ["three"]


def test_valid_form_builds_request() -> None:
    form = fill(FormCollector())
    form.add_feature("   ")

    request = form.validate()

    assert request.title == "Focus Timer"
    assert request.features == ("Pomodoro mode", "Dark theme")
    assert request.tone is Tone.professional
    assert request.length is DescriptionLength.medium
    assert request.keywords == ""
    assert form.errors == {}


def test_empty_required_fields_are_named_exactly() -> None:
    form = FormCollector()
    form.audience = "remote workers"

    with pytest.raises(FormValidationError) as excinfo:
        form.validate()

    assert excinfo.value.errors == {
        "title": "Name is required",
        "features": "At least one feature is required",
    }
    assert form.errors == excinfo.value.errors


def test_blank_tone_and_whitespace_title_are_rejected() -> None:
    form = fill(FormCollector())
    form.title = "   "
    form.tone = ""

    with pytest.raises(FormValidationError) as excinfo:
        form.validate()

    assert set(excinfo.value.errors) == {"title", "tone"}


def test_errors_clear_after_successful_submit() -> None:
    form = FormCollector()
    with pytest.raises(FormValidationError):
        form.validate()

    fill(form).validate()

    assert form.errors == {}


def test_reset_restores_defaults() -> None:
    form = fill(FormCollector())
    form.tone = "visionary"

    form.reset()

    assert form.values() == {
        "title": "",
        "features": [""],
        "audience": "",
        "tone": "professional",
        "keywords": "",
        "length": "medium",
    }


def test_submitted_request_cannot_be_mutated() -> None:
    request = fill(FormCollector()).validate()

    with pytest.raises(AttributeError):
        request.features.append("Sneaky feature")  # type: ignore[attr-defined]
    with pytest.raises(ValidationError):
        request.title = "Other"  # type: ignore[misc]
    assert request.features == ("Pomodoro mode", "Dark theme")
