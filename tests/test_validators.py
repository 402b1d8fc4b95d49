from __future__ import annotations

import math

import pytest

from taskmatrix.domain.entities import UNSET, MetaPatch, PriorityOverride, TaskDraft
from taskmatrix.domain.enums import Effort, TaskStatus
from taskmatrix.domain.errors import InvalidConfig, ValidationError
from taskmatrix.domain.result import Err, Ok
from taskmatrix.services.validators import (
    parse_create,
    parse_override,
    parse_patch,
    parse_status,
    parse_wip_limit,
)


def test_parse_create_trims_title_and_drops_bad_optional_fields() -> None:
    result = parse_create({
        "title": "  Renew passport  ",
        "description": 42,
        "dueDate": "2026-03-01",
        "effort": "XL",
        "tags": ["travel", 3, "docs"],
    })

    assert result == Ok(TaskDraft(
        title="Renew passport",
        description="",
        due_date="2026-03-01",
        effort=None,
        tags=("travel", "docs"),
    ))


@pytest.mark.parametrize("payload", [None, [], "title", {}, {"title": "   "}, {"title": 5}])
def test_parse_create_rejects_missing_title(payload) -> None:
    result = parse_create(payload)

    assert isinstance(result, Err)
    assert isinstance(result.error, ValidationError)


def test_parse_patch_keeps_absent_fields_unset() -> None:
    patch = parse_patch({"description": "more detail"}).unwrap()

    assert patch.description == "more detail"
    assert patch.title is UNSET
    assert patch.changes() == {"description": "more detail"}


def test_parse_patch_allows_clearing_optional_fields() -> None:
    patch = parse_patch({"dueDate": None, "effort": None, "tags": []}).unwrap()

    assert patch == MetaPatch(due_date=None, effort=None, tags=())


def test_parse_patch_normalizes_values() -> None:
    patch = parse_patch({"title": " New ", "effort": "M", "tags": ["a", "a"]}).unwrap()

    assert patch.title == "New"
    assert patch.effort == Effort.MEDIUM
    assert patch.tags == ("a", "a")


@pytest.mark.parametrize(
    "payload",
    [
        {"title": ""},
        {"description": None},
        {"dueDate": 20260101},
        {"effort": "huge"},
        {"tags": "a,b"},
        {"tags": ["a", 1]},
        ["title"],
    ],
)
def test_parse_patch_rejects_wrong_types(payload) -> None:
    result = parse_patch(payload)

    assert isinstance(result, Err)
    assert isinstance(result.error, ValidationError)


def test_parse_override_requires_real_booleans() -> None:
    assert parse_override({"importance": True, "urgency": False}) == Ok(
        PriorityOverride(importance=True, urgency=False)
    )
    assert isinstance(parse_override({"importance": 1, "urgency": False}), Err)
    assert isinstance(parse_override({"importance": True}), Err)


def test_parse_status() -> None:
    assert parse_status("IN_PROGRESS") == Ok(TaskStatus.IN_PROGRESS)
    assert isinstance(parse_status("in progress"), Err)
    assert isinstance(parse_status(None), Err)


@pytest.mark.parametrize("value,expected", [(1, 1), (3, 3), (4.9, 4)])
def test_parse_wip_limit_accepts_positive_numbers(value, expected: int) -> None:
    assert parse_wip_limit(value) == Ok(expected)


@pytest.mark.parametrize("value", [0, -1, 0.5, math.inf, math.nan, True, "3", None])
def test_parse_wip_limit_rejects_invalid_values(value) -> None:
    result = parse_wip_limit(value)

    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidConfig)
