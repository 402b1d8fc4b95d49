from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from itertools import product

import pytest

from taskmatrix.domain import lifecycle
from taskmatrix.domain.entities import TaskEntity
from taskmatrix.domain.enums import TaskStatus
from taskmatrix.domain.errors import InvalidState, InvalidTransition, WipLimitExceeded
from taskmatrix.domain.result import Err, Ok

CREATED = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)
LATER = CREATED + timedelta(hours=2)

LEGAL = {
    (TaskStatus.BACKLOG, TaskStatus.TODO),
    (TaskStatus.TODO, TaskStatus.IN_PROGRESS),
    (TaskStatus.IN_PROGRESS, TaskStatus.REVIEW),
    (TaskStatus.REVIEW, TaskStatus.DONE),
}


def make_task(status: TaskStatus = TaskStatus.BACKLOG, **overrides) -> TaskEntity:
    fields = dict(
        id="t1",
        title="Write report",
        description="",
        status=status,
        importance=False,
        urgency=False,
        ai_suggested_importance=False,
        ai_suggested_urgency=False,
        ai_explanation="",
        effort=None,
        due_date=None,
        tags=(),
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return TaskEntity(**fields)


@pytest.mark.parametrize("source,target", list(product(TaskStatus, TaskStatus)))
def test_transition_succeeds_only_along_the_path(source: TaskStatus, target: TaskStatus) -> None:
    result = lifecycle.transition(
        make_task(source), target, other_in_progress=0, wip_limit=3, now=LATER
    )

    if (source, target) in LEGAL:
        assert isinstance(result, Ok)
        assert result.value.status == target
    else:
        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidTransition)
        assert f"{source.value} → {target.value}" in result.error.message


def test_successful_transition_only_changes_status_and_timestamp() -> None:
    task = make_task(TaskStatus.TODO, importance=True, tags=("a",))

    result = lifecycle.transition(
        task, TaskStatus.IN_PROGRESS, other_in_progress=0, wip_limit=3, now=LATER
    )

    assert result.unwrap() == replace(task, status=TaskStatus.IN_PROGRESS, updated_at=LATER)


def test_wip_limit_blocks_when_count_reaches_limit() -> None:
    result = lifecycle.transition(
        make_task(TaskStatus.TODO), TaskStatus.IN_PROGRESS, other_in_progress=3, wip_limit=3
    )

    assert isinstance(result, Err)
    assert isinstance(result.error, WipLimitExceeded)
    assert result.error.count == 3
    assert result.error.limit == 3
    assert "(3/3)" in result.error.message


def test_wip_limit_admits_one_below_limit() -> None:
    result = lifecycle.transition(
        make_task(TaskStatus.TODO), TaskStatus.IN_PROGRESS, other_in_progress=2, wip_limit=3
    )

    assert isinstance(result, Ok)


def test_wip_limit_ignored_for_other_targets() -> None:
    result = lifecycle.transition(
        make_task(TaskStatus.IN_PROGRESS), TaskStatus.REVIEW, other_in_progress=10, wip_limit=1
    )

    assert isinstance(result, Ok)


def test_illegal_pair_reported_before_wip_check() -> None:
    result = lifecycle.transition(
        make_task(TaskStatus.BACKLOG), TaskStatus.IN_PROGRESS, other_in_progress=5, wip_limit=1
    )

    assert isinstance(result.error, InvalidTransition)


def test_transition_never_moves_updated_at_backwards() -> None:
    task = make_task(TaskStatus.TODO, updated_at=LATER)

    result = lifecycle.transition(
        task, TaskStatus.IN_PROGRESS, other_in_progress=0, wip_limit=3, now=CREATED
    )

    assert result.unwrap().updated_at == LATER


def test_count_other_in_progress_excludes_self() -> None:
    tasks = [
        make_task(TaskStatus.IN_PROGRESS, id="a"),
        make_task(TaskStatus.IN_PROGRESS, id="b"),
        make_task(TaskStatus.TODO, id="c"),
    ]

    assert lifecycle.count_other_in_progress(tasks, "a") == 1
    assert lifecycle.count_other_in_progress(tasks, "c") == 2


def test_promote_moves_important_urgent_backlog_task() -> None:
    task = make_task(importance=True, urgency=True)

    promoted = lifecycle.promote(task)

    assert promoted.status == TaskStatus.TODO
    assert promoted.updated_at == task.updated_at


@pytest.mark.parametrize("importance,urgency", [(True, False), (False, True), (False, False)])
def test_promote_requires_both_flags(importance: bool, urgency: bool) -> None:
    task = make_task(importance=importance, urgency=urgency)

    assert lifecycle.promote(task) == task


@pytest.mark.parametrize("status", [s for s in TaskStatus if s != TaskStatus.BACKLOG])
def test_promote_leaves_non_backlog_tasks_alone(status: TaskStatus) -> None:
    task = make_task(status, importance=True, urgency=True)

    assert lifecycle.promote(task) == task


@pytest.mark.parametrize("status", list(TaskStatus))
def test_promote_is_idempotent(status: TaskStatus) -> None:
    task = make_task(status, importance=True, urgency=True)

    once = lifecycle.promote(task)

    assert lifecycle.promote(once) == once


def test_start_moves_backlog_to_todo() -> None:
    result = lifecycle.start(make_task(), now=LATER)

    assert result.unwrap().status == TaskStatus.TODO
    assert result.unwrap().updated_at == LATER


@pytest.mark.parametrize("status", [s for s in TaskStatus if s != TaskStatus.BACKLOG])
def test_start_rejects_other_states(status: TaskStatus) -> None:
    task = make_task(status)

    result = lifecycle.start(task, now=LATER)

    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidState)
    assert "Only BACKLOG tasks can be started" in result.error.message
    with pytest.raises(InvalidState):
        result.unwrap()
