from __future__ import annotations

import json
import logging

from taskmatrix.config import Settings
from taskmatrix.domain.entities import BoardSettings
from taskmatrix.domain.enums import TaskStatus
from taskmatrix.infra.memory import InMemoryTaskStore
from taskmatrix.infra.repository import SqlTaskStore
from taskmatrix.main import build_parser, build_store, run
from taskmatrix.services.classifier import Classifier
from taskmatrix.services.task_service import TaskService


def make_service() -> TaskService:
    return TaskService(InMemoryTaskStore(BoardSettings(wip_limit=1)), Classifier())


def invoke(service: TaskService, capsys, *argv: str):
    code = run(build_parser().parse_args(list(argv)), service)
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_add_then_move_through_workflow(capsys) -> None:
    service = make_service()

    code, out, _ = invoke(service, capsys, "add", "Pay the electricity bill", "--effort", "S")
    task = json.loads(out)
    assert code == 0
    assert task["status"] == "BACKLOG"
    assert task["ai_suggested_urgency"] is True

    code, out, _ = invoke(service, capsys, "priority", task["id"], "--important", "--urgent")
    assert code == 0
    assert json.loads(out)["status"] == "TODO"

    code, out, _ = invoke(service, capsys, "move", task["id"], "in_progress")
    assert code == 0
    assert json.loads(out)["status"] == TaskStatus.IN_PROGRESS.value


def test_errors_go_to_stderr_with_exit_code(capsys) -> None:
    service = make_service()

    code, out, err = invoke(service, capsys, "start", "missing")

    assert code == 1
    assert out == ""
    assert json.loads(err)["code"] == "NOT_FOUND"


def test_wip_limit_violation_reported(capsys) -> None:
    service = make_service()
    ids = []
    for title in ("one", "two"):
        _, out, _ = invoke(service, capsys, "add", title)
        ids.append(json.loads(out)["id"])
        invoke(service, capsys, "start", ids[-1])

    invoke(service, capsys, "move", ids[0], "IN_PROGRESS")
    code, _, err = invoke(service, capsys, "move", ids[1], "IN_PROGRESS")

    assert code == 1
    assert json.loads(err)["code"] == "WIP_LIMIT_EXCEEDED"


def test_wip_command_shows_and_sets_limit(capsys) -> None:
    service = make_service()

    _, out, _ = invoke(service, capsys, "wip")
    assert json.loads(out)["wip_limit"] == 1

    code, out, _ = invoke(service, capsys, "wip", "5")
    assert code == 0
    assert json.loads(out)["wip_limit"] == 5

    code, _, err = invoke(service, capsys, "wip", "0")
    assert code == 1
    assert json.loads(err)["code"] == "INVALID_CONFIG"


def test_classify_previews_without_saving(capsys) -> None:
    service = make_service()

    code, out, _ = invoke(service, capsys, "classify", "Sort the bookshelf")

    assert code == 0
    assert json.loads(out)["explanation"].endswith("Heuristic classification")
    assert service.list_tasks() == []


def test_import_and_stats(tmp_path, capsys) -> None:
    service = make_service()
    csv_file = tmp_path / "tasks.csv"
    csv_file.write_text("title,tags\nOne,a;b\nTwo,\n", encoding="utf-8")

    code, out, _ = invoke(service, capsys, "import", str(csv_file))
    assert code == 0
    assert [t["tags"] for t in json.loads(out)] == [["a", "b"], []]

    _, out, _ = invoke(service, capsys, "stats")
    assert json.loads(out)["by_status"]["BACKLOG"] == 2


def test_edit_rejects_blank_title(capsys) -> None:
    service = make_service()
    _, out, _ = invoke(service, capsys, "add", "Keep")
    task_id = json.loads(out)["id"]

    code, _, err = invoke(service, capsys, "edit", task_id, "--title", "  ")

    assert code == 1
    assert json.loads(err)["code"] == "VALIDATION_ERROR"


def test_build_store_picks_backend_from_settings() -> None:
    assert isinstance(build_store(Settings()), InMemoryTaskStore)
    assert isinstance(build_store(Settings(database_url="sqlite:///:memory:")), SqlTaskStore)


def test_in_memory_store_warns_that_tasks_are_not_kept(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="taskmatrix.main"):
        build_store(Settings())

    assert "in memory" in caplog.text
    assert "DATABASE_URL" in build_parser().format_help()
