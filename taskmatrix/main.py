from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError

from taskmatrix.config import Settings, load_settings
from taskmatrix.domain.entities import BoardSettings
from taskmatrix.domain.filters import TaskFilters
from taskmatrix.domain.result import Err, Result
from taskmatrix.infra.db import build_engine, build_session_factory, create_schema, init_db
from taskmatrix.infra.logging import setup_logging
from taskmatrix.infra.memory import InMemoryTaskStore
from taskmatrix.infra.repository import SqlTaskStore
from taskmatrix.services.classifier import build_classifier
from taskmatrix.services.task_service import TaskService, TaskStore
from taskmatrix.services.validators import (
    parse_create,
    parse_override,
    parse_patch,
    parse_status,
)

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> TaskStore:
    defaults = BoardSettings(
        wip_limit=settings.wip_limit,
        backlog_warn_threshold=settings.backlog_warn_threshold,
    )
    if not settings.database_url:
        logger.warning("DATABASE_URL not set; tasks live in memory and are lost when the process exits")
        return InMemoryTaskStore(defaults)
    engine = build_engine(settings.database_url)
    init_db(engine)
    create_schema(engine)
    return SqlTaskStore(build_session_factory(engine), defaults)


def build_service(settings: Settings) -> TaskService:
    return TaskService(build_store(settings), build_classifier(settings))


def _emit(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _emit_result(result: Result, render=lambda value: value.to_dict()) -> int:
    if isinstance(result, Err):
        print(json.dumps(result.error.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 1
    _emit(render(result.value))
    return 0


def _task_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = {"title": args.title}
    if args.description is not None:
        payload["description"] = args.description
    if args.due is not None:
        payload["dueDate"] = args.due
    if args.effort is not None:
        payload["effort"] = args.effort
    if args.tag:
        payload["tags"] = list(args.tag)
    return payload


def _patch_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if args.title is not None:
        payload["title"] = args.title
    if args.description is not None:
        payload["description"] = args.description
    if args.clear_due:
        payload["dueDate"] = None
    elif args.due is not None:
        payload["dueDate"] = args.due
    if args.clear_effort:
        payload["effort"] = None
    elif args.effort is not None:
        payload["effort"] = args.effort
    if args.tag is not None:
        payload["tags"] = list(args.tag)
    return payload


def _add_draft_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("title")
    parser.add_argument("--description")
    parser.add_argument("--due", help="ISO-8601 due date")
    parser.add_argument("--effort", choices=["S", "M", "L"])
    parser.add_argument("--tag", action="append", help="repeat for several tags")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskmatrix",
        description="Eisenhower-matrix task backlog",
        epilog="Without DATABASE_URL every run starts from an empty in-memory store, "
        "so task ids do not carry over between invocations.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    _add_draft_arguments(commands.add_parser("add", help="create a task"))
    _add_draft_arguments(commands.add_parser("classify", help="preview a classification"))

    listing = commands.add_parser("list", help="list tasks")
    listing.add_argument("--status")
    listing.add_argument("--not-status")

    for name, help_text in (
        ("show", "show one task"),
        ("reclassify", "re-run the classifier"),
        ("accept", "accept the suggested priority"),
        ("start", "move a BACKLOG task to TODO"),
    ):
        commands.add_parser(name, help=help_text).add_argument("task_id")

    edit = commands.add_parser("edit", help="edit task metadata")
    edit.add_argument("task_id")
    edit.add_argument("--title")
    edit.add_argument("--description")
    edit.add_argument("--due")
    edit.add_argument("--clear-due", action="store_true")
    edit.add_argument("--effort", choices=["S", "M", "L"])
    edit.add_argument("--clear-effort", action="store_true")
    edit.add_argument("--tag", action="append")

    priority = commands.add_parser("priority", help="set importance and urgency")
    priority.add_argument("task_id")
    priority.add_argument("--important", action=argparse.BooleanOptionalAction, required=True)
    priority.add_argument("--urgent", action=argparse.BooleanOptionalAction, required=True)

    move = commands.add_parser("move", help="transition a task")
    move.add_argument("task_id")
    move.add_argument("status")

    wip = commands.add_parser("wip", help="show or set the WIP limit")
    wip.add_argument("limit", nargs="?", type=float)

    csv_import = commands.add_parser("import", help="import tasks from CSV")
    csv_import.add_argument("path", type=Path)

    commands.add_parser("stats", help="board statistics")
    return parser


def run(args: argparse.Namespace, service: TaskService) -> int:
    command = args.command

    if command in ("add", "classify"):
        draft = parse_create(_task_payload(args))
        if isinstance(draft, Err):
            return _emit_result(draft)
        if command == "classify":
            _emit(service.classify_preview(draft.value).to_dict())
        else:
            _emit(service.create_task(draft.value).to_dict())
        return 0

    if command == "list":
        filters = {}
        for key, raw in (("status", args.status), ("not_status", args.not_status)):
            if raw is None:
                continue
            status = parse_status(raw.upper())
            if isinstance(status, Err):
                return _emit_result(status)
            filters[key] = status.value
        _emit([task.to_dict() for task in service.list_tasks(TaskFilters(**filters))])
        return 0

    if command == "show":
        return _emit_result(service.get_task(args.task_id))
    if command == "reclassify":
        return _emit_result(service.reclassify(args.task_id))
    if command == "accept":
        return _emit_result(service.accept_suggestion(args.task_id))
    if command == "start":
        return _emit_result(service.start_task(args.task_id))

    if command == "edit":
        patch = parse_patch(_patch_payload(args))
        if isinstance(patch, Err):
            return _emit_result(patch)
        return _emit_result(service.update_meta(args.task_id, patch.value))

    if command == "priority":
        override = parse_override({"importance": args.important, "urgency": args.urgent})
        if isinstance(override, Err):
            return _emit_result(override)
        return _emit_result(service.override_priority(args.task_id, override.value))

    if command == "move":
        status = parse_status(args.status.upper())
        if isinstance(status, Err):
            return _emit_result(status)
        return _emit_result(service.transition(args.task_id, status.value))

    if command == "wip":
        if args.limit is None:
            _emit(service.get_settings().to_dict())
            return 0
        return _emit_result(service.set_wip_limit(args.limit))

    if command == "import":
        text = args.path.read_text(encoding="utf-8-sig")
        return _emit_result(
            service.import_csv(text),
            render=lambda tasks: [task.to_dict() for task in tasks],
        )

    if command == "stats":
        _emit(service.get_stats())
        return 0

    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings)
    try:
        service = build_service(settings)
    except SQLAlchemyError as exc:
        print(f"DB error: {exc}", file=sys.stderr)
        return 2
    return run(args, service)


if __name__ == "__main__":
    sys.exit(main())
