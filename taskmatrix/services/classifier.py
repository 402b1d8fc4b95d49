"""Importance/urgency suggestions for tasks.

Two strategies share one contract: a keyword/date/effort heuristic that is
always available, and an external language model reached through a
``ClassifierTransport``. Any failure of the external call, or any response
that does not validate, yields the heuristic result for that call.
"""
from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from enum import StrEnum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from taskmatrix.config import Settings
from taskmatrix.domain.entities import (
    EXPLANATION_MAX_LENGTH,
    Classification,
    TaskDraft,
    TaskEntity,
    utcnow,
)
from taskmatrix.domain.result import Err, Ok, Result

from .llm_client import ClassifierTransport, OpenAITransport

logger = logging.getLogger(__name__)

URGENCY_SIGNALS = (
    "asap",
    "urgent",
    "today",
    "tonight",
    "tomorrow",
    "deadline",
    "overdue",
    "pay",
    "bill",
    "tax",
    "incident",
    "outage",
    "production",
)

IMPORTANCE_SIGNALS = (
    "strategy",
    "plan",
    "planning",
    "roadmap",
    "career",
    "health",
    "fitness",
    "doctor",
    "family",
    "security",
    "backup",
    "compliance",
    "quarter",
    "okr",
    "goal",
    "budget",
)

SYSTEM_PROMPT = "\n".join([
    "You are a task prioritization assistant using the Eisenhower Matrix.",
    "Classify tasks into two booleans: importance and urgency.",
    "",
    "Definitions:",
    "- Urgent: time-sensitive, near deadline, blocking others, or has immediate consequences.",
    "- Important: high impact on goals, health, security, key relationships, or long-term outcomes.",
    "",
    "Return ONLY strict JSON with keys:",
    '{ "importance": boolean, "urgency": boolean, "explanation": string }',
    "",
    "The explanation must be short (<= 200 chars) and concrete.",
])

SECONDS_PER_DAY = 24 * 60 * 60


def days_until(due_date: Optional[str], now: datetime) -> Optional[int]:
    if not due_date:
        return None
    try:
        due = datetime.fromisoformat(due_date.strip())
    except ValueError:
        return None
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return math.ceil((due - now).total_seconds() / SECONDS_PER_DAY)


def heuristic_classify(draft: TaskDraft, now: Optional[datetime] = None) -> Classification:
    now = now or utcnow()
    text = f"{draft.title.casefold()} {draft.description.casefold()}"

    days = days_until(draft.due_date, now)
    hours = draft.effort.hours if draft.effort else None

    urgency_by_text = any(signal in text for signal in URGENCY_SIGNALS)
    importance_by_text = any(signal in text for signal in IMPORTANCE_SIGNALS)

    urgency_by_due = days is not None and (days <= 2 or (days <= 7 and urgency_by_text))
    # Big jobs due soon need starting now.
    urgency_by_effort = days is not None and hours is not None and days <= 3 and hours >= 4

    urgency = urgency_by_text or urgency_by_due or urgency_by_effort
    importance = importance_by_text or (hours is not None and hours >= 4)

    reasons = []
    if days is not None:
        reasons.append(f"Due in {days} day(s)")
    if hours is not None:
        reasons.append(f"Effort ~{hours}h")
    if urgency_by_text:
        reasons.append("Contains urgency keywords")
    if importance_by_text:
        reasons.append("Contains importance keywords")

    verdict = (
        f"{'Urgent' if urgency else 'Not urgent'} / "
        f"{'Important' if importance else 'Not important'}"
    )
    detail = "; ".join(reasons) if reasons else "Heuristic classification"
    return Classification(
        importance=importance,
        urgency=urgency,
        explanation=f"{verdict} - {detail}",
    )


def build_prompt(draft: TaskDraft) -> str:
    payload = {
        "title": draft.title,
        "description": draft.description,
        "dueDate": draft.due_date,
        "effort": draft.effort.value if draft.effort else None,
        "tags": list(draft.tags),
    }
    return "\n".join([SYSTEM_PROMPT, "", "Task:", json.dumps(payload, indent=2)])


class ParseFailureReason(StrEnum):
    NO_JSON_OBJECT = "no_json_object"
    MALFORMED_JSON = "malformed_json"
    MISSING_FIELD = "missing_field"
    WRONG_TYPE = "wrong_type"


class ParseFailure(Exception):
    def __init__(self, reason: ParseFailureReason, detail: str = "") -> None:
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason


class ModelVerdict(BaseModel):
    model_config = ConfigDict(strict=True)

    importance: bool
    urgency: bool
    explanation: str


def parse_classification(text: str) -> Result[Classification, ParseFailure]:
    trimmed = text.strip()
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start == -1 or end <= start:
        return Err(ParseFailure(ParseFailureReason.NO_JSON_OBJECT))

    try:
        raw = json.loads(trimmed[start:end + 1])
    except (ValueError, RecursionError) as exc:
        return Err(ParseFailure(ParseFailureReason.MALFORMED_JSON, str(exc)))
    if not isinstance(raw, dict):
        return Err(ParseFailure(ParseFailureReason.WRONG_TYPE, "response is not an object"))

    try:
        verdict = ModelVerdict.model_validate(raw)
    except PydanticValidationError as exc:
        missing = any(error["type"] == "missing" for error in exc.errors())
        reason = ParseFailureReason.MISSING_FIELD if missing else ParseFailureReason.WRONG_TYPE
        return Err(ParseFailure(reason, str(exc)))

    return Ok(Classification(
        importance=verdict.importance,
        urgency=verdict.urgency,
        explanation=verdict.explanation[:EXPLANATION_MAX_LENGTH],
    ))


def draft_from_task(task: TaskEntity) -> TaskDraft:
    return TaskDraft(
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        effort=task.effort,
        tags=task.tags,
    )


class Classifier:
    def __init__(
        self,
        transport: Optional[ClassifierTransport] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._transport = transport
        self._clock = clock

    @property
    def uses_external_model(self) -> bool:
        return self._transport is not None

    def classify(self, draft: TaskDraft) -> Classification:
        now = self._clock()
        if self._transport is None:
            return heuristic_classify(draft, now)

        response = self._transport.complete(build_prompt(draft))
        if isinstance(response, Err):
            logger.warning("Classifier transport failed, using heuristic: %s", response.error)
            return heuristic_classify(draft, now)

        parsed = parse_classification(response.value)
        if isinstance(parsed, Err):
            logger.warning("Classifier response rejected, using heuristic: %s", parsed.error)
            return heuristic_classify(draft, now)

        return parsed.value


def build_classifier(settings: Settings) -> Classifier:
    if not settings.llm_api_key:
        logger.debug("No LLM credential configured; heuristic classification only")
        return Classifier()
    transport = OpenAITransport(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
    )
    return Classifier(transport)
