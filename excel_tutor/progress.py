"""Per-lesson progress and session chat history, kept in client-side storage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from excel_tutor.conversation import sanitize_history
from excel_tutor.lessons import CATALOG, Catalog, Lesson, Unit
from excel_tutor.schemas import Message, Role
from excel_tutor.storage import KeyValueStorage

logger = logging.getLogger(__name__)

HISTORY_KEY = "history"
SYLLABUS_KEY = "excelTutorSyllabusV2"
LEGACY_PROGRESS_KEY = "dadTutorProgress"
LEGACY_SYLLABUS_KEY = "dadTutorSyllabusV1"
SCHEMA_VERSION = 2


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Status(str, Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    mastered = "mastered"


@dataclass
class QuizResult:
    score: int
    answers: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "answers": list(self.answers), "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Any) -> QuizResult | None:
        if not isinstance(data, dict):
            return None
        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, int):
            return None
        answers = data.get("answers")
        answers = [str(a) for a in answers] if isinstance(answers, list) else []
        timestamp = data.get("timestamp")
        return cls(score=score, answers=answers, timestamp=timestamp if isinstance(timestamp, str) else "")


@dataclass
class LessonProgress:
    status: Status = Status.not_started
    last_result: QuizResult | None = None
    attempts: int = 0
    last_touched: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "lastResult": self.last_result.to_dict() if self.last_result else None,
            "attempts": self.attempts,
            "lastTouched": self.last_touched,
        }

    @classmethod
    def from_dict(cls, data: Any) -> LessonProgress | None:
        if not isinstance(data, dict):
            return None
        try:
            status = Status(data.get("status", Status.not_started.value))
        except ValueError:
            return None
        attempts = data.get("attempts", 0)
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 0:
            attempts = 0
        touched = data.get("lastTouched")
        return cls(
            status=status,
            last_result=QuizResult.from_dict(data.get("lastResult")),
            attempts=attempts,
            last_touched=touched if isinstance(touched, str) else None,
        )


def _from_legacy_flat(raw: Any) -> dict[str, LessonProgress]:
    # {lessonId: {"done": bool, "last": iso}}
    out: dict[str, LessonProgress] = {}
    if not isinstance(raw, dict):
        return out
    for lesson_id, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        last = entry.get("last") if isinstance(entry.get("last"), str) and entry.get("last") else None
        if entry.get("done") is True:
            out[lesson_id] = LessonProgress(status=Status.mastered, last_touched=last)
        elif last:
            out[lesson_id] = LessonProgress(status=Status.in_progress, last_touched=last)
    return out


def _from_legacy_syllabus(raw: Any) -> dict[str, LessonProgress]:
    # {"units": {unitId: {"title", "lessons": {lessonId: {status, lastResult, attempts, ...}}}}}
    out: dict[str, LessonProgress] = {}
    units = raw.get("units") if isinstance(raw, dict) else None
    if not isinstance(units, dict):
        return out
    for unit in units.values():
        lessons = unit.get("lessons") if isinstance(unit, dict) else None
        if not isinstance(lessons, dict):
            continue
        for lesson_id, entry in lessons.items():
            record = LessonProgress.from_dict(entry)
            if record is not None and (record.status != Status.not_started or record.attempts):
                out[lesson_id] = record
    return out


class ProgressStore:
    """
    Lesson state machine over two storages: `durable` for progress (think
    localStorage) and `session` for the chat history (think sessionStorage).

    not_started --start--> in_progress --complete--> mastered, and start on
    a mastered lesson puts it back in progress. Reads never raise on bad
    persisted data; they fall back to the default state instead.
    """

    def __init__(
        self,
        durable: KeyValueStorage,
        session: KeyValueStorage,
        *,
        catalog: Catalog = CATALOG,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self.durable = durable
        self.session = session
        self.catalog = catalog
        self._clock = clock
        self._migrate_legacy()

    # --- persistence -------------------------------------------------------

    def _read(self, storage: KeyValueStorage, key: str) -> Any | None:
        try:
            return storage.get_item(key)
        except (ValueError, TypeError, OSError) as e:
            logger.warning("Treating unreadable %r as empty: %s", key, e)
            return None

    def _load(self) -> dict[str, LessonProgress]:
        raw = self._read(self.durable, SYLLABUS_KEY)
        if raw is None:
            return {}
        lessons = raw.get("lessons") if isinstance(raw, dict) else None
        if not isinstance(lessons, dict):
            logger.warning("Ignoring malformed progress under %r", SYLLABUS_KEY)
            return {}
        out: dict[str, LessonProgress] = {}
        for lesson_id, entry in lessons.items():
            if lesson_id not in self.catalog:
                continue
            record = LessonProgress.from_dict(entry)
            if record is None:
                logger.warning("Ignoring malformed progress record for %r", lesson_id)
                continue
            out[lesson_id] = record
        return out

    def _save(self, records: dict[str, LessonProgress]) -> None:
        self.durable.set_item(
            SYLLABUS_KEY,
            {
                "version": SCHEMA_VERSION,
                "lastUpdated": self._clock(),
                "lessons": {lesson_id: rec.to_dict() for lesson_id, rec in records.items()},
            },
        )

    def _migrate_legacy(self) -> None:
        flat = self._read(self.durable, LEGACY_PROGRESS_KEY)
        nested = self._read(self.durable, LEGACY_SYLLABUS_KEY)
        if flat is None and nested is None:
            return
        if self._read(self.durable, SYLLABUS_KEY) is None:
            merged = _from_legacy_flat(flat)
            merged.update(_from_legacy_syllabus(nested))
            records = {k: v for k, v in merged.items() if k in self.catalog}
            self._save(records)
            logger.info("Migrated %s legacy progress record(s)", len(records))
        self.durable.remove_item(LEGACY_PROGRESS_KEY)
        self.durable.remove_item(LEGACY_SYLLABUS_KEY)

    def _lesson(self, lesson_id: str) -> Lesson:
        lesson = self.catalog.get(lesson_id)
        if lesson is None:
            raise KeyError(f"Unknown lesson: {lesson_id!r}")
        return lesson

    # --- lesson progress ---------------------------------------------------

    def get(self, lesson_id: str) -> LessonProgress:
        # Never-touched and unknown ids both read as a fresh record.
        return self._load().get(lesson_id) or LessonProgress()

    def all(self) -> dict[str, LessonProgress]:
        records = self._load()
        return {lesson.id: records.get(lesson.id) or LessonProgress() for lesson in self.catalog}

    def by_unit(self) -> list[tuple[Unit, list[tuple[Lesson, LessonProgress]]]]:
        records = self.all()
        return [(unit, [(lesson, records[lesson.id]) for lesson in unit.lessons]) for unit in self.catalog.units]

    def start(self, lesson_id: str) -> LessonProgress:
        self._lesson(lesson_id)
        records = self._load()
        record = records.get(lesson_id) or LessonProgress()
        record.status = Status.in_progress
        record.last_touched = self._clock()
        records[lesson_id] = record
        self._save(records)
        return record

    def complete(self, lesson_id: str, result: QuizResult | None = None) -> LessonProgress:
        self._lesson(lesson_id)
        now = self._clock()
        if result is None:
            # No graded quiz yet; marking done counts as a full score.
            result = QuizResult(score=3, answers=["completed"], timestamp=now)
        records = self._load()
        record = records.get(lesson_id) or LessonProgress()
        record.status = Status.mastered
        record.last_result = result
        record.attempts += 1
        record.last_touched = now
        records[lesson_id] = record
        self._save(records)
        return record

    def summary_for_prompt(self) -> str:
        parts = []
        for lesson_id, record in self.all().items():
            if record.status == Status.not_started:
                continue
            label = "completed" if record.status == Status.mastered else "in progress"
            text = f"{lesson_id}: {label}"
            if record.last_result is not None:
                text += f", last quiz {record.last_result.score}/3"
            if record.last_touched:
                text += f" ({record.last_touched})"
            parts.append(text)
        return ", ".join(parts)

    # --- chat history ------------------------------------------------------

    def history(self) -> list[Message]:
        raw = self._read(self.session, HISTORY_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed chat history")
            return []
        return sanitize_history(raw)

    def append_message(self, role: Role | str, content: str) -> list[Message]:
        message = Message(role=Role(role), content=content)
        if message.role == Role.system:
            raise ValueError("History only holds user and assistant turns")
        history = self.history()
        history.append(message)
        self.session.set_item(HISTORY_KEY, [m.model_dump(mode="json") for m in history])
        return history

    def clear_history(self) -> None:
        self.session.remove_item(HISTORY_KEY)

    def reset(self) -> None:
        self.clear_history()
        self.durable.remove_item(SYLLABUS_KEY)
        self.durable.remove_item(LEGACY_PROGRESS_KEY)
        self.durable.remove_item(LEGACY_SYLLABUS_KEY)
