from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Lesson:
    id: str
    unit_id: str
    title: str
    summary: str
    objectives: tuple[str, ...]
    seed: str


@dataclass(frozen=True)
class Unit:
    id: str
    title: str
    lessons: tuple[Lesson, ...]


class Catalog:
    """
    Read-only syllabus: units in teaching order, each with its lessons.
    Built once at import; nothing mutates it afterwards.
    """

    def __init__(self, units: tuple[Unit, ...]) -> None:
        self._units = units
        lessons: dict[str, Lesson] = {}
        for unit in units:
            for lesson in unit.lessons:
                if lesson.id in lessons:
                    raise ValueError(f"Duplicate lesson id: {lesson.id}")
                lessons[lesson.id] = lesson
        self._lessons: Mapping[str, Lesson] = MappingProxyType(lessons)

    @property
    def units(self) -> tuple[Unit, ...]:
        return self._units

    @property
    def lessons(self) -> Mapping[str, Lesson]:
        return self._lessons

    def get(self, lesson_id: object) -> Lesson | None:
        if not isinstance(lesson_id, str):
            return None
        return self._lessons.get(lesson_id)

    def __contains__(self, lesson_id: object) -> bool:
        return self.get(lesson_id) is not None

    def __iter__(self):
        return iter(self._lessons.values())

    def __len__(self) -> int:
        return len(self._lessons)

    def public_lessons(self) -> dict[str, dict[str, str]]:
        # Seeds stay server-side.
        return {lesson.id: {"title": lesson.title, "summary": lesson.summary} for lesson in self}

    def public_syllabus(self) -> dict:
        return {
            "units": [
                {
                    "id": unit.id,
                    "title": unit.title,
                    "lessons": [
                        {
                            "id": lesson.id,
                            "title": lesson.title,
                            "summary": lesson.summary,
                            "objectives": list(lesson.objectives),
                        }
                        for lesson in unit.lessons
                    ],
                }
                for unit in self._units
            ]
        }


def _unit(unit_id: str, title: str, *lessons: dict) -> Unit:
    return Unit(
        id=unit_id,
        title=title,
        lessons=tuple(
            Lesson(
                id=item["id"],
                unit_id=unit_id,
                title=item["title"],
                summary=item["summary"],
                objectives=tuple(item["objectives"]),
                seed=item["seed"],
            )
            for item in lessons
        ),
    )


CATALOG = Catalog(
    (
        _unit(
            "A",
            "Unit A — Foundations",
            {
                "id": "orientation",
                "title": "Orientation",
                "summary": "Workbook vs. worksheet; rows/columns/cells; the Ribbon; saving a file.",
                "objectives": [
                    "Understand workbook vs worksheet",
                    "Navigate rows/columns/cells",
                    "Use the Ribbon interface",
                    "Save a file properly",
                ],
                "seed": (
                    "Teach the very first Excel lesson on Windows. Explain workbook, worksheet, rows, columns, "
                    "cells, the Ribbon, and saving a file. Include a 5-step hands-on practice and then a "
                    "3-question quiz."
                ),
            },
            {
                "id": "navigation",
                "title": "Navigation & selection",
                "summary": "Entering text/numbers; basic file management.",
                "objectives": [
                    "Move with arrow keys",
                    "Select cells",
                    "Enter text and numbers",
                    "Basic file management",
                ],
                "seed": (
                    "Teach moving with arrow keys, selecting cells, typing text/numbers, and saving with a clear "
                    "file name. Include a tiny practice table and a 3-question quiz."
                ),
            },
            {
                "id": "formatting",
                "title": "Formatting basics",
                "summary": "Bold, borders, column width, row height, number formats.",
                "objectives": [
                    "Apply bold formatting",
                    "Add borders",
                    "Adjust column width and row height",
                    "Set number formats",
                ],
                "seed": (
                    "Teach bold, borders, column width, row height, and number formats. Include an exact "
                    "mini-table and a 3-question quiz."
                ),
            },
        ),
        _unit(
            "B",
            "Unit B — Core Skills",
            {
                "id": "formulas1",
                "title": "Formulas 1",
                "summary": "=SUM, =AVERAGE (exact keystrokes).",
                "objectives": [
                    "Enter =SUM formula with exact keystrokes",
                    "Enter =AVERAGE formula",
                    "Work with cell ranges",
                    "Understand basic formula structure",
                ],
                "seed": (
                    "Teach `=SUM` and `=AVERAGE` with exact keystrokes. Provide a tiny dataset, compute "
                    "totals/averages, then a 3-question quiz."
                ),
            },
            {
                "id": "autofill",
                "title": "Autofill & relative references",
                "summary": "Copying formulas safely.",
                "objectives": [
                    "Use Autofill handle",
                    "Understand relative references",
                    "Copy formulas safely",
                    "Recognize formula patterns",
                ],
                "seed": (
                    "Teach Autofill handle, relative references, and safe copying of formulas. Include a small "
                    "table and a 3-question quiz."
                ),
            },
            {
                "id": "sortfilter",
                "title": "Sort & Filter",
                "summary": "Turn on Filter, sort A→Z, filter by value.",
                "objectives": [
                    "Enable Filter feature",
                    "Sort data A→Z",
                    "Filter by specific values",
                    "Understand data organization",
                ],
                "seed": (
                    "Teach turning on Filter, sorting A→Z, and filtering by value. Include a small sample and a "
                    "3-question quiz."
                ),
            },
        ),
        _unit(
            "C",
            "Unit C — Presenting & Printing",
            {
                "id": "charts",
                "title": "Intro charts",
                "summary": "Build a Column chart from a 2-column table.",
                "objectives": [
                    "Select data for charts",
                    "Insert Column chart",
                    "Understand chart basics",
                    "Format chart elements",
                ],
                "seed": (
                    "Teach inserting a Column chart from a 2-column table. Provide the sample data and a "
                    "3-question quiz."
                ),
            },
            {
                "id": "printing",
                "title": "Printing basics",
                "summary": "Print Preview, orientation, margins, fit to one page.",
                "objectives": [
                    "Use Print Preview",
                    "Set page orientation",
                    "Adjust margins",
                    "Fit content to one page",
                ],
                "seed": (
                    "Teach Print Preview, orientation, margins, and 'Fit Sheet on One Page'. Include a "
                    "3-question quiz."
                ),
            },
        ),
    )
)
