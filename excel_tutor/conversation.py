"""Assembles the ordered prompt sequence forwarded to the completion API."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from excel_tutor.lessons import CATALOG, Catalog
from excel_tutor.prompts import ADVANCE_PROMPT, REMEDIATE_PROMPT, SYSTEM_PROMPT
from excel_tutor.schemas import CLIENT_ROLES, Message, Mode, Role, parse_mode

ORCHESTRATION_PROMPTS: dict[Mode, str] = {
    Mode.remediate: REMEDIATE_PROMPT,
    Mode.advance: ADVANCE_PROMPT,
}


def _coerce_role(value: Any) -> Role | None:
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def sanitize_history(history: Iterable[Any] | None) -> list[Message]:
    """
    Keeps only user/assistant turns with non-empty content, in order.
    Anything malformed is dropped rather than rejected.
    """
    out: list[Message] = []
    for item in history or []:
        if isinstance(item, Message):
            role, content = item.role, item.content
        elif isinstance(item, Mapping):
            role, content = _coerce_role(item.get("role")), item.get("content")
        else:
            continue
        if role not in CLIENT_ROLES:
            continue
        if not content:
            continue
        out.append(Message(role=role, content=content if isinstance(content, str) else str(content)))
    return out


def build_messages(
    history: Iterable[Any] | None,
    lesson_id: str | None = None,
    mode: Mode | str | None = Mode.normal,
    *,
    catalog: Catalog = CATALOG,
) -> list[Message]:
    messages = [Message(role=Role.system, content=SYSTEM_PROMPT)]

    orchestration = ORCHESTRATION_PROMPTS.get(parse_mode(mode))
    if orchestration:
        messages.append(Message(role=Role.user, content=orchestration))

    lesson = catalog.get(lesson_id)
    if lesson is not None:
        messages.append(Message(role=Role.user, content=lesson.seed))

    messages.extend(sanitize_history(history))
    return messages
