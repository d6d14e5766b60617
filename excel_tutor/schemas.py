from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    system = "system"
    user = "user"
    assistant = "assistant"


# Roles a client is allowed to contribute to the conversation.
CLIENT_ROLES = frozenset({Role.user, Role.assistant})


class Mode(str, Enum):
    normal = "normal"
    remediate = "remediate"
    advance = "advance"


def parse_mode(value: Any) -> Mode:
    """Unknown or missing modes fall back to normal rather than being rejected."""
    if isinstance(value, Mode):
        return value
    if isinstance(value, str):
        try:
            return Mode(value.strip().lower())
        except ValueError:
            return Mode.normal
    return Mode.normal


class Message(BaseModel):
    role: Role
    content: str


class ChatRequest(BaseModel):
    messages: list[Any] = Field(default_factory=list, description="Chat history; bad entries are dropped")
    lessonId: str | None = Field(None, description="Catalog lesson whose seed should open the conversation")
    mode: Mode = Mode.normal

    @field_validator("messages", mode="before")
    @classmethod
    def _messages_list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []

    @field_validator("lessonId", mode="before")
    @classmethod
    def _lesson_id_text(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> Mode:
        return parse_mode(value)


class ChatResponse(BaseModel):
    reply: str


class ErrorResponse(BaseModel):
    error: str


class LessonInfo(BaseModel):
    title: str
    summary: str
