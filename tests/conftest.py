from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from excel_tutor.progress import ProgressStore  # noqa: E402
from excel_tutor.storage import InMemoryStorage  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GOOGLE_API_KEY",
        "GOOGLE_CLOUD_PROJECT",
        "GOOGLE_CLOUD_LOCATION",
        "GEMINI_MODEL",
        "GEMINI_FALLBACK_MODEL",
        "PORT",
        "TUTOR_API_URL",
        "TUTOR_PROGRESS_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


class Clock:
    """Deterministic timestamps, one minute apart."""

    def __init__(self) -> None:
        self.ticks = 0

    def __call__(self) -> str:
        self.ticks += 1
        return f"2026-10-18T09:{self.ticks:02d}:00+00:00"


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store(clock: Clock) -> ProgressStore:
    return ProgressStore(InMemoryStorage(), InMemoryStorage(), clock=clock)
