from __future__ import annotations

import csv
import json

import httpx
import pytest

from excel_tutor import client as tutor_client
from excel_tutor import prompts
from excel_tutor.client import (
    GENERIC_ERROR_MESSAGE,
    KEY_ERROR_MESSAGE,
    NoLessonSelectedError,
    TutorApi,
    TutorBusyError,
    TutorSession,
    friendly_error,
    shell,
)
from excel_tutor.lessons import CATALOG
from excel_tutor.progress import ProgressStore, Status
from excel_tutor.schemas import Message, Mode, Role


class FakeApi:
    base_url = "http://tutor.test"

    def __init__(self, replies: list[dict] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[tuple[list[Message], Mode]] = []

    def chat(self, messages, *, lesson_id=None, mode=Mode.normal):
        self.calls.append((list(messages), mode))
        if self.replies:
            return self.replies.pop(0)
        return {"reply": f"reply {len(self.calls)}"}

    def health(self) -> bool:
        return True

    def close(self) -> None:
        pass


def _api_with(handler) -> TutorApi:
    http = httpx.Client(base_url="http://tutor.test", transport=httpx.MockTransport(handler))
    return TutorApi("http://tutor.test", client=http)


def test_api_chat_payload_and_reply() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"reply": "Hello"})

    api = _api_with(handler)
    result = api.chat([Message(role=Role.user, content="hi")], lesson_id="charts", mode=Mode.advance)
    assert result == {"reply": "Hello"}
    assert seen["path"] == "/chat"
    assert seen["body"] == {
        "messages": [{"role": "user", "content": "hi"}],
        "mode": "advance",
        "lessonId": "charts",
    }


def test_api_chat_error_body() -> None:
    api = _api_with(lambda request: httpx.Response(500, json={"error": "Server is missing GOOGLE_API_KEY."}))
    assert api.chat([]) == {"error": "Server is missing GOOGLE_API_KEY."}


def test_api_chat_error_text() -> None:
    api = _api_with(lambda request: httpx.Response(502, text="Bad Gateway"))
    assert api.chat([]) == {"error": "Bad Gateway"}


def test_api_chat_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    api = _api_with(handler)
    assert api.chat([])["error"].startswith("Connection failed")
    assert api.health() is False


def test_friendly_error() -> None:
    assert friendly_error("Server is missing GOOGLE_API_KEY.") == KEY_ERROR_MESSAGE
    assert friendly_error("Quota exceeded") == GENERIC_ERROR_MESSAGE
    assert friendly_error("") == GENERIC_ERROR_MESSAGE


def test_welcome_only_once(store: ProgressStore) -> None:
    session = TutorSession(FakeApi(), store)
    assert session.welcome() == [Message(role=Role.assistant, content=prompts.WELCOME_MESSAGE)]
    assert len(session.welcome()) == 1


def test_send_records_reply(store: ProgressStore) -> None:
    api = FakeApi([{"reply": "Step 1"}])
    session = TutorSession(api, store)
    session.welcome()
    assert session.send("  what is a cell?  ") == "Step 1"
    sent, mode = api.calls[0]
    assert mode is Mode.normal
    assert sent[-1] == Message(role=Role.user, content="what is a cell?")
    assert store.history()[-1] == Message(role=Role.assistant, content="Step 1")
    assert session.send("   ") is None
    assert len(api.calls) == 1


def test_send_error_is_not_stored(store: ProgressStore) -> None:
    api = FakeApi([{"error": "Server is missing GOOGLE_API_KEY."}])
    session = TutorSession(api, store)
    assert session.send("hi") == KEY_ERROR_MESSAGE
    assert store.history() == [Message(role=Role.user, content="hi")]
    assert session.busy is False


def test_start_lesson_seeds_history(store: ProgressStore) -> None:
    api = FakeApi()
    session = TutorSession(api, store)
    session.start_lesson("orientation")
    assert session.current_lesson == "orientation"
    assert store.get("orientation").status is Status.in_progress
    sent, _ = api.calls[0]
    assert sent[-1].content == CATALOG.lessons["orientation"].seed


def test_start_unknown_lesson(store: ProgressStore) -> None:
    with pytest.raises(KeyError):
        TutorSession(FakeApi(), store).start_lesson("macros")


def test_mark_done_needs_lesson(store: ProgressStore) -> None:
    session = TutorSession(FakeApi(), store)
    with pytest.raises(NoLessonSelectedError):
        session.mark_done()
    session.start_lesson("charts")
    session.mark_done()
    record = session.mark_done()
    assert record.status is Status.mastered
    assert record.attempts == 2


def test_tool_tray_modes(store: ProgressStore) -> None:
    api = FakeApi()
    session = TutorSession(api, store)
    session.start_lesson("formulas1")
    session.show_example()
    session.retry_easier()
    session.advance_topic()
    session.improve_syllabus()
    modes = [mode for _, mode in api.calls]
    assert modes == [Mode.normal, Mode.normal, Mode.remediate, Mode.advance, Mode.normal]
    assert "Formulas 1" in api.calls[1][0][-1].content
    assert "formulas1: in progress" in api.calls[4][0][-1].content


def test_busy_guard(store: ProgressStore) -> None:
    session = TutorSession(FakeApi(), store)
    session.busy = True
    with pytest.raises(TutorBusyError):
        session.send("hi")


def test_practice_file(store: ProgressStore, tmp_path) -> None:
    session = TutorSession(FakeApi(), store)
    session.start_lesson("charts")
    path = session.practice_file(tmp_path)
    assert path.name == "UnitC_Charts_Practice.csv"
    with path.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == ["Quarter", "Revenue"]
    assert rows[1] == ["Q1", "25000"]


def test_reset_clears_everything(store: ProgressStore) -> None:
    session = TutorSession(FakeApi(), store)
    session.start_lesson("charts")
    session.mark_done()
    history = session.reset()
    assert history == [Message(role=Role.assistant, content=prompts.WELCOME_MESSAGE)]
    assert session.current_lesson is None
    assert all(r.status is Status.not_started for r in store.all().values())


def _run_shell(session: TutorSession, lines: list[str]) -> list[str]:
    inputs = iter(lines)
    out: list[str] = []
    code = shell(session, input_fn=lambda _prompt: next(inputs), print_fn=out.append)
    assert code == 0
    return out


def test_shell_flow(store: ProgressStore, tmp_path) -> None:
    api = FakeApi([{"reply": "Lesson text"}, {"reply": "Answer"}])
    session = TutorSession(api, store)
    out = _run_shell(
        session,
        ["/start charts", "what next?", "/done", "/practice " + str(tmp_path), "/lessons", "/bogus", "/quit"],
    )
    text = "\n".join(out)
    assert "Tutor: Lesson text" in text
    assert "Tutor: Answer" in text
    assert "Marked as Mastered (attempts: 1)." in text
    assert "Last quiz: 3/3" in text
    assert "Unknown command" in text
    assert (tmp_path / "UnitC_Charts_Practice.csv").exists()


def test_shell_reports_missing_lesson(store: ProgressStore) -> None:
    out = _run_shell(TutorSession(FakeApi(), store), ["/done", "/start nope", "/example", "/quit"])
    assert out.count("Please select a lesson first") == 2
    assert any("Unknown lesson: nope" in line for line in out)


def test_run_uses_file_progress(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(tutor_client, "TutorApi", lambda base_url: FakeApi())
    progress_file = tmp_path / "progress.json"
    inputs = iter(["/start orientation", "/done", "/quit"])
    out: list[str] = []
    code = tutor_client.run(
        ["--progress-file", str(progress_file)], input_fn=lambda _p: next(inputs), print_fn=out.append
    )
    assert code == 0
    saved = json.loads(progress_file.read_text(encoding="utf-8"))
    assert saved["excelTutorSyllabusV2"]["lessons"]["orientation"]["status"] == "mastered"
