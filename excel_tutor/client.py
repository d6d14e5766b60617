"""Terminal front-end: lesson list, chat transcript, and the tool tray."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from excel_tutor import prompts
from excel_tutor.config import api_url, configure_logging, progress_path
from excel_tutor.practice import write_practice_file
from excel_tutor.progress import LessonProgress, ProgressStore, Status
from excel_tutor.schemas import Message, Mode, Role
from excel_tutor.storage import InMemoryStorage, make_storage

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]

KEY_ERROR_MESSAGE = "The Google API key is missing or invalid. Please check your environment settings."
GENERIC_ERROR_MESSAGE = "Sorry, I could not reach the tutor. Please try again."
QUIT_COMMANDS = {"/quit", "/exit", "/q"}
BADGES = {
    Status.mastered: "Mastered",
    Status.in_progress: "In Progress",
    Status.not_started: "Not Started",
}
HELP_TEXT = """Commands:
  /lessons            show the syllabus and your progress
  /start <lesson>     begin a lesson (e.g. /start orientation)
  /done               mark the current lesson as done
  /example            show a micro-example for the current lesson
  /easier             re-explain the current topic more simply
  /advance            move on to the next concept
  /improve            ask for a revised lesson plan from your progress
  /practice [folder]  save a practice CSV for the current lesson
  /reset              clear progress and chat history
  /quit               leave
Anything else is sent to the tutor."""


class TutorBusyError(RuntimeError):
    """Raised when a second request is attempted while one is in flight."""


class NoLessonSelectedError(RuntimeError):
    pass


def friendly_error(error: str) -> str:
    if "GOOGLE_API_KEY" in (error or ""):
        return KEY_ERROR_MESSAGE
    return GENERIC_ERROR_MESSAGE


class TutorApi:
    def __init__(self, base_url: str, *, client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        # Model replies take a while; httpx's 5s default is too short for /chat.
        self._client = client or httpx.Client(base_url=self.base_url, timeout=httpx.Timeout(60.0, connect=5.0))

    def close(self) -> None:
        self._client.close()

    def health(self) -> bool:
        try:
            r = self._client.get("/health")
        except httpx.HTTPError as e:
            logger.warning("Health check failed: %s", e)
            return False
        return r.status_code == 200

    def chat(self, messages: list[Message], *, lesson_id: str | None = None, mode: Mode = Mode.normal) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "messages": [m.model_dump(mode="json") for m in messages],
            "mode": mode.value,
        }
        if lesson_id:
            payload["lessonId"] = lesson_id

        try:
            r = self._client.post("/chat", json=payload)
        except httpx.HTTPError as e:
            logger.error("Chat request failed: %s", e)
            return {"error": f"Connection failed: {e}"}

        if r.status_code >= 400:
            try:
                data = r.json()
                return {"error": (data.get("error") if isinstance(data, dict) else None) or "Request failed"}
            except ValueError:
                return {"error": r.text or "Request failed"}
        try:
            data = r.json()
        except ValueError:
            return {"error": "Malformed reply from server"}
        reply = data.get("reply") if isinstance(data, dict) else None
        if not isinstance(reply, str):
            return {"error": "Malformed reply from server"}
        return {"reply": reply}


class TutorSession:
    """
    Client-side flow around one learner: keeps history and progress in the
    store, and allows a single outstanding request at a time.
    """

    def __init__(self, api: TutorApi, store: ProgressStore) -> None:
        self.api = api
        self.store = store
        self.current_lesson: str | None = None
        self.busy = False

    def welcome(self) -> list[Message]:
        history = self.store.history()
        if not history:
            history = self.store.append_message(Role.assistant, prompts.WELCOME_MESSAGE)
        return history

    def _ask(self, text: str, mode: Mode = Mode.normal) -> str:
        if self.busy:
            raise TutorBusyError("Still waiting for the tutor's last reply.")
        history = self.store.append_message(Role.user, text)
        self.busy = True
        try:
            result = self.api.chat(history, mode=mode)
        finally:
            self.busy = False

        error = result.get("error")
        if error:
            # Shown to the learner but kept out of the history sent upstream.
            logger.warning("Tutor request failed: %s", error)
            return friendly_error(error)
        reply = result["reply"]
        self.store.append_message(Role.assistant, reply)
        return reply

    def send(self, text: str, mode: Mode = Mode.normal) -> str | None:
        text = (text or "").strip()
        if not text:
            return None
        return self._ask(text, mode)

    def _require_lesson(self) -> str:
        if not self.current_lesson:
            raise NoLessonSelectedError("Please select a lesson first")
        return self.current_lesson

    def start_lesson(self, lesson_id: str) -> str:
        lesson = self.store.catalog.get(lesson_id)
        if lesson is None:
            raise KeyError(f"Unknown lesson: {lesson_id!r}")
        self.store.start(lesson.id)
        self.current_lesson = lesson.id
        # The seed goes into history, so the server is not asked to add it again.
        return self._ask(lesson.seed)

    def mark_done(self) -> LessonProgress:
        return self.store.complete(self._require_lesson())

    def show_example(self) -> str:
        lesson = self.store.catalog.lessons[self._require_lesson()]
        return self._ask(prompts.example_prompt(lesson.title))

    def retry_easier(self) -> str:
        return self._ask(prompts.RETRY_EASIER_PROMPT, Mode.remediate)

    def advance_topic(self) -> str:
        return self._ask(prompts.ADVANCE_TOPIC_PROMPT, Mode.advance)

    def improve_syllabus(self) -> str:
        return self._ask(prompts.improve_syllabus_prompt(self.store.summary_for_prompt()))

    def practice_file(self, directory: Path | str = ".") -> Path:
        return write_practice_file(self._require_lesson(), directory)

    def reset(self) -> list[Message]:
        self.store.reset()
        self.current_lesson = None
        return self.welcome()


def _format_date(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d")
    except ValueError:
        return timestamp or "?"


def render_lessons(store: ProgressStore, print_fn: PrintFn, current: str | None = None) -> None:
    for unit, lessons in store.by_unit():
        print_fn(f"\n{unit.title}")
        for lesson, record in lessons:
            marker = ">" if lesson.id == current else " "
            print_fn(f"{marker} {lesson.id:<12} {lesson.title} [{BADGES[record.status]}]")
            print_fn(f"    {lesson.summary}")
            if record.last_result is not None:
                print_fn(
                    f"    Last quiz: {record.last_result.score}/3 ({_format_date(record.last_result.timestamp)})"
                )


def render_history(history: list[Message], print_fn: PrintFn) -> None:
    for m in history:
        prefix = "You" if m.role == Role.user else "Tutor"
        print_fn(f"{prefix}: {m.content}\n")


def _handle(session: TutorSession, line: str, print_fn: PrintFn) -> bool:
    """Runs one REPL line; returns False when the learner wants to leave."""
    command, _, arg = line.partition(" ")
    command = command.lower()
    arg = arg.strip()

    if command in QUIT_COMMANDS:
        return False
    if command == "/help":
        print_fn(HELP_TEXT)
    elif command == "/lessons":
        render_lessons(session.store, print_fn, session.current_lesson)
    elif command == "/start":
        if arg not in session.store.catalog:
            print_fn(f"Unknown lesson: {arg or '(none)'}. Try /lessons.")
            return True
        lesson = session.store.catalog.lessons[arg]
        print_fn(f"Current lesson: {lesson.title}")
        print_fn(f"You: {lesson.seed}\n")
        print_fn(f"Tutor: {session.start_lesson(arg)}\n")
    elif command == "/done":
        record = session.mark_done()
        print_fn(f"Marked as {BADGES[record.status]} (attempts: {record.attempts}).")
    elif command == "/example":
        print_fn(f"Tutor: {session.show_example()}\n")
    elif command == "/easier":
        print_fn(f"Tutor: {session.retry_easier()}\n")
    elif command == "/advance":
        print_fn(f"Tutor: {session.advance_topic()}\n")
    elif command == "/improve":
        print_fn(f"Tutor: {session.improve_syllabus()}\n")
    elif command == "/practice":
        path = session.practice_file(arg or ".")
        print_fn(f"Saved {path} - open it in Excel to practice!")
    elif command == "/reset":
        print_fn("Progress and chat history cleared.")
        render_history(session.reset(), print_fn)
    elif command.startswith("/"):
        print_fn("Unknown command. Type /help for the list.")
    else:
        reply = session.send(line)
        if reply is not None:
            print_fn(f"Tutor: {reply}\n")
    return True


def shell(session: TutorSession, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    render_lessons(session.store, print_fn)
    print_fn("")
    render_history(session.welcome(), print_fn)
    print_fn("Type /help for commands.")
    while True:
        try:
            line = input_fn("> ").strip()
        except EOFError:
            return 0
        if not line:
            continue
        try:
            if not _handle(session, line, print_fn):
                return 0
        except (NoLessonSelectedError, TutorBusyError) as e:
            print_fn(str(e))


def run(argv: list[str] | None = None, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    parser = argparse.ArgumentParser(prog="excel-tutor", description="Step-by-step Excel tutor in your terminal")
    parser.add_argument("--api-url", default=None, help="Tutor server URL (default: $TUTOR_API_URL)")
    parser.add_argument("--progress-file", default=None, help="Where progress is saved (default: $TUTOR_PROGRESS_PATH)")
    parser.add_argument("--no-save", action="store_true", help="Keep progress in memory only")
    args = parser.parse_args(argv)

    durable = InMemoryStorage() if args.no_save else make_storage(args.progress_file or progress_path())
    store = ProgressStore(durable, InMemoryStorage())
    api = TutorApi(args.api_url or api_url())
    try:
        if not api.health():
            print_fn(f"Warning: the tutor server at {api.base_url} is not responding.")
        return shell(TutorSession(api, store), input_fn, print_fn)
    finally:
        api.close()


def main_entry() -> None:
    # Keep request logs out of the transcript unless asked for.
    configure_logging(default="WARNING")
    raise SystemExit(run())


if __name__ == "__main__":
    main_entry()
