from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from google import genai
from google.genai import errors, types

from excel_tutor.config import DEFAULT_FALLBACK_MODEL, DEFAULT_MODEL, _env
from excel_tutor.schemas import Message, Role

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I could not get a response just now. Please try again."
TEMPERATURE = 0.3


class MissingCredentialError(RuntimeError):
    pass


class UpstreamError(RuntimeError):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code} {detail}")
        self.status_code = status_code
        self.detail = detail


def _to_upstream_error(exc: Exception) -> UpstreamError:
    if isinstance(exc, errors.APIError):
        code = exc.code if isinstance(exc.code, int) and 400 <= exc.code < 600 else 502
        detail = (exc.message or "").strip() or (exc.status or "").strip() or "Upstream error"
        return UpstreamError(code, detail)
    return UpstreamError(502, "Upstream error")


def _to_contents(messages: Sequence[Message]) -> tuple[str | None, list[types.Content]]:
    """
    Gemini takes the system prompt separately from the turns, and calls the
    assistant role "model".
    """
    system: str | None = None
    contents: list[types.Content] = []
    for m in messages:
        if m.role == Role.system:
            if system is None:
                system = m.content
            continue
        role = "model" if m.role == Role.assistant else "user"
        contents.append(types.Content(role=role, parts=[types.Part(text=m.content)]))
    return system, contents


def extract_reply(resp: Any) -> str:
    text = (getattr(resp, "text", None) or "").strip()
    if text:
        return text

    chunks: list[str] = []
    for candidate in getattr(resp, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            part_text = getattr(part, "text", None)
            if isinstance(part_text, str) and part_text.strip():
                chunks.append(part_text)
        if chunks:
            break
    text = "\n".join(chunks).strip()
    return text or FALLBACK_REPLY


class GeminiClient:
    """
    Supports two modes:
    - Vertex AI mode: GOOGLE_CLOUD_PROJECT + GOOGLE_CLOUD_LOCATION
    - API key mode (local/dev): GOOGLE_API_KEY
    """

    def __init__(self, client: Any | None = None) -> None:
        # Users can override with GEMINI_MODEL env var (e.g., gemini-1.5-pro-002).
        self.model = _env("GEMINI_MODEL", DEFAULT_MODEL)
        self.fallback_model = _env("GEMINI_FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL)

        if client is not None:
            self.client = client
            return

        api_key = _env("GOOGLE_API_KEY")
        project = _env("GOOGLE_CLOUD_PROJECT")
        location = _env("GOOGLE_CLOUD_LOCATION", "us-central1")

        if api_key:
            self.client = genai.Client(api_key=api_key)
        elif project:
            # Uses ADC (service account) on Cloud Run
            self.client = genai.Client(vertexai=True, project=project, location=location)
        else:
            raise MissingCredentialError(
                "Missing config: set GOOGLE_API_KEY (local) or GOOGLE_CLOUD_PROJECT (+ optional GOOGLE_CLOUD_LOCATION) (Vertex/Cloud Run)."
            )

    def _generate(self, model: str, system: str | None, contents: list[types.Content]) -> Any:
        return self.client.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system,
                temperature=TEMPERATURE,
            ),
        )

    def complete(self, messages: Sequence[Message]) -> str:
        """
        Sends the assembled conversation and returns the reply text.
        On an upstream failure, tries the fallback model once; if that also
        fails, the first error is raised as UpstreamError.
        """
        system, contents = _to_contents(messages)
        try:
            resp = self._generate(self.model, system, contents)
        except (errors.APIError, httpx.HTTPError) as e:
            primary = _to_upstream_error(e)
            logger.error("Gemini error on %s: %s %s", self.model, primary.status_code, primary.detail)
            if not self.fallback_model or self.fallback_model == self.model:
                raise primary from e
            logger.warning("Retrying once with fallback model %s", self.fallback_model)
            try:
                resp = self._generate(self.fallback_model, system, contents)
            except (errors.APIError, httpx.HTTPError) as fallback_err:
                failed = _to_upstream_error(fallback_err)
                logger.error(
                    "Fallback model %s failed: %s %s", self.fallback_model, failed.status_code, failed.detail
                )
                raise primary from e
        return extract_reply(resp)
