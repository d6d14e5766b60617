from __future__ import annotations

import logging
from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from excel_tutor.conversation import build_messages
from excel_tutor.gemini_client import GeminiClient, MissingCredentialError, UpstreamError
from excel_tutor.lessons import CATALOG
from excel_tutor.schemas import ChatRequest, ChatResponse, ErrorResponse, LessonInfo

logger = logging.getLogger(__name__)

app = FastAPI(title="Excel Tutor API", version="0.3.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error(400, "Malformed request body.")


@app.get("/")
def root() -> dict:
    return {
        "ok": True,
        "service": "excel-tutor",
        "endpoints": [
            "/health",
            "/chat",
            "/lessons.json",
            "/syllabus.json",
        ],
        "docs": "/docs",
    }


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/lessons.json", response_model=dict[str, LessonInfo])
def lessons() -> dict:
    return CATALOG.public_lessons()


@app.get("/syllabus.json")
def syllabus() -> dict:
    return CATALOG.public_syllabus()


@app.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def chat(body: Any = Body(None)):
    # Anything other than a JSON object is treated as an empty request.
    req = ChatRequest.model_validate(body) if isinstance(body, dict) else ChatRequest()
    messages = build_messages(req.messages, req.lessonId, req.mode)
    logger.info(
        "Chat turn: history=%s forwarded=%s lesson=%s mode=%s",
        len(req.messages),
        len(messages),
        req.lessonId,
        req.mode.value,
    )

    try:
        client = GeminiClient()
    except MissingCredentialError as e:
        logger.error("Chat rejected: %s", e)
        return _error(500, "Server is missing GOOGLE_API_KEY.")

    try:
        reply = client.complete(messages)
    except UpstreamError as e:
        return _error(e.status_code, e.detail)
    except Exception:
        logger.exception("Chat endpoint error")
        return _error(500, "Server error.")

    return ChatResponse(reply=reply)
