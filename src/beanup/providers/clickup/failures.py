"""Deterministic ClickUp failure classification for the retry policy."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# ClickUp error codes seen in ``{"err": ..., "ECODE": ...}`` bodies.
RATE_LIMIT_ECODES = frozenset({"APP_002"})
NOT_FOUND_ECODES = frozenset({"ITEM_013"})
_NOT_FOUND_PATTERNS: tuple[str, ...] = ("task not found", "item not found")


class FailureClass(StrEnum):
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TRANSIENT = "transient"
    NOT_FOUND = "not_found"
    FATAL = "fatal"


RETRYABLE_CLASSES = frozenset({FailureClass.RATE_LIMITED, FailureClass.SERVER_ERROR, FailureClass.TRANSIENT})


@dataclass(slots=True, frozen=True)
class ErrorBody:
    message: str
    ecode: str | None


def parse_error_body(raw: bytes | str | None) -> ErrorBody:
    """Extract ``err``/``ECODE`` from a ClickUp error payload, tolerating non-JSON bodies."""
    if not raw:
        return ErrorBody(message="", ecode=None)
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        payload: Any = json.loads(text)
    except ValueError:
        return ErrorBody(message=text.strip(), ecode=None)
    if not isinstance(payload, dict):
        return ErrorBody(message=text.strip(), ecode=None)
    message = payload.get("err") or payload.get("error") or ""
    ecode = payload.get("ECODE")
    return ErrorBody(message=str(message), ecode=str(ecode) if ecode else None)


def classify_failure(status_code: int, body: ErrorBody | None = None) -> FailureClass | None:
    """Classify a response; ``None`` means success."""
    if status_code < 400:
        return None
    ecode = body.ecode if body is not None else None
    message = body.message.lower() if body is not None else ""

    if status_code == 429 or ecode in RATE_LIMIT_ECODES:
        return FailureClass.RATE_LIMITED
    if status_code >= 500:
        return FailureClass.SERVER_ERROR
    if status_code == 404 or ecode in NOT_FOUND_ECODES or any(p in message for p in _NOT_FOUND_PATTERNS):
        return FailureClass.NOT_FOUND
    return FailureClass.FATAL


def is_retryable(failure: FailureClass | None) -> bool:
    return failure in RETRYABLE_CLASSES
