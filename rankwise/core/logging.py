"""JSON logging for the API, the answer pipeline and the CLI.

Each record is written as a single JSON object per line. Records emitted
while a request is being served carry that request's ID. OpenAI keys are
scrubbed from messages and `extra` fields before anything is written, since
the provider echoes a rejected key back in its error text.
"""

import json
import logging
import re
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rankwise.core.config import Settings

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64
REDACTED = "[REDACTED]"

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Matched against lower-cased `extra` keys
SECRET_KEY_MARKERS = ("api_key", "authorization", "secret")

_OPENAI_KEY_RE = re.compile(r"sk-[A-Za-z0-9_-]{8,}")
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._:-]+")

# Attributes every LogRecord has; anything else arrived through `extra`
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

# Access lines for these paths are logged at DEBUG
_QUIET_PATHS = frozenset({"/health"})

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
}

logger = logging.getLogger("rankwise.request")


def get_request_id() -> str | None:
    """Get the ID of the request currently being served, if any."""
    return request_id_var.get()


def scrub_secrets(text: str) -> str:
    """Replace anything shaped like an OpenAI key."""
    return _OPENAI_KEY_RE.sub(REDACTED, text)


def _is_secret_key(key: str) -> bool:
    key_lower = key.lower()
    return any(marker in key_lower for marker in SECRET_KEY_MARKERS)


def redact_sensitive_data(value: Any) -> Any:
    """Redact secrets from a log payload.

    Values under secret-looking keys are replaced outright; strings anywhere
    in the payload have embedded OpenAI keys scrubbed. Dicts, lists and
    tuples are walked recursively and returned as new objects.
    """
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_secret_key(str(key)) else redact_sensitive_data(item)
            for key, item in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact_sensitive_data(item) for item in value]
    if isinstance(value, str):
        return scrub_secrets(value)
    return value


def resolve_request_id(header_value: str | None) -> str:
    """Reuse the caller's request ID when it is short and plain, else mint one."""
    if (
        header_value
        and len(header_value) <= MAX_REQUEST_ID_LENGTH
        and _REQUEST_ID_RE.fullmatch(header_value)
    ):
        return header_value
    return uuid.uuid4().hex


class JSONFormatter(logging.Formatter):
    """Render log records as one-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": scrub_secrets(record.getMessage()),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": scrub_secrets(str(record.exc_info[1])),
                "traceback": scrub_secrets(self.formatException(record.exc_info)),
            }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        }
        if extra:
            entry["extra"] = redact_sensitive_data(extra)

        return json.dumps(entry, default=str)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log one line when it finishes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(request_id)
        path = request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                extra={
                    "method": request.method,
                    "path": path,
                    "duration_ms": _elapsed_ms(started),
                },
            )
            raise
        else:
            logger.log(
                logging.DEBUG if path in _QUIET_PATHS else logging.INFO,
                "%s %s -> %d",
                request.method,
                path,
                response.status_code,
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                    "content_length": response.headers.get("content-length"),
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def quiet_noisy_loggers() -> None:
    """Raise the threshold of chatty third-party loggers."""
    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def setup_logging(settings: Settings) -> None:
    """Send all records to stdout as JSON at the configured level.

    Args:
        settings: Application settings
    """
    level = logging.getLevelName(settings.app_log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    quiet_noisy_loggers()
    logging.getLogger("rankwise").setLevel(level)


def setup_request_logging(app: FastAPI) -> None:
    """Attach request ID tracking and access logging to the app."""
    app.add_middleware(RequestLoggingMiddleware)
