"""
Structured Logging
==================

JSON-structured logging with request ids and a per-module logger factory.

Uses structlog for structured, machine-readable log output.

Author: TrancheReady Team
Version: 1.0.0
"""

import hashlib
import logging
import random
import sys
import time
from contextvars import ContextVar
from typing import Any, Dict, Mapping, Optional

import structlog

# Context variable for request correlation
_request_id: ContextVar[str] = ContextVar("request_id", default="")

# Proxy headers that already carry a request id, in order of preference
REQUEST_ID_HEADERS = (
    "x-request-id",
    "x-correlation-id",
    "cf-ray",
    "x-amzn-trace-id",
)
MAX_REQUEST_ID_LENGTH = 128


def set_request_id(request_id: str) -> str:
    """Set request id for current context. Returns the ID."""
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    """Get current request id."""
    return _request_id.get()


def request_id_from_headers(
    headers: Mapping[str, str],
    method: str = "",
    path: str = "",
    client_ip: str = "",
) -> str:
    """
    Pick the request id for an incoming request.

    A reverse-proxy supplied id wins (truncated to 128 characters);
    otherwise a 16-hex-character id is derived from the request line,
    the current time and a random salt.
    """
    for name in REQUEST_ID_HEADERS:
        prior = headers.get(name)
        if prior:
            return prior[:MAX_REQUEST_ID_LENGTH]

    seed = f"{client_ip}|{method}|{path}|{time.time_ns()}|{random.random()}"
    return hashlib.sha1(seed.encode("utf-8")).hexdigest()[:16]


def _add_request_id(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Structlog processor to inject the request id."""
    rid = _request_id.get()
    if rid:
        event_dict["request_id"] = rid
    return event_dict


def _add_service_info(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Structlog processor to inject service metadata."""
    event_dict["service"] = "trancheready"
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging for the TrancheReady application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON; otherwise human-readable
        log_file: Optional path to write logs to a file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_request_id,
        _add_service_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """
    Get a structured logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


class RequestLoggingMiddleware:
    """
    ASGI middleware that logs requests with structured data.

    Logs: method, path, status, duration, request_id. Only a sampled
    fraction of requests is logged; the request id is always bound and
    echoed back as ``X-Request-ID``.
    """

    def __init__(self, app: Any, sample_rate: float = 1.0):
        self.app = app
        self.sample_rate = sample_rate
        self.logger = get_logger("trancheready.api.requests")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = {
            k.decode("latin-1").lower(): v.decode("latin-1")
            for k, v in scope.get("headers", [])
        }
        client = scope.get("client") or ("", 0)
        rid = set_request_id(request_id_from_headers(
            headers,
            method=scope.get("method", ""),
            path=scope.get("path", ""),
            client_ip=client[0] or "",
        ))

        start = time.perf_counter()
        status_code = 500  # Default in case of error

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers_out = list(message.get("headers", []))
                headers_out.append((b"x-request-id", rid.encode("latin-1")))
                message["headers"] = headers_out
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if random.random() < self.sample_rate:
                duration_ms = (time.perf_counter() - start) * 1000
                self.logger.info(
                    "request_completed",
                    method=scope.get("method", ""),
                    path=scope.get("path", ""),
                    status=status_code,
                    duration_ms=round(duration_ms, 2),
                )
