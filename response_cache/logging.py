"""
Structured logging for the response cache.

Every cache decision is logged as a structlog event (`cache_hit`,
`cache_miss`, `cache_read_error`, `store_connection_lost`, ...). Request
logging adds one `request_complete` line per HTTP request carrying the cache
outcome the interceptor recorded for it, so hit ratios can be read straight
from the access log.

Output is a colored console renderer by default and JSON lines when
LOG_JSON is set.
"""

import logging
import sys
import time
import uuid
from collections.abc import MutableMapping
from functools import lru_cache
from typing import Any

import structlog
from structlog.types import Processor

SERVICE_NAME = "response_cache"

# Key under scope["state"] where the interceptor records hit / miss / bypass
CACHE_OUTCOME_KEY = "response_cache"


def _add_service(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict["service"] = SERVICE_NAME
    return event_dict


def get_processors(json_logs: bool = False) -> list[Processor]:
    """Get structlog processors for console or JSON output."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service,
    ]

    if json_logs:
        return shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return shared_processors + [
        structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)
    ]


@lru_cache(maxsize=1)
def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structured logging. Call once at application startup."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=get_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in all subsequent log entries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def record_cache_outcome(scope: MutableMapping[str, Any], outcome: str) -> None:
    """Note how the cache handled this request, for the request log line."""
    scope.setdefault("state", {})[CACHE_OUTCOME_KEY] = outcome


class RequestLoggingMiddleware:
    """
    ASGI middleware logging one `request_complete` event per HTTP request.

    The event carries method, path, status, duration and the cache outcome
    (`hit`, `miss`, `bypass`, or None when no interceptor saw the request).
    """

    def __init__(self, app):
        self.app = app
        self._logger: structlog.stdlib.BoundLogger | None = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_logger("http")
        return self._logger

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()

        if "request_id" not in structlog.contextvars.get_contextvars():
            bind_context(request_id=str(uuid.uuid4())[:8])

        method = scope.get("method", "")
        path = scope.get("path", "")
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if status_code >= 500:
                log_method = self.logger.error
            elif status_code >= 400:
                log_method = self.logger.warning
            else:
                log_method = self.logger.info

            log_method(
                "request_complete",
                method=method,
                path=path,
                status_code=status_code,
                cache=scope.get("state", {}).get(CACHE_OUTCOME_KEY),
                duration_seconds=round(time.perf_counter() - start_time, 3),
            )
            clear_context()


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "record_cache_outcome",
    "RequestLoggingMiddleware",
]
