"""Logging configuration for the service balancer."""

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, cast


class ContextStore:
    """A store for logging context, isolated per thread and per asyncio task."""

    def __init__(self) -> None:
        self._context: ContextVar[dict[str, Any]] = ContextVar("svcbalancer_log_context")

    def set(self, data: dict[str, Any]) -> Token[dict[str, Any]]:
        """Sets the context data.

        Args:
            data: The context data to set.

        Returns:
            A token restoring the previous context when passed to reset.
        """
        return self._context.set(data)

    def reset(self, token: Token[dict[str, Any]]) -> None:
        self._context.reset(token)

    def get(self) -> dict[str, Any]:
        """Gets the context data.

        Returns:
            The context data.
        """
        return self._context.get({})


_context_store = ContextStore()


class ContextFilter(logging.Filter):
    """Injects the thread context and the 'extra' kwarg into each log record."""

    # Standard LogRecord attributes, never treated as context
    RESERVED_ATTRS = (
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        thread_context = _context_store.get().copy()

        extra_context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.RESERVED_ATTRS and key not in ("context",)
        }

        # The per-call 'extra' wins over the thread context.
        thread_context.update(extra_context)
        record.context = thread_context

        return True


class BalancerLogger(logging.Logger):
    """A logger with a 'contextualize' method."""

    @contextmanager
    def contextualize(self, **kwargs: Any) -> Iterator[None]:
        """Adds temporary context to every log emitted from this thread or task.

        Example:
            with logger.contextualize(request_id="3f2a9c1b"):
                logger.info("This log will have the request_id.")
        """
        token = _context_store.set({**_context_store.get(), **kwargs})
        try:
            yield
        finally:
            _context_store.reset(token)


class TextFormatter(logging.Formatter):
    """Formats logs as a human-readable string."""

    def format(self, record: logging.LogRecord) -> str:
        log_message = super().format(record)

        if hasattr(record, "context") and record.context:
            context_text = " ".join(f"{k}={v}" for k, v in record.context.items() if v)
            if context_text:
                log_message += f" | {context_text}"

        return log_message


class JsonFormatter(logging.Formatter):
    """Formats logs as a JSON string."""

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread": record.thread,
            **getattr(record, "context", {}),
        }

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, indent=None, separators=(",", ":"), default=str)


def setup_logger(
    log_level: int | None = None, log_serialize: bool | None = None
) -> BalancerLogger:
    """Enables and configures the balancer logger.

    Args:
        log_level: Overrides SVCBALANCER_LOG_LEVEL when given.
        log_serialize: Overrides SVCBALANCER_ENABLE_LOG_SERIALIZE when given.
    """
    if log_level is None:
        log_level = int(os.getenv("SVCBALANCER_LOG_LEVEL", logging.INFO))
    if log_serialize is None:
        log_serialize = bool(int(os.getenv("SVCBALANCER_ENABLE_LOG_SERIALIZE", 0)))

    logging.setLoggerClass(BalancerLogger)
    logger = logging.getLogger("svcbalancer")
    logging.setLoggerClass(logging.Logger)

    if logger.hasHandlers():
        logger.handlers.clear()

    logger.setLevel(log_level)
    logger.propagate = False

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())

    formatter: logging.Formatter = JsonFormatter()
    if not log_serialize:
        fmt = (
            "%(asctime)s | %(levelname)-8s "
            "| %(process)d:%(thread)d "
            "| %(module)s:%(funcName)s:%(lineno)d "
            "| %(message)s"
        )
        formatter = TextFormatter(fmt)

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return cast(BalancerLogger, logger)


logger: BalancerLogger = setup_logger()
