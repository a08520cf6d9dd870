"""Logging for gree_lan.

Every record carries three layers of context, merged in this order:

- the correlation id of the datagram being handled (``correlation.py``)
- session fields bound with :func:`session_log_context` (device id, state,
  encryption version), so lines from the codec and transport name the
  device they were emitted for
- the per-call ``extra`` mapping

Output is human-readable lines, JSON lines, or both (``GREE_LOG_FORMAT``).
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Generator, Mapping, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, override

from gree_lan.correlation import get_correlation_id

__all__ = [
    "GreeLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "get_logger",
    "session_log_context",
]

_session_fields: ContextVar[Mapping[str, object]] = ContextVar(
    "gree_session_fields",
    default=MappingProxyType({}),
)


@contextmanager
def session_log_context(**fields: object) -> Generator[None]:
    """Attach session fields to every record logged inside the block.

    None values are skipped; nested blocks add to (and may override) the
    outer fields.
    """
    merged = {**_session_fields.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _session_fields.set(MappingProxyType(merged))
    try:
        yield
    finally:
        _session_fields.reset(token)


def _record_context(record: logging.LogRecord) -> dict[str, object]:
    extra_data = getattr(record, "extra_data", None)
    return dict(extra_data) if isinstance(extra_data, Mapping) else {}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "source": f"{record.module}:{record.lineno}",
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        context = _record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time LEVEL [module:line] [corr] <device> > message | k=v``."""

    def __init__(self) -> None:
        super().__init__(
            fmt=(
                "%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] "
                "%(correlation_id)s%(device)s > %(message)s"
            ),
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"

        context = _record_context(record)
        device_id = context.pop("device_id", None)
        record.device = f" <{device_id}>" if device_id else ""

        formatted = super().format(record)
        if context:
            formatted = f"{formatted} | " + " | ".join(f"{k}={v}" for k, v in context.items())
        return formatted


class GreeLogger(logging.LoggerAdapter[logging.Logger]):
    """Adapter taking structured context as ``extra={...}``.

    Session fields bound at call time and the call's ``extra`` (which wins)
    are stored on ``record.extra_data`` so keys never clash with LogRecord
    attributes; the formatters render it.
    """

    def __init__(self, logger: logging.Logger) -> None:
        super().__init__(logger, {})

    @override
    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        context = dict(_session_fields.get())
        extra = kwargs.pop("extra", None)
        if extra:
            context.update(extra)
        if context:
            kwargs["extra"] = {"extra_data": context}
        return msg, kwargs

    def set_level(self, level: int) -> None:
        """Set logging level."""
        self.logger.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        """Handlers installed on the wrapped logger."""
        return self.logger.handlers


def _open_human_stream(target: str) -> logging.Handler:
    if target == "stdout":
        return logging.StreamHandler(sys.stdout)
    if target == "stderr":
        return logging.StreamHandler(sys.stderr)
    try:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError as e:
        print(f"Warning: Failed to create human log file {target}: {e}", file=sys.stderr)
        return logging.StreamHandler(sys.stdout)


def _build_handlers(log_format: str, json_file: str | Path | None, human_output: str) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if log_format in ("json", "both") and json_file:
        try:
            json_path = Path(json_file)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(json_path, mode="a")
        except OSError as e:
            print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
        else:
            json_handler.setFormatter(JSONFormatter())
            handlers.append(json_handler)
    if log_format in ("human", "both"):
        human_handler = _open_human_stream(human_output)
        human_handler.setFormatter(HumanReadableFormatter())
        handlers.append(human_handler)
    return handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> GreeLogger:
    """Return a GreeLogger for ``name``, installing handlers on first use.

    Explicit arguments override the GREE_LOG_* environment defaults.
    """
    from gree_lan.const import GREE_DEBUG, GREE_LOG_FORMAT, GREE_LOG_HUMAN_OUTPUT, GREE_LOG_JSON_FILE

    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.DEBUG if GREE_DEBUG else logging.INFO)
        for handler in _build_handlers(
            log_format or GREE_LOG_FORMAT,
            json_file or GREE_LOG_JSON_FILE,
            human_output or GREE_LOG_HUMAN_OUTPUT or "stdout",
        ):
            handler.setLevel(logger.level)
            logger.addHandler(handler)
    return GreeLogger(logger)
