"""Structured logging helpers.

Every call site emits a dotted event name plus keyword fields, rendered as
``event k=v ...`` or as one JSON object per line when LOG_JSON is set.
"""
from __future__ import annotations
import json as _json
import logging
import os
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "automod"

_LOG_JSON = os.getenv("LOG_JSON") in {"1", "true", "TRUE"}

def init_logging(level: str | int = "INFO", json_output: bool | None = None):
    global _LOG_JSON  # noqa: PLW0603
    if json_output is not None:
        _LOG_JSON = bool(json_output)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format="%(message)s")

def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return _json.dumps(text, ensure_ascii=False)
    return text

def format_event(event: str, fields: dict, as_json: bool, level: int = logging.INFO) -> str:
    """Render one event; ``None`` fields are dropped in text mode."""
    if as_json:
        record = {"ts": datetime.now(timezone.utc).isoformat(), "level": logging.getLevelName(level), "event": event, **fields}
        return _json.dumps(record, ensure_ascii=False, default=str)
    pairs = [f"{k}={_render_value(v)}" for k, v in fields.items() if v is not None]
    return " ".join([event, *pairs])

def _emit(level: int, event: str, **fields: Any):
    logger = logging.getLogger(LOGGER_NAME)
    if logger.isEnabledFor(level):
        logger.log(level, format_event(event, fields, _LOG_JSON, level))

def info(event: str, **fields: Any):
    _emit(logging.INFO, event, **fields)

def warning(event: str, **fields: Any):
    _emit(logging.WARNING, event, **fields)

def error(event: str, **fields: Any):
    _emit(logging.ERROR, event, **fields)

def debug(event: str, **fields: Any):
    _emit(logging.DEBUG, event, **fields)

__all__ = ["init_logging", "format_event", "info", "warning", "error", "debug", "LOGGER_NAME"]
