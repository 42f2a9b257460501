"""Logging utilities for convtoc."""

from __future__ import annotations

import datetime
import json
import logging
import os
from collections.abc import Mapping, Sequence
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_DIR_ENV = "CONVTOC_LOG_DIR"
LOGGER_NAME = "convtoc"
_DEFAULT_HOME_DIR = ".convtoc"
_DEFAULT_LOG_SUBDIR = "logs"
_TEXT_LOG_NAME = "convtoc.log"
_JSON_LOG_NAME = "convtoc.jsonl"
_ROTATION_BACKUPS = 3
_LOG_MAX_BYTES = 2 * 1024 * 1024

logger = logging.getLogger(LOGGER_NAME)

_log_dir: Path | None = None


def _utc_now_iso() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


class ConsoleFormatter(logging.Formatter):
    """Console formatter that appends the payload of bare debug events."""

    def __init__(self) -> None:
        """Set up the formatter with the standard console template."""
        super().__init__("%(levelname)s: %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* optionally appending its ``payload``."""
        base = super().format(record)
        extra_json = getattr(record, "json", None)
        if not isinstance(extra_json, dict) or "payload" not in extra_json:
            return base
        # events logged with their payload already inline are left alone
        if record.getMessage().strip() != str(extra_json.get("event", "")).strip():
            return base
        try:
            payload_text = json.dumps(extra_json["payload"], ensure_ascii=False)
        except TypeError:
            payload_text = str(extra_json["payload"])
        return f"{base} {payload_text}"


class JsonFormatter(logging.Formatter):
    """Convert log records into JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        payload: Any = getattr(record, "json", None)
        if isinstance(payload, dict):
            data = dict(payload)
            data.setdefault("message", record.message)
            data.setdefault("level", record.levelname)
        else:
            data = {"message": record.message, "level": record.levelname}
            if payload is not None:
                data["data"] = payload
        data.setdefault("logger", record.name)
        data.setdefault("timestamp", _utc_now_iso())
        if record.exc_info and "exc_info" not in data:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


class JsonlHandler(RotatingFileHandler):
    """Write log records as JSON lines with built-in rotation."""

    def __init__(
        self,
        filename: Path | str,
        *,
        max_bytes: int = _LOG_MAX_BYTES,
        backup_count: int = _ROTATION_BACKUPS,
        encoding: str = "utf-8",
        delay: bool = False,
    ) -> None:
        """Initialise handler ensuring the log directory exists."""
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=encoding,
            delay=delay,
        )
        self.setFormatter(JsonFormatter())


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    """Resolve effective log directory creating it if necessary."""
    if log_dir is not None:
        path = Path(log_dir).expanduser()
    else:
        env_dir = os.environ.get(LOG_DIR_ENV)
        if env_dir:
            path = Path(env_dir).expanduser()
        else:
            path = Path.home() / _DEFAULT_HOME_DIR / _DEFAULT_LOG_SUBDIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(
    level: int = logging.INFO,
    *,
    log_dir: str | Path | None = None,
    console: bool = True,
) -> Path:
    """Configure the ``convtoc`` logger once and return the log directory."""
    global _log_dir

    if logger.handlers and _log_dir is not None:
        return _log_dir

    resolved_dir = _resolve_log_dir(log_dir).resolve()
    _log_dir = resolved_dir

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(ConsoleFormatter())
        logger.addHandler(stream_handler)

    file_handler = RotatingFileHandler(
        resolved_dir / _TEXT_LOG_NAME,
        encoding="utf-8",
        maxBytes=_LOG_MAX_BYTES,
        backupCount=_ROTATION_BACKUPS,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(file_handler)

    json_handler = JsonlHandler(resolved_dir / _JSON_LOG_NAME)
    json_handler.setLevel(logging.DEBUG)
    logger.addHandler(json_handler)

    logger.setLevel(logging.DEBUG)
    return resolved_dir


def get_log_file_paths() -> tuple[Path, Path]:
    """Return paths to text and JSONL log files, configuring logging if needed."""
    directory = _log_dir if _log_dir is not None else configure_logging()
    return directory / _TEXT_LOG_NAME, directory / _JSON_LOG_NAME


def emit_toc_debug(log: logging.Logger, event: str, /, **payload: Any) -> None:
    """Emit a structured DEBUG message describing a TOC lifecycle *event*.

    Parameters
    ----------
    log:
        Logger of the emitting module.
    event:
        Short dotted identifier such as ``"sync.rebuild.done"``.
    payload:
        Event context. Values are normalised to JSON-friendly primitives.
    """

    if not log.isEnabledFor(logging.DEBUG):
        return
    normalized = {key: _normalize(value) for key, value in payload.items()}
    log.debug(
        "%s",
        event,
        extra={"json": {"event": event, "payload": normalized}},
    )


def _normalize(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _normalize(inner) for key, inner in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(str(_normalize(inner)) for inner in value)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_normalize(inner) for inner in value]
    return str(value)


__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "JsonlHandler",
    "LOGGER_NAME",
    "configure_logging",
    "emit_toc_debug",
    "get_log_file_paths",
    "logger",
]
