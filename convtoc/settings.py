"""Typed TOC settings with Pydantic validation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import tomllib
from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_validator,
)

DEFAULT_MAX_ITEMS = 250
DEFAULT_SUMMARY_LENGTH = 48
DEFAULT_FILE_NAME_LENGTH = 60
DEFAULT_ASSISTANT_SUMMARY_LENGTH = 60
DEFAULT_ASSISTANT_IDLE_MS = 600
DEFAULT_IDLE_TIMEOUT_MS = 1200
DEFAULT_DEBOUNCE_MS = 600
DEFAULT_MIN_IMAGE_SIZE = 60
DEFAULT_THUMBNAIL_LIMIT = 3
DEFAULT_DRAG_THRESHOLD = 4
DEFAULT_VIEWPORT_MARGIN = 8
DEFAULT_DRAG_COOLDOWN_MS = 200

_POSITIVE_DEFAULTS: dict[str, int] = {
    "max_items": DEFAULT_MAX_ITEMS,
    "summary_length": DEFAULT_SUMMARY_LENGTH,
    "file_name_length": DEFAULT_FILE_NAME_LENGTH,
    "assistant_summary_length": DEFAULT_ASSISTANT_SUMMARY_LENGTH,
    "thumbnail_limit": DEFAULT_THUMBNAIL_LIMIT,
    "drag_threshold": DEFAULT_DRAG_THRESHOLD,
}

_NON_NEGATIVE_DEFAULTS: dict[str, int] = {
    "assistant_idle_ms": DEFAULT_ASSISTANT_IDLE_MS,
    "idle_timeout_ms": DEFAULT_IDLE_TIMEOUT_MS,
    "debounce_ms": DEFAULT_DEBOUNCE_MS,
    "min_image_size": DEFAULT_MIN_IMAGE_SIZE,
    "viewport_margin": DEFAULT_VIEWPORT_MARGIN,
    "drag_cooldown_ms": DEFAULT_DRAG_COOLDOWN_MS,
}


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


class TocSettings(BaseModel):
    """Knobs controlling discovery, rendering and interaction of the TOC."""

    model_config = ConfigDict(validate_assignment=True)

    max_items: int = DEFAULT_MAX_ITEMS
    show_assistant_preview: bool = True
    summary_length: int = DEFAULT_SUMMARY_LENGTH
    file_name_length: int = DEFAULT_FILE_NAME_LENGTH
    assistant_summary_length: int = DEFAULT_ASSISTANT_SUMMARY_LENGTH
    assistant_idle_ms: int = DEFAULT_ASSISTANT_IDLE_MS
    idle_timeout_ms: int = DEFAULT_IDLE_TIMEOUT_MS
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    min_image_size: int = DEFAULT_MIN_IMAGE_SIZE
    thumbnail_limit: int = DEFAULT_THUMBNAIL_LIMIT
    drag_threshold: int = DEFAULT_DRAG_THRESHOLD
    viewport_margin: int = DEFAULT_VIEWPORT_MARGIN
    drag_cooldown_ms: int = DEFAULT_DRAG_COOLDOWN_MS
    state_key: str = "convtoc_state_v2_sharedpos"
    id_attribute: str = "data-convtoc-id"
    id_prefix: str = "convtoc-"

    @field_validator(*_POSITIVE_DEFAULTS, mode="before")
    @classmethod
    def _normalize_positive(cls, value: Any, info: ValidationInfo) -> int:
        """Replace missing, malformed or non-positive limits by defaults."""
        numeric = _coerce_int(value)
        if numeric is None or numeric <= 0:
            return _POSITIVE_DEFAULTS[info.field_name]
        return numeric

    @field_validator(*_NON_NEGATIVE_DEFAULTS, mode="before")
    @classmethod
    def _normalize_non_negative(cls, value: Any, info: ValidationInfo) -> int:
        """Replace missing, malformed or negative delays and sizes by defaults."""
        numeric = _coerce_int(value)
        if numeric is None or numeric < 0:
            return _NON_NEGATIVE_DEFAULTS[info.field_name]
        return numeric

    @field_validator("state_key", "id_attribute", "id_prefix", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("state_key", "id_attribute")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    # ------------------------------------------------------------------
    @property
    def assistant_idle_seconds(self) -> float:
        return self.assistant_idle_ms / 1000.0

    @property
    def idle_timeout_seconds(self) -> float:
        return self.idle_timeout_ms / 1000.0

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def drag_cooldown_seconds(self) -> float:
        return self.drag_cooldown_ms / 1000.0


def load_settings(path: str | Path) -> TocSettings:
    """Load :class:`TocSettings` from *path* with validation.

    ``.toml`` files are read with :mod:`tomllib`, everything else is treated
    as JSON. A ``[toc]`` table (or ``"toc"`` object) is used when present so
    the settings can live inside a larger host configuration file.
    Validation errors are wrapped into :class:`ValueError`.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    if isinstance(data, dict) and isinstance(data.get("toc"), dict):
        data = data["toc"]
    try:
        return TocSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


__all__ = ["TocSettings", "load_settings"]
