"""Best-effort persistence of the panel position and minimized flag."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FIELD_ALIASES = {"pos_left": "posLeft", "pos_top": "posTop"}


@dataclass(frozen=True, slots=True)
class StoreResult(Generic[T]):
    """Outcome of a key-value store call; failures carry the exception."""

    ok: bool
    value: T | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, value: T | None = None) -> StoreResult[T]:
        return cls(True, value)

    @classmethod
    def failure(cls, error: Exception) -> StoreResult[T]:
        return cls(False, None, error)


class KeyValueStore(Protocol):
    """Synchronous string store with no availability guarantees."""

    def get(self, key: str) -> StoreResult[str]:
        """Return the stored value (``None`` when missing) or a failure."""

    def set(self, key: str, value: str) -> StoreResult[None]:
        """Store *value* under *key* or report a failure."""


class MemoryKeyValueStore:
    """Process-local store, mainly for headless hosts and tests."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> StoreResult[str]:
        return StoreResult.success(self._data.get(key))

    def set(self, key: str, value: str) -> StoreResult[None]:
        self._data[key] = value
        return StoreResult.success()


class JsonFileKeyValueStore:
    """Store every key of one origin in a single JSON object on disk."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"{self._path} does not contain a JSON object")
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def get(self, key: str) -> StoreResult[str]:
        try:
            return StoreResult.success(self._read().get(key))
        except (OSError, ValueError) as exc:
            return StoreResult.failure(exc)

    def set(self, key: str, value: str) -> StoreResult[None]:
        try:
            data = self._read()
        except ValueError:
            data = {}
        except OSError as exc:
            return StoreResult.failure(exc)
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            tmp_path.replace(self._path)
        except OSError as exc:
            return StoreResult.failure(exc)
        return StoreResult.success()


def _finite_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


class UIState(BaseModel):
    """Shared state of the panel and its minimized launcher."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    minimized: bool = False
    pos_left: float | None = Field(None, alias="posLeft")
    pos_top: float | None = Field(None, alias="posTop")

    @field_validator("minimized", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return bool(value) if isinstance(value, (bool, int, float)) else False

    @field_validator("pos_left", "pos_top", mode="before")
    @classmethod
    def _drop_non_numbers(cls, value: Any) -> float | None:
        """Positions that are not plain numbers are treated as unset."""
        return _finite_number(value)

    @property
    def has_position(self) -> bool:
        return self.pos_left is not None and self.pos_top is not None


class UIStateStore:
    """Load and shallow-merge :class:`UIState` records under one key.

    Persistence never raises: unreadable or corrupt data yields the default
    state and failed writes are logged and otherwise ignored.
    """

    def __init__(self, store: KeyValueStore, key: str = "convtoc_state_v2_sharedpos") -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> UIState:
        return self._to_state(self._load_raw())

    def save(self, patch: Mapping[str, Any] | None = None, /, **fields: Any) -> UIState:
        """Merge *patch* into the stored record and return the merged state."""
        updates = {**(patch or {}), **fields}
        merged = self._load_raw()
        for name, value in updates.items():
            merged[_FIELD_ALIASES.get(name, name)] = value
        try:
            payload = json.dumps(merged, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.debug("ui state is not serialisable: %s", exc)
            return self._to_state(merged)
        result = self._store.set(self._key, payload)
        if not result.ok:
            logger.debug("failed to persist ui state: %s", result.error)
        return self._to_state(merged)

    # ------------------------------------------------------------------
    def _load_raw(self) -> dict[str, Any]:
        result = self._store.get(self._key)
        if not result.ok:
            logger.debug("failed to read ui state: %s", result.error)
            return {}
        if not result.value:
            return {}
        try:
            raw = json.loads(result.value)
        except ValueError:
            logger.debug("discarding corrupt ui state under %s", self._key)
            return {}
        return raw if isinstance(raw, dict) else {}

    @staticmethod
    def _to_state(raw: Mapping[str, Any]) -> UIState:
        try:
            return UIState.model_validate(dict(raw))
        except ValidationError:
            return UIState()


__all__ = [
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "StoreResult",
    "UIState",
    "UIStateStore",
]
