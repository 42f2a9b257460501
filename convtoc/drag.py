"""Pointer dragging of floating surfaces without swallowing clicks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .geometry import Rect, Size, clamp_to_viewport
from .scheduling import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

PRIMARY_BUTTON = 0


class DragTarget(Protocol):
    """Element that can be measured and moved in viewport coordinates."""

    def bounding_rect(self) -> Rect:
        """Return the current on-screen rectangle."""

    def move_to(self, left: float, top: float) -> None:
        """Place the element's top-left corner at ``(left, top)``."""


@dataclass(frozen=True, slots=True)
class PointerEvent:
    """Pointer position plus what was under it when pressed."""

    x: float
    y: float
    button: int | None = PRIMARY_BUTTON
    on_control: bool = False


def place_within(
    target: DragTarget,
    left: float,
    top: float,
    viewport: Size,
    margin: float = 8,
) -> tuple[float, float]:
    """Move *target* to ``(left, top)`` clamped into *viewport*; return the placement."""
    rect = target.bounding_rect()
    placed = clamp_to_viewport(left, top, Size(rect.width, rect.height), viewport, margin)
    target.move_to(*placed)
    return placed


class DragController:
    """Drag *target* by pressing on its handle.

    Presses on interactive controls inside the handle and non-primary
    buttons are ignored. Movement turns into a drag only once the summed
    displacement reaches ``threshold``; a release before that is a plain
    click. After a real drag the target counts as "moved recently" for
    ``cooldown`` seconds so the click that ends the gesture can be ignored.
    """

    def __init__(
        self,
        target: DragTarget,
        *,
        viewport: Callable[[], Size],
        scheduler: Scheduler,
        on_drag_end: Callable[[DragTarget], None] | None = None,
        threshold: float = 4,
        margin: float = 8,
        cooldown: float = 0.2,
    ) -> None:
        self._target = target
        self._viewport = viewport
        self._scheduler = scheduler
        self._on_drag_end = on_drag_end
        self._threshold = threshold
        self._margin = margin
        self._cooldown = cooldown
        self._pressed = False
        self._dragging = False
        self._start_x = 0.0
        self._start_y = 0.0
        self._start_left = 0.0
        self._start_top = 0.0
        self._moved_recently = False
        self._cooldown_timer: TimerHandle | None = None

    @property
    def target(self) -> DragTarget:
        return self._target

    @property
    def pressed(self) -> bool:
        return self._pressed

    @property
    def dragging(self) -> bool:
        return self._dragging

    @property
    def moved_recently(self) -> bool:
        return self._moved_recently

    # ------------------------------------------------------------------
    def pointer_down(self, event: PointerEvent) -> bool:
        """Start tracking a potential drag; return ``False`` when ignored."""
        if event.on_control:
            return False
        if event.button is not None and event.button != PRIMARY_BUTTON:
            return False
        rect = self._target.bounding_rect()
        self._pressed = True
        self._dragging = False
        self._start_x = event.x
        self._start_y = event.y
        self._start_left = rect.left
        self._start_top = rect.top
        return True

    def pointer_move(self, event: PointerEvent) -> bool:
        """Reposition the target; return ``True`` while actually dragging."""
        if not self._pressed:
            return False
        dx = event.x - self._start_x
        dy = event.y - self._start_y
        if not self._dragging:
            if abs(dx) + abs(dy) < self._threshold:
                return False
            self._dragging = True
        place_within(
            self._target,
            self._start_left + dx,
            self._start_top + dy,
            self._viewport(),
            self._margin,
        )
        return True

    def pointer_up(self, event: PointerEvent | None = None) -> bool:
        """Finish the gesture; return ``True`` if it was a drag."""
        if not self._pressed:
            return False
        self._pressed = False
        if not self._dragging:
            return False
        self._dragging = False
        self._mark_moved()
        if self._on_drag_end is not None:
            self._on_drag_end(self._target)
        return True

    pointer_cancel = pointer_up

    def place(self, left: float, top: float) -> tuple[float, float]:
        """Move the target to ``(left, top)`` within the viewport margins."""
        return place_within(self._target, left, top, self._viewport(), self._margin)

    # ------------------------------------------------------------------
    def _mark_moved(self) -> None:
        if self._cooldown_timer is not None:
            self._cooldown_timer.cancel()
        self._moved_recently = True
        self._cooldown_timer = self._scheduler.call_later(self._cooldown, self._clear_moved)

    def _clear_moved(self) -> None:
        self._cooldown_timer = None
        self._moved_recently = False


__all__ = ["DragController", "DragTarget", "PointerEvent", "place_within"]
