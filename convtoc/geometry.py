"""Plain geometry values shared by the document and drag layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle in viewport coordinates."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def moved_to(self, left: float, top: float) -> "Rect":
        """Return a copy of the rectangle placed at ``(left, top)``."""
        return Rect(left, top, self.width, self.height)


@dataclass(frozen=True, slots=True)
class Size:
    """Width and height of a viewport."""

    width: float
    height: float


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Return *value* limited to the ``[minimum, maximum]`` range."""
    return max(minimum, min(maximum, value))


def clamp_to_viewport(
    left: float,
    top: float,
    size: Size,
    viewport: Size,
    margin: float = 8,
) -> tuple[float, float]:
    """Return ``(left, top)`` keeping an element of *size* inside *viewport*.

    The element keeps *margin* pixels from every viewport edge. When the
    element does not fit, it is pinned to the top-left margin.
    """
    max_left = viewport.width - size.width - margin
    max_top = viewport.height - size.height - margin
    return (
        clamp(left, margin, max(margin, max_left)),
        clamp(top, margin, max(margin, max_top)),
    )


__all__ = ["Rect", "Size", "clamp", "clamp_to_viewport"]
