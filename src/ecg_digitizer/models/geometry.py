from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """Pixel coordinate; sub-pixel precision is kept until ``as_int``."""

    x: float
    y: float

    def as_int(self) -> tuple[int, int]:
        return int(self.x), int(self.y)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned region, bottom-right exclusive when used as a slice."""

    top_left: Point
    bottom_right: Point

    def __post_init__(self) -> None:
        if self.bottom_right.x < self.top_left.x or self.bottom_right.y < self.top_left.y:
            raise ValueError(
                f"Invalid rectangle: bottom_right {self.bottom_right} "
                f"is above or left of top_left {self.top_left}"
            )

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> Rectangle:
        return cls(Point(x, y), Point(x + w, y + h))

    @property
    def width(self) -> float:
        return self.bottom_right.x - self.top_left.x

    @property
    def height(self) -> float:
        return self.bottom_right.y - self.top_left.y

    @property
    def area(self) -> float:
        return self.width * self.height

    def clamp(self, width: int, height: int) -> Rectangle:
        """Intersect with the image extent ``[0, width] x [0, height]``.

        A rectangle entirely outside collapses to a zero-area rectangle on
        the nearest edge.
        """
        x0 = min(max(self.top_left.x, 0), width)
        y0 = min(max(self.top_left.y, 0), height)
        x1 = min(max(self.bottom_right.x, x0), width)
        y1 = min(max(self.bottom_right.y, y0), height)
        return Rectangle(Point(x0, y0), Point(x1, y1))

    def as_slices(self) -> tuple[slice, slice]:
        """Row and column slices for indexing an image array."""
        x0, y0 = self.top_left.as_int()
        x1, y1 = self.bottom_right.as_int()
        return slice(y0, y1), slice(x0, x1)
