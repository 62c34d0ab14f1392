"""Immutable image value type with an explicit color-space tag.

``EcgImage`` never changes its buffer: conversions, crops and drawing all
return a new image. The wrapped array is flagged read-only so accidental
in-place writes fail loudly.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

import cv2
import numpy as np
from numpy.typing import NDArray

from .geometry import Point, Rectangle

Pixels: TypeAlias = NDArray[Any]
Color: TypeAlias = tuple[int, int, int]


class ColorSpace(str, Enum):
    GRAY = "gray"
    BGR = "bgr"
    RGB = "rgb"
    HSV = "hsv"


# Conversions are routed through BGR
_TO_BGR = {
    ColorSpace.GRAY: cv2.COLOR_GRAY2BGR,
    ColorSpace.RGB: cv2.COLOR_RGB2BGR,
    ColorSpace.HSV: cv2.COLOR_HSV2BGR,
}
_FROM_BGR = {
    ColorSpace.GRAY: cv2.COLOR_BGR2GRAY,
    ColorSpace.RGB: cv2.COLOR_BGR2RGB,
    ColorSpace.HSV: cv2.COLOR_BGR2HSV,
}


def _frozen(data: Pixels) -> Pixels:
    arr = np.ascontiguousarray(data, dtype=np.uint8)
    if arr is data:
        arr = arr.copy()
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class EcgImage:
    data: Pixels
    color_space: ColorSpace

    def __post_init__(self) -> None:
        ndim = self.data.ndim
        if self.color_space is ColorSpace.GRAY and ndim != 2:
            raise ValueError(f"GRAY image must be 2-D, got shape {self.data.shape}")
        if self.color_space is not ColorSpace.GRAY and (ndim != 3 or self.data.shape[2] != 3):
            raise ValueError(
                f"{self.color_space.value.upper()} image must be HxWx3, got shape {self.data.shape}"
            )
        object.__setattr__(self, "data", _frozen(self.data))

    @classmethod
    def from_array(cls, data: Pixels) -> EcgImage:
        """Wrap a decoded OpenCV array (gray, BGR or BGRA)."""
        if data.ndim == 2:
            return cls(data, ColorSpace.GRAY)
        channels = data.shape[2]
        if channels == 1:
            return cls(data[:, :, 0], ColorSpace.GRAY)
        if channels == 4:
            return cls(cv2.cvtColor(data, cv2.COLOR_BGRA2BGR), ColorSpace.BGR)
        return cls(data, ColorSpace.BGR)

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.data.ndim == 2 else int(self.data.shape[2])

    @property
    def rect(self) -> Rectangle:
        return Rectangle(Point(0, 0), Point(self.width, self.height))

    def convert(self, target: ColorSpace) -> EcgImage:
        if target is self.color_space:
            return self
        bgr = (
            self.data
            if self.color_space is ColorSpace.BGR
            else cv2.cvtColor(self.data, _TO_BGR[self.color_space])
        )
        if target is ColorSpace.BGR:
            return EcgImage(bgr, ColorSpace.BGR)
        return EcgImage(cv2.cvtColor(bgr, _FROM_BGR[target]), target)

    def to_gray(self) -> EcgImage:
        return self.convert(ColorSpace.GRAY)

    def to_bgr(self) -> EcgImage:
        return self.convert(ColorSpace.BGR)

    def to_hsv(self) -> EcgImage:
        return self.convert(ColorSpace.HSV)

    def crop(self, rect: Rectangle) -> EcgImage:
        """Copy of the region under ``rect``, clamped to the image."""
        rows, cols = rect.clamp(self.width, self.height).as_slices()
        return EcgImage(self.data[rows, cols].copy(), self.color_space)

    def with_data(self, data: Pixels) -> EcgImage:
        return EcgImage(data, self.color_space)

    def with_lines(
        self,
        segments: Sequence[tuple[Point, Point]],
        color: Color,
        thickness: int = 1,
    ) -> EcgImage:
        """New image with each ``(start, end)`` segment drawn."""
        canvas = self.data.copy()
        for start, end in segments:
            cv2.line(canvas, start.as_int(), end.as_int(), _ink(color, self), thickness)
        return EcgImage(canvas, self.color_space)

    def with_polyline(
        self,
        points: Sequence[Point] | NDArray[Any],
        color: Color,
        thickness: int = 1,
    ) -> EcgImage:
        """New image with an open polyline through ``points``."""
        if isinstance(points, np.ndarray):
            pts = points.astype(np.int32).reshape(-1, 1, 2)
        else:
            pts = np.array([p.as_int() for p in points], dtype=np.int32).reshape(-1, 1, 2)
        canvas = self.data.copy()
        if len(pts) >= 2:
            cv2.polylines(canvas, [pts], False, _ink(color, self), thickness)
        return EcgImage(canvas, self.color_space)

    def paste(self, other: EcgImage, at: Point) -> EcgImage:
        """New image with ``other`` copied in at ``at``, clipped to bounds."""
        src = other.convert(self.color_space).data
        x0, y0 = at.as_int()
        target = Rectangle.from_xywh(x0, y0, other.width, other.height).clamp(
            self.width, self.height
        )
        rows, cols = target.as_slices()
        h = rows.stop - rows.start
        w = cols.stop - cols.start
        canvas = self.data.copy()
        if h > 0 and w > 0:
            sy, sx = rows.start - y0, cols.start - x0
            canvas[rows, cols] = src[sy : sy + h, sx : sx + w]
        return EcgImage(canvas, self.color_space)


def _ink(color: Color, image: EcgImage) -> Any:
    if image.color_space is ColorSpace.GRAY:
        return int(round(sum(color) / 3))
    if image.color_space is ColorSpace.RGB:
        return tuple(reversed(color))
    return color
