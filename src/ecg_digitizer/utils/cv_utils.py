"""
OpenCV helpers shared by the ECG digitization stages.

Contents:
- Reading and writing images as EcgImage values
- The vision backend handle that every stage receives

The I/O helpers return ``EcgImage | ProcessingError`` (or
``Path | ProcessingError``) instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

import cv2
import numpy as np
from numpy.typing import NDArray

from ecg_digitizer._logging import logger
from ecg_digitizer.models import EcgImage, ProcessingError, ProcessingStage

# =============================================================================
# TYPE ALIASES
# =============================================================================

# Any dtype: OpenCV's MatLike does not match concrete NDArray dtypes
Image: TypeAlias = NDArray[Any]  # gray or BGR pixels
Contour: TypeAlias = NDArray[Any]  # (N, 1, 2) int32 points


# =============================================================================
# SECTION 1: IMAGE I/O
# =============================================================================


def _io_error(
    stage: ProcessingStage,
    error_type: str,
    message: str,
    path: Path,
    **details: Any,
) -> ProcessingError:
    return ProcessingError(
        stage=stage,
        error_type=error_type,
        recoverable=False,
        message=message,
        details={"path": str(path), **details},
    )


def load_image(
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> EcgImage | ProcessingError:
    """
    Decode an image file into an EcgImage.

    Gray and BGRA files are accepted; 16-bit scans are scaled to 8 bits.

    Args:
        path: Image file
        stage: Stage reported on failure

    Returns:
        EcgImage or ProcessingError (file_not_found, imread_failed,
        permission_denied, io_error)
    """
    path = Path(path)
    if not path.exists():
        return _io_error(stage, "file_not_found", f"No such image: {path}", path)

    try:
        pixels = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    except PermissionError:
        return _io_error(stage, "permission_denied", f"Cannot read {path}: permission denied", path)
    except Exception as e:
        return _io_error(stage, "io_error", f"Cannot read {path}: {e}", path, error=str(e))

    # imread signals undecodable files with None
    if pixels is None:
        return _io_error(stage, "imread_failed", f"Cannot decode image {path}", path)
    if pixels.dtype != np.uint8:
        pixels = cv2.convertScaleAbs(pixels, alpha=255.0 / max(1.0, float(pixels.max())))
    return EcgImage.from_array(pixels)


def save_image(
    image: EcgImage,
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.COMPOSE,
) -> Path | ProcessingError:
    """
    Encode ``image`` to ``path``; the format follows the file suffix.

    Color images are written as BGR, creating parent directories as needed.
    """
    path = Path(path)
    data = image.data if image.channels == 1 else image.to_bgr().data

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        written = cv2.imwrite(str(path), data)
    except PermissionError:
        return _io_error(stage, "permission_denied", f"Cannot write {path}: permission denied", path)
    except Exception as e:
        return _io_error(stage, "io_error", f"Cannot write {path}: {e}", path, error=str(e))

    if not written:
        return _io_error(stage, "imwrite_failed", f"OpenCV could not write {path}", path)
    return path


# =============================================================================
# SECTION 2: VISION BACKEND
# =============================================================================


@dataclass(frozen=True)
class VisionBackend:
    """Handle on the initialized OpenCV backend.

    Obtain one with ``init_backend`` and pass it to the pipeline stages.
    """

    num_threads: int
    optimized: bool
    version: str

    def canny(self, image: Image, low: float, high: float) -> Image:
        return cv2.Canny(image, low, high)

    def external_contours(self, binary: Image, approx_none: bool = True) -> list[Contour]:
        method = cv2.CHAIN_APPROX_NONE if approx_none else cv2.CHAIN_APPROX_SIMPLE
        contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, method)
        return list(contours)

    def approx_polygon(self, contour: Contour, epsilon_ratio: float) -> Contour:
        curve = contour.astype(np.float32)
        epsilon = epsilon_ratio * cv2.arcLength(curve, True)
        return cv2.approxPolyDP(curve, epsilon, True).astype(np.int32)

    def bounding_rect(self, points: Contour) -> tuple[int, int, int, int]:
        x, y, w, h = cv2.boundingRect(points)
        return int(x), int(y), int(w), int(h)

    def fill_rect(self, canvas: Image, x: int, y: int, w: int, h: int) -> None:
        """Fill ``(x, y)``..``(x + w, y + h)`` inclusive with white, in place."""
        cv2.rectangle(canvas, (x, y), (x + w, y + h), 255, -1)

    def in_range(self, image: Image, lower: tuple[int, ...], upper: tuple[int, ...]) -> Image:
        return cv2.inRange(image, np.array(lower), np.array(upper))

    def masked(self, image: Image, mask: Image) -> Image:
        return cv2.bitwise_and(image, image, mask=mask)

    def threshold(self, gray: Image, level: float, max_value: float = 255.0) -> Image:
        _, binary = cv2.threshold(gray, level, max_value, cv2.THRESH_BINARY)
        return binary


def init_backend(num_threads: int | None = None) -> VisionBackend:
    """Initialize OpenCV once and return the handle for pipeline calls.

    Args:
        num_threads: Threads for OpenCV's internal parallelism; ``None`` keeps
            the library default, 0 disables threading.
    """
    cv2.setUseOptimized(True)
    if num_threads is not None:
        cv2.setNumThreads(num_threads)
    backend = VisionBackend(
        num_threads=cv2.getNumThreads(),
        optimized=cv2.useOptimized(),
        version=cv2.__version__,
    )
    logger.debug(
        f"OpenCV {backend.version} initialized (threads={backend.num_threads}, "
        f"optimized={backend.optimized})"
    )
    return backend
