"""Preprocessing node: grid localization, gridline removal, border repair."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer import config
from ecg_digitizer._logging import logger
from ecg_digitizer.models import (
    ColorSpace,
    EcgImage,
    PipelineState,
    Point,
    ProcessingError,
    ProcessingStage,
    Rectangle,
)
from ecg_digitizer.utils.cv_utils import VisionBackend, init_backend


def locate_grid(image: EcgImage, backend: VisionBackend) -> Rectangle:
    """Bounding rectangle of the printed grid, or the full image if none is found."""
    bgr = image.to_bgr().data
    h, w = bgr.shape[:2]

    edges = backend.canny(bgr, config.CANNY_LOW_THRESHOLD, config.CANNY_HIGH_THRESHOLD)
    rects = [
        backend.bounding_rect(backend.approx_polygon(contour, config.POLY_EPSILON_RATIO))
        for contour in backend.external_contours(edges, approx_none=True)
    ]

    min_area = config.MIN_GRID_AREA_RATIO * w * h
    rects = [r for r in rects if r[2] * r[3] >= min_area]
    merged = _merge_rectangles(rects, backend)

    if not merged:
        logger.debug("No grid rectangle found, using the full image")
        return Rectangle(Point(0, 0), Point(w, h))

    x, y, rw, rh = max(merged, key=lambda r: r[2] * r[3])
    return Rectangle.from_xywh(x, y, rw, rh)


def _merge_rectangles(
    rects: list[tuple[int, int, int, int]], backend: VisionBackend
) -> list[tuple[int, int, int, int]]:
    """Union overlapping rectangles by rasterizing them on a shared mask."""
    if not rects:
        return []
    max_x = max(x + w for x, _, w, _ in rects)
    max_y = max(y + h for _, y, _, h in rects)
    canvas = np.zeros((max_y + 1, max_x + 1), dtype=np.uint8)
    for x, y, w, h in rects:
        backend.fill_rect(canvas, x, y, w, h)
    contours = backend.external_contours(canvas, approx_none=False)
    return [backend.bounding_rect(c) for c in contours]


def otsu_threshold(gray: NDArray[np.uint8]) -> int:
    """Level maximizing the between-class variance of the intensity histogram.

    Returns 0 when every split is degenerate (e.g. a uniform image).
    """
    levels = config.OTSU_LEVELS
    hist = np.bincount(np.asarray(gray, dtype=np.uint8).ravel(), minlength=levels)
    total = hist.sum()
    if total == 0:
        return 0
    p = hist[:levels].astype(np.float64) / float(total)

    # omega[k] and mu[k] cover bins [0, k)
    omega = np.concatenate(([0.0], np.cumsum(p)))
    mu = np.concatenate(([0.0], np.cumsum(np.arange(1, levels + 1) * p)))
    mu_t = mu[levels]
    omega, mu = omega[:levels], mu[:levels]

    eps = config.OTSU_OMEGA_EPS
    valid = (omega > eps) & (omega < 1.0 - eps)
    sigma = np.zeros(levels, dtype=np.float64)
    sigma[valid] = (mu_t * omega[valid] - mu[valid]) ** 2 / (
        omega[valid] * (1.0 - omega[valid])
    )
    if not np.any(sigma > 0):
        return 0
    return int(np.argmax(sigma))


def outline_borders(binary: EcgImage) -> EcgImage:
    """Whiten solid scan margins and bridge small gaps on the outermost ink rows."""
    data = binary.data.copy()
    h, w = data.shape
    bw = config.BORDER_WIDTH
    black = config.BLACK

    for row in list(range(min(bw, h))) + list(range(max(h - bw, 0), h)):
        if np.count_nonzero(data[row] == black) / w >= config.BORDER_BLACK_RATIO:
            data[row] = config.WHITE
    for col in list(range(min(bw, w))) + list(range(max(w - bw, 0), w)):
        if np.count_nonzero(data[:, col] == black) / h >= config.BORDER_BLACK_RATIO:
            data[:, col] = config.WHITE

    ink_rows = np.flatnonzero(np.any(data == black, axis=1))
    if ink_rows.size:
        max_dist = int(config.BORDER_BRIDGE_RATIO * w)
        for row in (ink_rows[0], ink_rows[-1]):
            cols = np.flatnonzero(data[row] == black)
            for c0, c1 in zip(cols[:-1], cols[1:]):
                if c1 - c0 <= max_dist:
                    data[row, c0 : c1 + 1] = black

    return binary.with_data(data)


def remove_gridlines(crop: EcgImage, backend: VisionBackend) -> EcgImage:
    """Binarize the crop so that ink is black (0) and everything else white (255)."""
    bgr = crop.to_bgr()
    mask = backend.in_range(bgr.to_hsv().data, config.GRID_HSV_LOWER, config.GRID_HSV_UPPER)
    masked = EcgImage(backend.masked(bgr.data, mask), ColorSpace.BGR)
    gray = masked.to_gray()
    level = otsu_threshold(gray.data)
    logger.debug(f"Otsu threshold: {level}")
    binary = gray.with_data(backend.threshold(gray.data, level))
    return outline_borders(binary)


def preprocess_image(image: EcgImage, backend: VisionBackend) -> tuple[EcgImage, Rectangle]:
    """Locate the grid, crop it and binarize it."""
    rect = locate_grid(image, backend)
    crop = image.crop(rect)
    return remove_gridlines(crop, backend), rect


def preprocess(state: PipelineState) -> PipelineState:
    """
    Preprocess image: locate grid, crop, remove gridlines.

    Updates state with:
    - crop: binarized grid crop (ink = 0)
    - crop_rect: grid rectangle in original image coordinates
    - errors: Any processing errors encountered
    """
    if not isinstance(state.image, EcgImage):
        err = ProcessingError(
            stage=ProcessingStage.INPUT,
            error_type="invalid_input",
            recoverable=False,
            message=f"Expected EcgImage, got {type(state.image).__name__}",
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    backend = state.backend or init_backend(state.config.opencv_threads)
    try:
        crop, rect = preprocess_image(state.image, backend)
    except Exception as e:
        err = ProcessingError(
            stage=ProcessingStage.PREPROCESS,
            error_type=type(e).__name__,
            recoverable=False,
            message=str(e),
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    logger.debug(
        f"Grid crop {rect.width:.0f}x{rect.height:.0f} at "
        f"({rect.top_left.x:.0f}, {rect.top_left.y:.0f})"
    )
    return state.model_copy(update={"backend": backend, "crop": crop, "crop_rect": rect})
