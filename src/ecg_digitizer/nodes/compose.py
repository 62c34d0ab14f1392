"""Compose node: paste the trace overlay back into the full image."""

from __future__ import annotations

from ecg_digitizer._logging import logger
from ecg_digitizer.models import (
    EcgImage,
    PipelineState,
    ProcessingError,
    ProcessingStage,
    Rectangle,
)


def compose_trace(original: EcgImage, trace: EcgImage, rect: Rectangle) -> EcgImage:
    """Original image in BGR with ``trace`` copied over ``rect``.

    The target is shrunk to the trace size and clamped to the image. If
    nothing overlaps, the original is returned without the overlay.
    """
    frame = original.to_bgr()
    w = min(rect.width, trace.width)
    h = min(rect.height, trace.height)
    target = Rectangle.from_xywh(rect.top_left.x, rect.top_left.y, w, h).clamp(
        frame.width, frame.height
    )
    if target.width < 1 or target.height < 1:
        logger.warning(f"Trace does not overlap the image at {rect}, skipping overlay")
        return frame
    return frame.paste(trace.crop(Rectangle.from_xywh(0, 0, w, h)), rect.top_left)


def compose(state: PipelineState) -> PipelineState:
    """
    Composite the trace overlay into the original image.

    Updates state with:
    - trace: full-size overlay image
    - errors: Any processing errors encountered
    """
    try:
        trace = compose_trace(state.image, state.trace_crop, state.crop_rect)
    except Exception as e:
        err = ProcessingError(
            stage=ProcessingStage.COMPOSE,
            error_type=type(e).__name__,
            recoverable=False,
            message=str(e),
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    return state.model_copy(update={"trace": trace})
