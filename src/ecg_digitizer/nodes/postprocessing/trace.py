"""Diagnostic overlay of the extracted signals on the binarized crop."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer import config
from ecg_digitizer.models import DigitizerConfig, EcgImage, Point

from .segmentation import ReferencePulse
from .vectorization import lead_sources


def _ticks(width: int, y: int) -> list[tuple[Point, Point]]:
    step = config.TRACE_TICK_SPACING
    return [(Point(x, y), Point(x + step // 2, y)) for x in range(0, width, step)]


def render_trace(
    crop: EcgImage,
    signals: list[NDArray[np.int64]],
    pulses: list[ReferencePulse],
    cfg: DigitizerConfig,
) -> EcgImage:
    """Dashed 0/1 mV levels in black and each lead's path in its palette color."""
    trace = crop.to_bgr()

    for pulse in pulses:
        trace = trace.with_lines(
            _ticks(trace.width, pulse.y0) + _ticks(trace.width, pulse.y1),
            config.TRACE_TICK_COLOR,
            config.TRACE_TICK_THICKNESS,
        )

    _, cols = cfg.layout
    palette = config.TRACE_PALETTE
    for src in lead_sources(cfg):
        if src.track >= len(signals):
            continue
        signal = signals[src.track]
        obs = len(signal) // (1 if src.is_rhythm else cols)
        start, end = src.column * obs, (src.column + 1) * obs
        if start < len(signal) and end <= len(signal):
            trace = trace.with_polyline(
                signal[start:end],
                palette[src.index % len(palette)],
                config.TRACE_LINE_THICKNESS,
            )

    return trace
