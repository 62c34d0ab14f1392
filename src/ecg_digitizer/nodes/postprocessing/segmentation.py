"""Split raw traces into reference pulse and signal, and recover the mV scale."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer import config
from ecg_digitizer._logging import logger


class ReferencePulse(NamedTuple):
    """Pixel rows of the 0 mV and 1 mV levels of one track."""

    y0: int
    y1: int


def _split_pulse(ys: NDArray[np.int64]) -> tuple[int, int | None, int]:
    """Return ``(y0, y1, cut)`` for a pulse-first sequence of y values.

    ``y1`` is None when no 1 mV plateau is found.
    """
    eps = config.PIXEL_EPS
    y0 = int(ys[0])

    k = 1
    while k < len(ys) and abs(int(ys[k]) - y0) < eps:
        k += 1

    min_width = max(config.MIN_PULSE_WIDTH, config.PULSE_WIDTH_FACTOR * k)
    y1: int | None = None
    end = len(ys)
    count = 1
    in_run = False
    for i in range(k + 1, len(ys)):
        if abs(int(ys[i]) - int(ys[i - 1])) < eps:
            count += 1
            if count == min_width and y1 is None:
                y1 = int(ys[i])
                in_run = True
        else:
            if in_run:
                end = i
                break
            count = 1

    return y0, y1, min(end + k, len(ys))


def segment(
    raw_signals: list[NDArray[np.int64]],
    pulse_at_right: bool = False,
) -> tuple[list[NDArray[np.int64]], list[ReferencePulse]]:
    """Strip the calibration pulse from every track.

    The 1 mV level of each track is replaced by ``y0 - median(y0 - y1)``
    over all tracks (at least ``MIN_PULSE_AMPLITUDE`` px), so one badly
    detected pulse does not skew its row.

    Returns:
        Cleaned ``(x, y)`` signals in left-to-right order and one
        ``ReferencePulse`` per track.
    """
    cleaned: list[NDArray[np.int64]] = []
    detected: list[tuple[int, int]] = []

    for track, signal in enumerate(raw_signals):
        points = signal[::-1] if pulse_at_right else signal
        y0, y1, cut = _split_pulse(points[:, 1])
        if y1 is None:
            logger.warning(f"Track {track}: no 1 mV plateau found, using cross-track amplitude")
            y1 = y0
        data = points[cut:]
        cleaned.append(data[::-1].copy() if pulse_at_right else data.copy())
        detected.append((y0, y1))

    diffs = sorted(y0 - y1 for y0, y1 in detected)
    median = diffs[len(diffs) // 2] if diffs else 0
    median = max(median, config.MIN_PULSE_AMPLITUDE)
    logger.debug(f"Reference pulse amplitude: {median} px")

    pulses = [ReferencePulse(y0, y0 - median) for y0, _ in detected]
    return cleaned, pulses
