"""Vertical regions of interest: one expected baseline row per printed trace."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.signal import find_peaks

from ecg_digitizer import config
from ecg_digitizer.models import DigitizationError, ProcessingStage


def window_std(gray: NDArray[np.uint8], window: int = config.ROI_WINDOW) -> NDArray[np.float64]:
    """Population std of every ``window``-row band, stored at the band's center row.

    Rows that cannot center a full band stay 0.
    """
    h = gray.shape[0]
    stds = np.zeros(h, dtype=np.float64)
    if h < window or gray.size == 0:
        return stds

    # Integer sums keep flat bands at exactly zero variance
    pixels = gray.astype(np.int64)
    n = window * pixels.shape[1]
    zero = np.zeros(1, dtype=np.int64)
    row_sum = np.concatenate((zero, np.cumsum(pixels.sum(axis=1))))
    row_sq = np.concatenate((zero, np.cumsum((pixels**2).sum(axis=1))))
    sums = row_sum[window:] - row_sum[:-window]
    sqs = row_sq[window:] - row_sq[:-window]
    var = (n * sqs - sums**2).astype(np.float64) / float(n * n)

    shift = (window - 1) // 2
    stds[shift : shift + var.size] = np.sqrt(var)
    return stds


def find_rois(binary: NDArray[np.uint8], n: int) -> list[int]:
    """Rows of the ``n`` strongest std peaks, top to bottom.

    Raises:
        DigitizationError: If fewer than ``n`` peaks exist.
    """
    stds = window_std(binary)
    distance = max(1, int(binary.shape[0] * config.ROI_MIN_DISTANCE_RATIO))
    # plateau_size=(1, 1) keeps only samples strictly above both neighbors
    peaks, _ = find_peaks(stds, distance=distance, plateau_size=(1, 1))
    if len(peaks) < n:
        raise DigitizationError(
            "The indicated number of ROIs could not be detected.",
            stage=ProcessingStage.EXTRACT,
        )
    ranked = sorted(peaks.tolist(), key=lambda p: -stds[p])
    return sorted(ranked[:n])
