"""Signal extraction: ROI detection, column clustering and per-track path search."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer._logging import logger
from ecg_digitizer.models import (
    DigitizationError,
    EcgImage,
    PipelineState,
    ProcessingError,
    ProcessingStage,
)

from .clusters import Cluster, column_clusters, gap, gap_matrix
from .path_trace import ColumnRecords, backtrack, delineate_peaks, trace_paths
from .roi import find_rois, window_std


def extract_signals(binary: EcgImage, n_tracks: int) -> list[NDArray[np.int64]]:
    """Traced ``(x, y)`` pixel path of every track, top to bottom.

    Raises:
        DigitizationError: If the ROIs or a track's path cannot be found.
    """
    data = binary.to_gray().data
    rois = find_rois(data, n_tracks)
    logger.debug(f"ROIs at rows {rois}")

    clusters = column_clusters(data)
    table = trace_paths(clusters, rois, width=data.shape[1])

    signals = []
    for track, roi in enumerate(rois):
        points, path = backtrack(table, clusters, roi, track)
        signals.append(delineate_peaks(points, path, roi))
        logger.debug(f"Track {track}: {len(points)} points")
    return signals


def extract(state: PipelineState) -> PipelineState:
    """
    Extract one raw pixel path per printed trace from the binarized crop.

    Updates state with:
    - raw_signals: list of (n, 2) integer arrays of (x, y)
    - errors: Any processing errors encountered
    """
    try:
        signals = extract_signals(state.crop, state.config.n_tracks)
    except DigitizationError as e:
        err = ProcessingError(
            stage=ProcessingStage.EXTRACT,
            error_type="extraction_failed",
            recoverable=False,
            message=e.message,
            details={"n_tracks": state.config.n_tracks},
        )
        return state.model_copy(update={"errors": state.errors + [err]})
    except Exception as e:
        err = ProcessingError(
            stage=ProcessingStage.EXTRACT,
            error_type=type(e).__name__,
            recoverable=False,
            message=str(e),
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    return state.model_copy(update={"raw_signals": signals})


__all__ = [
    "Cluster",
    "ColumnRecords",
    "backtrack",
    "column_clusters",
    "delineate_peaks",
    "extract",
    "extract_signals",
    "find_rois",
    "gap",
    "gap_matrix",
    "trace_paths",
    "window_std",
]
