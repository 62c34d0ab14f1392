"""Dynamic-programming path search over column clusters, one path per ROI track.

The search table holds one ``ColumnRecords`` per column. Record ``[i, t]``
describes the best path for track ``t`` that ends in cluster ``i`` of that
column: cumulative cost, path length, the y stored for the column, and the
index of the predecessor cluster in the previous column (-1 at a path start).
Predecessors always live in the column to the left, so the table is a DAG.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.signal import find_peaks

from ecg_digitizer import config
from ecg_digitizer.models import DigitizationError, ProcessingStage

from .clusters import Cluster, gap_matrix

NO_PARENT = -1


@dataclass(frozen=True)
class ColumnRecords:
    cost: NDArray[np.float64]  # (C, T)
    length: NDArray[np.int64]  # (C, T)
    y: NDArray[np.int64]  # (C, T)
    prev: NDArray[np.int64]  # (C, T), NO_PARENT at path starts

    @classmethod
    def start(cls, centers: NDArray[np.int64], n_tracks: int) -> ColumnRecords:
        """Records for clusters that begin a path: zero cost, length 1, own center."""
        shape = (centers.size, n_tracks)
        return cls(
            cost=np.zeros(shape, dtype=np.float64),
            length=np.ones(shape, dtype=np.int64),
            y=np.repeat(centers[:, None], n_tracks, axis=1),
            prev=np.full(shape, NO_PARENT, dtype=np.int64),
        )


def _as_array(clusters: list[Cluster]) -> NDArray[np.int64]:
    return np.asarray(clusters, dtype=np.int64).reshape(-1, 2)


def _centers(bounds: NDArray[np.int64]) -> NDArray[np.int64]:
    return (bounds[:, 0] + bounds[:, 1] + 1) // 2


def trace_paths(
    clusters: list[list[Cluster]],
    rois: list[int],
    width: int,
) -> list[ColumnRecords | None]:
    """Fill the search table left to right.

    Moving from cluster ``pc`` to ``c`` for track ``t`` costs
    ``|center(pc) - roi[t]| + (width / 10) * gap(pc, c)``; the first
    predecessor with minimal cumulative cost wins.
    """
    n_tracks = len(rois)
    roi = np.asarray(rois, dtype=np.float64)[None, :]
    penalty = width * config.GAP_PENALTY_RATIO
    table: list[ColumnRecords | None] = [None] * len(clusters)

    for col in range(1, len(clusters)):
        prev_clusters, cur_clusters = clusters[col - 1], clusters[col]
        if not prev_clusters or not cur_clusters:
            continue

        prev_bounds = _as_array(prev_clusters)
        prev_centers = _centers(prev_bounds)
        prev = table[col - 1]
        if prev is None:
            prev = ColumnRecords.start(prev_centers, n_tracks)
            table[col - 1] = prev

        # (P, T) + (P, C, 1) -> (P, C, T)
        step = prev.cost + np.abs(prev_centers[:, None].astype(np.float64) - roi)
        gaps = penalty * gap_matrix(prev_bounds, _as_array(cur_clusters)).astype(np.float64)
        total = step[:, None, :] + gaps[:, :, None]

        best = np.argmin(total, axis=0)  # (C, T)
        tracks = np.arange(n_tracks)[None, :]
        table[col] = ColumnRecords(
            cost=np.take_along_axis(total, best[None, :, :], axis=0)[0],
            length=prev.length[best, tracks] + 1,
            y=prev_centers[best],
            prev=best.astype(np.int64),
        )

    return table


def backtrack(
    table: list[ColumnRecords | None],
    clusters: list[list[Cluster]],
    roi: int,
    track: int,
) -> tuple[NDArray[np.int64], list[Cluster]]:
    """Longest path of ``track`` ending closest to ``roi``.

    Returns the ``(x, y)`` points left to right and the cluster of each point.
    """
    max_len = max(
        (int(rec.length[:, track].max()) for rec in table if rec is not None and rec.length.size),
        default=0,
    )
    if max_len == 0:
        raise DigitizationError(
            "No ink path could be traced in the image.", stage=ProcessingStage.EXTRACT
        )

    best: tuple[int, int] | None = None
    best_dist = 0
    for col, rec in enumerate(table):
        if rec is None:
            continue
        idx = np.flatnonzero(rec.length[:, track] == max_len)
        if idx.size == 0:
            continue
        dists = np.abs(_centers(_as_array(clusters[col]))[idx] - roi)
        j = int(np.argmin(dists))
        if best is None or dists[j] < best_dist:
            best = (col, int(idx[j]))
            best_dist = int(dists[j])

    if best is None:
        raise DigitizationError(
            f"No path of length {max_len} found for track {track}.", stage=ProcessingStage.EXTRACT
        )
    col, i = best
    points: list[tuple[int, int]] = []
    path: list[Cluster] = []
    while True:
        rec = table[col] if col >= 0 else None
        if rec is None:
            raise DigitizationError(
                f"Path of track {track} links to empty column {col}.",
                stage=ProcessingStage.EXTRACT,
            )
        points.append((col, int(rec.y[i, track])))
        path.append(clusters[col][i])
        parent = int(rec.prev[i, track])
        if parent == NO_PARENT:
            break
        col, i = col - 1, parent

    points.reverse()
    path.reverse()
    return np.asarray(points, dtype=np.int64).reshape(-1, 2), path


def delineate_peaks(points: NDArray[np.int64], path: list[Cluster], roi: int) -> NDArray[np.int64]:
    """Push local extremes out to the far end of the preceding cluster.

    The distance-to-ROI term of the cost pulls every y toward the baseline,
    which flattens sharp QRS tips; the cluster spans still reach them.
    """
    out = points.copy()
    if len(out) < 3:
        return out
    dist = np.abs(out[:, 1] - roi).astype(np.float64)
    peaks, _ = find_peaks(dist, plateau_size=(1, 1))
    for peak in peaks:
        if 0 < peak < len(path):
            lo, hi = path[peak - 1]
            out[peak, 1] = lo if abs(lo - roi) >= abs(hi - roi) else hi
    return out
