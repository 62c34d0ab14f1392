"""Per-column runs of ink pixels and the gap between runs in adjacent columns."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer import config


class Cluster(NamedTuple):
    """Inclusive row range ``lo..hi`` of consecutive ink pixels in one column."""

    lo: int
    hi: int

    @property
    def center(self) -> int:
        # ceil((lo + hi) / 2) for non-negative rows
        return (self.lo + self.hi + 1) // 2


def column_clusters(binary: NDArray[np.uint8]) -> list[list[Cluster]]:
    """Ink runs of every column, top to bottom."""
    ink = binary == config.BLACK
    h, w = ink.shape
    padded = np.zeros((h + 2, w), dtype=np.int8)
    padded[1:-1] = ink
    edges = np.diff(padded, axis=0)
    # edges == 1 marks a run start at that row, -1 one past its end
    starts_r, starts_c = np.nonzero(edges == 1)
    ends_r, ends_c = np.nonzero(edges == -1)

    clusters: list[list[Cluster]] = [[] for _ in range(w)]
    order_s = np.lexsort((starts_r, starts_c))
    order_e = np.lexsort((ends_r, ends_c))
    for col, lo, hi in zip(starts_c[order_s], starts_r[order_s], ends_r[order_e] - 1):
        clusters[int(col)].append(Cluster(int(lo), int(hi)))
    return clusters


def gap(pc: Cluster, c: Cluster) -> int:
    """Blank rows strictly between two clusters, 0 when they touch or overlap."""
    if pc.lo <= c.lo and pc.hi <= c.hi:
        return max(0, c.lo - pc.hi - 1)
    if pc.lo >= c.lo and pc.hi >= c.hi:
        return max(0, pc.lo - c.hi - 1)
    return 0


def gap_matrix(prev: NDArray[np.int64], cur: NDArray[np.int64]) -> NDArray[np.int64]:
    """``gap`` for every pair: ``prev`` is (P, 2), ``cur`` is (C, 2); result is (P, C)."""
    p_lo, p_hi = prev[:, 0:1], prev[:, 1:2]
    c_lo, c_hi = cur[:, 0][None, :], cur[:, 1][None, :]
    above = (p_lo <= c_lo) & (p_hi <= c_hi)
    below = (p_lo >= c_lo) & (p_hi >= c_hi) & ~above
    out = np.zeros((prev.shape[0], cur.shape[0]), dtype=np.int64)
    out = np.where(above, np.maximum(c_lo - p_hi - 1, 0), out)
    out = np.where(below, np.maximum(p_lo - c_hi - 1, 0), out)
    return out
