"""Tests for ROI detection, column clusters and the DP path search."""

import numpy as np
import pytest

from ecg_digitizer.models import DigitizationError, ProcessingStage
from ecg_digitizer.nodes.extraction import (
    Cluster,
    ColumnRecords,
    backtrack,
    column_clusters,
    delineate_peaks,
    extract_signals,
    find_rois,
    gap,
    gap_matrix,
    trace_paths,
    window_std,
)
from ecg_digitizer.nodes.preprocessing import preprocess_image


def _white(h: int, w: int) -> np.ndarray:
    return np.full((h, w), 255, dtype=np.uint8)


class TestClusters:
    def test_center_rounds_up(self):
        assert Cluster(10, 12).center == 11
        assert Cluster(10, 13).center == 12
        assert Cluster(4, 4).center == 4

    @pytest.mark.parametrize(
        "pc, c, expected",
        [
            (Cluster(10, 12), Cluster(20, 22), 7),
            (Cluster(20, 22), Cluster(10, 12), 7),
            (Cluster(10, 15), Cluster(12, 18), 0),
            (Cluster(10, 12), Cluster(13, 14), 0),
            (Cluster(5, 30), Cluster(10, 12), 0),
        ],
    )
    def test_gap(self, pc, c, expected):
        assert gap(pc, c) == expected

    def test_gap_matrix_matches_pairwise_gap(self):
        prev = [Cluster(0, 2), Cluster(10, 15), Cluster(30, 31)]
        cur = [Cluster(4, 5), Cluster(12, 18), Cluster(20, 40)]
        matrix = gap_matrix(np.asarray(prev), np.asarray(cur))
        assert matrix.shape == (3, 3)
        for i, pc in enumerate(prev):
            for j, c in enumerate(cur):
                assert matrix[i, j] == gap(pc, c)

    def test_column_clusters(self):
        data = _white(10, 3)
        data[1:3, 0] = 0
        data[6, 0] = 0
        data[9, 2] = 0
        clusters = column_clusters(data)
        assert clusters[0] == [Cluster(1, 2), Cluster(6, 6)]
        assert clusters[1] == []
        assert clusters[2] == [Cluster(9, 9)]


class TestRois:
    def test_window_std_of_flat_image_is_zero(self):
        assert np.all(window_std(_white(40, 20)) == 0)

    def test_window_std_peaks_near_ink_row(self):
        data = _white(40, 20)
        data[20, :10] = 0
        data[21, :4] = 0
        stds = window_std(data)
        assert stds.shape == (40,)
        assert 15 <= int(np.argmax(stds)) <= 25

    def test_blank_image_has_no_rois(self):
        with pytest.raises(DigitizationError) as exc:
            find_rois(_white(100, 100), 1)
        assert exc.value.stage is ProcessingStage.EXTRACT

    def test_synthetic_rows(self, synthetic_case, synthetic_image, backend):
        binary, rect = preprocess_image(synthetic_image, backend)
        rois = find_rois(binary.data, 6)
        assert rois == sorted(rois)
        for roi, track in zip(rois, synthetic_case.tracks):
            assert abs(roi - (track.baseline - rect.top_left.y)) <= 8

    def test_too_many_rois_requested(self, synthetic_image, backend):
        binary, _ = preprocess_image(synthetic_image, backend)
        with pytest.raises(DigitizationError):
            find_rois(binary.data, 40)


class TestPathSearch:
    def test_two_parallel_lines(self):
        data = _white(60, 50)
        data[10, :] = 0
        data[40, :] = 0
        clusters = column_clusters(data)
        table = trace_paths(clusters, [10, 40], width=50)

        top, _ = backtrack(table, clusters, 10, 0)
        bottom, _ = backtrack(table, clusters, 40, 1)
        assert top[:, 0].tolist() == list(range(50))
        assert np.all(top[:, 1] == 10)
        assert np.all(bottom[:, 1] == 40)

    def test_follows_vertical_step(self):
        data = _white(40, 50)
        data[10, :25] = 0
        data[10:21, 25] = 0
        data[20, 25:] = 0
        clusters = column_clusters(data)
        table = trace_paths(clusters, [15], width=50)
        points, path = backtrack(table, clusters, 15, 0)
        assert len(points) == 50
        assert len(path) == 50
        assert points[0, 1] == 10
        assert points[-1, 1] == 20
        assert np.all(np.diff(points[:, 0]) == 1)

    def test_table_is_indexed_by_column_and_cluster(self):
        data = _white(60, 5)
        data[10, :] = 0
        data[40, :] = 0
        clusters = column_clusters(data)
        table = trace_paths(clusters, [10, 40], width=5)
        assert len(table) == 5
        for record in table:
            assert record is not None
            assert record.cost.shape == (2, 2)
        # Column 0 only starts paths
        assert np.all(table[0].prev == -1)
        assert np.all(table[0].length == 1)

    def test_prefers_continuity_over_jumping(self):
        data = _white(60, 40)
        data[10, :] = 0
        data[30, 20:] = 0
        clusters = column_clusters(data)
        table = trace_paths(clusters, [12], width=40)
        points, _ = backtrack(table, clusters, 12, 0)
        assert np.all(points[:, 1] == 10)

    def test_no_ink_raises(self):
        clusters = column_clusters(_white(20, 20))
        table = trace_paths(clusters, [10], width=20)
        with pytest.raises(DigitizationError):
            backtrack(table, clusters, 10, 0)

    def test_dangling_predecessor_raises(self):
        # Column 1 claims a predecessor in column 0, which holds no clusters
        one = np.ones((1, 1), dtype=np.int64)
        record = ColumnRecords(
            cost=np.zeros((1, 1)), length=one * 2, y=one * 5, prev=np.zeros((1, 1), dtype=np.int64)
        )
        clusters = [[], [Cluster(5, 5)]]
        with pytest.raises(DigitizationError) as exc:
            backtrack([None, record], clusters, 5, 0)
        assert exc.value.stage is ProcessingStage.EXTRACT
        assert "empty column 0" in exc.value.message


class TestDelineatePeaks:
    def test_peak_moves_to_far_end_of_cluster(self):
        points = np.array([[0, 50], [1, 50], [2, 40], [3, 50], [4, 50]], dtype=np.int64)
        path = [Cluster(50, 50), Cluster(30, 50), Cluster(40, 41), Cluster(50, 50), Cluster(50, 50)]
        out = delineate_peaks(points, path, roi=50)
        assert out[2, 1] == 30
        assert out[[0, 1, 3, 4], 1].tolist() == [50, 50, 50, 50]
        assert points[2, 1] == 40

    def test_plateau_is_not_a_peak(self):
        points = np.array([[0, 50], [1, 40], [2, 40], [3, 50]], dtype=np.int64)
        path = [Cluster(50, 50), Cluster(20, 50), Cluster(20, 50), Cluster(50, 50)]
        out = delineate_peaks(points, path, roi=50)
        assert out[:, 1].tolist() == [50, 40, 40, 50]

    def test_short_paths_unchanged(self):
        points = np.array([[0, 5], [1, 9]], dtype=np.int64)
        out = delineate_peaks(points, [Cluster(5, 5), Cluster(0, 9)], roi=5)
        assert np.array_equal(out, points)


def test_extract_signals_one_path_per_track(synthetic_image, backend):
    binary, rect = preprocess_image(synthetic_image, backend)
    signals = extract_signals(binary, 6)
    assert len(signals) == 6
    for signal in signals:
        assert signal.ndim == 2 and signal.shape[1] == 2
        assert len(signal) > 0.8 * rect.width
