"""Tests for grid localization, Otsu thresholding and border repair."""

import numpy as np
import pytest

from ecg_digitizer.models import ColorSpace, EcgImage, Point, Rectangle
from ecg_digitizer.nodes.preprocessing import (
    locate_grid,
    otsu_threshold,
    outline_borders,
    preprocess_image,
    remove_gridlines,
)


def _binary(data: np.ndarray) -> EcgImage:
    return EcgImage(data, ColorSpace.GRAY)


class TestOtsuThreshold:
    def test_bimodal_image_splits_between_modes(self):
        gray = np.full((20, 20), 50, dtype=np.uint8)
        gray[:, 10:] = 200
        # Every level in (50, 200] separates the modes; the first one wins
        assert otsu_threshold(gray) == 51

    def test_uniform_image_returns_zero(self):
        assert otsu_threshold(np.full((8, 8), 128, dtype=np.uint8)) == 0

    def test_deterministic(self):
        rng = np.random.default_rng(3)
        gray = rng.integers(0, 256, size=(64, 64), dtype=np.uint8)
        assert otsu_threshold(gray) == otsu_threshold(gray.copy())

    def test_invariant_to_histogram_rescaling(self):
        rng = np.random.default_rng(5)
        gray = rng.integers(0, 256, size=(30, 40), dtype=np.uint8)
        tiled = np.tile(gray, (3, 2))
        assert otsu_threshold(gray) == otsu_threshold(tiled)

    def test_small_ink_fraction_separates_ink(self):
        gray = np.full((100, 100), 255, dtype=np.uint8)
        gray[::10, :] = 234
        gray[50:52, :] = 0
        assert 0 < otsu_threshold(gray) <= 234


class TestLocateGrid:
    def test_blank_page_falls_back_to_full_image(self, blank_image, backend):
        rect = locate_grid(blank_image, backend)
        assert rect == Rectangle(Point(0, 0), Point(400, 200))

    def test_finds_printed_grid(self, synthetic_case, synthetic_image, backend):
        gx, gy, gw, gh = synthetic_case.grid
        rect = locate_grid(synthetic_image, backend)
        assert abs(rect.top_left.x - gx) <= 4
        assert abs(rect.top_left.y - gy) <= 4
        assert abs(rect.width - gw) <= 8
        assert abs(rect.height - gh) <= 8


class TestOutlineBorders:
    def test_whitens_solid_margins(self):
        data = np.full((100, 100), 255, dtype=np.uint8)
        data[0, :] = 0
        data[:, 99] = 0
        out = outline_borders(_binary(data)).data
        assert np.all(out[0] == 255)
        assert np.all(out[:, 99] == 255)

    def test_keeps_partial_margin_rows(self):
        data = np.full((100, 100), 255, dtype=np.uint8)
        data[2, :50] = 0
        out = outline_borders(_binary(data)).data
        assert np.count_nonzero(out[2] == 0) >= 50

    def test_bridges_small_gaps_on_outer_ink_rows(self):
        data = np.full((100, 100), 255, dtype=np.uint8)
        data[50, [10, 12, 30, 40]] = 0
        out = outline_borders(_binary(data)).data
        # max bridge distance is 2 px at this width
        assert out[50, 11] == 0
        assert np.all(out[50, 31:40] == 255)

    def test_input_is_not_modified(self):
        data = np.full((50, 50), 255, dtype=np.uint8)
        data[0, :] = 0
        image = _binary(data)
        outline_borders(image)
        assert np.all(image.data[0] == 0)


class TestRemoveGridlines:
    def test_only_ink_stays_black(self, synthetic_case, synthetic_image, backend):
        binary, rect = preprocess_image(synthetic_image, backend)

        assert binary.color_space is ColorSpace.GRAY
        assert set(np.unique(binary.data).tolist()) <= {0, 255}
        black_ratio = np.count_nonzero(binary.data == 0) / binary.data.size
        assert 0 < black_ratio < 0.1

        for track in synthetic_case.tracks:
            col = track.start_x + 3 - rect.top_left.x
            row = track.baseline - rect.top_left.y
            assert np.any(binary.data[row - 2 : row + 3, col] == 0)

    def test_paper_without_ink_is_white(self, blank_image, backend):
        binary = remove_gridlines(blank_image, backend)
        assert np.all(binary.data == 255)


def test_preprocess_image_crops_to_grid(synthetic_image, backend):
    binary, rect = preprocess_image(synthetic_image, backend)
    assert binary.data.shape == (rect.height, rect.width)


@pytest.mark.parametrize("value", [0, 255])
def test_outline_borders_on_solid_image(value):
    data = np.full((30, 30), value, dtype=np.uint8)
    out = outline_borders(_binary(data)).data
    assert out.shape == (30, 30)
    if value == 255:
        assert np.all(out == 255)
