"""Shared test fixtures for ecg-digitizer tests."""

import numpy as np
import pytest

from ecg_digitizer import DigitizerConfig, EcgImage, init_backend
from ecg_digitizer.utils.cv_utils import VisionBackend
from tests.synthetic import SyntheticEcgCase, generate_test_case, render_test_case


@pytest.fixture(scope="session")
def backend() -> VisionBackend:
    return init_backend()


@pytest.fixture
def config() -> DigitizerConfig:
    return DigitizerConfig()


@pytest.fixture(scope="session")
def synthetic_case() -> SyntheticEcgCase:
    """Standard 6x2 sheet without rhythm strips."""
    return generate_test_case(name="standard", seed=7)


@pytest.fixture(scope="session")
def synthetic_image(synthetic_case: SyntheticEcgCase) -> EcgImage:
    return EcgImage.from_array(render_test_case(synthetic_case))


@pytest.fixture
def blank_image() -> EcgImage:
    """400x200 solid white page."""
    return EcgImage.from_array(np.full((200, 400, 3), 255, dtype=np.uint8))


def make_track(
    y0: int,
    amplitude: int,
    lead_in: int = 10,
    pulse_width: int = 50,
    gap: int = 15,
    data: list[int] | None = None,
    start_x: int = 0,
) -> np.ndarray:
    """Raw (x, y) path: flat at y0, pulse up by ``amplitude``, back to y0, then ``data``."""
    ys = [y0] * lead_in + [y0 - amplitude] * pulse_width + [y0] * gap
    ys += data if data is not None else [y0] * 40
    xs = np.arange(start_x, start_x + len(ys))
    return np.stack([xs, np.asarray(ys)], axis=1).astype(np.int64)


@pytest.fixture
def track_factory():
    return make_track
