"""Synthetic paper-ECG test harness.

Render paper-ECG images with known geometry for pipeline tests.

Usage:
    from tests.synthetic import generate_test_case, render_test_case

    case = generate_test_case(layout=(6, 2), n_rhythm=1)
    image = render_test_case(case)   # BGR array
"""

from .data_gen import (
    SyntheticEcgCase,
    SyntheticTrack,
    generate_test_case,
    track_polyline,
)
from .modifiers import (
    Modifier,
    ModifierStage,
    NoisyBackground,
    PulseAtRight,
    ScanMargin,
    ThickTraces,
)
from .renderer import render_test_case

__all__ = [
    # Generation
    "generate_test_case",
    "render_test_case",
    "track_polyline",
    # Data types
    "SyntheticEcgCase",
    "SyntheticTrack",
    # Modifiers
    "Modifier",
    "ModifierStage",
    "NoisyBackground",
    "PulseAtRight",
    "ScanMargin",
    "ThickTraces",
]
