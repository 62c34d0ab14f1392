"""Pipeline nodes for ECG digitization.

Stage modules (and SciPy) are imported lazily, when a node first runs.
"""

from __future__ import annotations

from ecg_digitizer.models import PipelineState


def preprocess(state: PipelineState) -> PipelineState:
    from ecg_digitizer.nodes.preprocessing import preprocess as _preprocess

    return _preprocess(state)


def extract(state: PipelineState) -> PipelineState:
    from ecg_digitizer.nodes.extraction import extract as _extract

    return _extract(state)


def postprocess(state: PipelineState) -> PipelineState:
    from ecg_digitizer.nodes.postprocessing import postprocess as _postprocess

    return _postprocess(state)


def compose(state: PipelineState) -> PipelineState:
    from ecg_digitizer.nodes.compose import compose as _compose

    return _compose(state)


__all__ = [
    "compose",
    "extract",
    "postprocess",
    "preprocess",
]
