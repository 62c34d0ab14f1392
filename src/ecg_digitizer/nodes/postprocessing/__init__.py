"""Postprocessing: reference pulse segmentation, vectorization and trace overlay."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer.models import (
    DigitizationError,
    DigitizerConfig,
    EcgData,
    EcgImage,
    PipelineState,
    ProcessingError,
    ProcessingStage,
)

from .segmentation import ReferencePulse, segment
from .trace import render_trace
from .vectorization import LeadSource, interpolate, lead_sources, to_millivolts, total_samples, vectorize


def postprocess_signals(
    raw_signals: list[NDArray[np.int64]],
    crop: EcgImage,
    cfg: DigitizerConfig,
) -> tuple[EcgData, EcgImage]:
    """Calibrated lead signals and the trace overlay for the crop."""
    signals, pulses = segment(raw_signals, cfg.reference_pulse_at_right)
    data = vectorize(signals, pulses, cfg)
    trace = render_trace(crop, signals, pulses, cfg)
    return data, trace


def postprocess(state: PipelineState) -> PipelineState:
    """
    Turn raw pixel paths into calibrated lead signals.

    Updates state with:
    - ecg_data: EcgData
    - trace_crop: overlay drawn on the binarized crop
    - errors: Any processing errors encountered
    """
    try:
        data, trace = postprocess_signals(state.raw_signals, state.crop, state.config)
    except DigitizationError as e:
        err = ProcessingError(
            stage=ProcessingStage.POSTPROCESS,
            error_type="calibration_failed",
            recoverable=False,
            message=e.message,
        )
        return state.model_copy(update={"errors": state.errors + [err]})
    except Exception as e:
        err = ProcessingError(
            stage=ProcessingStage.POSTPROCESS,
            error_type=type(e).__name__,
            recoverable=False,
            message=str(e),
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    return state.model_copy(update={"ecg_data": data, "trace_crop": trace})


__all__ = [
    "LeadSource",
    "ReferencePulse",
    "interpolate",
    "lead_sources",
    "postprocess",
    "postprocess_signals",
    "render_trace",
    "segment",
    "to_millivolts",
    "total_samples",
    "vectorize",
]
