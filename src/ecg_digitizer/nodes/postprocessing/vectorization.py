"""Resample cleaned traces and convert them to per-lead millivolt signals."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from ecg_digitizer import config
from ecg_digitizer._logging import logger
from ecg_digitizer.models import (
    DigitizationError,
    DigitizerConfig,
    EcgData,
    Lead,
    ProcessingStage,
)

from .segmentation import ReferencePulse


class LeadSource(NamedTuple):
    """Where a lead was printed: its track (row) and column."""

    lead: Lead
    index: int  # position in the lead ordering
    track: int
    column: int
    is_rhythm: bool


def lead_sources(cfg: DigitizerConfig) -> list[LeadSource]:
    """Track and column of every lead in the configured ordering."""
    rows, _ = cfg.layout
    sources = []
    for i, lead in enumerate(cfg.lead_format.leads):
        if lead in cfg.rhythm_leads:
            sources.append(LeadSource(lead, i, rows + cfg.rhythm_leads.index(lead), 0, True))
        else:
            sources.append(LeadSource(lead, i, i % rows, i // rows, False))
    return sources


def interpolate(values: NDArray[np.floating] | NDArray[np.integer], n: int) -> NDArray[np.float64]:
    """Linearly resample ``values`` to ``n`` samples, keeping both endpoints."""
    values = np.asarray(values, dtype=np.float64)
    if n <= 0:
        return np.zeros(0, dtype=np.float64)
    if values.size == 0:
        return np.zeros(n, dtype=np.float64)
    if n == 1 or values.size == 1:
        return np.full(n, values[0], dtype=np.float64)
    positions = np.linspace(0.0, values.size - 1, n)
    return np.interp(positions, np.arange(values.size, dtype=np.float64), values)


def total_samples(lengths: list[int], cols: int, interpolation: int | None = None) -> int:
    """Common sample count: ``interpolation`` or the longest trace padded to a multiple of ``cols``."""
    if interpolation is not None:
        return interpolation
    longest = max(lengths, default=0)
    return longest + (-longest) % cols


def to_millivolts(ys: NDArray[np.float64], pulse: ReferencePulse) -> NDArray[np.float64]:
    """``(y0 - y) / (y0 - y1)`` rounded to 4 decimals.

    Raises:
        DigitizationError: If the pulse levels coincide.
    """
    if pulse.y0 == pulse.y1:
        raise DigitizationError(
            "Reference pulses have not been detected correctly",
            stage=ProcessingStage.POSTPROCESS,
        )
    volts = (pulse.y0 - ys) / float(pulse.y0 - pulse.y1)
    return np.round(volts, config.VOLTAGE_DECIMALS)


def vectorize(
    signals: list[NDArray[np.int64]],
    pulses: list[ReferencePulse],
    cfg: DigitizerConfig,
) -> EcgData:
    """Build ``EcgData`` from cleaned ``(x, y)`` traces.

    Other leads take the ``total // cols`` samples of their column. Rhythm
    leads span the whole resampled trace; when any are configured, column
    slices are placed at their time offset inside a ``total``-long NaN array
    so every lead keeps the same length. The duration is that of the whole
    record either way.
    """
    _, cols = cfg.layout
    ys_per_track = []
    for track, (signal, pulse) in enumerate(zip(signals, pulses)):
        if len(signal) == 0:
            logger.warning(f"Track {track}: no signal after the reference pulse, reading 0 mV")
            ys_per_track.append(np.array([pulse.y0], dtype=np.float64))
        else:
            ys_per_track.append(signal[:, 1].astype(np.float64))

    total = total_samples([len(ys) for ys in ys_per_track], cols, cfg.interpolation)
    resampled = [interpolate(ys, total) for ys in ys_per_track]
    obs = total // cols
    padded = bool(cfg.rhythm_leads)

    leads: dict[Lead, NDArray[np.float64]] = {}
    for src in lead_sources(cfg):
        track = resampled[src.track]
        volts = to_millivolts(track, pulses[src.track])
        start = src.column * obs
        if src.is_rhythm:
            values = volts
        elif padded:
            values = np.full(total, np.nan, dtype=np.float64)
            values[start : start + obs] = volts[start : start + obs]
        else:
            values = volts[start : start + obs]
        if cfg.lead_format.inverts_avr and src.lead is Lead.aVR:
            values = -values
        leads[src.lead] = values

    return EcgData(
        leads=leads,
        sampling_rate=float(config.SAMPLING_RATE),
        duration=total / config.SAMPLING_RATE,
    )
