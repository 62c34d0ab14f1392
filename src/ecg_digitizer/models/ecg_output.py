from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

import numpy as np
import pandas as pd
from pydantic import BaseModel

from .geometry import Rectangle
from .image import EcgImage
from .lead import Lead


class ProcessingStage(str, Enum):
    INPUT = "input"
    PREPROCESS = "preprocess"
    EXTRACT = "extract"
    POSTPROCESS = "postprocess"
    COMPOSE = "compose"
    PIPELINE = "pipeline"  # graph orchestration outside any node


class ProcessingError(BaseModel):
    stage: ProcessingStage
    error_type: str
    recoverable: bool
    message: str
    details: dict[str, Any] = {}


class DigitizationError(Exception):
    """Raised when an image cannot be digitized.

    ``stage`` names the pipeline stage that failed, when known.
    """

    def __init__(self, message: str, stage: ProcessingStage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"[{self.stage.value}] {self.message}"


@dataclass(frozen=True, eq=False)
class EcgData:
    """Per-lead voltage samples in millivolts.

    Every lead holds the same number of samples. Without rhythm strips each
    lead is the slice of the record its column covers. With rhythm strips the
    other leads are placed at their column's time offset and the positions
    they were not printed at are NaN.

    The mapping and the sample arrays are read-only.
    """

    leads: Mapping[Lead, np.ndarray]
    sampling_rate: float
    duration: float

    def __post_init__(self) -> None:
        frozen = {}
        for lead, values in self.leads.items():
            arr = np.array(values, dtype=np.float64)
            arr.flags.writeable = False
            frozen[lead] = arr
        object.__setattr__(self, "leads", MappingProxyType(frozen))

    @property
    def n_samples(self) -> int:
        return next((len(v) for v in self.leads.values()), 0)

    def __getitem__(self, lead: Lead) -> np.ndarray:
        return self.leads[lead]

    def to_frame(self) -> pd.DataFrame:
        """Samples as a DataFrame, one column per lead in lead order."""
        return pd.DataFrame({lead.value: values for lead, values in self.leads.items()})

    def to_csv(self, path: str | Path) -> Path:
        """Write a lead-per-column CSV; missing samples become empty cells."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(path, index=False, na_rep="")
        return path


@dataclass(frozen=True, eq=False)
class DigitizationResult:
    ecg_data: EcgData
    trace: EcgImage
    crop_rect: Rectangle
