from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ecg_digitizer import config

from .ecg_output import ProcessingError
from .lead import Layout, Lead, LeadFormat


class DigitizerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    layout: Layout = Layout(config.DEFAULT_ROWS, config.DEFAULT_COLS)
    rhythm_leads: list[Lead] = []
    reference_pulse_at_right: bool = False
    cabrera: bool = False
    interpolation: int | None = Field(default=None, gt=0)

    max_workers: int = Field(default=config.DEFAULT_MAX_WORKERS, ge=1)
    # Threads handed to OpenCV per process; None keeps OpenCV's default
    opencv_threads: int | None = Field(default=None, ge=0)

    @field_validator("layout", mode="before")
    @classmethod
    def _parse_layout(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Layout.parse(value)
        return value

    @field_validator("rhythm_leads", mode="before")
    @classmethod
    def _parse_rhythm(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [v for v in value.split(",") if v.strip()]
        if isinstance(value, (list, tuple)):
            return [Lead.parse(v) if isinstance(v, str) else v for v in value]
        return value

    @model_validator(mode="after")
    def _check_layout(self) -> "DigitizerConfig":
        rows, cols = self.layout
        if rows < 1 or cols < 1 or rows * cols != config.N_LEADS:
            raise ValueError(
                f"layout {rows}x{cols} must tile exactly {config.N_LEADS} leads"
            )
        if len(set(self.rhythm_leads)) != len(self.rhythm_leads):
            raise ValueError("rhythm_leads must not contain duplicates")
        return self

    @property
    def n_tracks(self) -> int:
        """Number of traces printed on the paper: one per row plus rhythm strips."""
        return self.layout.rows + len(self.rhythm_leads)

    @property
    def lead_format(self) -> LeadFormat:
        return LeadFormat.CABRERA if self.cabrera else LeadFormat.STANDARD


class PipelineState(BaseModel):
    """State carried through the digitization graph.

    Array-backed values (images, signals, results) are typed ``Any``; they are
    produced and consumed only by pipeline nodes.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: Any
    config: DigitizerConfig = DigitizerConfig()
    backend: Any = None

    crop: Any = None
    crop_rect: Any = None

    raw_signals: Any = None

    ecg_data: Any = None
    trace_crop: Any = None

    trace: Any = None

    errors: list[ProcessingError] = []
