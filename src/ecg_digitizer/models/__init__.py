from .ecg_output import (
    DigitizationError,
    DigitizationResult,
    EcgData,
    ProcessingError,
    ProcessingStage,
)
from .geometry import Point, Rectangle
from .image import ColorSpace, EcgImage
from .lead import Layout, Lead, LeadFormat
from .state import DigitizerConfig, PipelineState

__all__ = [
    "ColorSpace",
    "DigitizationError",
    "DigitizationResult",
    "DigitizerConfig",
    "EcgData",
    "EcgImage",
    "Layout",
    "Lead",
    "LeadFormat",
    "PipelineState",
    "Point",
    "ProcessingError",
    "ProcessingStage",
    "Rectangle",
]
