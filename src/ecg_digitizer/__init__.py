"""ecg-digitizer: turn paper ECG images into calibrated per-lead signals.

The pipeline locates the printed grid, removes the gridlines, traces every
lead with a dynamic-programming path search and scales the traces with the
printed reference pulses.
"""

from ._logging import logger, set_log_file, set_log_level
from .digitizer import BatchItem, Digitizer
from .loaders import ConfigLoader
from .models import (
    ColorSpace,
    DigitizationError,
    DigitizationResult,
    DigitizerConfig,
    EcgData,
    EcgImage,
    Layout,
    Lead,
    LeadFormat,
    Point,
    Rectangle,
)
from .pipeline import digitize
from .utils.cv_utils import VisionBackend, init_backend, load_image, save_image

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "logger",
    "set_log_level",
    "set_log_file",
    "BatchItem",
    "ColorSpace",
    "ConfigLoader",
    "DigitizationError",
    "DigitizationResult",
    "Digitizer",
    "DigitizerConfig",
    "EcgData",
    "EcgImage",
    "Layout",
    "Lead",
    "LeadFormat",
    "Point",
    "Rectangle",
    "VisionBackend",
    "digitize",
    "init_backend",
    "load_image",
    "save_image",
]
