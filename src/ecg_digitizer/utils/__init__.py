"""Utility modules for ecg-digitizer."""

from ecg_digitizer.utils.cv_utils import (
    Contour,
    # Type aliases
    Image,
    # Backend
    VisionBackend,
    init_backend,
    # Image I/O
    load_image,
    save_image,
)

__all__ = [
    "Contour",
    "Image",
    "VisionBackend",
    "init_backend",
    "load_image",
    "save_image",
]
