"""
Universal LUT Generator - Core Module

Color analysis and LUT synthesis pipeline.
"""

from .exceptions import (
    BatchEmptyError,
    CubeFormatError,
    GenerationCancelledError,
    ImageLoadError,
    InvalidConfigError,
    LutGenerationError,
)
from .lut_generator import LutGenerator, LutSettings, GenerationResult, generate_lut_file

__all__ = [
    # Errors
    "LutGenerationError",
    "ImageLoadError",
    "BatchEmptyError",
    "InvalidConfigError",
    "GenerationCancelledError",
    "CubeFormatError",
    # Coordinator
    "LutGenerator",
    "LutSettings",
    "GenerationResult",
    "generate_lut_file",
]
