"""
Universal LUT Generator - Exceptions

Failure types raised by the analysis and synthesis pipeline.
"""


class LutGenerationError(Exception):
    """Base class for every pipeline failure."""


class ImageLoadError(LutGenerationError):
    """A single reference image could not be decoded or analysed in time."""

    def __init__(self, message: str, image_name: str = None):
        super().__init__(message)
        self.image_name = image_name


class BatchEmptyError(LutGenerationError):
    """No reference image in the batch was analysed successfully."""


class InvalidConfigError(LutGenerationError, ValueError):
    """Settings or baseline profile rejected before synthesis starts."""


class GenerationCancelledError(LutGenerationError):
    """Cancellation was requested between pipeline steps."""


class CubeFormatError(LutGenerationError, ValueError):
    """A .cube file could not be parsed."""
