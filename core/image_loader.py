"""
Universal LUT Generator - Image Loader

Decodes reference images and fits them to the analysis size.

Handles:
- File paths (anything Pillow can open)
- Pillow images
- RGB / RGBA numpy arrays
- Per-image decode timeout
"""

import os
import threading
import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from config import LutConfig
from core.exceptions import ImageLoadError


@dataclass
class DecodedImage:
    """RGBA pixels fitted to the analysis box, plus identity."""
    name: str
    pixels: np.ndarray      # (H, W, 4) uint8
    original_size: tuple    # (width, height)

    @property
    def size(self):
        return self.pixels.shape[1], self.pixels.shape[0]


class ImageLoader:
    """Decode collaborator for the analysis pipeline."""

    @staticmethod
    def source_name(source, index: int = 0) -> str:
        if isinstance(source, (str, os.PathLike)):
            return os.path.basename(os.fspath(source))
        filename = getattr(source, 'filename', None)
        if filename:
            return os.path.basename(filename)
        return f"image {index + 1}"

    @staticmethod
    def to_rgba(source, name: str = None) -> np.ndarray:
        """
        Decode a source to an (H, W, 4) uint8 array.

        Raises:
            ImageLoadError: If the source cannot be decoded
        """
        name = name or ImageLoader.source_name(source)

        if isinstance(source, np.ndarray):
            arr = source
            if arr.ndim == 2:
                arr = np.stack([arr, arr, arr], axis=2)
            if arr.ndim != 3 or arr.shape[2] not in (3, 4):
                raise ImageLoadError(f"Unsupported array shape {arr.shape}", name)
            if arr.dtype != np.uint8:
                arr = np.clip(arr, 0, 255).astype(np.uint8)
            if arr.shape[2] == 3:
                arr = cv2.cvtColor(arr, cv2.COLOR_RGB2RGBA)
            return np.ascontiguousarray(arr)

        try:
            if isinstance(source, Image.Image):
                return np.array(source.convert("RGBA"))
            with Image.open(source) as img:
                return np.array(img.convert("RGBA"))
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ImageLoadError(f"Failed to load {name}: {e}", name) from e

    @staticmethod
    def fit_to_analysis_size(rgba: np.ndarray, max_size: int = LutConfig.MAX_ANALYSIS_SIZE) -> np.ndarray:
        """
        Scale so the image fits the max_size box.

        Uses min(max_size / w, max_size / h), so small images are
        enlarged too. Target dimensions are truncated to integers.
        """
        h, w = rgba.shape[:2]
        if w == 0 or h == 0:
            raise ImageLoadError("Image has zero size")

        scale = min(max_size / w, max_size / h)
        new_w = max(1, int(w * scale))
        new_h = max(1, int(h * scale))
        if (new_w, new_h) == (w, h):
            return rgba

        interpolation = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LINEAR
        return cv2.resize(rgba, (new_w, new_h), interpolation=interpolation)

    @classmethod
    def load(cls, source, index: int = 0, verbose: bool = True) -> DecodedImage:
        """
        Decode and fit one reference image.

        Args:
            source: Path, Pillow image or numpy array
            index: Position in the batch (for naming)
            verbose: Print sizes

        Returns:
            DecodedImage
        """
        t0 = time.time()
        name = cls.source_name(source, index)
        rgba = cls.to_rgba(source, name)
        original_size = (rgba.shape[1], rgba.shape[0])
        fitted = cls.fit_to_analysis_size(rgba)

        if verbose:
            print(f"[ImageLoader] {name}: {original_size[0]}x{original_size[1]} -> "
                  f"{fitted.shape[1]}x{fitted.shape[0]}, {time.time() - t0:.2f}s")

        return DecodedImage(name=name, pixels=fitted, original_size=original_size)

    @classmethod
    def load_with_timeout(cls, source, index: int = 0,
                          timeout: float = LutConfig.IMAGE_TIMEOUT_S,
                          verbose: bool = True) -> DecodedImage:
        """
        load() with a deadline.

        The decode runs on a daemon thread; if it does not finish within
        timeout seconds the image fails with ImageLoadError. A stalled
        decode cannot be killed, but it never keeps the process alive
        and its result is discarded.

        Raises:
            ImageLoadError: On decode failure or timeout
        """
        name = cls.source_name(source, index)
        outcome = {}

        def run():
            try:
                outcome['image'] = cls.load(source, index, verbose)
            except Exception as e:
                outcome['error'] = e

        worker = threading.Thread(target=run, name=f"decode-{index + 1}", daemon=True)
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            raise ImageLoadError(f"Timeout analysing image {index + 1}", name)
        if 'error' in outcome:
            raise outcome['error']
        return outcome['image']
