from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np

from ..errors import MalformedTemplateError

PathLike = Union[str, Path]

_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


def load_rgba(path: PathLike) -> np.ndarray:
    """
    Load an image as an (H, W, 4) uint8 RGBA array.

    Sources without an alpha channel come back fully opaque.
    """
    if not Path(path).is_file():
        raise FileNotFoundError(f"Unable to load image at {path}")
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise MalformedTemplateError(f"Unable to decode image at {path}")
    return to_rgba(image, source=str(path))


def to_rgba(image: np.ndarray, source: str = "image") -> np.ndarray:
    """
    Convert an OpenCV (BGR ordered) decode result into RGBA.
    """
    if image.dtype != np.uint8:
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        else:
            raise MalformedTemplateError(f"{source} has unsupported pixel type {image.dtype}")
    channels = 1 if image.ndim == 2 else image.shape[2]
    if channels not in _TO_RGBA:
        raise MalformedTemplateError(f"{source} has unsupported channel count {channels}")
    if image.ndim == 3 and channels == 1:
        image = image[:, :, 0]
    return cv2.cvtColor(image, _TO_RGBA[channels])


def save_rgba(path: PathLike, image: np.ndarray) -> None:
    """
    Write an RGBA (or RGB) array, keeping transparency where the format allows.
    """
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError("image must be an (H, W, 3) or (H, W, 4) array")
    code = cv2.COLOR_RGBA2BGRA if image.shape[2] == 4 else cv2.COLOR_RGB2BGR
    if not cv2.imwrite(str(path), cv2.cvtColor(image, code)):
        raise OSError(f"Unable to write image to {path}")
