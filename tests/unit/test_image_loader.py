from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

from pixloc.errors import MalformedTemplateError
from pixloc.io import load_rgba, save_rgba


def test_grayscale_and_bgr_sources_become_opaque_rgba(tmp_path: Path) -> None:
    gray = np.full((3, 2), 77, dtype=np.uint8)
    bgr = np.zeros((3, 2, 3), dtype=np.uint8)
    bgr[..., 0] = 255  # blue in OpenCV order
    cv2.imwrite(str(tmp_path / "gray.png"), gray)
    cv2.imwrite(str(tmp_path / "bgr.png"), bgr)

    gray_rgba = load_rgba(tmp_path / "gray.png")
    bgr_rgba = load_rgba(tmp_path / "bgr.png")

    assert gray_rgba.shape == (3, 2, 4)
    assert np.all(gray_rgba[..., :3] == 77)
    assert np.all(gray_rgba[..., 3] == 255)
    assert tuple(bgr_rgba[0, 0]) == (0, 0, 255, 255)


def test_rgba_round_trip(tmp_path: Path) -> None:
    image = np.zeros((2, 2, 4), dtype=np.uint8)
    image[0, 0] = (1, 2, 3, 255)
    image[1, 1] = (9, 8, 7, 128)

    save_rgba(tmp_path / "rgba.png", image)

    assert np.array_equal(load_rgba(tmp_path / "rgba.png"), image)


def test_load_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_rgba(tmp_path / "missing.png")
    (tmp_path / "broken.png").write_bytes(b"garbage")
    with pytest.raises(MalformedTemplateError):
        load_rgba(tmp_path / "broken.png")
