from __future__ import annotations

from collections import Counter
from pathlib import Path

import numpy as np
import pytest

from pixloc.geometry import Coordinate, Rect
from pixloc.io import save_rgba
from pixloc.matching import Landmark, Pixel


def checker_template() -> np.ndarray:
    template = np.zeros((3, 4, 4), dtype=np.uint8)
    template[..., 0] = 200
    template[..., 1] = np.arange(4, dtype=np.uint8) * 10
    template[..., 2] = 50
    template[..., 3] = 255
    # hole in the middle of the first row and a half transparent pixel
    template[0, 1, 3] = 0
    template[2, 3, 3] = 128
    return template


def test_from_image_skips_non_opaque_pixels() -> None:
    landmark = Landmark.from_image(checker_template(), pixel_difference_threshold=3, name="chk")

    assert landmark.width == 4
    assert landmark.height == 3
    assert len(landmark) == 10
    offsets = {pixel.offset for pixel in landmark.pixels}
    assert (1, 0) not in offsets
    assert (3, 2) not in offsets
    assert landmark.pixel_difference_threshold == 3
    assert landmark.name == "chk"


def test_present_matches_exact_copy_and_ignores_holes() -> None:
    template = checker_template()
    landmark = Landmark.from_image(template)
    image = np.zeros((20, 30, 3), dtype=np.uint8)
    image[5:8, 7:11] = template[..., :3]
    image[5, 8] = (1, 2, 3)  # under the hole

    assert landmark.present(image, (7, 5))
    assert landmark.present(image, Coordinate(7, 5))
    assert not landmark.present(image, (8, 5))


def test_present_uses_per_pixel_manhattan_threshold() -> None:
    template = np.full((2, 2, 4), 255, dtype=np.uint8)
    template[..., :3] = (100, 100, 100)
    image = np.zeros((4, 4, 3), dtype=np.uint8)
    image[:2, :2] = (100, 100, 100)
    image[1, 1] = (102, 99, 101)  # distance 4

    assert not Landmark.from_image(template, pixel_difference_threshold=3).present(image, (0, 0))
    assert Landmark.from_image(template, pixel_difference_threshold=4).present(image, (0, 0))


def test_present_is_false_out_of_bounds() -> None:
    landmark = Landmark.from_image(np.zeros((3, 3, 4), dtype=np.uint8))  # all holes
    image = np.zeros((10, 10, 3), dtype=np.uint8)

    assert landmark.present(image, (7, 7))
    assert not landmark.present(image, (8, 7))
    assert not landmark.present(image, (7, 8))
    assert not landmark.present(image, (-1, 0))
    assert not landmark.present(image, (0, -1))


def test_present_is_translation_covariant() -> None:
    template = checker_template()
    landmark = Landmark.from_image(template)
    image = np.zeros((20, 20, 3), dtype=np.uint8)
    image[2:5, 3:7] = template[..., :3]
    shifted = np.zeros_like(image)
    shifted[6:, 5:] = image[:-6, :-5]

    assert landmark.present(image, (3, 2))
    assert landmark.present(shifted, (8, 8))


def test_presence_map_matches_pointwise_present() -> None:
    rng = np.random.default_rng(7)
    image = rng.choice(np.array([0, 40], dtype=np.uint8), size=(24, 31, 3))
    template = np.dstack([image[4:7, 9:12], np.full((3, 3), 255, dtype=np.uint8)])
    template[1, 1, 3] = 0
    landmark = Landmark.from_image(template, pixel_difference_threshold=40)
    rect = Rect(-3, -2, 36, 27)

    presence = landmark.presence_map(image, rect)

    assert presence.shape == (27, 36)
    expected = np.array(
        [[landmark.present(image, (x, y)) for x in range(rect.left, rect.right)] for y in range(rect.bottom, rect.top)]
    )
    assert np.array_equal(presence, expected)
    assert presence[2 + 4, 3 + 9]


def test_optimize_pixels_row_seq_keeps_pixel_multiset() -> None:
    pixels = [
        Pixel((2, 1), (1, 1, 1)),
        Pixel((0, 0), (2, 2, 2)),
        Pixel((1, 1), (3, 3, 3)),
        Pixel((3, 0), (4, 4, 4)),
        Pixel((1, 0), (5, 5, 5)),
    ]
    landmark = Landmark(pixels, width=4, height=2)

    landmark.optimize_pixels_row_seq()

    assert Counter(landmark.pixels) == Counter(pixels)
    assert [p.offset for p in landmark.pixels] == [(0, 0), (1, 0), (3, 0), (1, 1), (2, 1)]


def test_to_rgba_restores_template(tmp_path: Path) -> None:
    template = checker_template()
    template[template[..., 3] != 255] = 0
    path = tmp_path / "landmark.png"
    save_rgba(path, template)

    landmark = Landmark.from_path(path, pixel_difference_threshold=2)

    assert np.array_equal(landmark.to_rgba(), template)
    assert landmark.pixel_difference_threshold == 2


def test_from_path_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Landmark.from_path(tmp_path / "missing.png")


def test_invalid_construction_is_rejected() -> None:
    with pytest.raises(ValueError):
        Landmark.from_image(np.zeros((3, 3, 3), dtype=np.uint8))
    with pytest.raises(ValueError):
        Landmark([], width=2, height=2, pixel_difference_threshold=-1)
    with pytest.raises(ValueError):
        Landmark([Pixel((2, 0), (0, 0, 0))], width=2, height=2)
