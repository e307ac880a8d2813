from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from ..geometry import Coordinate, Rect
from ..io.image_loader import load_rgba

logger = logging.getLogger(__name__)

PositionLike = Union[Coordinate, Tuple[int, int]]

OPAQUE = 255


@dataclass(frozen=True, slots=True)
class Pixel:
    """
    A single opaque template pixel: local offset plus reference color.
    """

    offset: Tuple[int, int]
    rgb: Tuple[int, int, int]

    def difference(self, rgb: Sequence[int]) -> int:
        """
        Manhattan distance between the reference color and ``rgb``.
        """
        return (
            abs(self.rgb[0] - int(rgb[0]))
            + abs(self.rgb[1] - int(rgb[1]))
            + abs(self.rgb[2] - int(rgb[2]))
        )


def _xy(position: PositionLike) -> Tuple[int, int]:
    if isinstance(position, Coordinate):
        return position.x, position.y
    return int(position[0]), int(position[1])


class Landmark:
    """
    Sparse pixel template matched at integer offsets.

    Only the stored pixels take part in matching; everything else inside the
    ``width x height`` bounding box is a hole. A position matches when every
    stored pixel is within ``pixel_difference_threshold`` (sum of absolute RGB
    channel differences) of the image pixel it lands on.
    """

    def __init__(
        self,
        pixels: Sequence[Pixel],
        width: int,
        height: int,
        pixel_difference_threshold: int = 0,
        name: Optional[str] = None,
    ) -> None:
        if width < 0 or height < 0:
            raise ValueError("landmark width and height must be >= 0")
        for pixel in pixels:
            ox, oy = pixel.offset
            if not (0 <= ox < width and 0 <= oy < height):
                raise ValueError(f"pixel offset {pixel.offset} outside {width}x{height} landmark")
        self._width = int(width)
        self._height = int(height)
        self.pixel_difference_threshold = pixel_difference_threshold
        self.name = name
        self._set_pixels(pixels)

    @classmethod
    def from_image(
        cls,
        image: np.ndarray,
        pixel_difference_threshold: int = 0,
        name: Optional[str] = None,
    ) -> "Landmark":
        """
        Build a landmark from an (H, W, 4) RGBA array; non-opaque pixels are holes.
        """
        if image.ndim != 3 or image.shape[2] != 4:
            raise ValueError("landmark source must be an (H, W, 4) RGBA image")
        height, width = image.shape[:2]
        ys, xs = np.nonzero(image[:, :, 3] == OPAQUE)
        pixels = [
            Pixel(offset=(int(x), int(y)), rgb=tuple(int(c) for c in image[y, x, :3]))
            for y, x in zip(ys, xs)
        ]
        return cls(pixels, width, height, pixel_difference_threshold, name)

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        pixel_difference_threshold: int = 0,
        name: Optional[str] = None,
    ) -> "Landmark":
        return cls.from_image(load_rgba(path), pixel_difference_threshold, name)

    def _set_pixels(self, pixels: Sequence[Pixel]) -> None:
        self._pixels = tuple(pixels)
        self._offsets = np.array([p.offset for p in self._pixels], dtype=np.intp).reshape(-1, 2)
        self._colors = np.array([p.rgb for p in self._pixels], dtype=np.int16).reshape(-1, 3)

    @property
    def pixels(self) -> Tuple[Pixel, ...]:
        return self._pixels

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixel_difference_threshold(self) -> int:
        return self._threshold

    @pixel_difference_threshold.setter
    def pixel_difference_threshold(self, value: int) -> None:
        if value < 0:
            raise ValueError("pixel_difference_threshold must be >= 0")
        self._threshold = int(value)

    def present(self, image: np.ndarray, position: PositionLike) -> bool:
        """
        Test whether the landmark matches ``image`` with its top left at ``position``.

        Positions where the template does not fit inside the image are never
        a match.
        """
        x, y = _xy(position)
        image_height, image_width = image.shape[:2]
        if x < 0 or y < 0 or x + self._width > image_width or y + self._height > image_height:
            return False
        if not self._pixels:
            return True

        # Most candidate positions already fail on the first pixel.
        first = self._pixels[0]
        if first.difference(image[y + first.offset[1], x + first.offset[0]]) > self._threshold:
            return False

        observed = image[y + self._offsets[:, 1], x + self._offsets[:, 0], :3].astype(np.int16)
        distance = np.abs(observed - self._colors).sum(axis=1)
        return bool(np.all(distance <= self._threshold))

    def presence_map(self, image: np.ndarray, rect: Rect) -> np.ndarray:
        """
        Evaluate ``present`` for every interior position of ``rect`` at once.

        Returns an (rect.h, rect.w) boolean array indexed ``[y - rect.y, x - rect.x]``.
        """
        if image.ndim != 3 or image.shape[2] < 3:
            raise ValueError("image must be an (H, W, C) array with at least 3 channels")
        result = np.zeros((rect.h, rect.w), dtype=bool)
        image_height, image_width = image.shape[:2]

        x0 = max(rect.left, 0)
        y0 = max(rect.bottom, 0)
        x1 = min(rect.right, image_width - self._width + 1)
        y1 = min(rect.top, image_height - self._height + 1)
        if x1 <= x0 or y1 <= y0:
            return result

        span_w = x1 - x0
        span_h = y1 - y0
        valid = np.ones((span_h, span_w), dtype=bool)
        for (ox, oy), color in zip(self._offsets, self._colors):
            window = image[y0 + oy : y0 + oy + span_h, x0 + ox : x0 + ox + span_w, :3].astype(np.int16)
            valid &= np.abs(window - color).sum(axis=2) <= self._threshold
            if not valid.any():
                return result

        result[y0 - rect.y : y1 - rect.y, x0 - rect.x : x1 - rect.x] = valid
        return result

    def optimize_pixels_row_seq(self) -> None:
        """
        Reorder pixels row by row so horizontal runs are compared back to back.

        Only the iteration order changes; the pixel set stays the same.
        """
        if not self._pixels:
            return
        ordered = sorted(self._pixels, key=lambda p: (p.offset[1], p.offset[0]))

        runs: List[List[Pixel]] = []
        previous: Optional[Tuple[int, int]] = None
        for pixel in ordered:
            x, y = pixel.offset
            if previous is not None and y == previous[1] and x == previous[0] + 1:
                runs[-1].append(pixel)
            else:
                runs.append([pixel])
            previous = pixel.offset

        reordered = [pixel for run in runs for pixel in run]
        assert len(reordered) == len(self._pixels)
        logger.debug("landmark %s: %d pixels in %d runs", self.name, len(reordered), len(runs))
        self._set_pixels(reordered)

    def to_rgba(self) -> np.ndarray:
        """
        Render the template as RGBA with holes fully transparent.
        """
        image = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        for pixel in self._pixels:
            x, y = pixel.offset
            image[y, x, :3] = pixel.rgb
            image[y, x, 3] = OPAQUE
        return image

    def __len__(self) -> int:
        return len(self._pixels)

    def __repr__(self) -> str:
        return (
            f"Landmark(name={self.name!r}, size={self._width}x{self._height}, "
            f"pixels={len(self._pixels)}, threshold={self._threshold})"
        )
