from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

from .coords import Coordinate, Rect


def spiral_center(rect: Rect) -> Tuple[int, int]:
    """
    Starting point of the spiral; even sizes lean towards the origin.
    """
    cx = rect.x + rect.w // 2 - (0 if rect.w % 2 else 1)
    cy = rect.y + rect.h // 2 - (0 if rect.h % 2 else 1)
    return cx, cy


class Spiral:
    """
    Finite square-spiral walk over the interior points of a rectangle.

    Starting at the center the walk moves right 1, down 1, left 2, up 2,
    right 3 and so on, which visits the square rings around the center one
    after another. Points of the walk that fall outside the rectangle are
    skipped and the sequence ends once all ``w * h`` interior points have been
    produced.
    """

    def __init__(self, rect: Rect) -> None:
        self.rect = rect
        self.total = rect.area
        self.reset()

    def reset(self) -> None:
        self.x, self.y = spiral_center(self.rect)
        self.dx, self.dy = 1, 0
        self.leg_length = 1
        self.leg_progress = 0
        self.legs = 0
        self.emitted = 0
        self._at_start = True

    def step(self) -> Coordinate | None:
        """
        Produce the next coordinate, or ``None`` at the end of the sequence.
        """
        while self.emitted < self.total:
            if self._at_start:
                self._at_start = False
            else:
                self._advance()
            if self.rect.is_interior(self.x, self.y):
                self.emitted += 1
                return Coordinate(self.x, self.y)
        return None

    def _advance(self) -> None:
        rect = self.rect
        steps = 1
        # A leg running along a row or column outside the rectangle is skipped whole.
        if (self.dy == 0 and not rect.bottom <= self.y < rect.top) or (
            self.dx == 0 and not rect.left <= self.x < rect.right
        ):
            steps = self.leg_length - self.leg_progress
        self.x += self.dx * steps
        self.y += self.dy * steps
        self.leg_progress += steps
        if self.leg_progress == self.leg_length:
            self.leg_progress = 0
            # right -> down -> left -> up, with y growing downwards
            self.dx, self.dy = -self.dy, self.dx
            self.legs += 1
            if self.legs % 2 == 0:
                self.leg_length += 1

    def __iter__(self) -> Iterator[Coordinate]:
        return self

    def __next__(self) -> Coordinate:
        point = self.step()
        if point is None:
            raise StopIteration
        return point

    def __len__(self) -> int:
        return self.total


def spiral_rank(rect: Rect, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Position of each point in the unclipped spiral walk of ``rect``.

    Sorting interior points by this key reproduces the order of
    ``rect.spiral()``. Ring ``k`` holds the ``8k`` points at Chebyshev distance
    ``k`` from the center and occupies ranks ``(2k - 1)**2 .. (2k + 1)**2 - 1``.
    """
    cx, cy = spiral_center(rect)
    dx = np.asarray(xs, dtype=np.int64) - cx
    dy = np.asarray(ys, dtype=np.int64) - cy
    k = np.maximum(np.abs(dx), np.abs(dy))

    offset = np.select(
        [
            (dx == k) & (dy > -k),
            (dy == k) & (dx < k),
            (dx == -k) & (dy < k),
        ],
        [
            dy + k - 1,
            3 * k - 1 - dx,
            5 * k - 1 - dy,
        ],
        default=7 * k - 1 + dx,
    )
    base = (2 * k - 1) ** 2
    return np.where(k == 0, 0, base + offset)


__all__ = ["Spiral", "spiral_center", "spiral_rank"]
