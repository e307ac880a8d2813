from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from .spiral import Spiral


@dataclass(frozen=True, slots=True)
class Coordinate:
    """
    Integer (x, y) pair.

    Used for both map-frame positions and screen-frame offsets; the frame a
    value lives in is tracked by the caller.
    """

    x: int = 0
    y: int = 0

    def __add__(self, other: Coordinate) -> Coordinate:
        if isinstance(other, Rect):
            return other + self
        return Coordinate(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Coordinate) -> Coordinate:
        return Coordinate(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Coordinate:
        return Coordinate(-self.x, -self.y)

    def dist_sq(self) -> int:
        """
        Squared distance to the origin.
        """
        return self.x * self.x + self.y * self.y

    def as_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Axis-aligned rectangle with an integer origin and unsigned size.

    ``contains`` treats both bounds as inclusive (``right = x + w``,
    ``top = y + h``), while ``spiral`` and ``points`` enumerate the ``w * h``
    interior positions ``[x, x + w) x [y, y + h)``.
    """

    x: int
    y: int
    w: int
    h: int

    def __post_init__(self) -> None:
        if self.w < 0 or self.h < 0:
            raise ValueError("rectangle width and height must be >= 0")

    def __add__(self, offset: Coordinate) -> Rect:
        return Rect(self.x + offset.x, self.y + offset.y, self.w, self.h)

    @property
    def left(self) -> int:
        return self.x

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        """
        Lowest y value (the top edge in image coordinates).
        """
        return self.y

    @property
    def top(self) -> int:
        """
        Highest y value (the bottom edge in image coordinates).
        """
        return self.y + self.h

    @property
    def area(self) -> int:
        return self.w * self.h

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x <= self.right and self.bottom <= y <= self.top

    def is_interior(self, x: int, y: int) -> bool:
        return self.left <= x < self.right and self.bottom <= y < self.top

    def overlaps(self, other: Rect) -> bool:
        """
        Whether the rectangles overlap, touching boundaries included.
        """
        return (
            self.right >= other.left
            and other.right >= self.left
            and self.top >= other.bottom
            and other.top >= self.bottom
        )

    def overlaps_excluding(self, other: Rect) -> bool:
        """
        Whether the rectangles overlap, touching boundaries excluded.
        """
        return (
            self.right > other.left
            and other.right > self.left
            and self.top > other.bottom
            and other.top > self.bottom
        )

    def points(self) -> Iterator[Coordinate]:
        for y in range(self.bottom, self.top):
            for x in range(self.left, self.right):
                yield Coordinate(x, y)

    def spiral(self) -> Spiral:
        """
        Interior points ordered outward from the center in square rings.
        """
        from .spiral import Spiral

        return Spiral(self)


__all__ = ["Coordinate", "Rect"]
