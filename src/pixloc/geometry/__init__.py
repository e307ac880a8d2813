"""
Geometry primitives shared by the matching and localization layers.
"""

from .coords import Coordinate, Rect
from .spiral import Spiral, spiral_rank

__all__ = ["Coordinate", "Rect", "Spiral", "spiral_rank"]
