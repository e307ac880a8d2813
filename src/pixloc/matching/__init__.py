"""
Matching subpackage exposes sparse pixel landmarks and their presence test.
"""

from .erosion import erode_template
from .landmark import Landmark, Pixel

__all__ = ["Landmark", "Pixel", "erode_template"]
