"""
Core package for localizing a viewport against a map of pixel landmarks.
"""

from .errors import MalformedConfigError, MalformedMapError, MalformedTemplateError, PixlocError
from .geometry import Coordinate, Rect, Spiral
from .io.map_loader import load_map, map_to_yaml, save_map
from .localization import (
    LandmarkId,
    LandmarkLocation,
    LandmarkMatch,
    LocalisationResult,
    Localizer,
    LocalizerConfig,
    LocationId,
    Map,
    ScreenCoordinate,
)
from .matching import Landmark, Pixel

__all__ = [
    "Coordinate",
    "Landmark",
    "LandmarkId",
    "LandmarkLocation",
    "LandmarkMatch",
    "LocalisationResult",
    "Localizer",
    "LocalizerConfig",
    "LocationId",
    "MalformedConfigError",
    "MalformedMapError",
    "MalformedTemplateError",
    "Map",
    "Pixel",
    "PixlocError",
    "Rect",
    "ScreenCoordinate",
    "Spiral",
    "load_map",
    "map_to_yaml",
    "save_map",
]
