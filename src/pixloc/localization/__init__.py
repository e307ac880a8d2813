"""
Localization subpackage: the landmark map and the localizer tracking against it.
"""

from .localizer import (
    LandmarkMatch,
    LocalisationResult,
    Localizer,
    LocalizerConfig,
    ScreenCoordinate,
    matches_to_localisation_result,
)
from .map import LandmarkId, LandmarkLocation, LocationId, Map

__all__ = [
    "LandmarkId",
    "LandmarkLocation",
    "LandmarkMatch",
    "LocalisationResult",
    "Localizer",
    "LocalizerConfig",
    "LocationId",
    "Map",
    "ScreenCoordinate",
    "matches_to_localisation_result",
]
