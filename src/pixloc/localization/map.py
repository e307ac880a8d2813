from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..geometry import Coordinate, Rect
from ..matching import Landmark


@dataclass(frozen=True, slots=True)
class LandmarkId:
    """
    Index into the landmark list of the map that issued it.
    """

    index: int

    def __str__(self) -> str:
        return str(self.index)


@dataclass(frozen=True, slots=True)
class LocationId:
    """
    Index into the placement list of the map that issued it.
    """

    index: int


@dataclass(frozen=True, slots=True)
class LandmarkLocation:
    """
    Placement: landmark ``id`` occurs with its top left at map coordinate ``location``.
    """

    id: LandmarkId
    location: Coordinate


class Map:
    """
    Append-only registry of landmarks and their placements.

    Ids are plain list indices and stay valid for the lifetime of the map.
    Looking up an id that this map did not hand out raises ``IndexError``.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name
        self._landmarks: List[Landmark] = []
        self._locations: List[LandmarkLocation] = []

    def add_landmark(self, landmark: Landmark) -> LandmarkId:
        self._landmarks.append(landmark)
        return LandmarkId(len(self._landmarks) - 1)

    def add_fixed(self, id: LandmarkId, coordinate: Coordinate) -> LandmarkLocation:
        self.landmark(id)
        placement = LandmarkLocation(id=id, location=coordinate)
        self._locations.append(placement)
        return placement

    def landmarks_in(self, rect: Rect) -> List[LocationId]:
        """
        Placements whose coordinate lies in ``rect``, bounds inclusive.
        """
        return [
            LocationId(index)
            for index, placement in enumerate(self._locations)
            if rect.contains(placement.location.x, placement.location.y)
        ]

    def location(self, id: LocationId) -> LandmarkLocation:
        return self._locations[_checked(id.index, len(self._locations), "location")]

    def landmark(self, id: LandmarkId) -> Landmark:
        return self._landmarks[_checked(id.index, len(self._landmarks), "landmark")]

    def locations_by_landmark(self, id: LandmarkId) -> List[LandmarkLocation]:
        return [placement for placement in self._locations if placement.id == id]

    def landmark_by_name(self, name: str) -> Optional[LandmarkId]:
        for index, landmark in enumerate(self._landmarks):
            if landmark.name == name:
                return LandmarkId(index)
        return None

    def landmark_ids(self) -> List[LandmarkId]:
        return [LandmarkId(index) for index in range(len(self._landmarks))]

    def locations(self) -> List[LandmarkLocation]:
        return list(self._locations)

    def __repr__(self) -> str:
        return f"Map(name={self.name!r}, landmarks={len(self._landmarks)}, locations={len(self._locations)})"


def _checked(index: int, size: int, kind: str) -> int:
    # Negative indices would silently wrap around.
    if not 0 <= index < size:
        raise IndexError(f"{kind} id {index} was not issued by this map ({size} known)")
    return index


__all__ = ["LandmarkId", "LandmarkLocation", "LocationId", "Map"]
