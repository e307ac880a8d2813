from __future__ import annotations

import numpy as np
import pytest

from pixloc.geometry import Coordinate, Rect
from pixloc.localization import LandmarkId, LandmarkLocation, LocationId, Map
from pixloc.matching import Landmark


def solid_landmark(name: str | None = None) -> Landmark:
    return Landmark.from_image(np.full((2, 2, 4), 255, dtype=np.uint8), name=name)


def test_ids_are_insertion_indices() -> None:
    world = Map()
    a = world.add_landmark(solid_landmark("a"))
    b = world.add_landmark(solid_landmark("b"))

    assert (a, b) == (LandmarkId(0), LandmarkId(1))
    assert world.landmark_ids() == [a, b]
    assert world.landmark(b).name == "b"
    assert world.landmark_by_name("a") == a
    assert world.landmark_by_name("c") is None


def test_add_fixed_returns_placement() -> None:
    world = Map(name="level")
    landmark_id = world.add_landmark(solid_landmark())

    placement = world.add_fixed(landmark_id, Coordinate(4, 5))

    assert placement == LandmarkLocation(id=landmark_id, location=Coordinate(4, 5))
    assert world.locations() == [placement]
    assert world.location(LocationId(0)) == placement
    assert world.name == "level"
    world.name = "renamed"
    assert world.name == "renamed"


def test_landmarks_in_is_inclusive() -> None:
    world = Map()
    landmark_id = world.add_landmark(solid_landmark())
    for x, y in [(0, 0), (10, 10), (11, 10), (10, 11), (5, -1)]:
        world.add_fixed(landmark_id, Coordinate(x, y))

    inside = world.landmarks_in(Rect(0, 0, 10, 10))

    assert inside == [LocationId(0), LocationId(1)]


def test_locations_by_landmark_returns_every_recurrence() -> None:
    world = Map()
    a = world.add_landmark(solid_landmark())
    b = world.add_landmark(solid_landmark())
    first = world.add_fixed(a, Coordinate(0, 0))
    world.add_fixed(b, Coordinate(1, 1))
    second = world.add_fixed(a, Coordinate(1000, 0))

    assert world.locations_by_landmark(a) == [first, second]
    assert len(world.locations_by_landmark(b)) == 1


def test_foreign_ids_are_rejected() -> None:
    world = Map()
    world.add_landmark(solid_landmark())

    with pytest.raises(IndexError):
        world.landmark(LandmarkId(1))
    with pytest.raises(IndexError):
        world.landmark(LandmarkId(-1))
    with pytest.raises(IndexError):
        world.location(LocationId(0))
    with pytest.raises(IndexError):
        world.add_fixed(LandmarkId(3), Coordinate(0, 0))


def test_locations_listing_is_a_copy() -> None:
    world = Map()
    landmark_id = world.add_landmark(solid_landmark())
    world.add_fixed(landmark_id, Coordinate(1, 2))

    listing = world.locations()
    listing.clear()

    assert len(world.locations()) == 1
