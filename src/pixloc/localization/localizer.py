from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from ..geometry import Coordinate, Rect, spiral_rank
from ..matching import Landmark
from .map import LandmarkLocation, Map

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScreenCoordinate(Coordinate):
    """
    Coordinate relative to the top left of the captured image.

    Equality is class aware: ``ScreenCoordinate(1, 2) == Coordinate(1, 2)`` is
    false even though both hash alike, so compare against ``ScreenCoordinate``.
    """


@dataclass(slots=True)
class LocalizerConfig:
    """
    Tuning knobs for incremental tracking.

    ``search_box`` is the half-width of the window searched around the
    expected screen position of each landmark; the window is ``2 * search_box``
    wide and high.
    """

    search_box: int = 55

    def __post_init__(self) -> None:
        if self.search_box <= 0:
            raise ValueError("search_box must be positive")


@dataclass(frozen=True, slots=True)
class LandmarkMatch:
    """
    A landmark seen at ``screen_position`` and the placement it was attributed to.

    ``position`` is the viewport position this single match implies.
    """

    screen_position: ScreenCoordinate
    location: LandmarkLocation
    position: Coordinate


@dataclass(slots=True)
class LocalisationResult:
    """
    Outcome of a localize or relocalize call.
    """

    matches: List[LandmarkMatch]
    position: Coordinate
    consistent_count: int
    groups: Dict[Coordinate, int] = field(default_factory=dict)


def matches_to_localisation_result(
    matches: List[LandmarkMatch],
    previous: Optional[Coordinate] = None,
) -> Optional[LocalisationResult]:
    """
    Majority vote over the positions implied by individual matches.

    Matches are grouped by exact implied position and the largest group wins.
    Equally large groups are decided by the smallest distance to ``previous``
    and after that by whichever group was matched first.
    """
    if not matches:
        return None

    groups: Dict[Coordinate, List[LandmarkMatch]] = {}
    for match in matches:
        groups.setdefault(match.position, []).append(match)

    def score(position: Coordinate) -> tuple:
        if previous is None:
            return (len(groups[position]),)
        return (len(groups[position]), -(position - previous).dist_sq())

    # max keeps the first of equal keys, dicts iterate in insertion order
    winner = max(groups, key=score)
    return LocalisationResult(
        matches=list(matches),
        position=winner,
        consistent_count=len(groups[winner]),
        groups={position: len(members) for position, members in groups.items()},
    )


class Localizer:
    """
    Tracks the viewport position against a map of landmark placements.

    ``position`` is the map coordinate of the top left corner of the captured
    image, so ``screen = map - position`` and ``map = screen + position``.
    The localizer owns its map; it is not safe for concurrent use.
    """

    def __init__(
        self,
        map: Map,
        position: Coordinate = Coordinate(),
        config: Optional[LocalizerConfig] = None,
    ) -> None:
        self._map = map
        self._position = position
        self._config = config if config is not None else LocalizerConfig()

    @property
    def position(self) -> Coordinate:
        return self._position

    def set_position(self, position: Coordinate) -> None:
        self._position = position

    @property
    def map(self) -> Map:
        return self._map

    @property
    def config(self) -> LocalizerConfig:
        return self._config

    def relocalize(self, image: np.ndarray, roi: Rect) -> Optional[LocalisationResult]:
        """
        Reacquire the position from scratch by searching every landmark in ``roi``.

        Each detection is paired with every placement of its landmark and the
        implied positions are put to a majority vote.
        """
        detections = self.search_all(image, roi)

        matches: List[LandmarkMatch] = []
        for detection in detections:
            screen = detection.location - self._position
            for candidate in self._map.locations_by_landmark(detection.id):
                correction = detection.location - candidate.location
                matches.append(
                    LandmarkMatch(
                        screen_position=ScreenCoordinate(screen.x, screen.y),
                        location=candidate,
                        position=self._position - correction,
                    )
                )

        result = matches_to_localisation_result(matches, self._position)
        if result is None:
            logger.debug("relocalize: no landmarks detected in %s", roi)
            return None

        logger.debug(
            "relocalize: %d detections, %d candidate positions, elected %s (%d votes)",
            len(detections),
            len(result.groups),
            result.position,
            result.consistent_count,
        )
        self._position = result.position
        return result

    def localize(self, image: np.ndarray, roi: Rect) -> Optional[LocalisationResult]:
        """
        Update the position assuming only a small shift since the last estimate.

        Only placements expected inside ``roi`` are searched for. Returns
        ``None`` when none of them is found; callers then fall back to
        ``relocalize``.
        """
        map_roi = roi + self._position
        expected = self._map.landmarks_in(map_roi)
        box_size = 2 * self._config.search_box

        matches: List[LandmarkMatch] = []
        for location_id in expected:
            placement = self._map.location(location_id)
            landmark = self._map.landmark(placement.id)

            found: Optional[Coordinate] = None
            if matches:
                # The scene moves rigidly, so the first match predicts this one exactly.
                predicted = placement.location - matches[0].position
                if landmark.present(image, predicted):
                    found = predicted

            if found is None:
                expected_screen = placement.location - self._position
                search_box = Rect(
                    x=max(expected_screen.x - self._config.search_box, 0),
                    y=max(expected_screen.y - self._config.search_box, 0),
                    w=box_size,
                    h=box_size,
                )
                found = self.search_landmark(image, search_box, landmark)

            if found is not None:
                matches.append(
                    LandmarkMatch(
                        screen_position=ScreenCoordinate(found.x, found.y),
                        location=placement,
                        position=placement.location - found,
                    )
                )

        result = matches_to_localisation_result(matches, self._position)
        if result is None:
            logger.debug("localize: none of %d expected placements found", len(expected))
            return None

        self._position = result.position
        return result

    def mapping(self, image: np.ndarray, roi: Rect) -> List[LandmarkLocation]:
        """
        Add every detection in ``roi`` that the map does not know yet.

        Detections are converted to the map frame with the current position
        and inserted without any further corroboration. Returns the new
        placements.
        """
        known = set(self._map.locations())
        inserted: List[LandmarkLocation] = []
        for detection in self.search_all(image, roi):
            if detection in known:
                continue
            known.add(detection)
            inserted.append(self._map.add_fixed(detection.id, detection.location))
            logger.info("mapping: new placement of landmark %s at %s", detection.id, detection.location)
        return inserted

    def search_all(self, image: np.ndarray, roi: Rect) -> List[LandmarkLocation]:
        """
        Exhaustively search ``roi`` for every landmark of the map.

        Detections are reported in the map frame using the current position
        and are not tied to any existing placement.
        """
        detections: List[LandmarkLocation] = []
        for landmark_id in self._map.landmark_ids():
            landmark = self._map.landmark(landmark_id)
            for screen in self.search_landmarks(image, roi, landmark):
                detections.append(LandmarkLocation(id=landmark_id, location=screen + self._position))
        return detections

    @staticmethod
    def search_landmark(image: np.ndarray, search: Rect, landmark: Landmark) -> Optional[ScreenCoordinate]:
        """
        First match of ``landmark`` in spiral order over ``search``.
        """
        found = Localizer.search_landmarks(image, search, landmark, limit=1)
        return found[0] if found else None

    @staticmethod
    def search_landmarks(
        image: np.ndarray,
        search: Rect,
        landmark: Landmark,
        limit: Optional[int] = None,
    ) -> List[ScreenCoordinate]:
        """
        Matches of ``landmark`` inside ``search`` in spiral order, at most ``limit``.

        With a limit the spiral is walked point by point and stops at the
        ``limit``-th match. Without one every position is evaluated at once
        and the matches are sorted into the same spiral order.
        """
        if limit is None:
            mask = landmark.presence_map(image, search)
            ys, xs = np.nonzero(mask)
            xs = xs + search.x
            ys = ys + search.y
            order = np.argsort(spiral_rank(search, xs, ys), kind="stable")
            return [ScreenCoordinate(int(xs[i]), int(ys[i])) for i in order]

        found: List[ScreenCoordinate] = []
        if limit <= 0:
            return found
        for point in search.spiral():
            if landmark.present(image, point):
                found.append(ScreenCoordinate(point.x, point.y))
                if len(found) >= limit:
                    break
        return found


__all__ = [
    "LandmarkMatch",
    "LocalisationResult",
    "Localizer",
    "LocalizerConfig",
    "ScreenCoordinate",
    "matches_to_localisation_result",
]
