"""
YAML persistence for maps.

A map document lives next to its landmark images::

    our_map.yaml
        name: our_map
        landmarks:
          - landmark_a
        locations:
          - [landmark_a, [100, 100]]
    landmark_a.png          RGBA template, alpha marks the footprint
    landmark_a.yaml         optional: pixel_difference_threshold, filename
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..errors import MalformedMapError, MalformedTemplateError
from ..geometry import Coordinate
from ..localization.map import LandmarkId, Map
from ..matching import Landmark

PathLike = Union[str, Path]


@dataclass(slots=True)
class LandmarkSpecification:
    """
    Per-landmark metadata overriding the defaults used when loading its image.
    """

    pixel_difference_threshold: int = 0
    filename: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, source: str = "landmark metadata") -> "LandmarkSpecification":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise MalformedTemplateError(f"{source}: expected a mapping, got {type(data).__name__}")
        threshold = data.get("pixel_difference_threshold", 0)
        filename = data.get("filename")
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise MalformedTemplateError(f"{source}: pixel_difference_threshold must be a non-negative integer")
        if filename is not None and not isinstance(filename, str):
            raise MalformedTemplateError(f"{source}: filename must be a string")
        return cls(pixel_difference_threshold=threshold, filename=filename)


@dataclass(slots=True)
class MapSpecification:
    """
    Serializable form of a map: landmark names and named placements.
    """

    name: Optional[str] = None
    landmarks: List[str] = field(default_factory=list)
    locations: List[Tuple[str, Tuple[int, int]]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, source: str = "map document") -> "MapSpecification":
        if not isinstance(data, dict):
            raise MalformedMapError(f"{source}: expected a mapping at the top level")

        name = data.get("name")
        if name is not None and not isinstance(name, str):
            raise MalformedMapError(f"{source}: name must be a string")

        landmarks = data.get("landmarks") or []
        if not isinstance(landmarks, list) or not all(isinstance(entry, str) for entry in landmarks):
            raise MalformedMapError(f"{source}: landmarks must be a list of names")

        raw_locations = data.get("locations") or []
        if not isinstance(raw_locations, list):
            raise MalformedMapError(f"{source}: locations must be a list")
        locations = [_parse_location(entry, source) for entry in raw_locations]

        return cls(name=name, landmarks=list(landmarks), locations=locations)

    @classmethod
    def from_map(cls, map: Map) -> "MapSpecification":
        def landmark_name(landmark_id: LandmarkId) -> str:
            name = map.landmark(landmark_id).name
            return name if name is not None else str(landmark_id)

        return cls(
            name=map.name,
            landmarks=[landmark_name(landmark_id) for landmark_id in map.landmark_ids()],
            locations=[
                (landmark_name(placement.id), (placement.location.x, placement.location.y))
                for placement in map.locations()
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        data["landmarks"] = list(self.landmarks)
        data["locations"] = [[name, [x, y]] for name, (x, y) in self.locations]
        return data


def _parse_location(entry: Any, source: str) -> Tuple[str, Tuple[int, int]]:
    # Accept both [name, [x, y]] and {name: ..., position: [x, y]}.
    if isinstance(entry, dict):
        name, position = entry.get("name"), entry.get("position")
    elif isinstance(entry, (list, tuple)) and len(entry) == 2:
        name, position = entry
    else:
        raise MalformedMapError(f"{source}: invalid location entry {entry!r}")

    if not isinstance(name, str):
        raise MalformedMapError(f"{source}: location entry {entry!r} lacks a landmark name")
    if (
        not isinstance(position, (list, tuple))
        or len(position) != 2
        or not all(isinstance(value, int) and not isinstance(value, bool) for value in position)
    ):
        raise MalformedMapError(f"{source}: location of {name!r} must be an [x, y] integer pair")
    return name, (position[0], position[1])


def _read_yaml(path: Path, error: type) -> Any:
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise error(f"Unable to parse {path}: {exc}") from exc


def load_landmark(map_dir: Path, landmark_name: str) -> Landmark:
    """
    Load ``<name>.png`` (or the metadata's filename) with optional ``<name>.yaml`` overrides.
    """
    metadata_path = map_dir / f"{landmark_name}.yaml"
    if metadata_path.is_file():
        spec = LandmarkSpecification.from_dict(
            _read_yaml(metadata_path, MalformedTemplateError), source=str(metadata_path)
        )
    else:
        spec = LandmarkSpecification()

    image_path = map_dir / (spec.filename or f"{landmark_name}.png")
    return Landmark.from_path(
        image_path,
        pixel_difference_threshold=spec.pixel_difference_threshold,
        name=landmark_name,
    )


def load_map(path: PathLike) -> Map:
    """
    Build a map from a YAML document and the landmark images beside it.
    """
    map_path = Path(path)
    spec = MapSpecification.from_dict(_read_yaml(map_path, MalformedMapError), source=str(map_path))
    map_dir = map_path.parent

    result = Map(name=spec.name)
    ids: Dict[str, LandmarkId] = {}
    for landmark_name in spec.landmarks:
        if landmark_name in ids:
            raise MalformedMapError(f"{map_path}: landmark {landmark_name!r} listed twice")
        ids[landmark_name] = result.add_landmark(load_landmark(map_dir, landmark_name))

    for landmark_name, (x, y) in spec.locations:
        landmark_id = ids.get(landmark_name)
        if landmark_id is None:
            raise MalformedMapError(f"{map_path}: could not find landmark {landmark_name!r}")
        result.add_fixed(landmark_id, Coordinate(x, y))

    return result


def map_to_yaml(map: Map) -> str:
    return yaml.safe_dump(MapSpecification.from_map(map).to_dict(), sort_keys=False)


def save_map(path: PathLike, map: Map) -> None:
    """
    Write the map document only; landmark images are not written.

    Unnamed landmarks are listed under their numeric id, so the saved map can
    only be loaded again once a matching <id>.png is placed next to it.
    """
    Path(path).write_text(map_to_yaml(map), encoding="utf-8")


__all__ = [
    "LandmarkSpecification",
    "MapSpecification",
    "load_landmark",
    "load_map",
    "map_to_yaml",
    "save_map",
]
