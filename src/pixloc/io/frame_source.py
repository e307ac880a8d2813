from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence, Union

import numpy as np
import yaml

from ..errors import MalformedConfigError
from .image_loader import load_rgba

PathLike = Union[str, Path]

IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff"})


@dataclass(slots=True)
class CaptureSpecification:
    """
    Capture region used when the frame resolution matches ``match_*``.

    Unset match fields match any resolution. A zero ``width`` or ``height``
    extends the region to the edge of the frame.
    """

    match_width: Optional[int] = None
    match_height: Optional[int] = None
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    display: int = 0

    def matches(self, width: int, height: int) -> bool:
        if self.match_width is not None and self.match_width != width:
            return False
        if self.match_height is not None and self.match_height != height:
            return False
        return True


def select_capture_specification(
    width: int,
    height: int,
    specs: Sequence[CaptureSpecification],
) -> CaptureSpecification:
    """
    First specification matching the resolution, with its size filled in.

    Falls back to the full frame when nothing matches.
    """
    for spec in specs:
        if not spec.matches(width, height):
            continue
        return CaptureSpecification(
            match_width=spec.match_width,
            match_height=spec.match_height,
            x=spec.x,
            y=spec.y,
            width=spec.width or width - spec.x,
            height=spec.height or height - spec.y,
            display=spec.display,
        )
    return CaptureSpecification(width=width, height=height)


def load_capture_config(path: PathLike) -> List[CaptureSpecification]:
    """
    Read the ``capture:`` list of specifications from a YAML file.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Capture config not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data: Any = yaml.safe_load(handle) or {}
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise MalformedConfigError(f"Unable to parse {config_path}: {exc}") from exc

    entries = data.get("capture", []) if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise MalformedConfigError(f"{config_path}: 'capture' must be a list of specifications")

    known = {item.name for item in fields(CaptureSpecification)}
    specs: List[CaptureSpecification] = []
    for entry in entries:
        if not isinstance(entry, dict) or not set(entry) <= known:
            raise MalformedConfigError(f"{config_path}: invalid capture specification {entry!r}")
        for key, value in entry.items():
            if value is None and key.startswith("match_"):
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise MalformedConfigError(
                    f"{config_path}: capture field {key!r} must be a non-negative integer, got {value!r}"
                )
        specs.append(CaptureSpecification(**entry))
    return specs


class FrameSource(Protocol):
    """
    Pull-style frame provider: an RGB(A) array per call, ``None`` when no frame is available.
    """

    def next_frame(self) -> Optional[np.ndarray]:
        ...


class DirectoryFrameSource:
    """
    Replays recorded frames from a directory in file name order.
    """

    def __init__(self, root: PathLike, specs: Sequence[CaptureSpecification] = ()) -> None:
        self.root = Path(root)
        if not self.root.is_dir():
            raise FileNotFoundError(f"Frames directory not found: {self.root}")
        self.files = sorted(
            path for path in self.root.iterdir() if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
        )
        self.specs = list(specs)
        self.index = 0
        self.frame_name: Optional[Path] = None

    def has_next(self) -> bool:
        return self.index < len(self.files)

    def next_frame(self) -> Optional[np.ndarray]:
        if not self.has_next():
            return None
        path = self.files[self.index]
        self.index += 1
        self.frame_name = path

        frame = load_rgba(path)
        height, width = frame.shape[:2]
        spec = select_capture_specification(width, height, self.specs)
        return frame[spec.y : spec.y + spec.height, spec.x : spec.x + spec.width]

    def __len__(self) -> int:
        return len(self.files)


__all__ = [
    "CaptureSpecification",
    "DirectoryFrameSource",
    "FrameSource",
    "load_capture_config",
    "select_capture_specification",
]
