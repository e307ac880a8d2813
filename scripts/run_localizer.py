from __future__ import annotations

import argparse
import logging
import statistics
import time
from pathlib import Path
from typing import Dict, List, Sequence
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import numpy as np

from pixloc.geometry import Rect
from pixloc.io import save_rgba
from pixloc.io.frame_source import DirectoryFrameSource, load_capture_config
from pixloc.io.map_loader import load_map, map_to_yaml, save_map
from pixloc.localization import LocalisationResult, Localizer, LocalizerConfig
from pixloc.matching import erode_template


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track a viewport against a landmark map over recorded frames.")
    parser.add_argument(
        "map",
        type=Path,
        help="YAML map document; landmark images are resolved next to it.",
    )
    parser.add_argument(
        "--frames",
        type=Path,
        required=True,
        help="Directory of captured frames, processed in file name order.",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Where to write the map whenever mapping adds placements.",
    )
    parser.add_argument(
        "--mapping",
        "-m",
        action="store_true",
        help="Search for all landmarks after each successful localization and record new placements.",
    )
    parser.add_argument(
        "--erode",
        "-e",
        action="store_true",
        help="Refine landmark templates by clearing pixels that disagree with matched regions.",
    )
    parser.add_argument(
        "--erode-dir",
        type=Path,
        default=Path("artifacts/eroded"),
        help="Directory where eroded landmark templates are written.",
    )
    parser.add_argument(
        "--capture-config",
        "-c",
        type=Path,
        default=None,
        help="YAML file with capture specifications used to crop frames.",
    )
    parser.add_argument(
        "--roi",
        type=int,
        nargs=4,
        metavar=("X", "Y", "W", "H"),
        default=None,
        help="Region of the (cropped) frame to search. Defaults to the whole frame.",
    )
    parser.add_argument(
        "--search-box",
        type=int,
        default=LocalizerConfig().search_box,
        help="Half-width of the search window around each expected landmark.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level for the library modules.",
    )
    return parser.parse_args()


def frame_roi(frame: np.ndarray, roi: Sequence[int] | None) -> Rect:
    if roi is not None:
        return Rect(*roi)
    return Rect(0, 0, frame.shape[1], frame.shape[0])


def erode_matches(
    localizer: Localizer,
    result: LocalisationResult,
    frame: np.ndarray,
    eroded: Dict[int, np.ndarray],
    output_dir: Path,
) -> None:
    """
    Clear template pixels that differ from what was matched and store changed templates.
    """
    for match in result.matches:
        landmark_id = match.location.id
        landmark = localizer.map.landmark(landmark_id)
        template = eroded.setdefault(landmark_id.index, landmark.to_rgba())
        x, y = match.screen_position.x, match.screen_position.y
        observed = frame[y : y + landmark.height, x : x + landmark.width]
        if erode_template(template, observed):
            name = landmark.name if landmark.name is not None else str(landmark_id)
            save_rgba(output_dir / f"eroded_{name}.png", template)


def run() -> None:
    args = parse_arguments()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    specs = load_capture_config(args.capture_config) if args.capture_config is not None else []
    source = DirectoryFrameSource(args.frames, specs)
    localizer = Localizer(load_map(args.map), config=LocalizerConfig(search_box=args.search_box))

    if args.erode:
        args.erode_dir.mkdir(parents=True, exist_ok=True)
    eroded: Dict[int, np.ndarray] = {}

    durations_ms: List[float] = []
    tracked = 0
    relocalized = 0
    lost = 0

    while True:
        frame = source.next_frame()
        if frame is None:
            break
        roi = frame_roi(frame, args.roi)
        name = source.frame_name.name if source.frame_name is not None else "?"

        start = time.perf_counter()
        result = localizer.localize(frame, roi)
        if result is not None:
            tracked += 1
            if args.erode:
                erode_matches(localizer, result, frame, eroded, args.erode_dir)
            print(f"{name:35s} | location: ({result.position.x}, {result.position.y}) with {result.consistent_count} landmarks")

            if args.mapping:
                inserted = localizer.mapping(frame, roi)
                for placement in inserted:
                    print(f"{'':35s} | new location: landmark {placement.id} at ({placement.location.x}, {placement.location.y})")
                if inserted:
                    if args.output is not None:
                        save_map(args.output, localizer.map)
                    else:
                        print(map_to_yaml(localizer.map))
        else:
            reloc = localizer.relocalize(frame, roi)
            if reloc is not None:
                relocalized += 1
                print(f"{name:35s} |    reloc: ({reloc.position.x}, {reloc.position.y}) with {reloc.consistent_count} landmarks")
            else:
                lost += 1
                print(f"{name:35s} |    lost")
        durations_ms.append((time.perf_counter() - start) * 1000.0)

    print("\nSummary")
    print("-" * 72)
    print(f"Frames processed : {len(durations_ms)}")
    print(f"Tracked          : {tracked}")
    print(f"Relocalized      : {relocalized}")
    print(f"Lost             : {lost}")
    print(f"Map placements   : {len(localizer.map.locations())}")
    if durations_ms:
        print(f"Latency (ms)     : mean={statistics.fmean(durations_ms):.2f}, median={statistics.median(durations_ms):.2f}, min={min(durations_ms):.2f}, max={max(durations_ms):.2f}")


if __name__ == "__main__":
    run()
