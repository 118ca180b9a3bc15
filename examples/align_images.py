#!/usr/bin/env python3
"""
align_images.py - Match-cut face alignment

Registers the face in every photo of a sequence onto one canonical layout
and writes the aligned canvases as numbered PNG frames, ready to be joined
into a match-cut video.

Usage:
    python align_images.py [options]

Example:
    python align_images.py --input photos/ --output-dir frames/
    python align_images.py --input photos/ --save-landmarks landmarks.json
    python align_images.py --input landmarks.json --images photos/ --output-dir frames/
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import cv2
import numpy as np
from tqdm import tqdm

# Import our package
sys.path.append(str(Path(__file__).parent.parent))
from matchcut_align import (
    AlignmentError,
    AlignmentMode,
    DataExporter,
    DataLoader,
    FaceAligner,
    LandmarkSet,
    load_config,
)
from matchcut_align.core.constants import RESOLUTIONS
from matchcut_align.core.input_type import InputType
from matchcut_align.processors.input_utils import detect_input_type, list_images
from matchcut_align.renderers import AffineRenderer

logger = logging.getLogger("align_images")

# (landmarks, timestamp, source image size, source image path)
FrameInput = Tuple[Optional[LandmarkSet], Optional[float], Optional[Tuple[int, int]], Optional[Path]]


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Align faces across a photo sequence for match-cut videos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input Types:
  The script automatically detects input type:
  - A folder of photos (or a single photo) → detection + alignment
  - Landmarks file (.json) → skip detection; pass --images to render frames

Examples:
  # Full pipeline
  python align_images.py --input photos/ --output-dir frames/

  # Save intermediate data
  python align_images.py --input photos/ --save-landmarks landmarks.json --save-transforms transforms.json

  # Resume from landmarks
  python align_images.py --input landmarks.json --images photos/ --output-dir frames/
        """
    )

    parser.add_argument("--input", "-i", type=str, required=True,
                        help="Folder of photos, single photo, or landmarks JSON")
    parser.add_argument("--images", type=str,
                        help="Folder of photos matching a landmarks JSON (for rendering)")
    parser.add_argument("--output-dir", "-o", type=str,
                        help="Directory for the aligned PNG frames")

    parser.add_argument("--resolution", type=int, nargs=2, default=None, metavar=("WIDTH", "HEIGHT"),
                        help="Output canvas size")
    parser.add_argument("--preset", choices=sorted(RESOLUTIONS), default="720p",
                        help="Named output canvas size (ignored when --resolution is given)")
    parser.add_argument("--mode", choices=[m.value for m in AlignmentMode], default=AlignmentMode.FULL_FACE.value,
                        help="Alignment mode")
    parser.add_argument("--smoothing", choices=["kalman", "ema", "none"], default=None,
                        help="Temporal smoothing method (overrides config)")
    parser.add_argument("--frame-interval", type=float, default=1.0,
                        help="Seconds between photos, used by the temporal filter")

    parser.add_argument("--config", type=str, default=None, help="Optional YAML config path")
    parser.add_argument("--model", type=str, default=None,
                        help="MediaPipe face_landmarker.task path (downloaded if missing)")

    parser.add_argument("--save-landmarks", type=str, help="Save detected landmarks to JSON")
    parser.add_argument("--save-transforms", type=str, help="Save alignment results to JSON")

    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    parser.add_argument("--log-level", default="INFO", help="Log level (e.g., INFO, DEBUG)")

    return parser.parse_args()


def setup_logging(level: str) -> None:
    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def read_rgb(path: Path) -> Optional[np.ndarray]:
    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if bgr is None:
        logger.warning("Could not read image: %s", path)
        return None
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def image_stream(paths: List[Path], detector, frame_interval: float) -> Iterator[FrameInput]:
    """Detect landmarks photo by photo."""
    for idx, path in enumerate(paths):
        rgb = read_rgb(path)
        if rgb is None:
            yield None, idx * frame_interval, None, path
            continue
        height, width = rgb.shape[:2]
        yield detector.detect(rgb), idx * frame_interval, (width, height), path


def landmarks_stream(input_path: str, paths: List[Path], frame_interval: float) -> Iterator[FrameInput]:
    """Replay landmarks from JSON, pairing them with photos when given."""
    frames, metadata = DataLoader.load_landmarks(input_path)
    logger.info("Loaded landmarks file with metadata %s", metadata)
    for idx, frame in enumerate(frames):
        path = paths[idx] if idx < len(paths) else None
        timestamp = frame.timestamp if frame.timestamp is not None else idx * frame_interval
        yield frame.landmarks, timestamp, frame.image_size, path


def main() -> None:
    """Main execution function."""
    args = parse_args()
    setup_logging(args.log_level)

    input_type = detect_input_type(args.input)
    logger.info("Detected input type: %s", input_type.value)

    overrides = {"smoothing_method": args.smoothing} if args.smoothing else None
    config = load_config(args.config, overrides)
    resolution = tuple(args.resolution) if args.resolution else RESOLUTIONS[args.preset]
    mode = AlignmentMode(args.mode)

    aligner = FaceAligner(config)
    renderer = AffineRenderer() if args.output_dir else None
    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    detector = None
    if input_type == InputType.IMAGES:
        from matchcut_align.detectors import MediaPipeDetector

        paths = list_images(args.input)
        detector = MediaPipeDetector(model_path=args.model)
        frames = image_stream(paths, detector, args.frame_interval)
    else:
        paths = list_images(args.images) if args.images else []
        frames = landmarks_stream(args.input, paths, args.frame_interval)

    landmarks_writer = None
    transforms_writer = None
    if args.save_landmarks and input_type == InputType.IMAGES:
        landmarks_writer = DataExporter(args.save_landmarks, {"source": str(args.input)})
        landmarks_writer.__enter__()
    if args.save_transforms:
        transforms_writer = DataExporter(args.save_transforms, {
            "width": resolution[0],
            "height": resolution[1],
            "mode": mode.value,
        })
        transforms_writer.__enter__()

    progress_bar = None if args.no_progress else tqdm(
        total=len(paths) or None, desc="Aligning", unit="frames")

    aligned = 0
    frame_count = 0
    try:
        for idx, (landmarks, timestamp, image_size, path) in enumerate(frames):
            if landmarks_writer:
                landmarks_writer.write_item(None if landmarks is None else {
                    "landmarks": landmarks.points.cpu().tolist(),
                    "detection_confidence": landmarks.detection_confidence,
                    "image_size": list(image_size) if image_size else None,
                    "timestamp": timestamp,
                })

            result = None
            try:
                result = aligner.align(landmarks, resolution, mode, timestamp=timestamp, image_size=image_size)
            except AlignmentError as e:
                logger.warning("Frame %d (%s) skipped: %s", idx, path.name if path else "-", e)

            if transforms_writer:
                transforms_writer.write_result(result)

            if result is not None:
                aligned += 1
                if renderer and path is not None:
                    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
                    if image is not None:
                        canvas = renderer.render(image, result.transform, resolution)
                        cv2.imwrite(str(output_dir / f"frame_{idx:05d}.png"), canvas)

            frame_count += 1
            if progress_bar is not None:
                progress_bar.update(1)
    finally:
        if progress_bar is not None:
            progress_bar.close()
        if landmarks_writer:
            landmarks_writer.__exit__(None, None, None)
        if transforms_writer:
            transforms_writer.__exit__(None, None, None)
        if detector is not None:
            detector.close()

    stats = aligner.statistics()
    logger.info("Aligned %d of %d frames (average confidence %.3f, residual %.2f px)",
                aligned, frame_count, stats["average_confidence"], stats["average_residual"])


if __name__ == "__main__":
    main()
