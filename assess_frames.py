#!/usr/bin/env python3
"""
Frame Quality Assessment Tool

Feeds a video file, an image or a live camera through the frame quality
metrics engine and reports the final metrics snapshot and capture readiness.

Usage:
    python assess_frames.py --input clip.mp4 --output result.json [--debug overlay.png]
    python assess_frames.py --camera 0 --max-frames 200 --output result.json
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

import cv2
import numpy as np

from frame_quality.classification import describe_failures
from frame_quality.debug_observer import DebugObserver
from frame_quality.engine import MetricsEngine, create_engine
from frame_quality.metrics import Metrics
from frame_quality.quality_constants import ACCELERATOR, MIN_FRAME_INTERVAL_S
from frame_quality.visualization import draw_metrics_panel

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp"}
VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".webm"}

# Spacing added on top of the throttle interval between repeated image frames
IMAGE_FRAME_GAP_S = 0.001


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Assess real-time frame quality (sharpness, angle, tilt, brightness, shake).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python assess_frames.py --input clip.mp4 --output result.json
    python assess_frames.py --input photo.jpg --repeat 20 --output result.json --debug overlay.png
    python assess_frames.py --camera 0 --max-frames 300 --output result.json
        """,
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input",
        type=str,
        help="Path to input video or image",
    )
    source.add_argument(
        "--camera",
        type=int,
        help="Camera device index",
    )

    parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Path to output JSON file",
    )

    # Optional arguments
    parser.add_argument(
        "--debug",
        type=str,
        default=None,
        help="Path to save the metrics overlay of the last processed frame (PNG)",
    )
    parser.add_argument(
        "--save-intermediate",
        type=str,
        default=None,
        metavar="DIR",
        help="Save luma, gradient and frame-difference images for each processed frame",
    )
    parser.add_argument(
        "--min-interval-ms",
        type=float,
        default=MIN_FRAME_INTERVAL_S * 1000,
        help=f"Drop frames closer than this to the last processed one (default: {MIN_FRAME_INTERVAL_S * 1000:.0f})",
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop after this many delivered frames",
    )
    parser.add_argument(
        "--repeat",
        type=int,
        default=1,
        help="For image input: feed the image this many times (default: 1)",
    )
    parser.add_argument(
        "--accelerator",
        type=str,
        default=ACCELERATOR,
        help="'opencv' or path to a native library exporting process_gray",
    )
    parser.add_argument(
        "--demo-jitter",
        action="store_true",
        help="Simulate metrics if the requested accelerator cannot be loaded",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-frame measurements",
    )

    return parser.parse_args(argv)


def validate_input(input_path: str) -> Optional[str]:
    """
    Validate input file exists and has a supported extension.

    Returns:
        Error message if validation fails, None if valid
    """
    path = Path(input_path)

    if not path.exists():
        return f"Input file not found: {input_path}"

    if not path.is_file():
        return f"Input path is not a file: {input_path}"

    suffix = path.suffix.lower()
    if suffix not in IMAGE_EXTENSIONS | VIDEO_EXTENSIONS:
        return f"Unsupported input format: {suffix}"

    return None


def to_gray(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    return frame


def iter_image_frames(
    input_path: str, repeat: int, interval_s: float
) -> Iterator[Tuple[np.ndarray, float]]:
    """Yield the same image ``repeat`` times, just over one throttle interval apart."""
    image = cv2.imread(input_path, cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise IOError(f"Failed to load image: {input_path}")
    for i in range(max(1, repeat)):
        yield image, i * (interval_s + IMAGE_FRAME_GAP_S)


def iter_capture_frames(
    capture: cv2.VideoCapture, live: bool
) -> Iterator[Tuple[np.ndarray, float]]:
    """Yield (gray, timestamp_s) from an opened capture until it ends."""
    try:
        while True:
            ok, frame = capture.read()
            if not ok:
                break
            if live:
                timestamp = time.monotonic()
            else:
                timestamp = capture.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
            yield to_gray(frame), timestamp
    finally:
        capture.release()


def create_output(
    metrics: Metrics,
    engine: MetricsEngine,
    frames_seen: int,
    ready_frames: int,
) -> Dict[str, Any]:
    """Create the output dictionary written to JSON."""
    output = metrics.to_dict()
    output.update({
        "failing_metrics": describe_failures(metrics.flags),
        "mode": engine.mode,
        "frames_seen": frames_seen,
        "frames_processed": engine.frames_processed,
        "frames_dropped": engine.frames_dropped,
        "frames_invalid": engine.frames_invalid,
        "capture_ready_frames": ready_frames,
    })
    measurements = engine.last_measurements
    if measurements is not None:
        output["last_measurements"] = {
            "mean": round(measurements.mean, 3),
            "stddev": round(measurements.stddev, 3),
            "angle_deg": round(measurements.angle_deg, 3),
            "tilt_deg": round(measurements.tilt_deg, 3),
            "shake_raw": round(measurements.shake_raw, 3),
            "statistics_source": measurements.statistics_source,
        }
    return output


def save_output(output: Dict[str, Any], output_path: str) -> None:
    """Save output dictionary to JSON file."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(output, f, indent=2)


def assess_frames(
    frames: Iterator[Tuple[np.ndarray, float]],
    engine: MetricsEngine,
    max_frames: Optional[int] = None,
    debug_path: Optional[str] = None,
    intermediate_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Main assessment loop: deliver frames to the engine like a capture callback.

    Args:
        frames: Iterator of (gray frame, timestamp in seconds)
        engine: Metrics engine
        max_frames: Stop after this many delivered frames
        debug_path: Path to save the overlay of the last processed frame
        intermediate_dir: Directory for per-frame debug stages

    Returns:
        Output dictionary
    """
    observer = DebugObserver(intermediate_dir) if intermediate_dir else None
    frames_seen = 0
    ready_frames = 0
    last_gray = None
    previous_gray = None

    for gray, timestamp in frames:
        if max_frames is not None and frames_seen >= max_frames:
            break
        frames_seen += 1

        h, w = gray.shape[:2]
        metrics = engine.on_frame(gray, w, h, gray.strides[0], timestamp)
        if metrics is None:
            continue

        if metrics.is_capture_ready:
            ready_frames += 1
        if observer is not None:
            observer.observe_frame(gray, previous_gray)
        previous_gray = gray
        last_gray = gray

    final = engine.current_metrics()

    if debug_path and last_gray is not None:
        overlay = draw_metrics_panel(last_gray, final, mode=engine.mode)
        Path(debug_path).parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(debug_path, overlay)
        print(f"Metrics overlay saved to: {debug_path}")

    return create_output(final, engine, frames_seen, ready_frames)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    interval_s = args.min_interval_ms / 1000.0
    engine = create_engine(
        accelerator=args.accelerator,
        demo_jitter=args.demo_jitter,
        min_interval_s=interval_s,
    )

    if args.camera is not None:
        capture = cv2.VideoCapture(args.camera)
        if not capture.isOpened():
            print(f"Error: Failed to open camera {args.camera}", file=sys.stderr)
            return 1
        frames = iter_capture_frames(capture, live=True)
        print(f"Reading camera {args.camera}")
    else:
        error = validate_input(args.input)
        if error:
            print(f"Error: {error}", file=sys.stderr)
            return 1

        if Path(args.input).suffix.lower() in IMAGE_EXTENSIONS:
            frames = iter_image_frames(args.input, args.repeat, interval_s)
        else:
            capture = cv2.VideoCapture(args.input)
            if not capture.isOpened():
                print(f"Error: Failed to open video: {args.input}", file=sys.stderr)
                return 1
            frames = iter_capture_frames(capture, live=False)
        print(f"Reading input: {args.input}")

    try:
        result = assess_frames(
            frames,
            engine,
            max_frames=args.max_frames,
            debug_path=args.debug,
            intermediate_dir=args.save_intermediate,
        )
    except IOError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    save_output(result, args.output)
    print(f"Results saved to: {args.output}")

    if result["frames_processed"] == 0:
        print("No frames were processed")
        return 1

    status = "READY" if result["is_capture_ready"] else "NOT READY"
    print(f"Capture status: {status}")
    if result["failing_metrics"]:
        print(f"Failing metrics: {', '.join(result['failing_metrics'])}")
    print(f"Frames: {result['frames_processed']} processed, "
          f"{result['frames_dropped']} dropped, {result['frames_invalid']} invalid")
    return 0


if __name__ == "__main__":
    sys.exit(main())
