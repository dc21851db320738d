#!/usr/bin/env python3
"""
Main entry point for the object pose tracker.

This module provides the command-line interface that builds a tracker from a
configuration file and camera file, then tracks a directory of depth frames.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import numpy as np

from pose_tracker import __version__
from pose_tracker.errors import ConfigurationError, ResourceResolutionError

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CAPABILITY_UNAVAILABLE = 2


# Set up logging
def setup_logging(log_level: int = logging.INFO) -> None:
    """Set up console logging for the pose tracker."""

    handlers = [logging.StreamHandler(sys.stdout)]

    # Configure logging
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )

    # Log startup info
    logger = logging.getLogger(__name__)
    logger.info("Pose tracker starting up...")
    logger.info("Python version: %s", sys.version)
    logger.info("Working directory: %s", os.getcwd())


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Pose tracker - rigid-body particle filter tracking on depth frames",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pose-tracker --config tracker.yaml --camera camera.yaml   # Build only
  pose-tracker --config tracker.yaml --camera camera.yaml \\
      --frames depth/ --initial-pose 0 0 1 0 0 0 --output poses.csv
        """,
    )

    parser.add_argument(
        "--config", required=True, help="Tracker builder parameters (YAML)"
    )
    parser.add_argument("--camera", required=True, help="Camera data (YAML)")
    parser.add_argument(
        "--frames",
        type=str,
        help="Directory of depth frames stored as .npy arrays in metres",
    )
    parser.add_argument(
        "--initial-pose",
        nargs=6,
        type=float,
        action="append",
        metavar=("X", "Y", "Z", "RX", "RY", "RZ"),
        help="Initial pose of one object part (repeat once per part)",
    )
    parser.add_argument("--output", type=str, help="CSV file for tracked poses")
    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed of the particle filter"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )
    parser.add_argument(
        "--version", action="version", version=f"Pose Tracker {__version__}"
    )

    return parser.parse_args(argv)


def check_dependencies() -> bool:
    """Check that all required dependencies are available."""
    required_modules = [
        ("numpy", "numpy"),
        ("scipy", "scipy"),
        ("cv2", "opencv-python"),
        ("yaml", "pyyaml"),
    ]

    missing_modules = []
    for module_name, package_name in required_modules:
        try:
            __import__(module_name)
        except ImportError:
            missing_modules.append(package_name)

    if missing_modules:
        print("Error: Missing required dependencies:")
        for package in missing_modules:
            print(f"  - {package}")
        print("\nPlease install missing packages with:")
        print(f"pip install {' '.join(missing_modules)}")
        return False

    return True


def run_tracking(tracker, frame_paths, initial_poses, output_path=None) -> int:
    """
    Track every frame in order and optionally stream poses to CSV.

    Returns:
        int: Number of frames tracked
    """
    from pose_tracker.data.csv_writer import POSE_HEADER, CSVWriterThread

    logger = logging.getLogger(__name__)
    tracker.initialize(initial_poses)

    writer = None
    if output_path:
        writer = CSVWriterThread(str(output_path), header=POSE_HEADER)
        writer.start()

    tracked = 0
    try:
        for frame_id, path in enumerate(frame_paths):
            depth = np.load(path)
            tracker.track(depth)
            poses = tracker.poses()
            if writer is not None:
                writer.enqueue_poses(frame_id, poses)
            logger.debug(
                "Frame %d (%s): part 0 at %s", frame_id, path.name, poses[0][0]
            )
            tracked += 1
    finally:
        if writer is not None:
            writer.stop()
            writer.join(timeout=5)

    logger.info("Tracked %d frame(s)", tracked)
    return tracked


def main(argv=None) -> None:
    """
    Application entry point.

    Parses command line arguments, sets up logging, checks dependencies,
    builds the tracker and tracks the requested frames.
    """
    args = parse_arguments(argv)

    log_level = getattr(logging, args.log_level.upper())
    setup_logging(log_level=log_level)

    logger = logging.getLogger(__name__)

    if not check_dependencies():
        sys.exit(EXIT_FAILURE)

    from pose_tracker.config.schemas import load_parameters
    from pose_tracker.core.builder import RbcParticleFilterTrackerBuilder
    from pose_tracker.core.camera import load_camera_data
    from pose_tracker.utils.gpu_utils import log_device_info

    # Log GPU/acceleration availability
    log_device_info()

    try:
        params = load_parameters(args.config)
        camera_data = load_camera_data(args.camera)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(EXIT_FAILURE)

    builder = RbcParticleFilterTrackerBuilder(params, camera_data, seed=args.seed)
    try:
        result = builder.build()
    except ResourceResolutionError as e:
        logger.error("Failed to load object model: %s", e)
        sys.exit(EXIT_FAILURE)

    if not result.ok:
        logger.error("%s", result.error)
        sys.exit(EXIT_CAPABILITY_UNAVAILABLE)

    tracker = result.tracker
    logger.info("Tracker ready: %r", tracker)

    if not args.frames:
        sys.exit(EXIT_OK)

    frame_dir = Path(args.frames).expanduser()
    frame_paths = sorted(frame_dir.glob("*.npy"))
    if not frame_paths:
        logger.error("No .npy depth frames found in %s", frame_dir)
        sys.exit(EXIT_FAILURE)
    if not args.initial_pose:
        logger.error("--initial-pose is required when tracking frames")
        sys.exit(EXIT_FAILURE)

    try:
        run_tracking(tracker, frame_paths, args.initial_pose, args.output)
    except ValueError as e:
        logger.error("Tracking failed: %s", e)
        sys.exit(EXIT_FAILURE)

    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
