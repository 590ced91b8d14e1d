#!/usr/bin/env python3
"""
AprilTag Detector CLI
Loads configuration, sets up logging and spins the tag detector node
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config.families import TAG_FAMILIES, normalize_family
from core.config.manager import config_manager
from core.exceptions import ConfigError
from utils.logger_config import get_logger, setup_logging, setup_logging_from_config

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the detector CLI"""
    parser = argparse.ArgumentParser(
        description="AprilTag victim detector node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with the default configuration
  tag-detector

  # Drone camera, 16h5 tags, no window
  tag-detector --config drone --family 16h5 --no-draw

  # Check a configuration file without starting ROS
  tag-detector --config my_robot.yaml --validate-only
  """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default="default",
        help="Config name under configs/ or path to a YAML file",
    )
    parser.add_argument(
        "--family",
        type=str,
        help=f"Tag family override ({', '.join(TAG_FAMILIES)})",
    )
    parser.add_argument(
        "--capacity", type=int, help="Number of distinct tags to remember"
    )
    parser.add_argument("--image-topic", type=str, help="Image topic override")
    parser.add_argument(
        "--no-draw", action="store_true", help="Do not show detections on screen"
    )
    parser.add_argument(
        "--timing", action="store_true", help="Log tag extraction time per frame"
    )

    # Logging
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides config)",
    )
    parser.add_argument("--log-file", type=str, help="Also log to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Load and validate the configuration, then exit",
    )

    return parser


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect command line overrides into a config-shaped dictionary"""
    overrides: Dict[str, Any] = {}

    if args.family:
        overrides.setdefault("detector", {})["family"] = normalize_family(args.family)
    if args.timing:
        overrides.setdefault("detector", {})["timing"] = True
    if args.capacity is not None:
        overrides.setdefault("memory", {})["capacity"] = args.capacity
    if args.image_topic:
        overrides.setdefault("ros2", {})["image_topic"] = args.image_topic
    if args.no_draw:
        overrides.setdefault("display", {})["draw"] = False
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    if args.log_file:
        overrides.setdefault("logging", {})["file"] = args.log_file

    return overrides


def load_run_config(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Load the configuration named on the command line and apply overrides

    Raises:
        ConfigError: If the configuration or an override is invalid
        FileNotFoundError: If the configuration file does not exist
    """
    config = config_manager.load_config(args.config)
    overrides = build_overrides(args)
    if overrides:
        config = config_manager.merge_overrides(config, overrides)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function"""
    parser = create_parser()
    args, ros_args = parser.parse_known_args(argv)

    setup_logging(level=args.log_level, debug=args.debug)

    try:
        config = load_run_config(args)
    except (ConfigError, FileNotFoundError) as e:
        logger.critical(f"Cannot start tag detector: {e}")
        return 1

    setup_logging_from_config(config, debug=args.debug)

    if args.validate_only:
        logger.info(f"Configuration '{args.config}' is valid")
        return 0

    try:
        from ros_nodes.tag_detector.tag_detector_node import spin_node
    except ImportError as e:
        logger.critical(f"ROS2 dependencies not available: {e}")
        print("Source your ROS2 installation (rclpy, cv_bridge, tf2_ros, std_srvs)")
        return 1

    try:
        spin_node(config, args=["tag-detector"] + ros_args)
    except ConfigError as e:
        logger.critical(f"Cannot start tag detector: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
