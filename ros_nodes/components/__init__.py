"""
Components used by the AprilTag detector node
"""

from .apriltag_detector import AprilTagDetectorComponent
from .event_publisher import RosEventPublisher, build_location_msg, build_marker_msg
from .tf_transformer import TfPointTransformer
from .visualization import VisualizationComponent

__all__ = [
    "AprilTagDetectorComponent",
    "RosEventPublisher",
    "TfPointTransformer",
    "VisualizationComponent",
    "build_location_msg",
    "build_marker_msg",
]
