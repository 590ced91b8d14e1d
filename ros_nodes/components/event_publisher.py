"""
ROS event publisher
Turns located-object and visualization events into ROS messages
"""

from typing import Any, Optional

from core.events import LocatedObjectEvent, VisualizationEvent
from core.handlers import EventSink
from utils.logger_config import get_logger

try:
    from builtin_interfaces.msg import Duration as DurationMsg
    from geometry_msgs.msg import PoseStamped
    from visualization_msgs.msg import Marker

    ROS_AVAILABLE = True
except ImportError:
    ROS_AVAILABLE = False

logger = get_logger(__name__)

_MARKER_TYPES = {
    "cube": "CUBE",
    "sphere": "SPHERE",
    "cylinder": "CYLINDER",
    "arrow": "ARROW",
}


def build_location_msg(event: LocatedObjectEvent, stamp: Optional[Any] = None):
    """
    PoseStamped for a located tag

    The header frame_id carries the tag label; the position is in the
    target frame.
    """
    location = PoseStamped()
    location.header.frame_id = event.label
    if stamp is not None:
        location.header.stamp = stamp
    x, y, z = event.position
    location.pose.position.x = float(x)
    location.pose.position.y = float(y)
    location.pose.position.z = float(z)
    location.pose.orientation.w = 1.0
    return location


def build_marker_msg(event: VisualizationEvent, stamp: Optional[Any] = None):
    """Marker message for a located tag; same ns and id overwrite the old marker"""
    marker = Marker()
    marker.header.frame_id = event.frame_id
    if stamp is not None:
        marker.header.stamp = stamp

    marker.ns = event.namespace
    marker.id = int(event.tag_id)
    marker.type = getattr(Marker, _MARKER_TYPES.get(event.shape, "CYLINDER"))
    marker.action = Marker.ADD

    x, y, z = event.position
    marker.pose.position.x = float(x)
    marker.pose.position.y = float(y)
    marker.pose.position.z = float(z)
    marker.pose.orientation.x = 0.0
    marker.pose.orientation.y = 0.0
    marker.pose.orientation.z = 0.0
    marker.pose.orientation.w = 1.0

    marker.scale.x, marker.scale.y, marker.scale.z = (float(s) for s in event.scale)
    marker.color.r, marker.color.g, marker.color.b, marker.color.a = (
        float(c) for c in event.color
    )

    # Zero lifetime means the marker never expires
    seconds = int(event.lifetime_sec)
    marker.lifetime = DurationMsg(
        sec=seconds, nanosec=int((event.lifetime_sec - seconds) * 1e9)
    )
    return marker


class RosEventPublisher(EventSink):
    """EventSink that publishes through rclpy publishers"""

    def __init__(self, node: Any, location_topic: str, marker_topic: str, depth: int = 1):
        if not ROS_AVAILABLE:
            raise ImportError("ROS2 dependencies not installed")

        self.node = node
        self.location_pub = node.create_publisher(PoseStamped, location_topic, depth)
        self.marker_pub = node.create_publisher(Marker, marker_topic, depth)
        logger.info(f"Publishing locations to: {location_topic}")
        logger.info(f"Publishing markers to: {marker_topic}")

    def _now(self):
        return self.node.get_clock().now().to_msg()

    def publish_location(self, event: LocatedObjectEvent) -> None:
        self.location_pub.publish(build_location_msg(event, self._now()))

    def publish_marker(self, event: VisualizationEvent) -> None:
        self.marker_pub.publish(build_marker_msg(event, self._now()))
