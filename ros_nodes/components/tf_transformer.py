"""
tf2 point transformer
Looks up frame transforms through a tf2 buffer
"""

from typing import Any, Optional

from core.events import TransformResult, Vector3
from core.handlers import PointTransformer
from utils.logger_config import get_logger

try:
    import tf2_geometry_msgs
    import tf2_ros
    from geometry_msgs.msg import PointStamped
    from rclpy.duration import Duration
    from rclpy.time import Time

    ROS_AVAILABLE = True
except ImportError:
    ROS_AVAILABLE = False

logger = get_logger(__name__)


class TfPointTransformer(PointTransformer):
    """
    PointTransformer backed by a tf2 buffer and listener
    Lookup failures are returned as failed TransformResults
    """

    def __init__(self, node: Any, timeout_sec: float = 0.1):
        """
        Args:
            node: rclpy node the transform listener attaches to
            timeout_sec: How long a lookup may wait for the transform
        """
        if not ROS_AVAILABLE:
            raise ImportError("ROS2 dependencies not installed")

        self.node = node
        self.timeout = Duration(seconds=timeout_sec)
        self.tf_buffer = tf2_ros.Buffer()
        self.tf_listener = tf2_ros.TransformListener(self.tf_buffer, node)
        logger.info(f"tf2 listener started (lookup timeout {timeout_sec}s)")

    def transform(
        self,
        point: Vector3,
        source_frame: str,
        target_frame: str,
        stamp: Optional[Any] = None,
    ) -> TransformResult:
        if stamp is None:
            lookup_time = Time()
        elif isinstance(stamp, Time):
            lookup_time = stamp
        else:
            # builtin_interfaces/Time from a message header
            lookup_time = Time.from_msg(stamp)

        source_point = PointStamped()
        source_point.header.frame_id = source_frame
        source_point.point.x, source_point.point.y, source_point.point.z = (
            float(v) for v in point
        )

        try:
            transform = self.tf_buffer.lookup_transform(
                target_frame, source_frame, lookup_time, timeout=self.timeout
            )
        except tf2_ros.TransformException as ex:
            return TransformResult.failure(f"{type(ex).__name__}: {ex}")

        target_point = tf2_geometry_msgs.do_transform_point(source_point, transform)
        p = target_point.point
        return TransformResult.success((p.x, p.y, p.z))
