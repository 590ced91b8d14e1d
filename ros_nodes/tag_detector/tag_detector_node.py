#!/usr/bin/env python3
"""
ROS2 Node for AprilTag victim detection
Subscribes to a camera image stream, detects AprilTags, and publishes the
map position of every newly found tag together with an RViz marker
"""

import threading
from typing import Any, Dict

import rclpy
from cv_bridge import CvBridge
from rclpy.node import Node
from rclpy.qos import DurabilityPolicy, HistoryPolicy, QoSProfile, ReliabilityPolicy
from sensor_msgs.msg import Image
from std_srvs.srv import SetBool

from core.handlers import FrameReport, TagTracker
from ros_nodes.components import (
    AprilTagDetectorComponent,
    RosEventPublisher,
    TfPointTransformer,
    VisualizationComponent,
)
from utils.logger_config import get_logger

logger = get_logger(__name__)


class TagDetectorNode(Node):
    """
    ROS2 node that locates AprilTag victims

    Subscribes to: /camera/rgb/image_raw (configurable)
    Publishes to:
        - explore_result (PoseStamped, one per newly found tag)
        - visualization_marker (Marker, one per newly found tag)
    Services:
        - reset_tag_detection (SetBool): forget all found tags
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the tag detector node

        Args:
            config: Validated configuration dictionary

        Raises:
            ConfigError: If the detector configuration is invalid
        """
        self.config = config
        ros_config = config.get("ros2", {})
        super().__init__(ros_config.get("node_name", "tag_detector"))

        # Components
        self.detector = AprilTagDetectorComponent(config)
        self.visualizer = VisualizationComponent(config)
        self.transformer = TfPointTransformer(self)

        depth = ros_config.get("queue_depth", 1)
        self.event_publisher = RosEventPublisher(
            self,
            ros_config.get("location_topic", "explore_result"),
            ros_config.get("marker_topic", "visualization_marker"),
            depth,
        )

        self.tracker = TagTracker.from_config(
            config, self.transformer, self.event_publisher
        )

        self.bridge = CvBridge()

        # Frames arriving while one is being processed are dropped
        self._lock = threading.Lock()
        self._processing = False

        image_topic = ros_config.get("image_topic", "/camera/rgb/image_raw")
        qos_profile = QoSProfile(
            reliability=ReliabilityPolicy.BEST_EFFORT,
            durability=DurabilityPolicy.VOLATILE,
            history=HistoryPolicy.KEEP_LAST,
            depth=depth,
        )
        self.subscription = self.create_subscription(
            Image, image_topic, self.image_callback, qos_profile
        )
        logger.info(f"Subscribed to: {image_topic}")

        reset_service = ros_config.get("reset_service", "reset_tag_detection")
        self.reset_service = self.create_service(
            SetBool, reset_service, self.reset_callback
        )
        logger.info(f"Reset service advertised: {reset_service}")

        self.frame_count = 0
        self.get_logger().info("Ready to detect tags")

    def image_callback(self, msg: Image) -> None:
        """
        Callback for incoming camera images

        Args:
            msg: ROS2 Image message
        """
        with self._lock:
            if self._processing:
                logger.debug("Skipping frame - already processing")
                return
            self._processing = True

        try:
            cv_image = self.bridge.imgmsg_to_cv2(msg, desired_encoding="bgr8")
            detections = self.detector.detect(cv_image)
            report = self.tracker.on_frame(detections)
            self._log_report(report)

            self.visualizer.show(cv_image, detections)

            self.frame_count += 1
            if self.frame_count % 30 == 0:
                self.get_logger().info(
                    f"Processed {self.frame_count} frames, "
                    f"found tags: {self.tracker.memory.ids}"
                )

        except Exception as e:
            self.get_logger().error(f"Error processing image: {e}")

        finally:
            with self._lock:
                self._processing = False

    def reset_callback(self, request: Any, response: Any) -> Any:
        """
        Reset service handler

        request.data is the reset flag; a false flag is acknowledged
        without clearing anything.
        """
        response.success = self.tracker.on_reset(bool(request.data))
        response.message = (
            "detection memory cleared" if request.data else "reset not requested"
        )
        return response

    def _log_report(self, report: FrameReport) -> None:
        if report.failed:
            self.get_logger().warning(
                f"Tags {report.failed} recorded but not published (transform failed)"
            )

    def destroy_node(self) -> None:
        self.visualizer.close()
        super().destroy_node()


def spin_node(config: Dict[str, Any], args: Any = None) -> None:
    """Initialize rclpy, spin a TagDetectorNode until shutdown, then clean up"""
    rclpy.init(args=args)
    node = None
    try:
        node = TagDetectorNode(config)
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    finally:
        if node is not None:
            node.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()
