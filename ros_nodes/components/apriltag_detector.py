"""
AprilTag Detector Component
Wraps pupil_apriltags and converts its detections to MarkerDetection
"""

import time
from typing import Any, Dict, List, Tuple

import cv2
import numpy as np
from pupil_apriltags import Detector

from core.config.families import normalize_family
from core.events import MarkerDetection
from utils.logger_config import get_logger

logger = get_logger(__name__)


class AprilTagDetectorComponent:
    """
    Component for AprilTag detection and relative pose recovery
    Reads tag family, tag size and camera intrinsics from the config
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize AprilTag detector component

        Args:
            config: Configuration dictionary

        Raises:
            ConfigError: If the configured tag family is not supported
        """
        detector_config = config.get("detector", {})
        camera_config = config.get("camera", {})

        self.family = normalize_family(detector_config.get("family", "tag36h11"))
        self.tag_size = float(detector_config.get("tag_size", 0.099))
        self.timing = bool(detector_config.get("timing", False))

        width = camera_config.get("width", 640)
        height = camera_config.get("height", 360)
        self.camera_params = self._camera_params(camera_config, width, height)

        self.detector = Detector(
            families=self.family,
            nthreads=int(detector_config.get("nthreads", 2)),
            quad_decimate=float(detector_config.get("quad_decimate", 1.0)),
            refine_edges=int(detector_config.get("refine_edges", 1)),
        )
        self.last_duration = 0.0

        logger.info(
            f"AprilTag detector initialized: family={self.family}, "
            f"tag_size={self.tag_size}m, camera_params={self.camera_params}"
        )

    @staticmethod
    def _camera_params(
        camera_config: Dict[str, Any], width: int, height: int
    ) -> Tuple[float, float, float, float]:
        """Focal lengths and principal point; principal point defaults to the image centre"""
        fx = float(camera_config.get("fx", 623.709))
        fy = float(camera_config.get("fy", 582.226))
        px = camera_config.get("px")
        py = camera_config.get("py")
        px = float(width) / 2 if px is None else float(px)
        py = float(height) / 2 if py is None else float(py)
        return fx, fy, px, py

    def to_gray(self, image: np.ndarray) -> np.ndarray:
        """Convert a BGR image to grayscale (no-op for single channel images)"""
        if image.ndim == 2:
            return image
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    def detect(self, image: np.ndarray) -> List[MarkerDetection]:
        """
        Detect AprilTags in image

        Args:
            image: Input image in BGR or grayscale format

        Returns:
            Detections in detector output order
        """
        gray = self.to_gray(image)

        start = time.perf_counter()
        raw_detections = self.detector.detect(
            gray,
            estimate_tag_pose=True,
            camera_params=self.camera_params,
            tag_size=self.tag_size,
        )
        self.last_duration = time.perf_counter() - start

        if self.timing:
            logger.info(f"Extracting tags took {self.last_duration:.4f} seconds.")

        return [self._to_marker(det) for det in raw_detections]

    @staticmethod
    def _to_marker(det: Any) -> MarkerDetection:
        translation = np.asarray(det.pose_t, dtype=float).reshape(3)
        rotation = (
            np.asarray(det.pose_R, dtype=float).reshape(3, 3)
            if det.pose_R is not None
            else np.eye(3)
        )
        return MarkerDetection(
            tag_id=int(det.tag_id),
            translation=tuple(float(v) for v in translation),
            rotation=rotation,
            corners=np.asarray(det.corners, dtype=float),
            center=tuple(float(v) for v in det.center),
            hamming=int(det.hamming),
        )
