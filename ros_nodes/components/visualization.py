"""
Visualization Component
Draws tag detections on camera images and shows them in a window
"""

from typing import Any, Dict, List

import cv2
import numpy as np

from core.events import MarkerDetection
from utils.logger_config import get_logger

logger = get_logger(__name__)

OUTLINE_COLOR = (255, 0, 0)  # BGR
LABEL_COLOR = (0, 255, 0)
CENTER_COLOR = (0, 0, 255)


class VisualizationComponent:
    """
    Component for drawing AprilTag detections
    Handles outlines, id labels and the on-screen window
    """

    def __init__(self, config: Dict[str, Any]):
        display_config = config.get("display", {})
        self.enabled = bool(display_config.get("draw", True))
        self.window_name = display_config.get("window_name", "apriltags_demo")
        self._window_open = False

    def draw_detections(
        self, image: np.ndarray, detections: List[MarkerDetection]
    ) -> np.ndarray:
        """
        Draw tag outlines and ids on a copy of image

        Args:
            image: Input BGR image
            detections: Detections for this frame

        Returns:
            Annotated image
        """
        annotated = image.copy()

        for det in detections:
            if det.corners is None:
                continue

            corners = np.asarray(det.corners).astype(int)
            for i in range(len(corners)):
                p1 = tuple(int(v) for v in corners[i])
                p2 = tuple(int(v) for v in corners[(i + 1) % len(corners)])
                cv2.line(annotated, p1, p2, OUTLINE_COLOR, 2)

            if det.center is not None:
                cx, cy = int(det.center[0]), int(det.center[1])
                cv2.circle(annotated, (cx, cy), 3, CENTER_COLOR, -1)
                cv2.putText(
                    annotated,
                    f"id={det.tag_id} z={det.translation[2]:.2f}m",
                    (cx + 10, cy),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    0.6,
                    LABEL_COLOR,
                    2,
                )

        return annotated

    def show(self, image: np.ndarray, detections: List[MarkerDetection]) -> None:
        """Draw detections and refresh the window if drawing is enabled"""
        if not self.enabled:
            return

        if not self._window_open:
            cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
            self._window_open = True

        cv2.imshow(self.window_name, self.draw_detections(image, detections))
        cv2.waitKey(1)

    def close(self) -> None:
        if self._window_open:
            cv2.destroyWindow(self.window_name)
            self._window_open = False
