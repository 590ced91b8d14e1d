"""
Frame and reset handlers
Route tag detections through the detection memory to the publishers
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from core.events import (
    LocatedObjectEvent,
    MarkerDetection,
    TransformResult,
    Vector3,
    VisualizationEvent,
)
from core.exceptions import ConfigError
from core.geometry import tag_euler
from core.memory import DEFAULT_CAPACITY, DetectionMemory
from utils.logger_config import get_logger

logger = get_logger(__name__)


class PointTransformer(ABC):
    """Transforms a point between coordinate frames"""

    @abstractmethod
    def transform(
        self,
        point: Vector3,
        source_frame: str,
        target_frame: str,
        stamp: Optional[Any] = None,
    ) -> TransformResult:
        """
        Transform point from source_frame into target_frame

        Returns:
            TransformResult, failed if the frames are not connected at stamp
        """
        pass


class EventSink(ABC):
    """Receives events for newly located tags"""

    @abstractmethod
    def publish_location(self, event: LocatedObjectEvent) -> None:
        pass

    @abstractmethod
    def publish_marker(self, event: VisualizationEvent) -> None:
        pass


@dataclass
class FrameReport:
    """What happened to each marker of one frame"""

    emitted: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def num_markers(self) -> int:
        return len(self.emitted) + len(self.skipped) + len(self.failed)


class DetectionEventHandler:
    """
    Processes the marker list of one frame

    Every marker is recorded before its transform is attempted, so a
    failed transform leaves the tag marked as seen.
    """

    def __init__(
        self,
        memory: DetectionMemory,
        transformer: PointTransformer,
        sink: EventSink,
        source_frame: str = "base_footprint",
        target_frame: str = "map",
        marker_frame: Optional[str] = None,
        lock: Optional[threading.Lock] = None,
    ):
        self.memory = memory
        self.transformer = transformer
        self.sink = sink
        self.source_frame = source_frame
        self.target_frame = target_frame
        self.marker_frame = marker_frame or target_frame
        self._lock = lock or threading.Lock()

    def on_frame(
        self, markers: Iterable[MarkerDetection], stamp: Optional[Any] = None
    ) -> FrameReport:
        """
        Handle all markers detected in one frame

        Args:
            markers: Detections in detector output order
            stamp: Optional time for the transform lookup (latest if None)

        Returns:
            FrameReport listing emitted, skipped and failed tag ids
        """
        report = FrameReport()

        with self._lock:
            for marker in markers:
                tag_id = int(marker.tag_id)

                if not self.memory.record(tag_id):
                    logger.info(f"No new victim detected, id: {tag_id}")
                    report.skipped.append(tag_id)
                    continue

                self._log_detection(marker)

                if self._emit(marker, stamp):
                    logger.info(f"New victim detected, id: {tag_id}")
                    report.emitted.append(tag_id)
                else:
                    report.failed.append(tag_id)

        return report

    def _emit(self, marker: MarkerDetection, stamp: Optional[Any]) -> bool:
        point = tuple(float(v) for v in marker.translation)
        result = self.transformer.transform(
            point, self.source_frame, self.target_frame, stamp
        )

        if not result.ok:
            logger.warning(
                f"Could not transform tag {marker.tag_id} from "
                f"'{self.source_frame}' to '{self.target_frame}': {result.reason}"
            )
            return False

        px, py, pz = point
        mx, my, mz = result.position
        logger.info(
            f"{self.source_frame}: ({px:.2f}, {py:.2f}, {pz:.2f}) -----> "
            f"{self.target_frame}: ({mx:.2f}, {my:.2f}, {mz:.2f})"
        )

        location = LocatedObjectEvent(
            tag_id=int(marker.tag_id),
            position=result.position,
            frame_id=self.target_frame,
        )
        self.sink.publish_location(location)
        self.sink.publish_marker(
            VisualizationEvent.for_location(location, self.marker_frame)
        )
        return True

    def _log_detection(self, marker: MarkerDetection) -> None:
        x, y, z = marker.translation
        yaw, pitch, roll = tag_euler(marker.rotation)
        logger.debug(
            f"Id: {marker.tag_id} (Hamming: {marker.hamming}) "
            f"distance={marker.distance:.3f}m, x={x:.3f}, y={y:.3f}, z={z:.3f}, "
            f"yaw={yaw:.3f}, pitch={pitch:.3f}, roll={roll:.3f}"
        )


class ResetHandler:
    """Clears the detection memory on request"""

    def __init__(self, memory: DetectionMemory, lock: Optional[threading.Lock] = None):
        self.memory = memory
        self._lock = lock or threading.Lock()

    def on_reset(self, flag: bool) -> bool:
        """
        Handle a reset request

        A false flag is acknowledged without touching the memory.

        Returns:
            Always True
        """
        logger.info(f"Reset request received: {int(bool(flag))}")
        if flag:
            with self._lock:
                self.memory.reset()
            logger.info("Reset confirmed, detection memory cleared")
        return True


class TagTracker:
    """
    Owns the detection memory and the handlers that share it

    Both handlers hold the same lock, so frames and reset requests never
    interleave even under a multi-threaded executor.
    """

    def __init__(
        self,
        transformer: PointTransformer,
        sink: EventSink,
        capacity: int = DEFAULT_CAPACITY,
        source_frame: str = "base_footprint",
        target_frame: str = "map",
        marker_frame: Optional[str] = None,
    ):
        self.memory = DetectionMemory(capacity)
        self._lock = threading.Lock()
        self.frame_handler = DetectionEventHandler(
            self.memory,
            transformer,
            sink,
            source_frame=source_frame,
            target_frame=target_frame,
            marker_frame=marker_frame,
            lock=self._lock,
        )
        self.reset_handler = ResetHandler(self.memory, lock=self._lock)

    @classmethod
    def from_config(
        cls, config: dict, transformer: PointTransformer, sink: EventSink
    ) -> "TagTracker":
        """
        Build a tracker from the memory and frames config sections

        Raises:
            ConfigError: If the memory capacity is not a positive integer
        """
        frames = config.get("frames", {})
        try:
            return cls(
                transformer,
                sink,
                capacity=config.get("memory", {}).get("capacity", DEFAULT_CAPACITY),
                source_frame=frames.get("source_frame", "base_footprint"),
                target_frame=frames.get("target_frame", "map"),
                marker_frame=frames.get("marker_frame"),
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e

    def on_frame(
        self, markers: Iterable[MarkerDetection], stamp: Optional[Any] = None
    ) -> FrameReport:
        return self.frame_handler.on_frame(markers, stamp)

    def on_reset(self, flag: bool) -> bool:
        return self.reset_handler.on_reset(flag)
