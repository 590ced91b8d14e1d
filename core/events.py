"""
Data types passed between the detector, the handlers and the publishers
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

Vector3 = Tuple[float, float, float]

# Marker style shared by every victim marker
MARKER_NAMESPACE = "basic_shapes"
MARKER_SHAPE = "cylinder"
MARKER_SCALE: Vector3 = (0.2, 0.2, 0.2)
MARKER_COLOR: Tuple[float, float, float, float] = (0.0, 1.0, 0.0, 1.0)  # rgba


@dataclass
class MarkerDetection:
    """Single tag detection in camera coordinates"""

    tag_id: int
    translation: Vector3
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    corners: Optional[np.ndarray] = None
    center: Optional[Tuple[float, float]] = None
    hamming: int = 0

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.translation))


@dataclass
class TransformResult:
    """Outcome of a point transform lookup"""

    ok: bool
    position: Optional[Vector3] = None
    reason: str = ""

    @classmethod
    def success(cls, position: Vector3) -> "TransformResult":
        x, y, z = position
        return cls(ok=True, position=(float(x), float(y), float(z)))

    @classmethod
    def failure(cls, reason: str) -> "TransformResult":
        return cls(ok=False, reason=reason)


@dataclass(frozen=True)
class LocatedObjectEvent:
    """A newly found tag, located in the target frame"""

    tag_id: int
    position: Vector3
    frame_id: str

    @property
    def label(self) -> str:
        return str(self.tag_id)


@dataclass(frozen=True)
class VisualizationEvent:
    """
    Visualization marker for a located tag

    The marker sits on the floor plane (z = 0) of the marker frame
    and never expires.
    """

    tag_id: int
    position: Vector3
    frame_id: str
    namespace: str = MARKER_NAMESPACE
    shape: str = MARKER_SHAPE
    scale: Vector3 = MARKER_SCALE
    color: Tuple[float, float, float, float] = MARKER_COLOR
    lifetime_sec: float = 0.0

    @classmethod
    def for_location(
        cls, event: LocatedObjectEvent, frame_id: Optional[str] = None
    ) -> "VisualizationEvent":
        x, y, _ = event.position
        return cls(
            tag_id=event.tag_id,
            position=(x, y, 0.0),
            frame_id=frame_id or event.frame_id,
        )
