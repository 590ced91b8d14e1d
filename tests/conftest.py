"""
Pytest configuration and shared fixtures
"""

import logging
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.events import (  # noqa: E402
    LocatedObjectEvent,
    MarkerDetection,
    TransformResult,
    VisualizationEvent,
)
from core.handlers import EventSink, PointTransformer  # noqa: E402

# Configure logging for tests
logging.basicConfig(
    level=logging.WARNING,  # Only warnings and errors in tests
    format="%(levelname)s: %(message)s",
)


class FakeTransformer(PointTransformer):
    """Adds a fixed offset; fails for the tag ids listed in fail_for"""

    def __init__(self, offset=(1.0, 2.0, 0.5), fail_for=()):
        self.offset = offset
        self.fail_for = set(fail_for)
        self.calls: List[tuple] = []

    def transform(self, point, source_frame, target_frame, stamp=None):
        self.calls.append((point, source_frame, target_frame, stamp))
        # Points are tagged with their id in x for the failure lookup
        if int(round(point[0])) in self.fail_for:
            return TransformResult.failure("frames not connected")
        return TransformResult.success(
            tuple(p + o for p, o in zip(point, self.offset))
        )


class RecordingSink(EventSink):
    """Keeps every published event"""

    def __init__(self):
        self.locations: List[LocatedObjectEvent] = []
        self.markers: List[VisualizationEvent] = []

    def publish_location(self, event):
        self.locations.append(event)

    def publish_marker(self, event):
        self.markers.append(event)

    @property
    def location_ids(self) -> List[int]:
        return [event.tag_id for event in self.locations]


def make_marker(tag_id: int, translation=None) -> MarkerDetection:
    """Marker whose x translation equals its id, so transforms can key on it"""
    if translation is None:
        translation = (float(tag_id), 0.5, 2.0)
    return MarkerDetection(
        tag_id=tag_id,
        translation=translation,
        rotation=np.eye(3),
        corners=np.array([[10, 10], [50, 10], [50, 50], [10, 50]], dtype=float),
        center=(30.0, 30.0),
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration for testing"""
    return {
        "name": "test",
        "detector": {
            "family": "tag36h11",
            "tag_size": 0.099,
            "nthreads": 1,
            "quad_decimate": 1.0,
            "refine_edges": 1,
            "timing": False,
        },
        "camera": {"width": 640, "height": 360, "fx": 623.709, "fy": 582.226},
        "memory": {"capacity": 5},
        "frames": {
            "source_frame": "base_footprint",
            "target_frame": "map",
            "marker_frame": "map",
        },
        "ros2": {"node_name": "tag_detector_test", "queue_depth": 1},
        "display": {"draw": False, "window_name": "test"},
    }


@pytest.fixture
def transformer():
    return FakeTransformer()


@pytest.fixture
def transformer_factory():
    return FakeTransformer


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def marker_factory():
    return make_marker


@pytest.fixture
def debug_mode(monkeypatch):
    """Enable debug mode for tests"""
    monkeypatch.setenv("DEBUG", "1")
    yield
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture
def configs_dir(tmp_path):
    """Directory with a minimal base config and one that extends it"""
    (tmp_path / "base.yaml").write_text(
        """
name: base
detector:
  family: tag36h11
  tag_size: 0.1
memory:
  capacity: 5
frames:
  source_frame: base_footprint
  target_frame: map
"""
    )
    (tmp_path / "child.yaml").write_text(
        """
extends: base
name: child
detector:
  family: 16h5
memory:
  capacity: 3
"""
    )
    return tmp_path


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    levels = {
        name: logging.getLogger(name).level
        for name in list(logging.root.manager.loggerDict)
    }
    yield root
    for name, saved in levels.items():
        logging.getLogger(name).setLevel(saved)
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
