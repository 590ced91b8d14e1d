"""
Unit tests for the frame and reset handlers
"""

import threading
from unittest.mock import Mock

import pytest

from core.events import MARKER_COLOR, MARKER_SCALE, TransformResult
from core.exceptions import ConfigError
from core.handlers import DetectionEventHandler, ResetHandler, TagTracker
from core.memory import DetectionMemory


@pytest.fixture
def handler(transformer, sink):
    return DetectionEventHandler(DetectionMemory(capacity=5), transformer, sink)


class TestDetectionEventHandler:
    """Test routing of detections to events"""

    def test_first_sighting_emits_both_events(self, handler, sink, marker_factory):
        """Test a new tag produces one location and one marker event"""
        report = handler.on_frame([marker_factory(4)])

        assert report.emitted == [4]
        assert len(sink.locations) == 1
        assert len(sink.markers) == 1

        location = sink.locations[0]
        assert location.tag_id == 4
        assert location.label == "4"
        assert location.frame_id == "map"
        # FakeTransformer adds (1.0, 2.0, 0.5)
        assert location.position == pytest.approx((5.0, 2.5, 2.5))

    def test_marker_style(self, handler, sink, marker_factory):
        """Test the marker is a green cylinder on the floor that never expires"""
        handler.on_frame([marker_factory(2)])
        marker = sink.markers[0]

        assert marker.tag_id == 2
        assert marker.shape == "cylinder"
        assert marker.namespace == "basic_shapes"
        assert marker.scale == MARKER_SCALE == (0.2, 0.2, 0.2)
        assert marker.color == MARKER_COLOR == (0.0, 1.0, 0.0, 1.0)
        assert marker.lifetime_sec == 0.0
        assert marker.frame_id == "map"
        assert marker.position == pytest.approx((3.0, 2.5, 0.0))

    def test_duplicate_in_same_frame(self, handler, sink, marker_factory):
        """Test frame [A, B, A] emits once for A and once for B"""
        report = handler.on_frame(
            [marker_factory(1), marker_factory(2), marker_factory(1)]
        )

        assert sink.location_ids == [1, 2]
        assert [m.tag_id for m in sink.markers] == [1, 2]
        assert report.emitted == [1, 2]
        assert report.skipped == [1]

    def test_repeat_across_frames(self, handler, sink, marker_factory):
        """Test a tag seen in an earlier frame is not published again"""
        handler.on_frame([marker_factory(3)])
        report = handler.on_frame([marker_factory(3)])

        assert sink.location_ids == [3]
        assert report.emitted == []
        assert report.skipped == [3]

    def test_saturated_memory_drops_new_tag(self, transformer, sink, marker_factory):
        """Test a never-seen tag is neither published nor recorded when full"""
        memory = DetectionMemory(capacity=2)
        memory.record(1)
        memory.record(2)
        handler = DetectionEventHandler(memory, transformer, sink)

        report = handler.on_frame([marker_factory(9)])

        assert sink.locations == []
        assert sink.markers == []
        assert report.skipped == [9]
        assert not memory.seen(9)
        assert transformer.calls == []

    def test_transform_failure_skips_emission(
        self, transformer_factory, sink, marker_factory
    ):
        """Test a failed transform emits nothing but keeps the tag recorded"""
        transformer = transformer_factory(fail_for={5})
        memory = DetectionMemory()
        handler = DetectionEventHandler(memory, transformer, sink)

        report = handler.on_frame([marker_factory(5), marker_factory(6)])

        assert report.failed == [5]
        assert report.emitted == [6]
        assert sink.location_ids == [6]
        assert memory.seen(5)

        # The failed tag is not retried on later frames
        report = handler.on_frame([marker_factory(5)])
        assert report.skipped == [5]
        assert sink.location_ids == [6]

    def test_transform_called_once_per_new_marker(
        self, handler, transformer, marker_factory
    ):
        """Test transform uses the marker translation and configured frames"""
        handler.on_frame([marker_factory(1), marker_factory(1), marker_factory(2)])

        assert len(transformer.calls) == 2
        point, source, target, stamp = transformer.calls[0]
        assert point == (1.0, 0.5, 2.0)
        assert source == "base_footprint"
        assert target == "map"
        assert stamp is None

    def test_stamp_is_forwarded(self, handler, transformer, marker_factory):
        stamp = object()
        handler.on_frame([marker_factory(1)], stamp=stamp)
        assert transformer.calls[0][3] is stamp

    def test_custom_frames(self, transformer, sink, marker_factory):
        """Test source, target and marker frames come from the constructor"""
        handler = DetectionEventHandler(
            DetectionMemory(),
            transformer,
            sink,
            source_frame="camera_rgb_optical_frame",
            target_frame="odom",
            marker_frame="world",
        )
        handler.on_frame([marker_factory(1)])

        assert transformer.calls[0][1:3] == ("camera_rgb_optical_frame", "odom")
        assert sink.locations[0].frame_id == "odom"
        assert sink.markers[0].frame_id == "world"

    def test_empty_frame(self, handler, sink):
        report = handler.on_frame([])
        assert report.num_markers == 0
        assert sink.locations == []

    def test_publish_order_location_before_marker(self, marker_factory):
        """Test each tag publishes its location, then its marker"""
        sink = Mock()
        transformer = Mock()
        transformer.transform.return_value = TransformResult.success((1.0, 1.0, 1.0))
        handler = DetectionEventHandler(DetectionMemory(), transformer, sink)

        handler.on_frame([marker_factory(1), marker_factory(2)])

        names = [c[0] for c in sink.method_calls]
        assert names == [
            "publish_location",
            "publish_marker",
            "publish_location",
            "publish_marker",
        ]

    @pytest.mark.debug
    def test_debug_logging_of_detection(self, handler, marker_factory, debug_mode, caplog):
        """Test new detections are described at debug level"""
        import logging

        with caplog.at_level(logging.DEBUG, logger="core.handlers"):
            handler.on_frame([marker_factory(8)])

        assert any("Hamming" in r.message for r in caplog.records)
        assert any("New victim detected, id: 8" in r.message for r in caplog.records)


class TestResetHandler:
    """Test the reset request handler"""

    def test_reset_true_clears_memory(self):
        memory = DetectionMemory()
        memory.record(1)
        memory.record(2)

        assert ResetHandler(memory).on_reset(True) is True
        assert memory.ids == []

    def test_reset_false_is_acknowledged_noop(self):
        """Test a false flag still reports success and changes nothing"""
        memory = DetectionMemory()
        memory.record(1)

        assert ResetHandler(memory).on_reset(False) is True
        assert memory.ids == [1]

    def test_reset_is_idempotent(self):
        memory = DetectionMemory()
        handler = ResetHandler(memory)
        assert handler.on_reset(True) is True
        assert handler.on_reset(True) is True
        assert memory.ids == []


class TestTagTracker:
    """Test the tracker that wires both handlers to one memory"""

    def test_reset_makes_tags_new_again(self, transformer, sink, marker_factory):
        tracker = TagTracker(transformer, sink, capacity=5)

        tracker.on_frame([marker_factory(1)])
        tracker.on_frame([marker_factory(1)])
        assert sink.location_ids == [1]

        assert tracker.on_reset(True) is True
        tracker.on_frame([marker_factory(1)])
        assert sink.location_ids == [1, 1]

    def test_reset_false_keeps_tags(self, transformer, sink, marker_factory):
        tracker = TagTracker(transformer, sink)
        tracker.on_frame([marker_factory(1)])

        assert tracker.on_reset(False) is True
        tracker.on_frame([marker_factory(1)])
        assert sink.location_ids == [1]

    def test_handlers_share_memory_and_lock(self, transformer, sink):
        tracker = TagTracker(transformer, sink)
        assert tracker.frame_handler.memory is tracker.memory
        assert tracker.reset_handler.memory is tracker.memory
        assert tracker.frame_handler._lock is tracker.reset_handler._lock

    def test_from_config(self, sample_config, transformer, sink):
        sample_config["memory"]["capacity"] = 2
        sample_config["frames"]["source_frame"] = "camera_link"
        tracker = TagTracker.from_config(sample_config, transformer, sink)

        assert tracker.memory.capacity == 2
        assert tracker.frame_handler.source_frame == "camera_link"
        assert tracker.frame_handler.target_frame == "map"

    @pytest.mark.parametrize("capacity", [0, 5.0, "5"])
    def test_from_config_bad_capacity(self, sample_config, transformer, sink, capacity):
        """Test a bad capacity surfaces as a config error"""
        sample_config["memory"]["capacity"] = capacity
        with pytest.raises(ConfigError, match="positive integer"):
            TagTracker.from_config(sample_config, transformer, sink)

    def test_from_empty_config_uses_defaults(self, transformer, sink):
        tracker = TagTracker.from_config({}, transformer, sink)
        assert tracker.memory.capacity == 5
        assert tracker.frame_handler.source_frame == "base_footprint"
        assert tracker.frame_handler.marker_frame == "map"

    def test_concurrent_frames_publish_each_tag_once(self, transformer, sink, marker_factory):
        """Test parallel callbacks never publish the same tag twice"""
        tracker = TagTracker(transformer, sink, capacity=10)
        frame = [marker_factory(i) for i in range(10)]

        threads = [
            threading.Thread(target=tracker.on_frame, args=(frame,)) for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(sink.location_ids) == list(range(10))
        assert len(sink.markers) == 10
