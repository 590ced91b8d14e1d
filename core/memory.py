"""
Detection Memory
Remembers the first N distinct tag ids seen during a run
"""

from typing import List

from utils.logger_config import get_logger

logger = get_logger(__name__)

EMPTY_SLOT = -1
DEFAULT_CAPACITY = 5


class DetectionMemory:
    """
    Fixed-capacity set of tag ids

    Slots fill left to right and are never evicted. Once every slot is
    taken, further novel ids are not recorded until reset().
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Initialize detection memory

        Args:
            capacity: Maximum number of distinct tag ids to remember

        Raises:
            ValueError: If capacity is not a positive integer
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"Capacity must be a positive integer, got {capacity!r}")

        self._capacity = capacity
        self._slots: List[int] = [EMPTY_SLOT] * capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ids(self) -> List[int]:
        """Recorded ids in insertion order"""
        return [slot for slot in self._slots if slot != EMPTY_SLOT]

    @property
    def is_full(self) -> bool:
        return EMPTY_SLOT not in self._slots

    def seen(self, tag_id: int) -> bool:
        """Check whether tag_id already occupies a slot"""
        if tag_id == EMPTY_SLOT:
            return False
        return tag_id in self._slots

    def record(self, tag_id: int) -> bool:
        """
        Record a tag id in the first empty slot

        Args:
            tag_id: Tag identifier reported by the detector

        Returns:
            True if the id was newly recorded, False if it was already
            present or the memory is full

        Raises:
            ValueError: If tag_id is negative
        """
        if tag_id < 0:
            raise ValueError(f"Tag ids must be non-negative, got {tag_id}")

        if self.seen(tag_id):
            return False

        for index, slot in enumerate(self._slots):
            if slot == EMPTY_SLOT:
                self._slots[index] = tag_id
                return True

        logger.debug(f"Detection memory full ({self._capacity}), tag {tag_id} not recorded")
        return False

    def reset(self) -> None:
        """Clear every slot"""
        self._slots = [EMPTY_SLOT] * self._capacity

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, tag_id: object) -> bool:
        return isinstance(tag_id, int) and self.seen(tag_id)

    def __repr__(self) -> str:
        return f"DetectionMemory(capacity={self._capacity}, ids={self.ids})"
