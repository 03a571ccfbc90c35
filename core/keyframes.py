"""
Keyframe store: sparse, ordered mapping from frame index to scene snapshot.

Frames are kept in a sorted list next to the snapshot dict so bracketing
lookups are a binary search instead of a scan.
"""
import bisect
from typing import Dict, Iterator, List, Optional, Tuple

from core.models import SceneSnapshot


class KeyframeStore:
    """Ordered keyframe storage (single writer, single reader)."""

    def __init__(self):
        self._snapshots: Dict[int, SceneSnapshot] = {}
        self._frames: List[int] = []  # Always sorted ascending

    def set(self, frame: int, snapshot: SceneSnapshot):
        """
        Insert a keyframe, overwriting any existing keyframe at the same frame.

        Raises:
            ValueError: If frame is negative
        """
        frame = int(frame)
        if frame < 0:
            raise ValueError(f"Keyframe index must be non-negative, got {frame}")
        if frame not in self._snapshots:
            bisect.insort(self._frames, frame)
        self._snapshots[frame] = snapshot

    def get(self, frame: int) -> Optional[SceneSnapshot]:
        return self._snapshots.get(frame)

    def remove(self, frame: int) -> Optional[SceneSnapshot]:
        """Remove the keyframe at frame. Returns the removed snapshot, if any."""
        snapshot = self._snapshots.pop(frame, None)
        if snapshot is not None:
            index = bisect.bisect_left(self._frames, frame)
            del self._frames[index]
        return snapshot

    def clear(self):
        self._snapshots.clear()
        self._frames.clear()

    def all_frames(self) -> List[int]:
        """Keyframe indices in ascending order."""
        return list(self._frames)

    def is_empty(self) -> bool:
        return not self._frames

    def max_keyframe_frame(self) -> Optional[int]:
        if not self._frames:
            return None
        return self._frames[-1]

    def bracket(self, frame: int) -> Optional[Tuple[int, int]]:
        """
        Find the keyframes surrounding a frame.

        prev is the largest stored frame <= frame, or the first keyframe
        when frame is before all of them. next is the smallest stored frame
        > frame, or the last keyframe when frame is at or past all of them.

        Returns:
            (prev, next), or None if the store is empty
        """
        if not self._frames:
            return None

        right = bisect.bisect_right(self._frames, frame)
        prev_frame = self._frames[right - 1] if right > 0 else self._frames[0]
        next_frame = self._frames[right] if right < len(self._frames) else self._frames[-1]
        return prev_frame, next_frame

    def items(self) -> Iterator[Tuple[int, SceneSnapshot]]:
        """(frame, snapshot) pairs in ascending frame order."""
        for frame in self._frames:
            yield frame, self._snapshots[frame]

    def __len__(self) -> int:
        return len(self._frames)

    def __contains__(self, frame) -> bool:
        return frame in self._snapshots
