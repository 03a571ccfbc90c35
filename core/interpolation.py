"""
Interpolation engine: synthesizes the scene at any frame from sparse keyframes.

Between two keyframes every numeric shape property listed in
INTERPOLATED_PROPERTIES is blended linearly; all other properties (colours,
stroke width, line endpoints, unknown keys) hold the earlier keyframe's value.

Objects are paired by list index. Shapes inserted or reordered between
keyframes are paired with whatever sits at the same index in the other
keyframe; this is a known limitation, not something to work around here.
"""
from typing import Any, Dict, Optional

from core.constants import INTERPOLATED_PROPERTIES
from core.keyframes import KeyframeStore
from core.models import SceneSnapshot


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation: a + (b - a) * t."""
    return a + (b - a) * t


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def interpolate_object(prev_obj: Dict[str, Any], next_obj: Dict[str, Any],
                       t: float) -> Dict[str, Any]:
    """
    Blend one object toward its counterpart.

    A property is blended only if both objects carry a numeric value for
    it; otherwise the earlier value is kept verbatim.
    """
    interpolated = dict(prev_obj)
    for prop in INTERPOLATED_PROPERTIES:
        prev_value = prev_obj.get(prop)
        next_value = next_obj.get(prop)
        if _is_number(prev_value) and _is_number(next_value):
            interpolated[prop] = lerp(prev_value, next_value, t)
    return interpolated


def interpolate_snapshots(prev: SceneSnapshot, next_: SceneSnapshot,
                          t: float) -> SceneSnapshot:
    """
    Blend two snapshots at factor t.

    The result has exactly prev's objects and document keys. Objects of
    prev beyond the length of next_ are copied unchanged.
    """
    objects = []
    for index, prev_obj in enumerate(prev.objects):
        if index < len(next_.objects):
            objects.append(interpolate_object(prev_obj, next_.objects[index], t))
        else:
            objects.append(dict(prev_obj))
    return SceneSnapshot(objects=tuple(objects), document=dict(prev.document))


def render_frame(store: KeyframeStore, frame: int) -> Optional[SceneSnapshot]:
    """
    Produce the scene for a frame.

    Args:
        store: Keyframes to draw from
        frame: Target frame

    Returns:
        The stored snapshot on an exact hit or outside the keyframe range,
        a blended snapshot between keyframes, or None if the store is empty
        (caller skips rendering).
    """
    bracket = store.bracket(frame)
    if bracket is None:
        return None

    prev_frame, next_frame = bracket
    prev_snapshot = store.get(prev_frame)

    # Exact hit, before the first keyframe (prev == next == first),
    # or at/after the last keyframe
    if prev_frame == frame or prev_frame == next_frame or next_frame <= frame:
        return prev_snapshot

    t = (frame - prev_frame) / (next_frame - prev_frame)
    return interpolate_snapshots(prev_snapshot, store.get(next_frame), t)


class InterpolationEngine:
    """Binds render_frame to one keyframe store."""

    def __init__(self, store: KeyframeStore):
        self.store = store

    def render(self, frame: int) -> Optional[SceneSnapshot]:
        return render_frame(self.store, frame)
