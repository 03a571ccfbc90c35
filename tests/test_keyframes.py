"""Tests for the keyframe store."""
import pytest

from conftest import rect_snapshot
from core.keyframes import KeyframeStore


class TestKeyframeStore:
    """Tests for insertion, removal and ordering."""

    def test_frames_sorted_regardless_of_insert_order(self):
        store = KeyframeStore()
        for frame in (20, 0, 10):
            store.set(frame, rect_snapshot(frame))
        assert store.all_frames() == [0, 10, 20]
        assert [frame for frame, _ in store.items()] == [0, 10, 20]

    def test_set_overwrites(self):
        store = KeyframeStore()
        store.set(5, rect_snapshot(0))
        store.set(5, rect_snapshot(50))
        assert len(store) == 1
        assert store.get(5).objects[0]["left"] == 50

    def test_negative_frame_rejected(self):
        with pytest.raises(ValueError):
            KeyframeStore().set(-1, rect_snapshot(0))

    def test_remove(self):
        store = KeyframeStore()
        snapshot = rect_snapshot(0)
        store.set(3, snapshot)
        assert store.remove(3) is snapshot
        assert store.is_empty()
        assert 3 not in store

    def test_remove_missing_returns_none(self):
        assert KeyframeStore().remove(7) is None

    def test_max_keyframe_frame(self, store):
        assert store.max_keyframe_frame() == 10
        assert KeyframeStore().max_keyframe_frame() is None

    def test_clear(self, store):
        store.clear()
        assert store.is_empty()
        assert store.all_frames() == []


class TestBracket:
    """Tests for finding the keyframes around a frame."""

    @pytest.fixture
    def three(self):
        store = KeyframeStore()
        for frame in (0, 10, 20):
            store.set(frame, rect_snapshot(frame))
        return store

    def test_empty(self):
        assert KeyframeStore().bracket(5) is None

    def test_between(self, three):
        assert three.bracket(5) == (0, 10)

    def test_exact_hit(self, three):
        assert three.bracket(10) == (10, 20)

    def test_past_last(self, three):
        assert three.bracket(25) == (20, 20)

    def test_before_first(self):
        store = KeyframeStore()
        store.set(5, rect_snapshot(0))
        store.set(10, rect_snapshot(10))
        assert store.bracket(2) == (5, 5)
