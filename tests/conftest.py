"""Shared fixtures for the Beatframe test suite."""
import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.clock import ClockSettings
from core.keyframes import KeyframeStore
from core.models import Project, SceneSnapshot, make_rect
from core.state import AppState


def rect_snapshot(left: float, top: float = 0, **overrides) -> SceneSnapshot:
    """One red rectangle at (left, top)."""
    rect = make_rect(left, top, 20, 20)
    rect.update(overrides)
    return SceneSnapshot(objects=(rect,), document={"background": "#ffffff"})


@pytest.fixture
def store():
    """Keyframes at 0 (left=0) and 10 (left=100)."""
    keyframes = KeyframeStore()
    keyframes.set(0, rect_snapshot(0))
    keyframes.set(10, rect_snapshot(100))
    return keyframes


@pytest.fixture
def app_state():
    """State with a default project: 30 fps, 120 BPM, 4/4, 4 bars (240 frames)."""
    state = AppState()
    state.load_project(Project(name="Test", clock=ClockSettings()))
    return state
