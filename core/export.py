"""
Export sequencer: renders every frame from 0 to the last keyframe and hands
the stills to the video encoder.

Runs synchronously; there is no cancellation and no partial export. The
keyframe store is only read.
"""
from pathlib import Path
from typing import Callable, List, Optional

from core.interpolation import InterpolationEngine
from core.keyframes import KeyframeStore
from core.models import SceneSnapshot
from core.video_encoder import ExportError


class NoKeyframesError(ExportError):
    """Export was requested with an empty keyframe store."""

    def __init__(self):
        super().__init__("Please add at least one keyframe before exporting")


class ExportSequencer:
    """Drives the interpolation engine over the full keyframe range."""

    def __init__(self,
                 store: KeyframeStore,
                 render_still: Callable[[SceneSnapshot], bytes],
                 encoder,
                 fps: float,
                 width: int,
                 height: int,
                 audio_path: Optional[str] = None,
                 on_progress: Optional[Callable[[int, int], None]] = None):
        """
        Args:
            store: Keyframes to export
            render_still: Renders one snapshot to PNG bytes
            encoder: Object with encode(frames, output_path, fps, width, height, audio_path)
            fps: Output frame rate
            width: Canvas width in pixels
            height: Canvas height in pixels
            audio_path: Optional soundtrack
            on_progress: Called with (frames_done, frames_total) after each still
        """
        self.store = store
        self.engine = InterpolationEngine(store)
        self.render_still = render_still
        self.encoder = encoder
        self.fps = fps
        self.width = width
        self.height = height
        self.audio_path = audio_path
        self.on_progress = on_progress

    def frame_count(self) -> int:
        """Number of stills an export will produce (0 if there are no keyframes)."""
        last = self.store.max_keyframe_frame()
        return 0 if last is None else last + 1

    def render_frames(self) -> List[bytes]:
        """
        Render frames 0..last keyframe inclusive.

        Raises:
            NoKeyframesError: If the store is empty
        """
        if self.store.is_empty():
            raise NoKeyframesError()

        total = self.frame_count()
        print(f"[EXPORT] Rendering {total} frames")

        frames = []
        for frame in range(total):
            snapshot = self.engine.render(frame)
            frames.append(self.render_still(snapshot))
            if self.on_progress:
                self.on_progress(frame + 1, total)
        return frames

    def export(self, output_path) -> Optional[Path]:
        """
        Render and encode the animation.

        Args:
            output_path: Destination file, or None if the user cancelled the
                save dialog (nothing is rendered)

        Returns:
            Path of the written video, or None if cancelled

        Raises:
            NoKeyframesError: If the store is empty
            ExportError: If encoding fails
        """
        if self.store.is_empty():
            raise NoKeyframesError()
        if output_path is None:
            return None

        frames = self.render_frames()
        result = self.encoder.encode(
            frames,
            output_path,
            fps=self.fps,
            width=self.width,
            height=self.height,
            audio_path=self.audio_path,
        )
        print(f"[EXPORT] Video exported to {result}")
        return result
