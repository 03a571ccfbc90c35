"""
FFmpeg video encoding for exported frame sequences.

Encoding steps:
- Write every still to a temporary directory as frame_00000.png, frame_00001.png, ...
- Run ffmpeg to mux the stills at the project frame rate (libx264, yuv420p)
- Mix in the soundtrack re-encoded to AAC, trimmed to the shorter stream
- Remove the temporary directory whether or not ffmpeg succeeded
"""
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Dict, Any, List, Optional, Sequence

FRAME_FILENAME = "frame_{:05d}.png"
FRAME_PATTERN = "frame_%05d.png"


class ExportError(Exception):
    """Base class for export failures shown to the user."""


class EncoderNotFoundError(ExportError):
    """The ffmpeg binary could not be started."""

    def __init__(self, binary: str = "ffmpeg"):
        self.binary = binary
        super().__init__(
            f"FFmpeg is not installed (could not run '{binary}'). "
            "Please install FFmpeg and add it to your system PATH.\n\n"
            "Download from: https://ffmpeg.org/download.html"
        )


class EncoderFailedError(ExportError):
    """ffmpeg ran but exited with a non-zero status."""

    def __init__(self, returncode: int):
        self.returncode = returncode
        super().__init__(f"FFmpeg exited with code {returncode}")


def run_ffmpeg(args: List[str]) -> int:
    """
    Run ffmpeg, echoing its stderr to the console.

    Returns:
        Process exit code

    Raises:
        FileNotFoundError: If the binary does not exist
    """
    process = subprocess.Popen(
        args,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )
    for line in process.stderr:
        line = line.rstrip()
        if line:
            print(f"[FFMPEG] {line}")
    return process.wait()


class VideoEncoder:
    """Encodes an ordered sequence of PNG stills (plus optional audio) to MP4."""

    def __init__(self,
                 ffmpeg_path: str = "ffmpeg",
                 video_codec: str = "libx264",
                 audio_codec: str = "aac",
                 pix_fmt: str = "yuv420p",
                 temp_root: Optional[Path] = None,
                 runner: Optional[Callable[[List[str]], int]] = None):
        """
        Args:
            ffmpeg_path: ffmpeg executable name or path
            video_codec: Video codec passed to -c:v
            audio_codec: Audio codec passed to -c:a
            pix_fmt: Output pixel format
            temp_root: Parent for the temporary frame directory (system temp if None)
            runner: Callable running an argument list and returning the exit code
        """
        self.ffmpeg_path = ffmpeg_path
        self.video_codec = video_codec
        self.audio_codec = audio_codec
        self.pix_fmt = pix_fmt
        self.temp_root = temp_root
        self.runner = runner or run_ffmpeg

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "VideoEncoder":
        """Create an encoder from the 'export' section of settings.json."""
        export = settings.get("export", {})
        return cls(
            ffmpeg_path=export.get("ffmpeg_path", "ffmpeg"),
            video_codec=export.get("video_codec", "libx264"),
            audio_codec=export.get("audio_codec", "aac"),
            pix_fmt=export.get("pix_fmt", "yuv420p"),
        )

    def build_command(self, frames_dir: Path, output_path: Path, fps: float,
                      width: int, height: int,
                      audio_path: Optional[str] = None) -> List[str]:
        """Build the ffmpeg argument list."""
        args = [
            self.ffmpeg_path,
            "-framerate", str(fps),
            "-i", str(frames_dir / FRAME_PATTERN),
        ]

        if audio_path:
            args += ["-i", str(audio_path), "-c:a", self.audio_codec, "-shortest"]

        # yuv420p needs even dimensions
        even_width = max(2, int(width) - int(width) % 2)
        even_height = max(2, int(height) - int(height) % 2)

        args += [
            "-vf", f"scale={even_width}:{even_height}",
            "-c:v", self.video_codec,
            "-pix_fmt", self.pix_fmt,
            "-y",
            str(output_path),
        ]
        return args

    def encode(self, frames: Sequence[bytes], output_path, fps: float,
               width: int, height: int, audio_path: Optional[str] = None) -> Path:
        """
        Encode frames to a video file.

        Args:
            frames: PNG-encoded stills in playback order
            output_path: Destination video file
            fps: Frames per second
            width: Canvas width in pixels
            height: Canvas height in pixels
            audio_path: Optional soundtrack to mux in

        Returns:
            Path to the written video

        Raises:
            EncoderNotFoundError: If ffmpeg is not installed
            EncoderFailedError: If ffmpeg exits with a non-zero code
        """
        output_path = Path(output_path)
        frames_dir = Path(tempfile.mkdtemp(prefix="beatframe-frames-", dir=self.temp_root))

        try:
            for index, png in enumerate(frames):
                (frames_dir / FRAME_FILENAME.format(index)).write_bytes(png)

            args = self.build_command(frames_dir, output_path, fps, width, height, audio_path)
            print(f"[EXPORT] Running: {' '.join(args)}")

            try:
                returncode = self.runner(args)
            except FileNotFoundError as e:
                raise EncoderNotFoundError(self.ffmpeg_path) from e

            if returncode != 0:
                raise EncoderFailedError(returncode)

            return output_path

        finally:
            self._cleanup(frames_dir)

    @staticmethod
    def _cleanup(frames_dir: Path):
        """Remove temporary frames. Failures are reported, never raised."""
        try:
            shutil.rmtree(frames_dir)
        except OSError as e:
            print(f"[EXPORT] Cleanup error: {e}")
