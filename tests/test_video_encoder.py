"""Tests for the ffmpeg video encoder (ffmpeg itself is never run)."""
from pathlib import Path

import pytest

from core.settings import DEFAULT_SETTINGS
from core.video_encoder import (
    EncoderFailedError,
    EncoderNotFoundError,
    VideoEncoder,
)


class FakeRunner:
    """Captures the ffmpeg arguments and the frame files present at run time."""

    def __init__(self, returncode=0, error=None):
        self.returncode = returncode
        self.error = error
        self.args = None
        self.frame_files = []

    def __call__(self, args):
        self.args = args
        frames_dir = Path(args[args.index("-i") + 1]).parent
        self.frame_files = sorted(p.name for p in frames_dir.iterdir())
        if self.error:
            raise self.error
        return self.returncode


FRAMES = [b"png0", b"png1", b"png2"]


class TestBuildCommand:

    def test_without_audio(self):
        args = VideoEncoder().build_command(Path("/tmp/f"), Path("out.mp4"), 30, 800, 600)
        assert args[:5] == ["ffmpeg", "-framerate", "30", "-i", str(Path("/tmp/f") / "frame_%05d.png")]
        assert "-c:a" not in args
        assert args[-2:] == ["-y", "out.mp4"]
        assert args[args.index("-c:v") + 1] == "libx264"
        assert args[args.index("-pix_fmt") + 1] == "yuv420p"

    def test_with_audio(self):
        args = VideoEncoder().build_command(Path("/tmp/f"), Path("out.mp4"), 24, 800, 600,
                                            audio_path="song.mp3")
        audio_index = args.index("song.mp3")
        assert args[audio_index - 1] == "-i"
        assert args[audio_index + 1:audio_index + 4] == ["-c:a", "aac", "-shortest"]

    def test_odd_dimensions_scaled_even(self):
        args = VideoEncoder().build_command(Path("/tmp/f"), Path("out.mp4"), 30, 801, 601)
        assert args[args.index("-vf") + 1] == "scale=800:600"

    def test_from_settings(self):
        settings = {"export": dict(DEFAULT_SETTINGS["export"], ffmpeg_path="/opt/ffmpeg",
                                   video_codec="libx265")}
        encoder = VideoEncoder.from_settings(settings)
        assert encoder.ffmpeg_path == "/opt/ffmpeg"
        assert encoder.video_codec == "libx265"
        assert encoder.audio_codec == "aac"


class TestEncode:
    """Tests for the encode pipeline and its error mapping."""

    def test_writes_numbered_frames_and_cleans_up(self, tmp_path):
        runner = FakeRunner()
        encoder = VideoEncoder(temp_root=tmp_path, runner=runner)

        result = encoder.encode(FRAMES, tmp_path / "out.mp4", fps=30, width=800, height=600)

        assert result == tmp_path / "out.mp4"
        assert runner.frame_files == ["frame_00000.png", "frame_00001.png", "frame_00002.png"]
        assert list(tmp_path.glob("beatframe-frames-*")) == []

    def test_missing_binary(self, tmp_path):
        runner = FakeRunner(error=FileNotFoundError("ffmpeg"))
        encoder = VideoEncoder(temp_root=tmp_path, runner=runner)

        with pytest.raises(EncoderNotFoundError) as exc_info:
            encoder.encode(FRAMES, tmp_path / "out.mp4", fps=30, width=800, height=600)
        assert "install FFmpeg" in str(exc_info.value)
        assert list(tmp_path.glob("beatframe-frames-*")) == []

    def test_non_zero_exit(self, tmp_path):
        encoder = VideoEncoder(temp_root=tmp_path, runner=FakeRunner(returncode=1))

        with pytest.raises(EncoderFailedError) as exc_info:
            encoder.encode(FRAMES, tmp_path / "out.mp4", fps=30, width=800, height=600)
        assert str(exc_info.value) == "FFmpeg exited with code 1"
        assert exc_info.value.returncode == 1
        assert list(tmp_path.glob("beatframe-frames-*")) == []

    def test_audio_passed_through(self, tmp_path):
        runner = FakeRunner()
        encoder = VideoEncoder(temp_root=tmp_path, runner=runner)
        encoder.encode(FRAMES, tmp_path / "out.mp4", fps=30, width=800, height=600,
                       audio_path="track.wav")
        assert "track.wav" in runner.args
