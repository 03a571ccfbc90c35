"""
Soundtrack playback for the animator.

Decodes the imported audio file into memory and streams it through
sounddevice. The playback scheduler polls get_current_time() each tick
to drive the playhead while audio is attached.

Decoding:
- .wav via scipy.io.wavfile
- anything else (.mp3, .ogg, .m4a) via ffmpeg to 32-bit float PCM
"""
import math
import subprocess
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import sounddevice as sd
from scipy.io import wavfile
from scipy.signal import resample_poly


def _to_float32(data: np.ndarray) -> np.ndarray:
    """Convert integer PCM to float32 in [-1, 1]."""
    if data.dtype == np.uint8:
        return (data.astype(np.float32) - 128.0) / 128.0
    if data.dtype == np.int16:
        return data.astype(np.float32) / 32768.0
    if data.dtype == np.int32:
        return data.astype(np.float32) / 2147483648.0
    return data.astype(np.float32)


def decode_wav(path: Path, sample_rate: int) -> np.ndarray:
    """
    Read a WAV file as float32 frames x channels at sample_rate.

    Raises:
        IOError: If the file cannot be read
    """
    try:
        rate, data = wavfile.read(str(path))
    except (OSError, ValueError) as e:
        raise IOError(f"Failed to read WAV file {path}: {e}") from e

    samples = _to_float32(data)
    if samples.ndim == 1:
        samples = samples.reshape(-1, 1)

    if rate != sample_rate:
        divisor = math.gcd(rate, sample_rate)
        samples = resample_poly(samples, sample_rate // divisor, rate // divisor, axis=0)

    return samples.astype(np.float32)


def decode_with_ffmpeg(path: Path, sample_rate: int, ffmpeg_path: str = "ffmpeg") -> np.ndarray:
    """
    Decode any container ffmpeg understands to stereo float32 at sample_rate.

    Raises:
        IOError: If ffmpeg is missing or cannot decode the file
    """
    args = [
        ffmpeg_path, "-v", "error",
        "-i", str(path),
        "-f", "f32le", "-ac", "2", "-ar", str(sample_rate),
        "-",
    ]
    try:
        result = subprocess.run(args, capture_output=True, check=False)
    except FileNotFoundError as e:
        raise IOError(
            f"FFmpeg is required to play {path.suffix} files. "
            "Install FFmpeg or convert the soundtrack to WAV."
        ) from e

    if result.returncode != 0:
        message = result.stderr.decode(errors="replace").strip()
        raise IOError(f"FFmpeg could not decode {path}: {message}")

    return np.frombuffer(result.stdout, dtype=np.float32).reshape(-1, 2).copy()


class AudioPlayer:
    """
    Plays one soundtrack with play/pause/seek control.

    Position is tracked in samples and advanced only by the output callback,
    so get_current_time() reflects what has actually been sent to the device.
    """

    def __init__(self, sample_rate: int = 44100, buffer_size: int = 512,
                 ffmpeg_path: str = "ffmpeg",
                 on_position: Optional[Callable[[float], None]] = None):
        """
        Args:
            sample_rate: Output sample rate in Hz
            buffer_size: Frames per output callback
            ffmpeg_path: ffmpeg executable used to decode non-WAV files
            on_position: Called with the current time from poll() while playing
        """
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.ffmpeg_path = ffmpeg_path
        self.on_position = on_position

        self.path: Optional[Path] = None
        self._samples: Optional[np.ndarray] = None
        self._position = 0
        self._playing = False
        self._stream: Optional[sd.OutputStream] = None

    def load(self, path):
        """
        Decode a soundtrack, replacing any previously loaded one.

        Raises:
            IOError: If the file cannot be decoded
        """
        path = Path(path)
        self._close_stream()

        if path.suffix.lower() == ".wav":
            samples = decode_wav(path, self.sample_rate)
        else:
            samples = decode_with_ffmpeg(path, self.sample_rate, self.ffmpeg_path)

        self.path = path
        self._samples = samples
        self._position = 0
        self._playing = False
        print(f"[AUDIO] Loaded {path.name} ({self.get_duration():.2f}s, "
              f"{samples.shape[1]} ch)")

    @property
    def is_loaded(self) -> bool:
        return self._samples is not None

    def is_playing(self) -> bool:
        return self._playing

    def _callback(self, outdata, frames, time_info, status):
        """sounddevice output callback (runs on the audio thread)."""
        samples = self._samples
        if not self._playing or samples is None:
            outdata[:] = 0
            return

        start = self._position
        chunk = samples[start:start + frames]
        count = len(chunk)
        outdata[:count] = chunk
        outdata[count:] = 0
        self._position = start + count

        if start + count >= len(samples):
            self._playing = False

    def _ensure_stream(self):
        if self._stream is None:
            self._stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=self._samples.shape[1],
                dtype="float32",
                blocksize=self.buffer_size,
                callback=self._callback,
            )

    def _close_stream(self):
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def play(self):
        """Start or resume playback from the current position."""
        if self._samples is None:
            return
        if self._position >= len(self._samples):
            self._position = 0
        self._ensure_stream()
        self._playing = True
        if not self._stream.active:
            self._stream.start()

    def pause(self):
        """Pause playback, keeping the position."""
        self._playing = False
        if self._stream is not None and self._stream.active:
            self._stream.stop()

    def seek_to(self, fraction: float):
        """Move to a fraction (0..1) of the track."""
        if self._samples is None:
            return
        fraction = max(0.0, min(1.0, fraction))
        self._position = int(fraction * len(self._samples))

    def get_current_time(self) -> float:
        """Current position in seconds."""
        return self._position / self.sample_rate

    def get_duration(self) -> float:
        if self._samples is None:
            return 0.0
        return len(self._samples) / self.sample_rate

    def poll(self):
        """Emit the position event while playing. Call once per UI frame."""
        if self._playing and self.on_position:
            self.on_position(self.get_current_time())

    def destroy(self):
        """Stop the output stream and release the decoded audio."""
        self._playing = False
        self._close_stream()
        self._samples = None
        self._position = 0
        self.path = None
