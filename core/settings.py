"""
User settings stored in ~/.beatframe/settings.json.

Settings are grouped by category. Missing categories or keys are filled in
from DEFAULT_SETTINGS so older files keep working after new options are added.
"""
import copy
import json
from pathlib import Path
from typing import Dict, Any, Optional

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "general": {
        "default_fps": 30,
        "default_bpm": 120,
        "default_duration_bars": 4,
        "default_time_signature": [4, 4],
        "undo_limit": 100,
    },
    "canvas": {
        "width": 800,
        "height": 600,
        "background": "#ffffff",
    },
    "export": {
        "ffmpeg_path": "ffmpeg",
        "video_codec": "libx264",
        "audio_codec": "aac",
        "pix_fmt": "yuv420p",
        "default_filename": "animation.mp4",
    },
    "audio": {
        "sample_rate": 44100,
        "buffer_size": 512,
    },
}


def get_settings_path() -> Path:
    """Path to the settings file (directory is not created)."""
    return Path.home() / ".beatframe" / "settings.json"


def load_settings(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load settings merged over the defaults.

    Args:
        path: Settings file (defaults to ~/.beatframe/settings.json)

    Returns:
        Complete settings dict; defaults if the file is missing or unreadable
    """
    config_path = Path(path) if path else get_settings_path()
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if not config_path.exists():
        return settings

    try:
        with open(config_path, 'r') as f:
            loaded = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[SETTINGS] Could not read {config_path}, using defaults: {e}")
        return settings

    if not isinstance(loaded, dict):
        print(f"[SETTINGS] Ignoring malformed settings file {config_path}")
        return settings

    # Merge with defaults (in case new settings were added)
    for category, values in loaded.items():
        if not isinstance(values, dict):
            continue
        if category in settings:
            settings[category].update(values)
        else:
            settings[category] = dict(values)

    return settings


def save_settings(settings: Dict[str, Dict[str, Any]], path: Optional[Path] = None):
    """
    Write settings to disk, creating the directory if needed.

    Raises:
        IOError: If the file cannot be written
    """
    config_path = Path(path) if path else get_settings_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            json.dump(settings, f, indent=2)
    except OSError as e:
        raise IOError(f"Failed to save settings to {config_path}: {e}") from e
    print(f"[SETTINGS] Saved settings to {config_path}")
