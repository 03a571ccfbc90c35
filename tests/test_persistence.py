"""Tests for .beatframe project file I/O."""
from pathlib import Path

import msgpack
import pytest

from conftest import rect_snapshot
from core.clock import ClockSettings
from core.models import Project
from core.persistence import ProjectFile


@pytest.fixture
def project():
    return Project(
        name="Song",
        clock=ClockSettings(bpm=100.0, duration_bars=8),
        keyframes={0: rect_snapshot(0), 30: rect_snapshot(200)},
    )


class TestProjectFile:

    def test_save_and_load(self, tmp_path, project):
        path = ProjectFile.save(project, tmp_path / "song.beatframe")
        assert path.exists()
        assert ProjectFile.load(path) == project

    def test_extension_enforced(self, tmp_path, project):
        path = ProjectFile.save(project, tmp_path / "song.txt")
        assert path == tmp_path / "song.beatframe"

    def test_creates_parent_directories(self, tmp_path, project):
        path = ProjectFile.save(project, tmp_path / "a" / "b" / "song.beatframe")
        assert path.exists()

    def test_missing_file(self, tmp_path):
        with pytest.raises(IOError):
            ProjectFile.load(tmp_path / "nope.beatframe")

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "bad.beatframe"
        path.write_bytes(b"\xc1\xc1\xc1")
        with pytest.raises(ValueError):
            ProjectFile.load(path)

    def test_not_a_map(self, tmp_path):
        path = tmp_path / "list.beatframe"
        path.write_bytes(msgpack.packb([1, 2, 3]))
        with pytest.raises(ValueError):
            ProjectFile.load(path)

    def test_incompatible_version(self, tmp_path, project):
        data = project.to_dict()
        data["version"] = "2.0.0"
        path = tmp_path / "future.beatframe"
        path.write_bytes(msgpack.packb(data, use_bin_type=True))
        with pytest.raises(ValueError, match="Incompatible"):
            ProjectFile.load(path)


class TestAutoSave:

    @pytest.fixture(autouse=True)
    def fake_home(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

    def test_auto_save(self, tmp_path, project):
        assert not ProjectFile.has_auto_save("Song")
        ProjectFile.auto_save(project, "Song")
        assert ProjectFile.has_auto_save("Song")
        assert ProjectFile.get_auto_save_path("Song").parent == tmp_path / ".beatframe" / "autosave"

    def test_name_sanitized(self):
        assert ProjectFile.get_auto_save_path("a/b:c").name == "abc.beatframe"
        assert ProjectFile.get_auto_save_path("///").name == "untitled.beatframe"
