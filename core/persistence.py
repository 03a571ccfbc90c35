"""
Reading and writing .beatframe project files.

A project file is the MessagePack encoding of Project.to_dict(): clock
settings, every keyframe snapshot, soundtrack path and canvas size.
Unsaved work is mirrored to ~/.beatframe/autosave on exit.
"""
from pathlib import Path
import msgpack

from core.constants import PROJECT_EXTENSION
from core.models import Project

AUTOSAVE_DIR = Path(".beatframe") / "autosave"


class ProjectFile:
    """Static helpers for .beatframe I/O."""

    @staticmethod
    def save(project: Project, path: Path) -> Path:
        """
        Write a project, forcing the .beatframe extension.

        Returns:
            The path that was written

        Raises:
            IOError: If the file cannot be encoded or written
        """
        target = Path(path)
        if target.suffix != PROJECT_EXTENSION:
            target = target.with_suffix(PROJECT_EXTENSION)

        try:
            payload = msgpack.packb(project.to_dict(), use_bin_type=True)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
        except (OSError, TypeError, ValueError) as e:
            raise IOError(f"Could not save project to {target}: {e}") from e

        return target

    @staticmethod
    def load(path: Path) -> Project:
        """
        Read a project written by save().

        Raises:
            IOError: If the file is missing or unreadable
            ValueError: If the contents are not a 1.x project
        """
        source = Path(path)
        if not source.exists():
            raise IOError(f"Project file not found: {source}")

        try:
            payload = source.read_bytes()
        except OSError as e:
            raise IOError(f"Could not read project {source}: {e}") from e

        try:
            data = msgpack.unpackb(payload, raw=False, strict_map_key=False)
        except (msgpack.exceptions.ExtraData, msgpack.exceptions.UnpackException, ValueError) as e:
            raise ValueError(f"{source.name} is not a {PROJECT_EXTENSION} file: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"{source.name} is not a {PROJECT_EXTENSION} file")

        version = str(data.get("version", "unknown"))
        if not version.startswith("1."):
            raise ValueError(f"Incompatible project version: {version}. Expected 1.x")

        try:
            return Project.from_dict(data)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Corrupt project data in {source}: {e}") from e

    @staticmethod
    def auto_save(project: Project, project_name: str):
        """Mirror a project to the autosave folder. Errors are printed, not raised."""
        try:
            written = ProjectFile.save(project, ProjectFile.get_auto_save_path(project_name))
        except IOError as e:
            print(f"[AUTOSAVE] Auto-save failed: {e}")
            return
        print(f"[AUTOSAVE] Saved {written}")

    @staticmethod
    def get_auto_save_path(project_name: str) -> Path:
        """
        Autosave location for a project name (folder is created).

        Characters other than letters, digits, space, '-' and '_' are dropped
        from the name; an empty result becomes 'untitled'.
        """
        folder = Path.home() / AUTOSAVE_DIR
        folder.mkdir(parents=True, exist_ok=True)

        stem = "".join(ch for ch in project_name if ch.isalnum() or ch in " -_").strip()
        return folder / f"{stem or 'untitled'}{PROJECT_EXTENSION}"

    @staticmethod
    def has_auto_save(project_name: str) -> bool:
        return ProjectFile.get_auto_save_path(project_name).exists()
