"""
Main Animator View for Beatframe.

The single workspace window:
- Toolbar (top): drawing tools, colours, keyframe buttons, file actions
- Transport (top): rewind/play/pause/stop, musical time display, timing inputs
- Canvas (center): shape drawing surface
- Timeline (bottom): bars/beats grid, tempo and keyframe markers, playhead
"""
import dearpygui.dearpygui as dpg
from dataclasses import replace
from pathlib import Path
from typing import Optional, Dict, Any

from audio.player import AudioPlayer
from audio.scheduler import PlaybackScheduler, PlaybackState
from core.clock import ClockSettings, MusicalTime, format_musical_time
from core.commands import (
    CommandHistory,
    AddKeyframeCommand,
    RemoveKeyframeCommand,
    ChangeClockSettingsCommand,
    AddTempoChangeCommand,
    RemoveTempoChangeCommand,
)
from core.constants import (
    AUDIO_EXTENSIONS,
    BEATS_PER_BAR_MAX,
    BPM_DEFAULT,
    DURATION_BARS_DEFAULT,
    DURATION_BARS_MAX,
    FPS_DEFAULT,
    PROJECT_EXTENSION,
    clamp_bpm,
    clamp_fps,
    clamp_positive_int,
)
from core.export import ExportSequencer
from core.models import Project, SceneSnapshot
from core.persistence import ProjectFile
from core.raster import render_png
from core.state import AppState
from core.video_encoder import ExportError, VideoEncoder
from ui.theme import Palette, create_button_theme, rgba_to_hex, hex_to_rgba
from ui.widgets.ShapeCanvas import ShapeCanvas
from ui.widgets.Timeline import Timeline

DENOMINATORS = ["2", "4", "8", "16"]
TIMELINE_HEIGHT = 80


class AnimatorView:
    """
    Main animator interface.

    Owns the application state, undo history, soundtrack player and
    playback scheduler; the widgets only draw and forward input.
    """

    def __init__(self, settings: Dict[str, Dict[str, Any]]):
        """
        Args:
            settings: Loaded settings (see core.settings.DEFAULT_SETTINGS)
        """
        self.settings = settings
        self._window_tag = "animator_main_window"

        general = settings["general"]
        canvas = settings["canvas"]
        audio = settings["audio"]

        self.app_state = AppState()
        self.history = CommandHistory(self.app_state, max_history=general.get("undo_limit", 100))

        self.audio_player = AudioPlayer(
            sample_rate=audio.get("sample_rate", 44100),
            buffer_size=audio.get("buffer_size", 512),
            ffmpeg_path=settings["export"].get("ffmpeg_path", "ffmpeg"),
            on_position=self._on_audio_position,
        )

        self.canvas = ShapeCanvas(
            width=canvas.get("width", 800),
            height=canvas.get("height", 600),
            background=canvas.get("background", "#ffffff"),
        )
        self.timeline = Timeline(width=self.canvas.width, height=TIMELINE_HEIGHT,
                                 on_seek=self._on_timeline_seek)

        self.scheduler = PlaybackScheduler(
            self.app_state,
            on_render=self._on_render,
            on_time=self._on_time,
            on_timeline=self._on_timeline,
        )

        self._tool_theme = None
        self._tool_buttons: Dict[str, int] = {}

        self.new_project()

    # Project lifecycle

    def _default_clock(self) -> ClockSettings:
        general = self.settings["general"]
        numerator, denominator = general.get("default_time_signature", [4, 4])
        return ClockSettings(
            fps=clamp_fps(general.get("default_fps", FPS_DEFAULT)),
            bpm=clamp_bpm(general.get("default_bpm", BPM_DEFAULT)),
            time_signature=(clamp_positive_int(numerator, 4, BEATS_PER_BAR_MAX),
                            clamp_positive_int(denominator, 4, 16)),
            duration_bars=clamp_positive_int(general.get("default_duration_bars", DURATION_BARS_DEFAULT),
                                             DURATION_BARS_DEFAULT, DURATION_BARS_MAX),
        )

    def new_project(self):
        """Start an empty project with the default timing."""
        project = Project(
            name="Untitled",
            clock=self._default_clock(),
            canvas_width=self.canvas.width,
            canvas_height=self.canvas.height,
        )
        self.scheduler.detach_audio()
        self.audio_player.destroy()
        self.app_state.load_project(project)
        self.app_state.mark_clean()
        self.history.clear()
        self._update_history_buttons()
        self.canvas.clear()
        print("[NEW PROJECT] Created Untitled")
        self._sync_clock_inputs()
        self.scheduler.stop()

    def load_project(self, file_path: str):
        """Load a .beatframe file, replacing the current project."""
        try:
            project = ProjectFile.load(Path(file_path))
        except (IOError, ValueError) as e:
            print(f"[ERROR] Failed to load project: {e}")
            self._show_message("Open Failed", str(e))
            return

        project = replace(project, file_path=str(file_path))

        self.scheduler.detach_audio()
        self.audio_player.destroy()
        self.app_state.load_project(project)
        self.history.clear()
        self._update_history_buttons()
        self.canvas.clear()

        if project.audio_path:
            self._load_audio(project.audio_path, mark_dirty=False)

        self.app_state.mark_clean()
        self._sync_clock_inputs()
        self.scheduler.stop()
        print(f"[OPEN PROJECT] Loaded: {project.name} ({len(self.app_state.keyframes)} keyframes)")

    def save_project(self, file_path: Optional[str] = None):
        """
        Save the current project.

        Args:
            file_path: Destination (None = current path, or Save As if never saved)
        """
        project = self.app_state.snapshot_project()
        if project is None:
            print("[ERROR] No active project to save")
            return

        if file_path is None:
            if project.file_path:
                file_path = project.file_path
            else:
                self._show_save_project_dialog()
                return

        try:
            written = ProjectFile.save(project, Path(file_path))
        except IOError as e:
            print(f"[ERROR] Failed to save project: {e}")
            self._show_message("Save Failed", str(e))
            return

        name = project.name if project.file_path else written.stem
        self.app_state.set_current_project(
            replace(self.app_state.get_current_project(), name=name, file_path=str(written)))
        self.app_state.mark_clean()
        print(f"[SAVE] Project saved: {written}")

    def shutdown(self):
        """Autosave unsaved work and release the audio device."""
        if self.app_state.is_dirty():
            project = self.app_state.snapshot_project()
            ProjectFile.auto_save(project, project.name)
        self.scheduler.pause()
        self.audio_player.destroy()

    # UI construction

    def create(self) -> str:
        """
        Create main window with all panels.

        Returns:
            Window tag
        """
        with dpg.window(label="Beatframe", tag=self._window_tag, no_close=True):
            self._create_toolbar()
            dpg.add_spacer(height=4)
            self._create_transport_controls()
            dpg.add_separator()

            self.canvas.create()
            dpg.add_spacer(height=6)
            self.timeline.create()

        self._tool_theme = create_button_theme(Palette.TOOL_ACTIVE)
        self._set_tool("select")

        self._sync_clock_inputs()
        self._update_history_buttons()
        self.scheduler.refresh()
        return self._window_tag

    def _create_toolbar(self):
        """Tools, colours, keyframe and file buttons."""
        with dpg.group(horizontal=True):
            for tool, label in (("select", "Select"), ("rect", "Rect"),
                                ("circle", "Circle"), ("line", "Line")):
                self._tool_buttons[tool] = dpg.add_button(
                    label=label, width=60,
                    callback=lambda s, a, u: self._set_tool(u), user_data=tool
                )

            dpg.add_spacer(width=10)
            dpg.add_text("Fill")
            dpg.add_color_edit(
                default_value=hex_to_rgba(self.app_state.fill_color),
                no_inputs=True, no_alpha=True, width=30,
                callback=self._on_fill_changed
            )
            dpg.add_text("Stroke")
            dpg.add_color_edit(
                default_value=hex_to_rgba(self.app_state.stroke_color),
                no_inputs=True, no_alpha=True, width=30,
                callback=self._on_stroke_changed
            )

            dpg.add_spacer(width=10)
            dpg.add_button(label="Add Keyframe", callback=self._on_add_keyframe)
            dpg.add_button(label="Remove Keyframe", callback=self._on_remove_keyframe)
            dpg.add_button(label="Clear Canvas", callback=lambda: self.canvas.clear())

            dpg.add_spacer(width=10)
            dpg.add_button(label="Undo", tag="anim_undo_button", callback=lambda: self.undo())
            dpg.add_button(label="Redo", tag="anim_redo_button", callback=lambda: self.redo())

            dpg.add_spacer(width=10)
            dpg.add_button(label="New", callback=lambda: self.new_project())
            dpg.add_button(label="Open", callback=lambda: self._show_open_project_dialog())
            dpg.add_button(label="Save", callback=lambda: self.save_project())
            dpg.add_button(label="Import Audio", callback=lambda: self._show_audio_dialog())
            dpg.add_button(label="Export Video", callback=lambda: self._on_export())

    def _create_transport_controls(self):
        """Transport buttons, time display and timing inputs."""
        with dpg.group(horizontal=True):
            dpg.add_button(label="<<", width=40, callback=lambda: self.scheduler.rewind())
            play = dpg.add_button(label="Play", width=50, callback=lambda: self.scheduler.play())
            dpg.add_button(label="Pause", width=50, callback=lambda: self.scheduler.pause())
            stop = dpg.add_button(label="Stop", width=50, callback=lambda: self.scheduler.stop())
            dpg.bind_item_theme(play, create_button_theme(Palette.SUCCESS))
            dpg.bind_item_theme(stop, create_button_theme(Palette.ERROR))

            dpg.add_spacer(width=10)
            dpg.add_text("1.1.1 (0.00s)", tag="anim_time_display")
            dpg.add_text("", tag="anim_frame_display", color=Palette.TEXT_SECONDARY)
            dpg.add_text("", tag="anim_audio_display", color=Palette.TEXT_SECONDARY)

            dpg.add_spacer(width=20)
            dpg.add_text("FPS")
            dpg.add_input_int(tag="anim_fps_input", width=80, on_enter=True,
                              callback=self._on_fps_changed)
            dpg.add_text("BPM")
            dpg.add_input_float(tag="anim_bpm_input", width=100, format="%.1f", step=1.0,
                                on_enter=True, callback=self._on_bpm_changed)
            dpg.add_text("Time Sig")
            dpg.add_input_int(tag="anim_numerator_input", width=70, on_enter=True,
                              callback=self._on_numerator_changed)
            dpg.add_text("/")
            dpg.add_combo(DENOMINATORS, tag="anim_denominator_combo", width=50,
                          callback=self._on_denominator_changed)
            dpg.add_text("Bars")
            dpg.add_input_int(tag="anim_duration_input", width=80, on_enter=True,
                              callback=self._on_duration_changed)
            dpg.add_button(label="BPM Change", callback=lambda: self._show_tempo_dialog())

    def _set_tool(self, tool: str):
        self.app_state.tool = tool
        self.canvas.tool = tool
        for name, button in self._tool_buttons.items():
            dpg.bind_item_theme(button, self._tool_theme if name == tool else 0)

    # Scheduler callbacks

    def _on_render(self, snapshot: SceneSnapshot):
        self.canvas.load_snapshot(snapshot)

    def _on_time(self, musical_time: MusicalTime):
        if dpg.does_item_exist("anim_time_display"):
            dpg.set_value("anim_time_display", format_musical_time(musical_time))
            dpg.set_value("anim_frame_display", f"frame {self.app_state.get_current_frame()}"
                                                f" / {self.app_state.get_clock().max_frames}")

    def _on_timeline(self):
        self.timeline.update_layout(self.app_state.get_clock(),
                                    self.app_state.keyframe_frames(),
                                    self.app_state.get_current_frame())

    def _on_timeline_seek(self, x: float, width: float):
        self.scheduler.seek_to_x(x, width)

    def _on_audio_position(self, seconds: float):
        if dpg.does_item_exist("anim_audio_display"):
            dpg.set_value("anim_audio_display",
                          f"audio {seconds:.2f}s / {self.audio_player.get_duration():.2f}s")

    # Drawing

    def _on_fill_changed(self, sender, app_data):
        self.app_state.fill_color = rgba_to_hex(app_data)
        self.canvas.fill_color = self.app_state.fill_color

    def _on_stroke_changed(self, sender, app_data):
        self.app_state.stroke_color = rgba_to_hex(app_data)
        self.canvas.stroke_color = self.app_state.stroke_color

    # Keyframes

    def _on_add_keyframe(self):
        frame = self.app_state.get_current_frame()
        self._execute(AddKeyframeCommand(frame, self.canvas.to_snapshot()))
        self._on_timeline()

    def _on_remove_keyframe(self):
        frame = self.app_state.get_current_frame()
        if frame not in self.app_state.keyframes:
            print(f"[KEYFRAME] No keyframe at frame {frame}")
            return
        self._execute(RemoveKeyframeCommand(frame))
        self.scheduler.refresh()

    def _execute(self, command):
        self.history.execute(command)
        self._update_history_buttons()

    def _update_history_buttons(self):
        """Enable Undo/Redo only when there is something to undo or redo."""
        if not dpg.does_item_exist("anim_undo_button"):
            return
        dpg.configure_item("anim_undo_button", enabled=self.history.can_undo())
        dpg.configure_item("anim_redo_button", enabled=self.history.can_redo())

    def undo(self):
        description = self.history.get_undo_description()
        if self.history.undo():
            print(f"[UNDO] {description}")
            self._after_history_change()

    def redo(self):
        description = self.history.get_redo_description()
        if self.history.redo():
            print(f"[REDO] {description}")
            self._after_history_change()

    def _after_history_change(self):
        self._update_history_buttons()
        self._sync_clock_inputs()
        self.scheduler.on_clock_changed()

    # Timing inputs

    def _apply_clock(self, new_clock: ClockSettings):
        if new_clock == self.app_state.get_clock():
            return
        self._execute(ChangeClockSettingsCommand(new_clock))
        print(f"[TIMING] {new_clock.fps:g} fps, {new_clock.bpm:g} BPM, "
              f"{new_clock.time_signature[0]}/{new_clock.time_signature[1]}, "
              f"{new_clock.duration_bars} bars ({new_clock.max_frames} frames)")
        self.scheduler.on_clock_changed()

    def _on_fps_changed(self, sender, app_data):
        fps = clamp_fps(app_data)
        dpg.set_value(sender, fps)
        self._apply_clock(replace(self.app_state.get_clock(), fps=fps))

    def _on_bpm_changed(self, sender, app_data):
        bpm = clamp_bpm(app_data)
        dpg.set_value(sender, bpm)
        self._apply_clock(replace(self.app_state.get_clock(), bpm=bpm))

    def _on_numerator_changed(self, sender, app_data):
        clock = self.app_state.get_clock()
        numerator = clamp_positive_int(app_data, clock.time_signature[0], BEATS_PER_BAR_MAX)
        dpg.set_value(sender, numerator)
        self._apply_clock(replace(clock, time_signature=(numerator, clock.time_signature[1])))

    def _on_denominator_changed(self, sender, app_data):
        clock = self.app_state.get_clock()
        denominator = clamp_positive_int(app_data, clock.time_signature[1], 16)
        self._apply_clock(replace(clock, time_signature=(clock.time_signature[0], denominator)))

    def _on_duration_changed(self, sender, app_data):
        clock = self.app_state.get_clock()
        bars = clamp_positive_int(app_data, clock.duration_bars, DURATION_BARS_MAX)
        dpg.set_value(sender, bars)
        self._apply_clock(replace(clock, duration_bars=bars))

    def _sync_clock_inputs(self):
        """Push the current clock settings into the input widgets."""
        if not dpg.does_item_exist("anim_fps_input"):
            return
        clock = self.app_state.get_clock()
        dpg.set_value("anim_fps_input", int(clock.fps))
        dpg.set_value("anim_bpm_input", clock.bpm)
        dpg.set_value("anim_numerator_input", clock.time_signature[0])
        dpg.set_value("anim_denominator_combo", str(clock.time_signature[1]))
        dpg.set_value("anim_duration_input", clock.duration_bars)

    def _show_tempo_dialog(self):
        """Ask for a bar number and tempo, then add or remove the tempo marker."""
        dialog_tag = "anim_tempo_dialog"

        if not dpg.does_item_exist(dialog_tag):
            with dpg.window(
                label="BPM Change",
                modal=True,
                show=False,
                tag=dialog_tag,
                pos=[400, 300],
                width=300,
                height=150,
                no_resize=True
            ):
                dpg.add_input_int(label="Bar", tag="anim_tempo_bar", default_value=1, width=120)
                dpg.add_input_float(label="BPM", tag="anim_tempo_bpm", default_value=120.0,
                                    format="%.1f", width=120)
                dpg.add_spacer(height=10)
                with dpg.group(horizontal=True):
                    dpg.add_button(label="Add", width=80,
                                   callback=lambda: self._confirm_tempo_change(dialog_tag))
                    dpg.add_button(label="Remove", width=80,
                                   callback=lambda: self._remove_tempo_change(dialog_tag))
                    dpg.add_button(label="Cancel", width=80,
                                   callback=lambda: dpg.hide_item(dialog_tag))

        dpg.set_value("anim_tempo_bpm", self.app_state.get_clock().bpm)
        dpg.show_item(dialog_tag)

    def _confirm_tempo_change(self, dialog_tag: str):
        dpg.hide_item(dialog_tag)
        clock = self.app_state.get_clock()
        bar = clamp_positive_int(dpg.get_value("anim_tempo_bar"), 1, clock.duration_bars)
        bpm = clamp_bpm(dpg.get_value("anim_tempo_bpm"))
        self._execute(AddTempoChangeCommand(bar, bpm))
        self._on_timeline()

    def _remove_tempo_change(self, dialog_tag: str):
        dpg.hide_item(dialog_tag)
        bar = dpg.get_value("anim_tempo_bar")
        if bar not in self.app_state.get_clock().tempo_changes:
            print(f"[TEMPO] No BPM change at bar {bar}")
            return
        self._execute(RemoveTempoChangeCommand(bar))
        self._on_timeline()

    # Audio

    def _show_audio_dialog(self):
        if not dpg.does_item_exist("anim_audio_dialog"):
            with dpg.file_dialog(
                directory_selector=False,
                show=False,
                callback=self._audio_dialog_callback,
                tag="anim_audio_dialog",
                width=700,
                height=400,
                default_path=str(Path.home())
            ):
                dpg.add_file_extension("Audio{" + ",".join(AUDIO_EXTENSIONS) + "}",
                                       color=(0, 255, 122, 255))
                for extension in AUDIO_EXTENSIONS:
                    dpg.add_file_extension(extension, color=(0, 255, 122, 255))

        dpg.show_item("anim_audio_dialog")

    def _audio_dialog_callback(self, sender, app_data):
        file_path = app_data.get('file_path_name')
        if not file_path:
            return
        self._load_audio(file_path)

    def _load_audio(self, file_path: str, mark_dirty: bool = True):
        """Load a soundtrack and drive playback from it."""
        try:
            self.audio_player.load(file_path)
        except IOError as e:
            print(f"[ERROR] Failed to load audio: {e}")
            self._show_message("Audio Import Failed", str(e))
            return

        self.scheduler.attach_audio(self.audio_player)
        self.app_state.set_current_project(
            replace(self.app_state.get_current_project(), audio_path=str(file_path)))
        if mark_dirty:
            self.app_state.mark_dirty()
        self.scheduler.seek(self.app_state.get_current_frame())

    # Export

    def _on_export(self):
        """Check there is something to export, then ask for a destination."""
        if self.app_state.keyframes.is_empty():
            self._show_message("Export", "Please add at least one keyframe before exporting")
            return

        if not dpg.does_item_exist("anim_export_dialog"):
            with dpg.file_dialog(
                directory_selector=False,
                show=False,
                callback=self._export_dialog_callback,
                tag="anim_export_dialog",
                width=700,
                height=400,
                default_path=str(Path.home()),
                default_filename=Path(self.settings["export"]["default_filename"]).stem
            ):
                dpg.add_file_extension(".mp4", color=(0, 122, 204, 255))

        dpg.show_item("anim_export_dialog")

    def _export_dialog_callback(self, sender, app_data):
        file_path = app_data.get('file_path_name') or None
        if file_path and Path(file_path).suffix.lower() != ".mp4":
            file_path += ".mp4"
        self.export_video(file_path)

    def export_video(self, output_path: Optional[str]):
        """Render every frame up to the last keyframe and encode to MP4."""
        project = self.app_state.get_current_project()
        self.scheduler.pause()

        sequencer = ExportSequencer(
            store=self.app_state.keyframes,
            render_still=lambda snapshot: render_png(snapshot, project.canvas_width,
                                                     project.canvas_height),
            encoder=VideoEncoder.from_settings(self.settings),
            fps=project.clock.fps,
            width=project.canvas_width,
            height=project.canvas_height,
            audio_path=project.audio_path,
        )

        try:
            result = sequencer.export(output_path)
        except ExportError as e:
            print(f"[EXPORT] Export failed: {e}")
            self._show_message("Export Failed", str(e))
            return

        if result is not None:
            self._show_message("Export", f"Video exported to {result}")

    # Project dialogs

    def _show_open_project_dialog(self):
        if not dpg.does_item_exist("anim_open_project_dialog"):
            with dpg.file_dialog(
                directory_selector=False,
                show=False,
                callback=self._open_project_callback,
                tag="anim_open_project_dialog",
                width=700,
                height=400,
                default_path=str(Path.home())
            ):
                dpg.add_file_extension(PROJECT_EXTENSION, color=(0, 122, 204, 255))
                dpg.add_file_extension(".*")

        dpg.show_item("anim_open_project_dialog")

    def _open_project_callback(self, sender, app_data):
        selections = app_data.get('selections', {})
        if selections:
            self.load_project(list(selections.values())[0])

    def _show_save_project_dialog(self):
        if not dpg.does_item_exist("anim_save_project_dialog"):
            with dpg.file_dialog(
                directory_selector=False,
                show=False,
                callback=self._save_project_callback,
                tag="anim_save_project_dialog",
                width=700,
                height=400,
                default_path=str(Path.home()),
                default_filename="Untitled"
            ):
                dpg.add_file_extension(PROJECT_EXTENSION, color=(0, 122, 204, 255))

        dpg.show_item("anim_save_project_dialog")

    def _save_project_callback(self, sender, app_data):
        file_path = app_data.get('file_path_name')
        if not file_path:
            print("[SAVE AS] No file path, user cancelled")
            return
        self.save_project(file_path)

    def _show_message(self, title: str, message: str):
        """Modal message box (errors and export results)."""
        dialog_tag = "anim_message_dialog"
        if dpg.does_item_exist(dialog_tag):
            dpg.delete_item(dialog_tag)

        with dpg.window(
            label=title,
            modal=True,
            tag=dialog_tag,
            pos=[400, 300],
            width=420,
            no_resize=True
        ):
            dpg.add_text(message, wrap=400)
            dpg.add_spacer(height=10)
            dpg.add_button(label="OK", width=100, callback=lambda: dpg.delete_item(dialog_tag))

    # Main loop

    def update(self):
        """Per-frame update: advance playback and refresh the soundtrack readout."""
        self.scheduler.update()
        self.audio_player.poll()

    def toggle_playback(self):
        if self.scheduler.state == PlaybackState.PLAYING:
            self.scheduler.pause()
        else:
            self.scheduler.play()
