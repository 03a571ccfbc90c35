"""
Beatframe - keyframe animation on a musical timeline
Main entry point
"""
import dearpygui.dearpygui as dpg
from core.persistence import ProjectFile
from core.settings import get_settings_path, load_settings, save_settings
from ui.theme import apply_dark_theme
from ui.views.AnimatorView import AnimatorView


def main():
    """Launch Beatframe."""
    print("=== Beatframe ===")
    print("Initializing...")

    settings = load_settings()

    # First run: write the defaults so they can be edited by hand
    if not get_settings_path().exists():
        try:
            save_settings(settings)
        except IOError as e:
            print(f"[SETTINGS] {e}")

    dpg.create_context()

    view = AnimatorView(settings)
    window_tag = view.create()

    apply_dark_theme()

    canvas = settings["canvas"]
    dpg.create_viewport(title="Beatframe",
                        width=max(1280, canvas["width"] + 60),
                        height=canvas["height"] + 260)
    dpg.setup_dearpygui()
    dpg.show_viewport()
    dpg.set_primary_window(window_tag, True)

    if ProjectFile.has_auto_save("Untitled"):
        print(f"[AUTOSAVE] Unsaved work from a previous session: "
              f"{ProjectFile.get_auto_save_path('Untitled')}")

    print("Ready!")

    # Main render loop
    while dpg.is_dearpygui_running():
        # Advance playback (timer or soundtrack position)
        view.update()

        dpg.render_dearpygui_frame()

        # Space toggles playback unless a text field has focus
        if dpg.is_key_pressed(dpg.mvKey_Spacebar) and not dpg.is_any_item_active():
            view.toggle_playback()

        if dpg.is_key_down(dpg.mvKey_Control):
            if dpg.is_key_pressed(dpg.mvKey_S):
                view.save_project()
            elif dpg.is_key_pressed(dpg.mvKey_Z):
                view.undo()
            elif dpg.is_key_pressed(dpg.mvKey_Y):
                view.redo()

    # Cleanup
    view.shutdown()
    dpg.destroy_context()
    print("Beatframe closed.")


if __name__ == "__main__":
    main()
