"""
Dark theme for Beatframe.
Provides the UI palette, timeline colours and DearPyGui theme setup.
"""
import dearpygui.dearpygui as dpg
from typing import Tuple

Color = Tuple[int, int, int, int]


class Palette:
    """UI colour constants."""

    # Background colors
    BG_WINDOW = (30, 30, 30, 255)
    BG_PANEL = (44, 44, 46, 255)
    BG_INPUT = (60, 60, 60, 255)
    BG_HOVER = (48, 48, 50, 255)

    BORDER = (60, 60, 60, 255)
    BORDER_ACTIVE = (0, 122, 204, 255)

    TEXT_PRIMARY = (212, 212, 212, 255)
    TEXT_SECONDARY = (150, 150, 150, 255)
    TEXT_DISABLED = (90, 90, 90, 255)

    ACCENT = (0, 122, 204, 255)
    SUCCESS = (80, 160, 80, 255)
    ERROR = (220, 80, 80, 255)

    BUTTON_NORMAL = (60, 60, 60, 255)
    BUTTON_HOVER = (70, 70, 70, 255)
    BUTTON_ACTIVE = (80, 80, 80, 255)
    TOOL_ACTIVE = (38, 79, 120, 255)

    FRAME_PADDING = (8, 6)
    ITEM_SPACING = (8, 4)
    WINDOW_PADDING = (12, 12)


class TimelineColors:
    """Timeline strip colours (light strip under a dark UI, like the canvas)."""

    BACKGROUND = (245, 245, 245, 255)
    BAR_TICK = (0, 0, 0, 255)
    BAR_LABEL = (0, 0, 0, 255)
    BEAT_TICK = (153, 153, 153, 255)
    SUBDIVISION_TICK = (221, 221, 221, 255)
    TEMPO_MARKER = (255, 153, 0, 255)
    KEYFRAME_MARKER = (255, 0, 0, 255)
    PLAYHEAD = (0, 0, 255, 255)


def hex_to_rgba(value: str, alpha: int = 255) -> Color:
    """
    Convert '#rrggbb' to an RGBA tuple.

    Example:
        >>> hex_to_rgba("#ff9900")
        (255, 153, 0, 255)
    """
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16), alpha


def rgba_to_hex(color) -> str:
    """Convert an RGB(A) sequence (0-255, or 0-1 floats from colour pickers) to '#rrggbb'."""
    channels = list(color)[:3]
    if all(isinstance(c, float) and c <= 1.0 for c in channels):
        channels = [c * 255 for c in channels]
    return "#" + "".join(f"{int(round(c)):02x}" for c in channels)


def apply_dark_theme() -> None:
    """
    Apply the dark theme to DearPyGui.
    Call this once during application initialization.
    """
    with dpg.theme() as global_theme:
        with dpg.theme_component(dpg.mvAll):
            dpg.add_theme_color(dpg.mvThemeCol_WindowBg, Palette.BG_WINDOW)
            dpg.add_theme_color(dpg.mvThemeCol_ChildBg, Palette.BG_PANEL)
            dpg.add_theme_color(dpg.mvThemeCol_PopupBg, Palette.BG_PANEL)
            dpg.add_theme_color(dpg.mvThemeCol_Border, Palette.BORDER)
            dpg.add_theme_color(dpg.mvThemeCol_FrameBg, Palette.BG_INPUT)
            dpg.add_theme_color(dpg.mvThemeCol_FrameBgHovered, Palette.BG_HOVER)
            dpg.add_theme_color(dpg.mvThemeCol_FrameBgActive, Palette.BORDER_ACTIVE)

            dpg.add_theme_color(dpg.mvThemeCol_Text, Palette.TEXT_PRIMARY)
            dpg.add_theme_color(dpg.mvThemeCol_TextDisabled, Palette.TEXT_DISABLED)

            dpg.add_theme_color(dpg.mvThemeCol_Button, Palette.BUTTON_NORMAL)
            dpg.add_theme_color(dpg.mvThemeCol_ButtonHovered, Palette.BUTTON_HOVER)
            dpg.add_theme_color(dpg.mvThemeCol_ButtonActive, Palette.BUTTON_ACTIVE)

            dpg.add_theme_style(dpg.mvStyleVar_FramePadding, *Palette.FRAME_PADDING)
            dpg.add_theme_style(dpg.mvStyleVar_ItemSpacing, *Palette.ITEM_SPACING)
            dpg.add_theme_style(dpg.mvStyleVar_WindowPadding, *Palette.WINDOW_PADDING)
            dpg.add_theme_style(dpg.mvStyleVar_FrameRounding, 3)

    dpg.bind_theme(global_theme)


def create_button_theme(color: Color, text_color: Color = (255, 255, 255, 255)) -> int:
    """
    Create a coloured button theme (play = green, stop = red, tool = blue).

    Returns:
        Theme id that can be bound to buttons
    """
    hover = tuple(min(255, c + 20) for c in color[:3]) + (255,)
    active = tuple(max(0, c - 20) for c in color[:3]) + (255,)

    with dpg.theme() as button_theme:
        with dpg.theme_component(dpg.mvButton):
            dpg.add_theme_color(dpg.mvThemeCol_Button, color)
            dpg.add_theme_color(dpg.mvThemeCol_ButtonHovered, hover)
            dpg.add_theme_color(dpg.mvThemeCol_ButtonActive, active)
            dpg.add_theme_color(dpg.mvThemeCol_Text, text_color)

    return button_theme
