"""
Core data structures and timeline logic for Beatframe.

Modules:
- constants: Musical/animation constants and input coercion
- clock: Frame <-> bar/beat/subdivision conversion
- models: Immutable data structures (SceneSnapshot, Project)
- keyframes: Ordered keyframe store
- interpolation: Scene synthesis between keyframes
- state: Application state
- commands: Command pattern for undo/redo
- timeline: Timeline layout (ticks, markers, playhead)
- raster: PNG rendering of snapshots
- export: Export sequencer
- video_encoder: FFmpeg encoding
- persistence: Project file I/O (.beatframe format)
- settings: User settings (~/.beatframe/settings.json)
"""
