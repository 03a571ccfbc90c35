"""
Audio and playback layer for Beatframe.

Modules:
- player: Soundtrack decoding and playback (sounddevice)
- scheduler: Playhead state machine (timer- or audio-driven)
"""
