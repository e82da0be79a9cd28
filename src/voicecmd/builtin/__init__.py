"""Builtin post-execution observers."""

from voicecmd.builtin.history import CommandHistoryRecorder

__all__ = ["CommandHistoryRecorder"]
