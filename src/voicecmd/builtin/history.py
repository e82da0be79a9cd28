"""Builtin observer that records every command into memory history."""

from __future__ import annotations

from voicecmd.hookspecs import hookimpl
from voicecmd.memory import MemoryBackend
from voicecmd.types import ErrorKind, ExecutionResult

UNRECORDED_CODES = frozenset({ErrorKind.EMPTY_COMMAND, ErrorKind.PARSE_ERROR})


class CommandHistoryRecorder:
    def __init__(self, memory: MemoryBackend) -> None:
        self._memory = memory

    @hookimpl
    def on_command_executed(self, command: str, result: ExecutionResult) -> None:
        if result.error_code in UNRECORDED_CODES:
            return
        self._memory.add_command_to_history(command, result)
