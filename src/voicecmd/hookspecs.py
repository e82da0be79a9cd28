"""Pluggy hook namespace and post-execution hook specifications."""

from __future__ import annotations

import pluggy

from voicecmd.types import ExecutionResult

VOICECMD_HOOK_NAMESPACE = "voicecmd"
hookspec = pluggy.HookspecMarker(VOICECMD_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(VOICECMD_HOOK_NAMESPACE)


class VoiceCmdHookSpecs:
    """Observer contract for whatever happens after one command ran."""

    @hookspec
    def on_command_executed(self, command: str, result: ExecutionResult) -> None:
        """Observe one finished command and its normalized result."""

    @hookspec
    def on_error(self, stage: str, error: Exception, command: str | None) -> None:
        """Observe errors raised anywhere in the command pipeline."""
