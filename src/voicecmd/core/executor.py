"""Command orchestration: parse, gate, dispatch, normalize."""

from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path

from loguru import logger

from voicecmd.audit import AuditLog, AuditStatus, NullAuditLog
from voicecmd.builtin import CommandHistoryRecorder
from voicecmd.config import Settings
from voicecmd.core.file_ops import FileOperations
from voicecmd.core.memory_ops import MemoryDispatcher
from voicecmd.core.parser import FileOp, MemoryOp, ParsedIntent, ParseError, Shell, parse_command
from voicecmd.core.policy import CommandPolicy, PolicyVerdict, check_command_paths
from voicecmd.core.shell import ACTION as SHELL_ACTION
from voicecmd.core.shell import ShellRunner
from voicecmd.hook_runtime import HookRuntime
from voicecmd.memory import MemoryBackend, MemoryStore
from voicecmd.types import ErrorKind, ExecutionResult, failed


class CommandExecutor:
    """Single entry point of the command core.

    ``execute`` never raises: every branch returns an ``ExecutionResult`` and
    anything unexpected becomes ``E_SYSTEM_ERROR``. Observers registered on
    the hook runtime see each result after it is final.
    """

    def __init__(
        self,
        *,
        file_ops: FileOperations,
        shell: ShellRunner,
        memory: MemoryBackend,
        policy: CommandPolicy | None = None,
        audit: AuditLog | None = None,
        hooks: HookRuntime | None = None,
    ) -> None:
        self.file_ops = file_ops
        self.shell = shell
        self.policy = policy or CommandPolicy()
        self.audit = audit or NullAuditLog()
        self.hooks = hooks or HookRuntime()
        self._memory_ops = MemoryDispatcher(memory)

    @classmethod
    def from_settings(cls, settings: Settings, *, hooks: HookRuntime | None = None) -> CommandExecutor:
        """Wire the default collaborators for one sandbox root."""
        root = Path(settings.workspace)
        audit = AuditLog(settings.audit_log_file) if settings.log_commands else NullAuditLog()
        memory = MemoryStore(settings.memory_file, history_limit=settings.history_limit)
        runtime = hooks or HookRuntime()
        if settings.memory_enabled:
            runtime.register(CommandHistoryRecorder(memory), name="builtin:history")
        return cls(
            file_ops=FileOperations(root),
            shell=ShellRunner(
                root,
                audit=audit,
                timeout_seconds=settings.command_timeout_seconds,
                max_output_bytes=settings.max_output_bytes,
            ),
            memory=memory,
            audit=audit,
            hooks=runtime,
        )

    async def execute(self, command_text: object) -> ExecutionResult:
        start = time.monotonic()
        raw = command_text if isinstance(command_text, str) else ""
        try:
            result = await self._execute(command_text)
        except Exception as exc:
            await self.hooks.notify_error(stage="execute", error=exc, command=raw)
            result = failed("System Error", f"Internal error: {exc!s}", ErrorKind.SYSTEM_ERROR)

        result = replace(result, input=raw)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "command.done status={} action={} code={} elapsed_ms={}",
            result.status,
            result.action,
            result.error_code.value if result.error_code else "-",
            elapsed_ms,
        )
        await self.hooks.call_many("on_command_executed", command=raw, result=result)
        return result

    async def _execute(self, command_text: object) -> ExecutionResult:
        if not isinstance(command_text, str):
            return failed("Parse Error", "Invalid input: command must be a string", ErrorKind.PARSE_ERROR)
        if not command_text.strip():
            return failed("Validation Error", "Empty command: nothing to execute", ErrorKind.EMPTY_COMMAND)
        return await self._dispatch(parse_command(command_text))

    async def _dispatch(self, intent: ParsedIntent) -> ExecutionResult:
        if isinstance(intent, ParseError):
            return failed("Parse Error", intent.reason, ErrorKind.PARSE_ERROR)
        if isinstance(intent, MemoryOp):
            return self._memory_ops.dispatch(intent.function, intent.args)
        if isinstance(intent, FileOp):
            return self.file_ops.dispatch(intent.function, intent.args)
        if isinstance(intent, Shell):
            return await self._execute_shell(intent.command)
        return failed("Unknown Command", "Command type not recognized", ErrorKind.UNKNOWN_COMMAND)

    async def _execute_shell(self, command: str) -> ExecutionResult:
        verdict = self.policy.check(command)
        if verdict.safe:
            verdict = check_command_paths(self.shell.root, command)
        if not verdict.safe:
            self.audit.record(command, AuditStatus.BLOCKED, verdict.reason)
            logger.warning("shell.blocked command={} reason={}", command, verdict.reason)
            return failed(SHELL_ACTION, render_blocked(command, verdict), ErrorKind.COMMAND_BLOCKED, blocked=True)
        return await self.shell.run(command)


def render_blocked(command: str, verdict: PolicyVerdict) -> str:
    lines = [f"Command blocked for security: {command}", f"Reason: {verdict.reason}"]
    if verdict.suggestion:
        lines.append(f"Suggestion: {verdict.suggestion}")
    return "\n".join(lines)
