"""Subprocess runner for policy-approved shell commands."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from voicecmd.audit import AuditLog, AuditStatus
from voicecmd.types import ErrorKind, ExecutionResult, failed, ok

ACTION = "Shell Command"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
READ_CHUNK_SIZE = 64 * 1024
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
EMPTY_OUTPUT_TEXT = "Command executed successfully"
STRIPPED_ENV_VARS = ("SUDO_ASKPASS", "SSH_AUTH_SOCK", "SSH_AGENT_PID")


class OutputLimitExceededError(Exception):
    """Raised when a command writes more than the configured output cap."""


@dataclass(frozen=True)
class CompletedCommand:
    returncode: int
    stdout: str
    stderr: str


async def _read_capped(stream: asyncio.StreamReader, budget: list[int]) -> bytes:
    buffer = bytearray()
    while chunk := await stream.read(READ_CHUNK_SIZE):
        budget[0] -= len(chunk)
        if budget[0] < 0:
            raise OutputLimitExceededError
        buffer.extend(chunk)
    return bytes(buffer)


class ShellRunner:
    """Run one command in the sandbox root with a timeout and an output cap.

    The caller is responsible for obtaining a safe policy verdict first; the
    runner never re-checks policy. Every call writes exactly one audit record.
    """

    def __init__(
        self,
        root: Path,
        *,
        audit: AuditLog,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self.root = root
        self.timeout_seconds = timeout_seconds
        self.max_output_bytes = max_output_bytes
        self._audit = audit

    async def run(self, command: str) -> ExecutionResult:
        try:
            completed = await self._spawn(command)
        except TimeoutError:
            return self._fail(
                command,
                f"Command timed out after {self.timeout_seconds:g} seconds: {command}",
                ErrorKind.COMMAND_TIMEOUT,
            )
        except OutputLimitExceededError:
            return self._fail(
                command,
                f"Command output exceeded {self.max_output_bytes} bytes: {command}",
                ErrorKind.COMMAND_FAILED,
            )
        except FileNotFoundError as exc:
            return self._fail(command, f"Command not found: {exc!s}", ErrorKind.COMMAND_NOT_FOUND)
        except PermissionError as exc:
            return self._fail(command, f"Permission denied: {exc!s}", ErrorKind.PERMISSION_DENIED)
        except OSError as exc:
            return self._fail(command, f"Command failed to start: {exc!s}", ErrorKind.COMMAND_FAILED)

        if completed.returncode == 0:
            self._audit.record(command, AuditStatus.SUCCESS, "Command executed successfully")
            logger.info("shell.ok command={}", command)
            return ok(ACTION, completed.stdout or EMPTY_OUTPUT_TEXT)

        detail = completed.stderr.strip() or f"Command failed: {command} (exit code {completed.returncode})"
        if completed.returncode == EXIT_NOT_FOUND:
            return self._fail(command, f"Command not found: {detail}", ErrorKind.COMMAND_NOT_FOUND)
        if completed.returncode == EXIT_NOT_EXECUTABLE:
            return self._fail(command, f"Permission denied: {detail}", ErrorKind.PERMISSION_DENIED)
        return self._fail(command, detail, ErrorKind.COMMAND_FAILED)

    def _fail(self, command: str, text: str, code: ErrorKind) -> ExecutionResult:
        self._audit.record(command, AuditStatus.ERROR, text)
        logger.warning("shell.failed code={} command={}", code.value, command)
        return failed(ACTION, text, code)

    async def _spawn(self, command: str) -> CompletedCommand:
        # Policy approval happens upstream; the shell is intentional here.
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=self.root,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=self._environment(),
        )
        try:
            async with asyncio.timeout(self.timeout_seconds):
                stdout, stderr = await self._read_streams(process)
                returncode = await process.wait()
        except BaseException:
            await self._kill(process)
            raise

        return CompletedCommand(
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def _read_streams(self, process: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
        budget = [self.max_output_bytes]
        readers = [
            asyncio.create_task(_read_capped(process.stdout, budget)),  # type: ignore[arg-type]
            asyncio.create_task(_read_capped(process.stderr, budget)),  # type: ignore[arg-type]
        ]
        try:
            stdout, stderr = await asyncio.gather(*readers)
        except BaseException:
            for reader in readers:
                reader.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
            raise
        return stdout, stderr

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()

    @staticmethod
    def _environment() -> dict[str, str]:
        env = os.environ.copy()
        for name in STRIPPED_ENV_VARS:
            env.pop(name, None)
        return env
