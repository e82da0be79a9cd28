from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from voicecmd.audit import AuditLog
from voicecmd.core.executor import CommandExecutor
from voicecmd.core.file_ops import FileOperations
from voicecmd.core.shell import ShellRunner
from voicecmd.hook_runtime import HookRuntime
from voicecmd.memory import MemoryStore
from voicecmd.types import ExecutionResult, ok


class SpyShellRunner(ShellRunner):
    """Shell runner that records commands instead of spawning them."""

    def __init__(self, root: Path, audit: AuditLog) -> None:
        super().__init__(root, audit=audit)
        self.calls: list[str] = []

    async def run(self, command: str) -> ExecutionResult:
        self.calls.append(command)
        return ok("Shell Command", f"ran {command}")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "sandbox"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def audit(tmp_path: Path) -> Iterator[AuditLog]:
    log = AuditLog(tmp_path / "logs" / "security.log")
    yield log
    log.close()


@pytest.fixture
def memory(tmp_path: Path) -> MemoryStore:
    return MemoryStore(tmp_path / "memory.json")


@pytest.fixture
def spy_shell(workspace: Path, audit: AuditLog) -> SpyShellRunner:
    return SpyShellRunner(workspace, audit)


@pytest.fixture
def executor(workspace: Path, audit: AuditLog, memory: MemoryStore, spy_shell: SpyShellRunner) -> CommandExecutor:
    return CommandExecutor(
        file_ops=FileOperations(workspace),
        shell=spy_shell,
        memory=memory,
        audit=audit,
        hooks=HookRuntime(),
    )
