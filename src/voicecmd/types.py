"""Shared result types for the command core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Every failure kind the core can signal."""

    PARSE_ERROR = "E_PARSE_ERROR"
    EMPTY_COMMAND = "E_EMPTY_COMMAND"
    COMMAND_BLOCKED = "E_COMMAND_BLOCKED"
    COMMAND_NOT_FOUND = "E_COMMAND_NOT_FOUND"
    PERMISSION_DENIED = "E_PERMISSION_DENIED"
    COMMAND_TIMEOUT = "E_COMMAND_TIMEOUT"
    COMMAND_FAILED = "E_COMMAND_FAILED"
    FILE_OPERATION_FAILED = "E_FILE_OPERATION_FAILED"
    MEMORY_OPERATION_FAILED = "E_MEMORY_OPERATION_FAILED"
    UNKNOWN_COMMAND = "E_UNKNOWN_COMMAND"
    SYSTEM_ERROR = "E_SYSTEM_ERROR"


@dataclass(frozen=True)
class ExecutionResult:
    """Normalized outcome of one command, whichever branch produced it."""

    action: str
    result_text: str
    success: bool
    blocked: bool = False
    error_code: ErrorKind | None = None
    input: str = ""

    @property
    def status(self) -> str:
        if self.success:
            return "success"
        if self.blocked:
            return "blocked"
        return "error"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "input": self.input,
            "action": self.action,
            "result": self.result_text,
            "success": self.success,
            "blocked": self.blocked,
        }
        if self.error_code is not None:
            payload["code"] = self.error_code.value
        return payload


def ok(action: str, text: str) -> ExecutionResult:
    return ExecutionResult(action=action, result_text=text, success=True)


def failed(action: str, text: str, code: ErrorKind, *, blocked: bool = False) -> ExecutionResult:
    return ExecutionResult(action=action, result_text=text, success=False, blocked=blocked, error_code=code)
