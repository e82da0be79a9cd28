"""Command interpretation and security-gating core."""

from voicecmd.core.executor import CommandExecutor
from voicecmd.core.file_ops import FileEntry, FileOperations
from voicecmd.core.parser import FileOp, MemoryOp, ParsedIntent, ParseError, Shell, parse_command
from voicecmd.core.policy import CommandPolicy, PolicyVerdict, check_command_paths, is_command_safe, is_path_safe
from voicecmd.core.shell import ShellRunner

__all__ = [
    "CommandExecutor",
    "CommandPolicy",
    "FileEntry",
    "FileOp",
    "FileOperations",
    "MemoryOp",
    "ParseError",
    "ParsedIntent",
    "PolicyVerdict",
    "Shell",
    "ShellRunner",
    "check_command_paths",
    "is_command_safe",
    "is_path_safe",
    "parse_command",
]
