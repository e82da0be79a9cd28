"""voicecmd - a sandboxed voice/text command console backend."""

from voicecmd.core import CommandExecutor, CommandPolicy, parse_command
from voicecmd.types import ErrorKind, ExecutionResult

__version__ = "0.1.0"

__all__ = ["CommandExecutor", "CommandPolicy", "ErrorKind", "ExecutionResult", "parse_command"]
