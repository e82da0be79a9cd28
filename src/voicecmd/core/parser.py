"""Natural-language intent parsing."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

ArgExtractor: TypeAlias = Callable[[re.Match[str]], tuple[str, ...]]


@dataclass(frozen=True)
class MemoryOp:
    function: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class FileOp:
    function: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Shell:
    command: str


@dataclass(frozen=True)
class ParseError:
    reason: str


ParsedIntent: TypeAlias = MemoryOp | FileOp | Shell | ParseError


@dataclass(frozen=True)
class IntentPattern:
    """One row of the intent table."""

    regex: re.Pattern[str]
    kind: type[MemoryOp] | type[FileOp]
    function: str
    extract: ArgExtractor

    def match(self, text: str) -> MemoryOp | FileOp | None:
        found = self.regex.search(text)
        if found is None:
            return None
        return self.kind(function=self.function, args=self.extract(found))


def _no_args(_match: re.Match[str]) -> tuple[str, ...]:
    return ()


def _groups(match: re.Match[str]) -> tuple[str, ...]:
    return tuple(group.strip() for group in match.groups() if group is not None)


def _flag(match: re.Match[str]) -> tuple[str, ...]:
    return (match.group(1).strip(), "true")


def _pattern(
    expression: str,
    kind: type[MemoryOp] | type[FileOp],
    function: str,
    extract: ArgExtractor = _groups,
) -> IntentPattern:
    return IntentPattern(re.compile(expression, re.IGNORECASE), kind, function, extract)


MEMORY_PATTERNS: tuple[IntentPattern, ...] = (
    _pattern(r"remember\s+(.+?)\s+is\s+(.+)", MemoryOp, "saveMemory"),
    _pattern(r"remember\s+(.+)", MemoryOp, "saveMemory", _flag),
    _pattern(r"recall\s+(.+)", MemoryOp, "getMemory"),
    _pattern(r"show\s+memory", MemoryOp, "getAllMemory", _no_args),
    _pattern(r"clear\s+memory", MemoryOp, "clearMemory", _no_args),
    _pattern(r"search\s+memory\s+(.+)", MemoryOp, "searchMemory"),
    _pattern(r"memory\s+stats", MemoryOp, "getMemoryStats", _no_args),
    _pattern(r"command\s+history", MemoryOp, "getCommandHistory", _no_args),
)

# Longer phrasings come first so "create file" never shadows "create a file".
FILE_PATTERNS: tuple[IntentPattern, ...] = (
    _pattern(r"create\s+a\s+file\s+(\S+)", FileOp, "createFile"),
    _pattern(r"create\s+file\s+(\S+)", FileOp, "createFile"),
    _pattern(r"create\s+a\s+directory\s+(\S+)", FileOp, "createDirectory"),
    _pattern(r"create\s+directory\s+(\S+)", FileOp, "createDirectory"),
    _pattern(r"make\s+directory\s+(\S+)", FileOp, "createDirectory"),
    _pattern(r"mkdir\s+(\S+)", FileOp, "createDirectory"),
    _pattern(r"delete\s+file\s+(\S+)", FileOp, "deleteFile"),
    _pattern(r"copy\s+file\s+(\S+)\s+to\s+(\S+)", FileOp, "copyFile"),
    _pattern(r"move\s+file\s+(\S+)\s+to\s+(\S+)", FileOp, "moveFile"),
    _pattern(r"list\s+files(?:\s+in\s+(\S+))?", FileOp, "listFiles"),
)

INTENT_TABLE: tuple[IntentPattern, ...] = MEMORY_PATTERNS + FILE_PATTERNS


def parse_command(text: object) -> ParsedIntent:
    """Classify one input string; unmatched text falls through to the shell."""

    if not isinstance(text, str):
        return ParseError("Invalid input: command must be a non-empty string")

    stripped = text.strip()
    if not stripped:
        return ParseError("Invalid input: command must be a non-empty string")

    for pattern in INTENT_TABLE:
        intent = pattern.match(stripped)
        if intent is not None:
            return intent
    return Shell(stripped)
