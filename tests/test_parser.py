import re

import pytest

from voicecmd.core.parser import (
    FILE_PATTERNS,
    INTENT_TABLE,
    MEMORY_PATTERNS,
    FileOp,
    MemoryOp,
    ParseError,
    Shell,
    parse_command,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("remember test key is test value", MemoryOp("saveMemory", ("test key", "test value"))),
        ("Remember my cat", MemoryOp("saveMemory", ("my cat", "true"))),
        ("recall test key", MemoryOp("getMemory", ("test key",))),
        ("show memory", MemoryOp("getAllMemory")),
        ("CLEAR MEMORY", MemoryOp("clearMemory")),
        ("search memory cat", MemoryOp("searchMemory", ("cat",))),
        ("memory stats", MemoryOp("getMemoryStats")),
        ("command history", MemoryOp("getCommandHistory")),
    ],
)
def test_memory_phrases(text: str, expected: MemoryOp) -> None:
    assert parse_command(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("create file test_allowed.txt", FileOp("createFile", ("test_allowed.txt",))),
        ("create a file notes.md", FileOp("createFile", ("notes.md",))),
        ("create directory build", FileOp("createDirectory", ("build",))),
        ("create a directory docs", FileOp("createDirectory", ("docs",))),
        ("make directory out", FileOp("createDirectory", ("out",))),
        ("mkdir src", FileOp("createDirectory", ("src",))),
        ("delete file old.log", FileOp("deleteFile", ("old.log",))),
        ("copy file a.txt to b.txt", FileOp("copyFile", ("a.txt", "b.txt"))),
        ("Move File a.txt to archive/", FileOp("moveFile", ("a.txt", "archive/"))),
        ("list files", FileOp("listFiles")),
        ("list files in docs", FileOp("listFiles", ("docs",))),
    ],
)
def test_file_phrases(text: str, expected: FileOp) -> None:
    assert parse_command(text) == expected


def test_longer_phrasing_is_not_shadowed_by_shorter_one() -> None:
    # "create a file X" must not be read as "create file a"
    assert parse_command("create a file report.txt") == FileOp("createFile", ("report.txt",))
    assert parse_command("create file a") == FileOp("createFile", ("a",))
    assert parse_command("create a directory x") == FileOp("createDirectory", ("x",))


def test_memory_tier_wins_over_file_tier() -> None:
    assert parse_command("remember create file x.txt") == MemoryOp("saveMemory", ("create file x.txt", "true"))


@pytest.mark.parametrize("text", ["ls -la", "rm -rf /", "nonexistent_command_12345", "please tidy up my desk"])
def test_unmatched_text_falls_through_to_shell(text: str) -> None:
    assert parse_command(text) == Shell(text)


def test_shell_command_is_trimmed() -> None:
    assert parse_command("   pwd  ") == Shell("pwd")


@pytest.mark.parametrize("text", [None, 12, ["ls"], ""])
def test_non_string_input_is_a_parse_error(text: object) -> None:
    assert isinstance(parse_command(text), ParseError)


def test_parsing_is_idempotent() -> None:
    for text in ("remember a is b", "copy file a to b", "echo hi", "list files"):
        assert parse_command(text) == parse_command(text)


def test_intent_table_is_ordered_memory_first() -> None:
    assert INTENT_TABLE[: len(MEMORY_PATTERNS)] == MEMORY_PATTERNS
    assert INTENT_TABLE[len(MEMORY_PATTERNS) :] == FILE_PATTERNS
    for pattern in INTENT_TABLE:
        assert pattern.regex.flags & re.IGNORECASE
