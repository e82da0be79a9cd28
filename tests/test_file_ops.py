from pathlib import Path

import pytest

from voicecmd.core.file_ops import FileOperations
from voicecmd.types import ErrorKind


def test_create_then_list_then_delete_round_trip(workspace: Path) -> None:
    ops = FileOperations(workspace)

    created = ops.create_file("a.txt")
    assert created.success is True
    assert created.action == "Create File"

    entries = {entry.name: entry for entry in ops.scan(".")}
    assert entries["a.txt"].size == 0
    assert entries["a.txt"].type == "file"
    assert "a.txt (0 bytes" in ops.list_files(".").result_text

    deleted = ops.delete_file("a.txt")
    assert deleted.success is True
    assert "a.txt" not in {entry.name for entry in ops.scan(".")}
    assert "a.txt" not in ops.list_files().result_text


def test_create_file_twice_does_not_truncate(workspace: Path) -> None:
    ops = FileOperations(workspace)
    assert ops.create_file("x.txt").success is True
    (workspace / "x.txt").write_text("keep me", encoding="utf-8")

    second = ops.create_file("x.txt")
    assert second.success is False
    assert "already exists" in second.result_text
    assert second.error_code is ErrorKind.FILE_OPERATION_FAILED
    assert (workspace / "x.txt").read_text(encoding="utf-8") == "keep me"


def test_create_directory_and_existing_target(workspace: Path) -> None:
    ops = FileOperations(workspace)
    assert ops.create_directory("docs/notes").success is True
    assert (workspace / "docs" / "notes").is_dir()

    again = ops.create_directory("docs/notes")
    assert again.success is False
    assert "already exists" in again.result_text


def test_delete_refuses_directories_and_missing_files(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "folder").mkdir()

    not_a_file = ops.delete_file("folder")
    assert not_a_file.success is False
    assert "is a directory" in not_a_file.result_text
    assert (workspace / "folder").is_dir()

    missing = ops.delete_file("ghost.txt")
    assert missing.success is False
    assert "not found" in missing.result_text


def test_copy_file_checks_source_and_destination(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "a.txt").write_text("alpha", encoding="utf-8")
    (workspace / "b.txt").write_text("beta", encoding="utf-8")

    assert ops.copy_file("missing.txt", "c.txt").success is False
    clash = ops.copy_file("a.txt", "b.txt")
    assert clash.success is False
    assert "already exists" in clash.result_text
    assert (workspace / "b.txt").read_text(encoding="utf-8") == "beta"

    copied = ops.copy_file("a.txt", "c.txt")
    assert copied.success is True
    assert copied.action == "Copy File"
    assert (workspace / "c.txt").read_text(encoding="utf-8") == "alpha"
    assert (workspace / "a.txt").exists()


def test_move_into_directory_with_trailing_separator(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "a.txt").write_text("alpha", encoding="utf-8")

    moved = ops.move_file("a.txt", "archive/2024/")
    assert moved.success is True
    assert moved.action == "Move File"
    assert not (workspace / "a.txt").exists()
    assert (workspace / "archive" / "2024" / "a.txt").read_text(encoding="utf-8") == "alpha"


def test_move_rename_and_refuse_overwrite(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "a.txt").write_text("alpha", encoding="utf-8")
    (workspace / "b.txt").write_text("beta", encoding="utf-8")

    refused = ops.move_file("a.txt", "b.txt")
    assert refused.success is False
    assert (workspace / "a.txt").exists()

    renamed = ops.move_file("a.txt", "nested/c.txt")
    assert renamed.success is True
    assert (workspace / "nested" / "c.txt").exists()


def test_paths_escaping_the_root_are_rejected_before_mutation(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "a.txt").write_text("alpha", encoding="utf-8")

    escaped = ops.move_file("a.txt", "../../etc/passwd")
    assert escaped.success is False
    assert "outside the working directory" in escaped.result_text
    assert (workspace / "a.txt").exists()

    assert ops.create_file("../evil.txt").success is False
    assert not (workspace.parent / "evil.txt").exists()
    assert ops.create_file("/tmp/voicecmd-absolute.txt").success is False
    assert ops.copy_file("a.txt", "../copy.txt").success is False
    assert ops.delete_file("../sandbox/a.txt").success is True


def test_list_files_orders_directories_first(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "zeta").mkdir()
    (workspace / "Alpha").mkdir()
    (workspace / "b.txt").write_text("12345", encoding="utf-8")
    (workspace / "a.txt").write_text("", encoding="utf-8")

    names = [entry.name for entry in ops.scan()]
    assert names == ["Alpha", "zeta", "a.txt", "b.txt"]

    sized = {entry.name: entry for entry in ops.scan()}
    assert sized["b.txt"].size == 5
    assert len(sized["b.txt"].modified) == len("2024-01-01")

    listing = ops.list_files()
    assert listing.success is True
    assert listing.result_text.startswith("Found 4 items in '.':")


def test_list_files_on_missing_directory(workspace: Path) -> None:
    result = FileOperations(workspace).list_files("nope")
    assert result.success is False
    assert "not found" in result.result_text


def test_dispatch_reports_unknown_functions_and_bad_arity(workspace: Path) -> None:
    ops = FileOperations(workspace)
    assert ops.dispatch("createFile", ("n.txt",)).success is True
    unknown = ops.dispatch("shredFile", ("n.txt",))
    assert unknown.success is False
    assert unknown.error_code is ErrorKind.FILE_OPERATION_FAILED
    assert ops.dispatch("copyFile", ("n.txt",)).success is False


def test_paths_with_nul_bytes_fail_as_values(workspace: Path) -> None:
    ops = FileOperations(workspace)
    (workspace / "a.txt").write_text("alpha", encoding="utf-8")

    for result in (
        ops.create_file("a\x00b.txt"),
        ops.create_directory("d\x00ir"),
        ops.delete_file("a\x00.txt"),
        ops.copy_file("a.txt", "c\x00.txt"),
        ops.move_file("a\x00.txt", "b.txt"),
        ops.list_files("x\x00"),
    ):
        assert result.success is False
        assert result.error_code is ErrorKind.FILE_OPERATION_FAILED
        assert "not a valid path" in result.result_text
    assert (workspace / "a.txt").read_text(encoding="utf-8") == "alpha"


def test_dispatch_does_not_mask_errors_raised_inside_a_handler(workspace: Path) -> None:
    ops = FileOperations(workspace)

    def _broken(name: str) -> None:
        raise TypeError(f"inner failure for {name}")

    ops._handlers["createFile"] = _broken
    with pytest.raises(TypeError, match="inner failure"):
        ops.dispatch("createFile", ("n.txt",))

    wrong = ops.dispatch("createFile", ())
    assert wrong.result_text.startswith("Wrong arguments for file operation createFile")
