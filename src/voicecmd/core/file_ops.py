"""Sandboxed filesystem primitives."""

from __future__ import annotations

import inspect
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from voicecmd.core.policy import resolve_inside
from voicecmd.types import ErrorKind, ExecutionResult, failed, ok

DIRECTORY_SEPARATORS = ("/", "\\")


@dataclass(frozen=True)
class FileEntry:
    """One row of a directory listing."""

    name: str
    type: str  # directory|file
    size: int
    modified: str  # YYYY-MM-DD

    @property
    def is_directory(self) -> bool:
        return self.type == "directory"

    def render(self) -> str:
        if self.is_directory:
            return f"[dir]  {self.name}/ (modified {self.modified})"
        return f"[file] {self.name} ({self.size} bytes, modified {self.modified})"


class _RejectedPath(Exception):
    def __init__(self, raw_path: str, message: str) -> None:
        super().__init__(message)
        self.raw_path = raw_path
        self.message = message


class FileOperations:
    """Create, delete, copy, move and list files under one sandbox root.

    Every operation returns an ``ExecutionResult``; nothing raises. Paths are
    resolved against the root and rejected before any mutation when they
    escape it. Existence checks and the following mutation are not atomic;
    concurrent callers racing on the same name are not serialized.
    """

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()
        self._handlers: dict[str, Callable[..., ExecutionResult]] = {
            "createFile": self.create_file,
            "createDirectory": self.create_directory,
            "deleteFile": self.delete_file,
            "copyFile": self.copy_file,
            "moveFile": self.move_file,
            "listFiles": self.list_files,
        }

    @property
    def functions(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(self, function: str, args: tuple[str, ...] | list[str]) -> ExecutionResult:
        handler = self._handlers.get(function)
        if handler is None:
            return failed("File Operation", f"Unknown file operation: {function}", ErrorKind.FILE_OPERATION_FAILED)
        try:
            inspect.signature(handler).bind(*args)
        except TypeError:
            return failed(
                "File Operation",
                f"Wrong arguments for file operation {function}: {list(args)}",
                ErrorKind.FILE_OPERATION_FAILED,
            )
        return handler(*args)

    def _resolve(self, raw_path: str) -> Path:
        try:
            resolved = resolve_inside(self.root, raw_path)
        except ValueError as exc:
            raise _RejectedPath(raw_path, f"Path {raw_path!r} is not a valid path: {exc!s}") from exc
        if resolved is None:
            raise _RejectedPath(raw_path, f"Path '{raw_path}' is outside the working directory")
        return resolved

    @staticmethod
    def _rejected(action: str, rejection: _RejectedPath) -> ExecutionResult:
        logger.warning("file_ops.path_rejected action={} path={!r}", action, rejection.raw_path)
        return failed(action, rejection.message, ErrorKind.FILE_OPERATION_FAILED)

    def create_file(self, name: str) -> ExecutionResult:
        action = "Create File"
        try:
            path = self._resolve(name)
            if path.exists():
                return failed(action, f"File '{name}' already exists", ErrorKind.FILE_OPERATION_FAILED)
            # exclusive create never truncates a file that appeared after the check
            with path.open("x", encoding="utf-8"):
                pass
        except _RejectedPath as exc:
            return self._rejected(action, exc)
        except FileExistsError:
            return failed(action, f"File '{name}' already exists", ErrorKind.FILE_OPERATION_FAILED)
        except OSError as exc:
            return failed(action, f"Error creating file '{name}': {exc.strerror or exc!s}", ErrorKind.FILE_OPERATION_FAILED)
        logger.info("file_ops.created path={}", path)
        return ok(action, f"File '{name}' created successfully")

    def create_directory(self, name: str) -> ExecutionResult:
        action = "Create Directory"
        try:
            path = self._resolve(name)
            if path.exists():
                kind = "Directory" if path.is_dir() else "File"
                return failed(action, f"{kind} '{name}' already exists", ErrorKind.FILE_OPERATION_FAILED)
            path.mkdir(parents=True)
        except _RejectedPath as exc:
            return self._rejected(action, exc)
        except FileExistsError:
            return failed(action, f"Directory '{name}' already exists", ErrorKind.FILE_OPERATION_FAILED)
        except OSError as exc:
            return failed(
                action, f"Failed to create directory '{name}': {exc.strerror or exc!s}", ErrorKind.FILE_OPERATION_FAILED
            )
        logger.info("file_ops.mkdir path={}", path)
        return ok(action, f"Directory '{name}' created successfully")

    def delete_file(self, name: str) -> ExecutionResult:
        action = "Delete File"
        try:
            path = self._resolve(name)
            if not path.exists():
                return failed(action, f"File '{name}' not found", ErrorKind.FILE_OPERATION_FAILED)
            if path.is_dir():
                return failed(action, f"'{name}' is a directory, not a file", ErrorKind.FILE_OPERATION_FAILED)
            path.unlink()
        except _RejectedPath as exc:
            return self._rejected(action, exc)
        except OSError as exc:
            return failed(action, f"Error deleting file '{name}': {exc.strerror or exc!s}", ErrorKind.FILE_OPERATION_FAILED)
        logger.info("file_ops.deleted path={}", path)
        return ok(action, f"File '{name}' deleted successfully")

    def copy_file(self, source: str, destination: str) -> ExecutionResult:
        action = "Copy File"
        try:
            source_path = self._resolve(source)
            dest_path = self._resolve(destination)
            if not source_path.exists():
                return failed(action, f"Source file '{source}' not found", ErrorKind.FILE_OPERATION_FAILED)
            if source_path.is_dir():
                return failed(action, f"'{source}' is a directory, not a file", ErrorKind.FILE_OPERATION_FAILED)
            if dest_path.exists():
                return failed(action, f"Destination file '{destination}' already exists", ErrorKind.FILE_OPERATION_FAILED)
            shutil.copy2(source_path, dest_path)
        except _RejectedPath as exc:
            return self._rejected(action, exc)
        except OSError as exc:
            return failed(
                action,
                f"Error copying file '{source}' to '{destination}': {exc.strerror or exc!s}",
                ErrorKind.FILE_OPERATION_FAILED,
            )
        logger.info("file_ops.copied source={} destination={}", source_path, dest_path)
        return ok(action, f"File '{source}' copied to '{destination}' successfully")

    def move_file(self, source: str, destination: str) -> ExecutionResult:
        action = "Move File"
        try:
            source_path = self._resolve(source)
            if destination.endswith(DIRECTORY_SEPARATORS):
                dest_path = self._resolve(str(Path(destination.rstrip("/\\") or ".") / Path(source).name))
            else:
                dest_path = self._resolve(destination)
            if not source_path.exists():
                return failed(action, f"Source file '{source}' not found", ErrorKind.FILE_OPERATION_FAILED)
            if source_path.is_dir():
                return failed(action, f"'{source}' is a directory, not a file", ErrorKind.FILE_OPERATION_FAILED)
            if dest_path.exists():
                return failed(action, f"Destination '{destination}' already exists", ErrorKind.FILE_OPERATION_FAILED)
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(source_path, dest_path)
        except _RejectedPath as exc:
            return self._rejected(action, exc)
        except OSError as exc:
            return failed(
                action,
                f"Error moving file '{source}' to '{destination}': {exc.strerror or exc!s}",
                ErrorKind.FILE_OPERATION_FAILED,
            )
        logger.info("file_ops.moved source={} destination={}", source_path, dest_path)
        return ok(action, f"File '{source}' moved to '{destination}' successfully")

    def scan(self, directory: str = ".") -> list[FileEntry]:
        """Return sorted entries of ``directory``; raises on escape or I/O error."""
        target = self._resolve(directory)
        entries: list[FileEntry] = []
        for child in target.iterdir():
            stat = child.stat()
            entries.append(
                FileEntry(
                    name=child.name,
                    type="directory" if child.is_dir() else "file",
                    size=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC).date().isoformat(),
                )
            )
        entries.sort(key=lambda entry: (not entry.is_directory, entry.name.casefold(), entry.name))
        return entries

    def list_files(self, directory: str = ".") -> ExecutionResult:
        action = "List Files"
        try:
            target = self._resolve(directory)
            if not target.exists():
                return failed(action, f"Directory '{directory}' not found", ErrorKind.FILE_OPERATION_FAILED)
            if not target.is_dir():
                return failed(action, f"'{directory}' is not a directory", ErrorKind.FILE_OPERATION_FAILED)
            entries = self.scan(directory)
        except _RejectedPath as exc:
            return self._rejected(action, exc)
        except OSError as exc:
            return failed(
                action, f"Error listing files in '{directory}': {exc.strerror or exc!s}", ErrorKind.FILE_OPERATION_FAILED
            )

        lines = [f"Found {len(entries)} items in '{directory}':"]
        lines.extend(entry.render() for entry in entries)
        return ok(action, "\n".join(lines))
