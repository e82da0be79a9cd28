"""Memory-operation branch: a thin dispatcher over the memory collaborator."""

from __future__ import annotations

from collections.abc import Callable

from voicecmd.memory import MemoryBackend
from voicecmd.types import ErrorKind, ExecutionResult, failed, ok

HISTORY_DISPLAY_LIMIT = 5


class MemoryDispatcher:
    """Turn ``MemoryOp`` functions into memory calls and readable result text."""

    def __init__(self, memory: MemoryBackend) -> None:
        self._memory = memory
        self._handlers: dict[str, Callable[..., ExecutionResult]] = {
            "saveMemory": self._save,
            "getMemory": self._recall,
            "getAllMemory": self._show,
            "clearMemory": self._clear,
            "searchMemory": self._search,
            "getMemoryStats": self._stats,
            "getCommandHistory": self._history,
        }

    @property
    def functions(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(self, function: str, args: tuple[str, ...] | list[str]) -> ExecutionResult:
        handler = self._handlers.get(function)
        if handler is None:
            return failed("Memory Operation", f"Unknown memory operation: {function}", ErrorKind.MEMORY_OPERATION_FAILED)
        try:
            return handler(*args)
        except Exception as exc:
            return failed(
                "Memory Operation",
                f"Error executing memory operation: {exc!s}",
                ErrorKind.MEMORY_OPERATION_FAILED,
            )

    def _save(self, key: str, value: str = "true") -> ExecutionResult:
        item = self._memory.save_memory(key, value)
        return ok("Save Memory", f'Memory saved: "{item.key}" = "{item.value}"')

    def _recall(self, key: str) -> ExecutionResult:
        item = self._memory.get_memory(key)
        if item is None:
            return failed("Recall Memory", f'Memory not found: "{key}"', ErrorKind.MEMORY_OPERATION_FAILED)
        return ok("Recall Memory", f'"{item.key}" = "{item.value}" (saved: {item.timestamp})')

    def _show(self) -> ExecutionResult:
        items = self._memory.get_all_memory()
        listing = "\n".join(f'"{key}" = "{item.value}"' for key, item in items.items())
        return ok("Show Memory", f"Memory contains {len(items)} items:\n{listing or 'No memories stored'}")

    def _clear(self) -> ExecutionResult:
        self._memory.clear_memory()
        return ok("Clear Memory", "All memory cleared successfully")

    def _search(self, query: str) -> ExecutionResult:
        matches = self._memory.search_memory(query)
        if not matches:
            return failed("Search Memory", f'No matches found for "{query}"', ErrorKind.MEMORY_OPERATION_FAILED)
        listing = "\n".join(f'"{match.key}" = "{match.value}" ({match.kind})' for match in matches)
        return ok("Search Memory", f'Found {len(matches)} matches for "{query}":\n{listing}')

    def _stats(self) -> ExecutionResult:
        stats = self._memory.get_memory_stats()
        lines = [
            "Memory Statistics:",
            f"- User Data: {stats.total_user_data} items",
            f"- Context: {stats.total_context} items",
            f"- Commands: {stats.total_commands} items",
            f"- Last Updated: {stats.last_updated}",
            f"- Memory Size: {round(stats.memory_size / 1024)} KB",
        ]
        return ok("Memory Stats", "\n".join(lines))

    def _history(self, limit: str | int = HISTORY_DISPLAY_LIMIT) -> ExecutionResult:
        entries = self._memory.get_command_history(int(limit))
        if not entries:
            return failed("Command History", "No command history available", ErrorKind.MEMORY_OPERATION_FAILED)
        listing = "\n".join(
            f'{index}. "{entry.command}" [{entry.status}] ({entry.timestamp})' for index, entry in enumerate(entries, start=1)
        )
        return ok("Command History", f"Recent Commands:\n{listing}")
