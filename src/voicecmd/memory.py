"""Persistent key/value memory and command history."""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from rapidfuzz import fuzz, process

from voicecmd.types import ExecutionResult

DEFAULT_HISTORY_LIMIT = 10
WORD_PATTERN = re.compile(r"[a-z0-9_/.-]+")
MIN_FUZZY_QUERY_LENGTH = 3
MIN_FUZZY_SCORE = 85


@dataclass(frozen=True)
class MemoryItem:
    key: str
    value: str
    timestamp: str


@dataclass(frozen=True)
class MemoryMatch:
    kind: str  # userData|context
    key: str
    value: str
    timestamp: str


@dataclass(frozen=True)
class HistoryEntry:
    command: str
    action: str
    status: str
    result: str
    timestamp: str


@dataclass(frozen=True)
class MemoryStats:
    total_user_data: int
    total_context: int
    total_commands: int
    last_updated: str
    memory_size: int


class MemoryBackend(Protocol):
    """What the command core needs from a memory collaborator."""

    def save_memory(self, key: str, value: str) -> MemoryItem: ...

    def get_memory(self, key: str) -> MemoryItem | None: ...

    def get_all_memory(self) -> dict[str, MemoryItem]: ...

    def clear_memory(self) -> None: ...

    def search_memory(self, query: str) -> list[MemoryMatch]: ...

    def get_memory_stats(self) -> MemoryStats: ...

    def get_command_history(self, limit: int = 5) -> list[HistoryEntry]: ...

    def add_command_to_history(self, command: str, result: ExecutionResult) -> HistoryEntry: ...

    def set_context(self, key: str, value: str) -> MemoryItem: ...

    def get_context(self, key: str) -> MemoryItem | None: ...


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _empty_document() -> dict[str, Any]:
    return {"userData": {}, "commandHistory": [], "context": {}, "lastUpdated": _utc_now_iso()}


class MemoryStore:
    """JSON-file memory: ``userData``, ``context`` and recent ``commandHistory``.

    Every call reloads the file so several processes pointing at the same
    file see each other's writes.
    """

    def __init__(self, path: Path, *, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.path = path
        self.history_limit = history_limit
        self._lock = threading.RLock()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return _empty_document()
        try:
            with open(self.path, encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("memory.load_failed path={} error={}", self.path, exc)
            return _empty_document()
        if not isinstance(document, dict):
            return _empty_document()
        for name, default in (("userData", {}), ("commandHistory", []), ("context", {})):
            if not isinstance(document.get(name), type(default)):
                document[name] = default
        document.setdefault("lastUpdated", _utc_now_iso())
        return document

    def _save(self, document: dict[str, Any]) -> None:
        document["lastUpdated"] = _utc_now_iso()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(temp_path, "w", encoding="utf-8") as handle:
            json.dump(document, handle, ensure_ascii=False, indent=2)
        temp_path.replace(self.path)

    # ------------------------------------------------------------------
    # User data
    # ------------------------------------------------------------------

    def save_memory(self, key: str, value: str) -> MemoryItem:
        with self._lock:
            document = self._load()
            item = MemoryItem(key=key, value=value, timestamp=_utc_now_iso())
            document["userData"][key] = {"value": value, "timestamp": item.timestamp}
            self._save(document)
        logger.info("memory.saved key={}", key)
        return item

    def get_memory(self, key: str) -> MemoryItem | None:
        with self._lock:
            raw = self._load()["userData"].get(key)
        if not isinstance(raw, dict):
            return None
        return MemoryItem(key=key, value=str(raw.get("value", "")), timestamp=str(raw.get("timestamp", "")))

    def get_all_memory(self) -> dict[str, MemoryItem]:
        with self._lock:
            user_data = self._load()["userData"]
        return {
            key: MemoryItem(key=key, value=str(raw.get("value", "")), timestamp=str(raw.get("timestamp", "")))
            for key, raw in user_data.items()
            if isinstance(raw, dict)
        }

    def clear_memory(self) -> None:
        with self._lock:
            self._save(_empty_document())
        logger.info("memory.cleared path={}", self.path)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def set_context(self, key: str, value: str) -> MemoryItem:
        with self._lock:
            document = self._load()
            item = MemoryItem(key=key, value=value, timestamp=_utc_now_iso())
            document["context"][key] = {"value": value, "timestamp": item.timestamp}
            self._save(document)
        return item

    def get_context(self, key: str) -> MemoryItem | None:
        with self._lock:
            raw = self._load()["context"].get(key)
        if not isinstance(raw, dict):
            return None
        return MemoryItem(key=key, value=str(raw.get("value", "")), timestamp=str(raw.get("timestamp", "")))

    # ------------------------------------------------------------------
    # Search and stats
    # ------------------------------------------------------------------

    def search_memory(self, query: str) -> list[MemoryMatch]:
        normalized = query.strip().lower()
        if not normalized:
            return []
        with self._lock:
            document = self._load()

        matches: list[MemoryMatch] = []
        for kind in ("userData", "context"):
            for key, raw in document[kind].items():
                if not isinstance(raw, dict):
                    continue
                value = str(raw.get("value", ""))
                haystack = f"{key} {value}".lower()
                if normalized in haystack or self._is_fuzzy_match(normalized, haystack):
                    matches.append(MemoryMatch(kind=kind, key=key, value=value, timestamp=str(raw.get("timestamp", ""))))
        return matches

    @staticmethod
    def _is_fuzzy_match(normalized_query: str, haystack: str) -> bool:
        if len(normalized_query) < MIN_FUZZY_QUERY_LENGTH:
            return False
        query_tokens = WORD_PATTERN.findall(normalized_query)
        source_tokens = WORD_PATTERN.findall(haystack)
        if not query_tokens or not source_tokens:
            return False

        window_size = len(query_tokens)
        candidates = list(source_tokens)
        if window_size > 1:
            for idx in range(max(0, len(source_tokens) - window_size + 1)):
                candidates.append(" ".join(source_tokens[idx : idx + window_size]))

        best_match = process.extractOne(
            " ".join(query_tokens),
            candidates,
            scorer=fuzz.ratio,
            score_cutoff=MIN_FUZZY_SCORE,
        )
        return best_match is not None

    def get_memory_stats(self) -> MemoryStats:
        with self._lock:
            document = self._load()
        return MemoryStats(
            total_user_data=len(document["userData"]),
            total_context=len(document["context"]),
            total_commands=len(document["commandHistory"]),
            last_updated=str(document["lastUpdated"]),
            memory_size=len(json.dumps(document, ensure_ascii=False)),
        )

    # ------------------------------------------------------------------
    # Command history
    # ------------------------------------------------------------------

    def add_command_to_history(self, command: str, result: ExecutionResult) -> HistoryEntry:
        entry = HistoryEntry(
            command=command,
            action=result.action,
            status=result.status,
            result=result.result_text,
            timestamp=_utc_now_iso(),
        )
        with self._lock:
            document = self._load()
            history = [
                {
                    "command": entry.command,
                    "action": entry.action,
                    "status": entry.status,
                    "result": entry.result,
                    "timestamp": entry.timestamp,
                },
                *document["commandHistory"],
            ]
            document["commandHistory"] = history[: self.history_limit]
            self._save(document)
        return entry

    def get_command_history(self, limit: int = 5) -> list[HistoryEntry]:
        with self._lock:
            raw_entries = self._load()["commandHistory"][: max(limit, 0)]
        return [
            HistoryEntry(
                command=str(raw.get("command", "")),
                action=str(raw.get("action", "")),
                status=str(raw.get("status", "")),
                result=str(raw.get("result", "")),
                timestamp=str(raw.get("timestamp", "")),
            )
            for raw in raw_entries
            if isinstance(raw, dict)
        ]
