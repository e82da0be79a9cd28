"""Security audit log for command attempts."""

from __future__ import annotations

import os
import re
import threading
import uuid
from contextlib import suppress
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from loguru import logger

AUDIT_ROTATION = "5 MB"
AUDIT_RETENTION = 5
TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z)")
# Severity below TRACE: no console threshold admits audit lines.
AUDIT_LEVEL = "AUDIT"
AUDIT_LEVEL_NO = 1


def _ensure_audit_level() -> None:
    try:
        logger.level(AUDIT_LEVEL)
    except ValueError:
        logger.level(AUDIT_LEVEL, no=AUDIT_LEVEL_NO)


_ensure_audit_level()


class AuditStatus(StrEnum):
    SUCCESS = "SUCCESS"
    BLOCKED = "BLOCKED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class AuditStats:
    total: int = 0
    blocked: int = 0
    successful: int = 0
    errors: int = 0
    last_activity: str | None = None


def _one_line(text: str) -> str:
    return " ".join(text.split())


class AuditLog:
    """Append-only ``timestamp | STATUS | command | reason`` lines.

    Records go through a dedicated loguru file sink at the ``AUDIT`` level,
    which sits below every console threshold. Console sinks configured by
    ``configure_logging`` also drop them via the ``audit`` extra.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._key = uuid.uuid4().hex
        self._lock = threading.Lock()
        self._sink_id: int | None = None
        self._logger = logger.bind(audit=True, audit_key=self._key)

    def _ensure_sink(self) -> None:
        if self._sink_id is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        key = self._key
        self._sink_id = logger.add(
            self.path,
            format="{time:YYYY-MM-DD[T]HH:mm:ss.SSS!UTC}Z | {message}",
            filter=lambda record: record["extra"].get("audit_key") == key,
            rotation=AUDIT_ROTATION,
            retention=AUDIT_RETENTION,
            encoding="utf-8",
            buffering=1,
            level=AUDIT_LEVEL,
        )

    def record(self, command: str, status: AuditStatus, reason: str = "") -> None:
        with self._lock:
            self._ensure_sink()
            self._logger.log(AUDIT_LEVEL, "{} | {} | {}", status.value, _one_line(command), _one_line(reason))

    def stats(self) -> AuditStats:
        with self._lock:
            if not self.path.exists():
                return AuditStats()
            lines = [line for line in self.path.read_text(encoding="utf-8").splitlines() if line.strip()]

        blocked = successful = errors = 0
        last_activity: str | None = None
        for line in lines:
            if f"| {AuditStatus.BLOCKED} |" in line:
                blocked += 1
            elif f"| {AuditStatus.SUCCESS} |" in line:
                successful += 1
            elif f"| {AuditStatus.ERROR} |" in line:
                errors += 1
            matched = TIMESTAMP_RE.match(line)
            if matched:
                last_activity = matched.group(1)
        return AuditStats(
            total=len(lines),
            blocked=blocked,
            successful=successful,
            errors=errors,
            last_activity=last_activity,
        )

    def close(self) -> None:
        with self._lock:
            if self._sink_id is None:
                return
            with suppress(ValueError):
                logger.remove(self._sink_id)
            self._sink_id = None


class NullAuditLog(AuditLog):
    """Audit log that drops every record."""

    def __init__(self) -> None:
        super().__init__(Path(os.devnull))

    def record(self, command: str, status: AuditStatus, reason: str = "") -> None:
        _ = (command, status, reason)

    def stats(self) -> AuditStats:
        return AuditStats()
