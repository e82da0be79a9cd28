"""Allow/deny policy for shell command candidates."""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from pathlib import Path

ALLOWED_COMMANDS: tuple[str, ...] = (
    # File operations
    "mkdir",
    "touch",
    "ls",
    "cp",
    "mv",
    "cat",
    "head",
    "tail",
    "grep",
    "find",
    "wc",
    "chmod",
    "chown",
    "tar",
    "zip",
    "unzip",
    "gzip",
    "gunzip",
    # Text editing
    "nano",
    "vim",
    "vi",
    "emacs",
    # System info
    "pwd",
    "whoami",
    "uname",
    "df",
    "du",
    "free",
    "uptime",
    "ps",
    "top",
    "htop",
    # Network
    "ping",
    "curl",
    "wget",
    "ssh",
    "scp",
    # Development
    "git",
    "npm",
    "node",
    "python",
    "python3",
    "gcc",
    "g++",
    "make",
    # Utilities
    "echo",
    "date",
    "cal",
    "which",
    "whereis",
    "man",
    "info",
    "help",
)

BLOCKED_FRAGMENTS: tuple[str, ...] = (
    # Destructive system commands
    "rm -rf",
    "rm -r",
    "rm -f",
    "shutdown",
    "reboot",
    "halt",
    "poweroff",
    "init 0",
    "init 6",
    "systemctl poweroff",
    "systemctl reboot",
    # Dangerous permission changes
    "chmod 777 /",
    "chmod 777 /etc",
    "chmod 777 /root",
    "chmod 777 /home",
    "chown root:",
    "chown root /",
    "chown root /etc",
    # Process killing
    "kill -9 1",
    "killall",
    "pkill -f systemd",
    # Network scanning
    "nmap",
    "netcat",
    "nc -l",
    "nc -e",
    # Device and filesystem damage
    "dd if=/dev/zero",
    "dd of=/dev/sda",
    "mkfs",
    "fdisk",
    "parted",
    "format",
    "wipefs",
    "badblocks",
    # Privilege escalation
    "sudo su",
    "sudo -i",
    "su -",
    "su root",
    "passwd root",
    # Redirects into devices and credentials
    "> /dev/sda",
    "> /etc/passwd",
    "> /etc/shadow",
    ">> /etc/passwd",
    # Script execution
    "bash -c",
    "sh -c",
    "eval",
    "exec",
    "source /dev/stdin",
)

BLOCKED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"rm\s+-rf?\s+/"),
    re.compile(r"chmod\s+777\s+/"),
    re.compile(r"chown\s+root\s+/"),
    re.compile(r"dd\s+if=.*of=/dev"),
    re.compile(r"sudo\s+(su|passwd|visudo)"),
    re.compile(r"kill\s+-9\s+[0-9]+"),
    re.compile(r">.*/etc/(passwd|shadow|hosts)"),
    re.compile(r"bash\s+-c\s+['\"]"),
    re.compile(r"eval\s+"),
    re.compile(r"exec\s+"),
    re.compile(r"source\s+/dev/stdin"),
    re.compile(r"`[^`]*`"),
    re.compile(r"\$\([^)]*\)"),
)

CHAINING_OPERATORS: tuple[str, ...] = ("&&", "||", ";")
SUBSTITUTION_MARKERS: tuple[str, ...] = ("$(", "`")
SUGGESTION_SAMPLE_SIZE = 5


@dataclass(frozen=True)
class PolicyVerdict:
    """Outcome of one policy evaluation."""

    safe: bool
    reason: str
    blocked_pattern: str | None = None
    suggestion: str | None = None


@dataclass(frozen=True)
class PathVerdict:
    """Outcome of resolving a user path against the sandbox root."""

    safe: bool
    reason: str
    resolved: Path | None = None


class CommandPolicy:
    """Allowlist of base commands plus denylist of dangerous fragments and patterns.

    Denylist checks run first and unconditionally: an allowed base command can
    still be parameterized dangerously (``chmod 777 /``). Lists are copied per
    instance and may be edited at runtime, so verdicts are never cached.
    """

    def __init__(
        self,
        *,
        allowed: tuple[str, ...] | list[str] = ALLOWED_COMMANDS,
        fragments: tuple[str, ...] | list[str] = BLOCKED_FRAGMENTS,
        patterns: tuple[re.Pattern[str], ...] | list[re.Pattern[str]] = BLOCKED_PATTERNS,
    ) -> None:
        self._allowed: list[str] = [name.lower() for name in allowed]
        self._fragments: list[str] = list(fragments)
        self._patterns: list[re.Pattern[str]] = list(patterns)

    def allowed_commands(self) -> list[str]:
        return list(self._allowed)

    def blocked_fragments(self) -> list[str]:
        return list(self._fragments)

    def blocked_patterns(self) -> list[str]:
        return [pattern.pattern for pattern in self._patterns]

    def allow(self, name: str) -> None:
        normalized = name.strip().lower()
        if normalized and normalized not in self._allowed:
            self._allowed.append(normalized)

    def disallow(self, name: str) -> None:
        normalized = name.strip().lower()
        if normalized in self._allowed:
            self._allowed.remove(normalized)

    def deny(self, fragment: str) -> None:
        if fragment and fragment not in self._fragments:
            self._fragments.append(fragment)

    def check(self, command: object) -> PolicyVerdict:
        if not isinstance(command, str) or not command.strip() or "\x00" in command:
            return PolicyVerdict(safe=False, reason="Invalid command format")

        lowered = command.strip().lower()

        for fragment in self._fragments:
            if fragment.lower() in lowered:
                return PolicyVerdict(
                    safe=False,
                    reason=f'Command contains blocked pattern: "{fragment}"',
                    blocked_pattern=fragment,
                )

        for pattern in self._patterns:
            if pattern.search(command) or pattern.search(lowered):
                return PolicyVerdict(
                    safe=False,
                    reason=f"Command matches blocked pattern: /{pattern.pattern}/",
                    blocked_pattern=pattern.pattern,
                )

        base_command = lowered.split()[0]
        if base_command not in self._allowed:
            sample = ", ".join(self._allowed[:SUGGESTION_SAMPLE_SIZE])
            return PolicyVerdict(
                safe=False,
                reason=f'Command "{base_command}" not in allowlist',
                suggestion=f"Try one of these: {sample}...",
            )

        for operator in CHAINING_OPERATORS:
            if operator in lowered:
                return PolicyVerdict(
                    safe=False,
                    reason="Command chaining not allowed for security",
                    blocked_pattern=operator,
                )

        for marker in SUBSTITUTION_MARKERS:
            if marker in lowered:
                return PolicyVerdict(
                    safe=False,
                    reason="Command substitution not allowed for security",
                    blocked_pattern=marker,
                )

        return PolicyVerdict(safe=True, reason="Command is safe")


_DEFAULT_POLICY = CommandPolicy()


def is_command_safe(command: object) -> PolicyVerdict:
    """Evaluate a command against the default policy."""
    return _DEFAULT_POLICY.check(command)


def resolve_inside(root: Path, raw_path: str) -> Path | None:
    """Resolve ``raw_path`` against ``root``; ``None`` when it escapes the root.

    Raises ``ValueError`` for paths the OS cannot represent (embedded NUL).
    """
    if "\x00" in raw_path:
        raise ValueError("embedded null byte")
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    resolved = candidate.resolve()
    if resolved == root or resolved.is_relative_to(root):
        return resolved
    return None


def is_path_safe(root: Path, raw_path: object) -> PathVerdict:
    """Check that a user path stays within the sandbox root."""
    if not isinstance(raw_path, str) or not raw_path.strip():
        return PathVerdict(safe=False, reason="Invalid path format")
    try:
        resolved = resolve_inside(root.resolve(), raw_path)
    except (OSError, RuntimeError, ValueError) as exc:
        return PathVerdict(safe=False, reason=f"Path resolution error: {exc!s}")
    if resolved is None:
        return PathVerdict(safe=False, reason=f'Path "{raw_path}" is outside the working directory')
    return PathVerdict(safe=True, reason="Path is within the working directory", resolved=resolved)


def _looks_like_path(token: str) -> bool:
    return token.startswith(("/", "~")) or ".." in token or "/" in token


def _path_candidates(token: str) -> list[str]:
    if token.startswith("-"):
        # --output=../x carries a path after "="; bare flags do not
        _, sep, value = token.partition("=")
        return [value] if sep and value else []
    return [token]


def check_command_paths(root: Path, command: str) -> PolicyVerdict:
    """Reject shell arguments that resolve outside ``root``.

    Only path-like tokens are checked: absolute, home-relative, or containing
    ``..`` or a separator.
    """
    try:
        tokens = shlex.split(command)
    except ValueError:
        return PolicyVerdict(safe=False, reason="Command has unbalanced quoting")

    for token in tokens[1:]:
        for candidate in _path_candidates(token):
            if not _looks_like_path(candidate):
                continue
            verdict = is_path_safe(root, candidate)
            if not verdict.safe:
                return PolicyVerdict(
                    safe=False,
                    reason=f'Argument "{candidate}" resolves outside the working directory',
                    blocked_pattern=candidate,
                )
    return PolicyVerdict(safe=True, reason="Command paths stay within the working directory")
