"""Configuration management for voicecmd."""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from voicecmd.errors import WorkspaceNotDirectoryError

DEFAULT_WORKSPACE = Path.home() / "Desktop" / "VOICE-CMD"
DEFAULT_HOME = Path.home() / ".voicecmd"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="VOICECMD_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sandbox
    workspace: Path = Field(default=DEFAULT_WORKSPACE, description="Sandbox root for file and shell operations")
    home: Path = Field(default=DEFAULT_HOME, description="Directory for memory and audit files")

    # Shell runner
    command_timeout_seconds: float = Field(default=10.0, gt=0, description="Wall-clock limit per shell command")
    max_output_bytes: int = Field(default=1024 * 1024, gt=0, description="Output cap per shell command")

    # Collaborators
    memory_enabled: bool = Field(default=True, description="Record command history into memory")
    log_commands: bool = Field(default=True, description="Write the security audit log")
    history_limit: int = Field(default=10, ge=1, description="Command history entries kept in memory")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("workspace", "home", mode="after")
    @classmethod
    def _expand(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @property
    def memory_file(self) -> Path:
        return self.home / "memory.json"

    @property
    def audit_log_file(self) -> Path:
        return self.home / "logs" / "security.log"


def get_settings(workspace: Path | None = None) -> Settings:
    """Get application settings.

    Args:
        workspace: Optional sandbox root override

    Returns:
        Settings instance
    """
    if workspace is None:
        return Settings()
    return Settings(workspace=workspace)


def ensure_workspace(settings: Settings) -> Path:
    """Create the sandbox root at startup if it is missing."""
    root = settings.workspace
    if root.exists() and not root.is_dir():
        raise WorkspaceNotDirectoryError(str(root))
    if not root.exists():
        root.mkdir(parents=True, exist_ok=True)
        logger.info("workspace.created path={}", root)
    settings.home.mkdir(parents=True, exist_ok=True)
    return root
