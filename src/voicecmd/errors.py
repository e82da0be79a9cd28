"""Application-level exception types for voicecmd."""

from __future__ import annotations


class VoiceCmdError(Exception):
    """Base exception for voicecmd."""


class ConfigurationError(VoiceCmdError):
    """Base exception for configuration and startup validation errors."""


class WorkspaceNotDirectoryError(ConfigurationError):
    """Raised when the configured workspace path is not a directory."""
