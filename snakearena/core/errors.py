"""Error types for Snake Arena."""

from __future__ import annotations


class ArenaError(Exception):
    """Base error for Snake Arena failures."""


class CompilationError(ArenaError):
    """Raised when algorithm source cannot be turned into a callable."""


class SandboxViolationError(CompilationError):
    """Raised when algorithm source uses syntax or names the sandbox forbids."""


class ConfigError(ArenaError, ValueError):
    """Raised when a configuration file holds invalid values."""
