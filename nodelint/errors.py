"""Exception hierarchy for nodelint."""

from __future__ import annotations

from typing import Optional


class NodelintError(Exception):
    """Base class for all errors raised by nodelint."""


class ConfigurationError(NodelintError):
    """Raised when rules, patterns or configuration files are invalid.

    Configuration problems are surfaced before any tree is analyzed so a
    misconfigured run never produces a partial report.
    """


class PatternSyntaxError(ConfigurationError):
    """Raised when pattern text cannot be compiled."""

    def __init__(self, message: str, text: str, position: Optional[int] = None) -> None:
        self.text = text
        self.position = position
        if position is not None:
            message = f"{message} at offset {position} in {text!r}"
        else:
            message = f"{message} in {text!r}"
        super().__init__(message)


class TreeFormatError(NodelintError, ValueError):
    """Raised when serialized tree data does not describe a valid node."""
