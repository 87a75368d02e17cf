"""Error types shared by the token store and the admin room commands."""

from __future__ import annotations

from enum import Enum


class BridgeError(Exception):
    """Base exception for bridge authentication errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class CommandError(BridgeError):
    """A command failed in a way the user should be told about."""

    pass


class ConfigurationError(CommandError):
    """The bridge is not configured for the requested integration."""

    def __init__(self, code: str, message: str):
        super().__init__(message, code)


class UnknownCommandError(CommandError):
    """No registered command matches the input."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unknown command: {command}", "unknown-command")


class MissingArgumentError(CommandError):
    """A required command argument was not supplied."""

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"Missing argument: {argument}", "missing-argument")


class CommandParseError(CommandError):
    """The command text could not be tokenized."""

    def __init__(self, message: str):
        super().__init__(message, "parse-error")


class DuplicateCommandError(BridgeError):
    """A command with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Command '{name}' is already registered", "duplicate-command")


class TokenErrorCode(str, Enum):
    EXPIRED = "expired"
    MALFORMED = "malformed"


class TokenError(BridgeError):
    """A stored credential exists but cannot be used."""

    def __init__(self, code: TokenErrorCode, message: str):
        super().__init__(message, code.value)
        self.code = code


class StateNotFoundError(BridgeError):
    """OAuth state is unknown, expired, or was already used."""

    def __init__(self, message: str = "OAuth state not found or already used"):
        super().__init__(message, "state-not-found")


class PersistenceError(BridgeError):
    """The backing credential store could not be read or written."""

    def __init__(self, message: str):
        super().__init__(message, "persistence")
