"""Command routing for admin room text.

Commands are registered with a descriptor naming the words that invoke them
and the arguments they take. Dispatch picks the longest registered name that
prefixes the input and passes the remaining words as positional arguments.

Arguments beyond the declared required and optional ones are ignored, so
``github status extra`` still runs ``github status``.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from ..errors import (
    CommandParseError,
    DuplicateCommandError,
    MissingArgumentError,
    UnknownCommandError,
)

logger = logging.getLogger(__name__)

CommandHandler = Callable[..., Awaitable[Any]]


class Category(str, Enum):
    GENERAL = "general"
    GITHUB = "github"


@dataclass(frozen=True)
class CommandDescriptor:
    """Static metadata for one command."""

    name: tuple[str, ...]
    help: str
    category: Category = Category.GENERAL
    required_args: tuple[str, ...] = ()
    optional_args: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        name: str,
        help: str,
        category: Category = Category.GENERAL,
        required_args: tuple[str, ...] | list[str] = (),
        optional_args: tuple[str, ...] | list[str] = (),
    ) -> "CommandDescriptor":
        """Build a descriptor from a space separated command name."""
        words = tuple(word.lower() for word in name.split())
        if not words:
            raise ValueError("Command name must not be empty")
        return cls(
            name=words,
            help=help,
            category=category,
            required_args=tuple(required_args),
            optional_args=tuple(optional_args),
        )

    @property
    def command(self) -> str:
        return " ".join(self.name)

    @property
    def usage(self) -> str:
        parts = [self.command]
        parts.extend(f"<{arg}>" for arg in self.required_args)
        parts.extend(f"[{arg}]" for arg in self.optional_args)
        return " ".join(parts)


@dataclass(frozen=True)
class RegisteredCommand:
    descriptor: CommandDescriptor
    handler: CommandHandler


class CommandRouter:
    """Maps command names to async handlers.

    Usage:
        router = CommandRouter()
        router.register(
            CommandDescriptor.create("github status", help="Check your GitHub login"),
            status_command,
        )
        await router.dispatch("github status", ctx)
    """

    def __init__(self):
        self._commands: dict[tuple[str, ...], RegisteredCommand] = {}

    def register(self, descriptor: CommandDescriptor, handler: CommandHandler) -> None:
        """Register ``handler`` under ``descriptor.name``.

        Raises:
            DuplicateCommandError: If the name is already registered
        """
        if descriptor.name in self._commands:
            raise DuplicateCommandError(descriptor.command)
        self._commands[descriptor.name] = RegisteredCommand(descriptor, handler)

    def command(
        self,
        name: str,
        help: str,
        category: Category = Category.GENERAL,
        required_args: tuple[str, ...] | list[str] = (),
        optional_args: tuple[str, ...] | list[str] = (),
    ) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator form of :meth:`register`."""
        descriptor = CommandDescriptor.create(name, help, category, required_args, optional_args)

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.register(descriptor, handler)
            return handler

        return decorator

    def commands(self, category: Category | None = None) -> list[CommandDescriptor]:
        """Registered descriptors, sorted by name."""
        return sorted(
            (
                entry.descriptor
                for entry in self._commands.values()
                if category is None or entry.descriptor.category == category
            ),
            key=lambda d: d.name,
        )

    def help_text(self, category: Category | None = None) -> str:
        """Render the command list grouped by category."""
        lines = ["Commands:"]
        current: Category | None = None
        for descriptor in sorted(self.commands(category), key=lambda d: (d.category.value, d.name)):
            if descriptor.category != current:
                current = descriptor.category
                lines.append(f"{current.value.capitalize()}:")
            lines.append(f"  {descriptor.usage} - {descriptor.help}")
        return "\n".join(lines)

    def match(self, tokens: list[str]) -> tuple[RegisteredCommand, list[str]] | None:
        """Find the longest registered name prefixing ``tokens``."""
        lowered = [token.lower() for token in tokens]
        for length in range(len(tokens), 0, -1):
            entry = self._commands.get(tuple(lowered[:length]))
            if entry is not None:
                return entry, tokens[length:]
        return None

    async def dispatch(self, raw_input: str, ctx: Any) -> Any:
        """Run the command named by ``raw_input``.

        Raises:
            CommandParseError: If the input has unbalanced quotes
            UnknownCommandError: If no command matches
            MissingArgumentError: If required arguments are missing
        """
        try:
            tokens = shlex.split(raw_input)
        except ValueError as e:
            raise CommandParseError(f"Could not parse command: {e}")

        matched = self.match(tokens)
        if matched is None:
            raise UnknownCommandError(raw_input.strip())
        entry, args = matched
        descriptor = entry.descriptor

        required_count = len(descriptor.required_args)
        if len(args) < required_count:
            raise MissingArgumentError(descriptor.required_args[len(args)])

        accepted = required_count + len(descriptor.optional_args)
        if len(args) > accepted:
            logger.debug("Ignoring %d extra argument(s) to '%s'", len(args) - accepted, descriptor.command)
            args = args[:accepted]

        logger.debug("Dispatching '%s'", descriptor.command)
        return await entry.handler(ctx, *args)
