"""Admin room commands.

Provides the command router, the admin room session context, and the GitHub
account commands built on them.
"""

from .admin_room import build_router, handle_admin_command
from .context import AdminRoomContext
from .github import register_github_commands
from .router import Category, CommandDescriptor, CommandRouter

__all__ = [
    "AdminRoomContext",
    "Category",
    "CommandDescriptor",
    "CommandRouter",
    "build_router",
    "handle_admin_command",
    "register_github_commands",
]
