"""Admin room session passed to command handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

from ..auth.store import UserTokenStore
from ..config import BridgeSettings

NoticeSender = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class AdminRoomContext:
    """What a handler may use while running one command."""

    user_id: str
    config: BridgeSettings
    token_store: UserTokenStore
    notice_sender: NoticeSender

    async def send_notice(self, text: str) -> None:
        await self.notice_sender(text)
