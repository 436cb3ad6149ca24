import logging

from .config import Settings
from .contracts import NotificationSink

logger = logging.getLogger(__name__)


def is_allowed(actor: str, allowlist: list[str]) -> bool:
    if not actor:
        return False
    return actor in allowlist


class PermissionGate:
    """Allow-list check run before any collaborator is contacted."""

    def __init__(self, settings: Settings, sink: NotificationSink):
        self.settings = settings
        self.sink = sink

    async def authorize(self, actor: str, action: str) -> bool:
        if is_allowed(actor, self.settings.allowed_users):
            return True
        logger.warning("Permission denied", extra={"extra": {"actor": actor, "action": action}})
        await self.sink.notify(actor, f"@{actor} you're not allowed to perform {action}!", "error")
        return False
