import logging

from .contracts import NotificationSink
from .models import Notification, Severity

logger = logging.getLogger(__name__)


class CollectingSink:
    """Keeps notifications in order so a single HTTP reply can carry them all."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    async def notify(self, actor: str, message: str, severity: Severity = "info") -> None:
        level = logging.ERROR if severity == "error" else logging.INFO
        logger.log(level, message, extra={"extra": {"actor": actor, "severity": severity}})
        self.notifications.append(Notification(actor=actor, message=message, severity=severity))

    def messages_for(self, actor: str) -> list[str]:
        return [n.message for n in self.notifications if n.actor == actor]

    def text(self, requester: str) -> str:
        return "\n".join(
            n.message if n.actor == requester else f"@{n.actor} {n.message}" for n in self.notifications
        )


async def notify_staff(sink: NotificationSink, staff: list[str], actor: str, command: str, message: str) -> None:
    for user in staff:
        await sink.notify(user, f"@{actor} had an issue while running the '{command}' command: {message}", "error")
