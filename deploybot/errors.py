class DeployBotError(Exception):
    """Base class for every error the bot reports back to the actor."""


class CommandError(DeployBotError):
    """The chat command does not match the grammar."""


class AmbiguousRequest(CommandError):
    """A rollback names a revision without the `revision` keyword."""


class PermissionDenied(DeployBotError):
    def __init__(self, actor: str, action: str):
        self.actor = actor
        self.action = action
        super().__init__(f"@{actor} you're not allowed to perform {action}!")


class NotFound(DeployBotError):
    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Sorry, I couldn't find {what}")


class RevisionNotFound(NotFound):
    pass


class UpstreamError(DeployBotError):
    """Transport or HTTP failure while talking to a collaborator."""

    def __init__(self, service: str, message: str, status_code: int | None = None, body: str = "", url: str = ""):
        self.service = service
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"{service} error: {message}")

    def details(self) -> str:
        parts = [str(self)]
        if self.status_code is not None:
            parts.append(f"Response status code: `{self.status_code}`")
        if self.body:
            parts.append(f"```\n{self.body[:500]}\n```")
        return "\n".join(parts)


class Misconfigured(DeployBotError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        names = ", ".join(missing)
        super().__init__(f"The bot is not configured for this command, missing: {names}")
