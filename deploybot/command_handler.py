import logging

from .commands import HELP_TEXT, HelpCommand, ListCommand, parse_command
from .config import Settings
from .context import WorkloadLocks
from .contracts import ImageRegistry, NotificationSink, OrchestrationPlatform, SourceControl
from .errors import CommandError, DeployBotError, Misconfigured, UpstreamError
from .listing import (
    format_commits,
    format_projects,
    format_registry_repositories,
    format_revisions,
    format_source_repositories,
    format_workloads,
)
from .models import OutcomeState, PipelineOutcome
from .pipeline import PipelineOrchestrator
from .notifier import notify_staff
from .policy import PermissionGate, is_allowed
from .tools import GitHubTool, QuayTool, RancherTool

logger = logging.getLogger(__name__)


class DeployBot:
    """Entry point shared by every chat surface.

    Holds the read-only settings, the collaborator clients and the
    per-workload locks; each chat message gets its own pipeline.
    """

    def __init__(
        self,
        settings: Settings,
        source_control: SourceControl,
        registry: ImageRegistry,
        platform: OrchestrationPlatform,
    ):
        self.settings = settings
        self.source_control = source_control
        self.registry = registry
        self.platform = platform
        self.locks = WorkloadLocks(settings.serialize_workload_actions)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeployBot":
        return cls(settings, GitHubTool(settings), QuayTool(settings), RancherTool(settings))

    async def handle_chat(self, user: str, message: str, sink: NotificationSink) -> PipelineOutcome:
        try:
            command = parse_command(user, message)
        except CommandError as e:
            logger.info("Rejected command", extra={"extra": {"actor": user, "raw_text": message, "reason": str(e)}})
            await sink.notify(user, str(e), "error")
            return PipelineOutcome(state=OutcomeState.ABORTED, message=str(e), stage="Parsing", cause=e)

        if isinstance(command, HelpCommand):
            await sink.notify(user, HELP_TEXT, "info")
            return PipelineOutcome(state=OutcomeState.COMPLETED, message=HELP_TEXT, stage="Idle")

        service = command.service if isinstance(command, ListCommand) else command.action
        missing = self.settings.missing_for(service)
        # Actors outside the allow-list fall through to the gate and are denied there.
        if missing and is_allowed(user, self.settings.allowed_users):
            error = Misconfigured(missing)
            logger.error(str(error), extra={"extra": {"actor": user, "missing": missing}})
            await sink.notify(user, str(error), "error")
            return PipelineOutcome(state=OutcomeState.FAILED, message=str(error), stage="Idle", cause=error)

        if isinstance(command, ListCommand):
            return await self.handle_list(command, sink)

        orchestrator = PipelineOrchestrator(
            self.settings,
            sink,
            self.source_control,
            self.registry,
            self.platform,
            locks=self.locks,
        )
        return await orchestrator.run(command)

    async def handle_list(self, command: ListCommand, sink: NotificationSink) -> PipelineOutcome:
        gate = PermissionGate(self.settings, sink)
        if not await gate.authorize(command.actor, f"list {command.target}"):
            return PipelineOutcome(
                state=OutcomeState.DENIED,
                message=f"@{command.actor} you're not allowed to perform list {command.target}!",
                stage="Authorizing",
            )

        try:
            text = await self._list(command, sink)
        except Exception as e:
            logger.exception("Listing failed", extra={"extra": {"actor": command.actor, "target": command.target}})
            if isinstance(e, UpstreamError):
                message = e.details()
            elif isinstance(e, DeployBotError):
                message = str(e)
            else:
                message = f"An error has occurred while listing your {command.label}: {e}"
            await sink.notify(command.actor, message, "error")
            await notify_staff(sink, self.settings.staff, command.actor, f"list {command.label}", message)
            return PipelineOutcome(state=OutcomeState.FAILED, message=message, stage="Listing", cause=e)

        if text is None:
            message = f"Sorry, I couldn't list your {command.label}"
            await sink.notify(command.actor, message, "error")
            return PipelineOutcome(state=OutcomeState.ABORTED, message=message, stage="Listing")

        await sink.notify(command.actor, text or "Nothing to list.", "success")
        return PipelineOutcome(state=OutcomeState.COMPLETED, message=text, stage="Listing")

    async def _list(self, command: ListCommand, sink: NotificationSink) -> str | None:
        actor = command.actor
        if command.target == "projects":
            await sink.notify(actor, "Listing Rancher projects...", "info")
            return format_projects(await self.platform.list_projects())
        if command.target == "workloads":
            await sink.notify(actor, f"Listing Rancher project {command.project} workloads...", "info")
            workloads = await self.platform.list_workloads(command.project)
            return None if workloads is None else format_workloads(workloads)
        if command.target == "revisions":
            await sink.notify(
                actor, f"Listing Rancher project {command.project} workload {command.workload} revisions...", "info"
            )
            return format_revisions(await self.platform.list_revisions(command.project, command.workload))
        if command.target == "github_repos":
            await sink.notify(actor, "Listing Github repositories...", "info")
            return format_source_repositories(await self.source_control.list_repositories())
        if command.target == "github_commits":
            await sink.notify(actor, f"Listing Github repository {command.repository} commits...", "info")
            commits = await self.source_control.list_commits(command.repository)
            return None if commits is None else format_commits(commits)
        await sink.notify(actor, "Listing Quay repositories...", "info")
        return format_registry_repositories(await self.registry.list_repositories())
