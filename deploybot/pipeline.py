"""Verification-and-dispatch pipeline for deploy, rollback, pause and resume.

Stages run strictly in sequence: authorize, verify each entity, resolve the
rollback revision, dispatch. The first negative answer cancels the pipeline
and no later stage starts. Unexpected errors are caught once, in `run`.
"""
from __future__ import annotations

import logging
from contextlib import AsyncExitStack

from .config import Settings
from .context import PipelineContext, WorkloadLocks
from .contracts import ImageRegistry, NotificationSink, OrchestrationPlatform, SourceControl
from .dispatcher import ActionDispatcher
from .errors import AmbiguousRequest, DeployBotError, RevisionNotFound, UpstreamError
from .models import DeploymentRequest, OutcomeState, PipelineOutcome, Severity
from .notifier import notify_staff
from .policy import PermissionGate
from .resolver import resolve, validate_selector
from .verification import WorkloadStep, build_plan

logger = logging.getLogger(__name__)

SEVERITY = {
    OutcomeState.COMPLETED: "success",
    OutcomeState.ABORTED: "info",
    OutcomeState.DENIED: "error",
    OutcomeState.FAILED: "error",
}


class PipelineOrchestrator:
    def __init__(
        self,
        settings: Settings,
        sink: NotificationSink,
        source_control: SourceControl,
        registry: ImageRegistry,
        platform: OrchestrationPlatform,
        locks: WorkloadLocks | None = None,
    ):
        self.settings = settings
        self.sink = sink
        self.source_control = source_control
        self.registry = registry
        self.platform = platform
        self.gate = PermissionGate(settings, sink)
        self.dispatcher = ActionDispatcher(platform)
        self.locks = locks or WorkloadLocks(settings.serialize_workload_actions)

    async def run(self, request: DeploymentRequest) -> PipelineOutcome:
        ctx = PipelineContext(request)
        logger.info("Pipeline started", extra=ctx.log_extra(raw_text=request.raw_text))
        try:
            outcome = await self._run(ctx)
        except Exception as e:
            logger.exception("Pipeline failed", extra=ctx.log_extra())
            outcome = self._failed(ctx, e)

        try:
            # The gate has already told the actor about a denial.
            if outcome.state != OutcomeState.DENIED:
                await self._notify(ctx, outcome.message, SEVERITY[outcome.state])
            if outcome.state == OutcomeState.FAILED:
                await self._notify_staff(ctx, outcome)
        except Exception:
            logger.exception("Terminal notification failed", extra=ctx.log_extra(state=outcome.state.value))

        logger.info(
            "Pipeline finished",
            extra=ctx.log_extra(state=outcome.state.value, message=outcome.message, dry_run=outcome.dry_run),
        )
        return outcome

    async def _run(self, ctx: PipelineContext) -> PipelineOutcome:
        request = ctx.request
        token = ctx.token

        if request.action == "rollback":
            try:
                validate_selector(request.selector)
            except AmbiguousRequest as e:
                token.cancel(OutcomeState.ABORTED, str(e))
                return self._from_token(ctx)

        ctx.stage = "Authorizing"
        if not await self.gate.authorize(request.actor, request.action):
            token.cancel(OutcomeState.DENIED, f"@{request.actor} you're not allowed to perform {request.action}!")
            return self._from_token(ctx)

        async with AsyncExitStack() as held:
            await self._verify(ctx, held)
            if token.cancelled:
                return self._from_token(ctx)

            if request.action == "rollback":
                await self._resolve(ctx)
                if token.cancelled:
                    return self._from_token(ctx)

            return await self._dispatch(ctx)

    async def _verify(self, ctx: PipelineContext, held: AsyncExitStack) -> None:
        """Run the checks in order, taking the workload lock once the workload is known."""
        plan = build_plan(ctx.request.action, self.source_control, self.registry, self.platform)
        for i, step in enumerate(plan):
            if ctx.token.cancelled:
                return
            ctx.stage = f"Verifying[{i}]"
            target = step.target(ctx)
            await self._notify(ctx, f"Checking if {target} exists...", "info")
            result = await step.run(ctx)
            if not result.ok:
                logger.info("Verification negative", extra=ctx.log_extra(step=type(step).__name__))
                ctx.token.cancel(OutcomeState.ABORTED, f"Sorry, I {result.reason}. Aborting execution.")
                return
            await self._notify(ctx, f"Found {target}", "success")
            if isinstance(step, WorkloadStep):
                await held.enter_async_context(
                    self.locks.hold(ctx.project.id, ctx.workload.id, dry_run=ctx.request.dry_run)
                )

    async def _resolve(self, ctx: PipelineContext) -> None:
        ctx.stage = "Resolving"
        selector = ctx.request.selector
        await self._notify(ctx, f"Looking up {selector.describe()} of workload {ctx.workload.id}...", "info")
        revisions = await self.platform.list_revisions(ctx.project.id, ctx.workload.id)
        try:
            ctx.revision = resolve(selector, revisions)
        except (AmbiguousRequest, RevisionNotFound) as e:
            ctx.token.cancel(OutcomeState.ABORTED, f"{e}. Aborting execution.")
            return
        await self._notify(ctx, f"Rancher revision {ctx.revision.name} ({ctx.revision.id}) selected", "success")

    async def _dispatch(self, ctx: PipelineContext) -> PipelineOutcome:
        if ctx.token.cancelled:
            return self._from_token(ctx)
        ctx.stage = "Dispatching"
        request = ctx.request
        target = request.commit if request.action == "deploy" else None
        if request.action == "rollback":
            target = ctx.revision.name
        description = f"{request.action} operation: workload {ctx.workload.id} at project {ctx.project.id}"
        if target:
            description += f" to {target}"

        if request.dry_run:
            return PipelineOutcome(
                state=OutcomeState.COMPLETED,
                message=f"[dry run] All good to run {description}. Nothing was changed.",
                stage=ctx.stage,
                dry_run=True,
                request=request,
            )

        if request.action == "deploy":
            await self._notify(ctx, "All good to deploy :rocket:", "info")
        await self._notify(ctx, f"*Starting {description}...*", "info")

        ok = await self.dispatcher.dispatch(
            request.action,
            ctx.project.id,
            ctx.workload,
            revision=ctx.revision,
            commit=request.commit,
        )
        if not ok:
            return PipelineOutcome(
                state=OutcomeState.FAILED,
                message=f"Sorry, I couldn't execute your Rancher action {request.action}",
                stage=ctx.stage,
                request=request,
            )
        return PipelineOutcome(
            state=OutcomeState.COMPLETED,
            message=f"Executed {request.action} successfully",
            stage=ctx.stage,
            request=request,
        )

    def _from_token(self, ctx: PipelineContext) -> PipelineOutcome:
        return PipelineOutcome(
            state=ctx.token.state,
            message=ctx.token.reason,
            stage=ctx.stage,
            dry_run=ctx.request.dry_run,
            request=ctx.request,
        )

    def _failed(self, ctx: PipelineContext, error: Exception) -> PipelineOutcome:
        ctx.token.cancel(OutcomeState.FAILED, str(error))
        if isinstance(error, UpstreamError):
            message = f"An error has occurred while running {ctx.request.action}:\n{error.details()}"
        elif isinstance(error, DeployBotError):
            message = str(error)
        else:
            message = f"An error has occurred while running {ctx.request.action}: {error}"
        return PipelineOutcome(
            state=OutcomeState.FAILED,
            message=message,
            stage=ctx.stage,
            dry_run=ctx.request.dry_run,
            request=ctx.request,
            cause=error,
        )

    async def _notify(self, ctx: PipelineContext, message: str, severity: Severity) -> None:
        await self.sink.notify(ctx.request.actor, message, severity)

    async def _notify_staff(self, ctx: PipelineContext, outcome: PipelineOutcome) -> None:
        command = ctx.request.raw_text or ctx.request.action
        await notify_staff(self.sink, self.settings.staff, ctx.request.actor, command, outcome.message)
