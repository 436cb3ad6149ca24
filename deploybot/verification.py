"""Existence checks run, in order, before an action is dispatched."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .context import PipelineContext
from .contracts import ImageRegistry, OrchestrationPlatform, SourceControl
from .models import VerificationResult
from .tools.quay_tool import parse_repository


class VerificationStep(ABC):
    """Checks that one entity exists at one collaborator."""

    @abstractmethod
    def target(self, ctx: PipelineContext) -> str:
        """Human-readable name of the entity being checked."""

    @abstractmethod
    async def check(self, ctx: PipelineContext) -> Any:
        """Return the entity, or a falsy value when it does not exist."""

    def record(self, ctx: PipelineContext, entity: Any) -> None:
        pass

    async def run(self, ctx: PipelineContext) -> VerificationResult:
        entity = await self.check(ctx)
        if not entity:
            return VerificationResult(ok=False, reason=f"couldn't find {self.target(ctx)}")
        self.record(ctx, entity)
        return VerificationResult(ok=True, entity=entity)


class SourceRepositoryStep(VerificationStep):
    def __init__(self, source_control: SourceControl):
        self.source_control = source_control

    def target(self, ctx: PipelineContext) -> str:
        return f"the GitHub repository {ctx.request.source_repository}"

    async def check(self, ctx: PipelineContext) -> Any:
        return await self.source_control.check_repository(ctx.request.source_repository)


class CommitStep(VerificationStep):
    def __init__(self, source_control: SourceControl):
        self.source_control = source_control

    def target(self, ctx: PipelineContext) -> str:
        return f"the commit {ctx.request.commit} in {ctx.request.source_repository}"

    async def check(self, ctx: PipelineContext) -> Any:
        return await self.source_control.check_commit(ctx.request.source_repository, ctx.request.commit)


class ProjectStep(VerificationStep):
    def __init__(self, platform: OrchestrationPlatform):
        self.platform = platform

    def target(self, ctx: PipelineContext) -> str:
        return f"your Rancher project {ctx.request.project}"

    async def check(self, ctx: PipelineContext) -> Any:
        # Deploys name the project by environment; the other actions pass its id.
        field = "name" if ctx.request.action == "deploy" else "id"
        return await self.platform.check_project(ctx.request.project, field)

    def record(self, ctx: PipelineContext, entity: Any) -> None:
        ctx.project = entity


class WorkloadStep(VerificationStep):
    def __init__(self, platform: OrchestrationPlatform):
        self.platform = platform

    def target(self, ctx: PipelineContext) -> str:
        return f"your Rancher project {ctx.request.project} workload {ctx.request.workload}"

    async def check(self, ctx: PipelineContext) -> Any:
        return await self.platform.check_workload(ctx.project, ctx.request.workload_field, ctx.request.workload)

    def record(self, ctx: PipelineContext, entity: Any) -> None:
        ctx.workload = entity


class RegistryRepositoryStep(VerificationStep):
    def __init__(self, registry: ImageRegistry):
        self.registry = registry

    def target(self, ctx: PipelineContext) -> str:
        return f"Quay repository {parse_repository(ctx.workload.image)}"

    async def check(self, ctx: PipelineContext) -> Any:
        name = parse_repository(ctx.workload.image)
        if not name:
            return None
        return await self.registry.check_repository(name)

    def record(self, ctx: PipelineContext, entity: Any) -> None:
        ctx.registry_repository = entity.name


class RegistryImageStep(VerificationStep):
    def __init__(self, registry: ImageRegistry):
        self.registry = registry

    def target(self, ctx: PipelineContext) -> str:
        return f"image {ctx.registry_repository}:{ctx.request.commit} at Quay"

    async def check(self, ctx: PipelineContext) -> Any:
        # An empty tag list is a miss, not an error.
        return await self.registry.check_image(ctx.registry_repository, ctx.request.commit)


def build_plan(
    action: str,
    source_control: SourceControl,
    registry: ImageRegistry,
    platform: OrchestrationPlatform,
) -> list[VerificationStep]:
    if action == "deploy":
        return [
            SourceRepositoryStep(source_control),
            CommitStep(source_control),
            ProjectStep(platform),
            WorkloadStep(platform),
            RegistryRepositoryStep(registry),
            RegistryImageStep(registry),
        ]
    return [ProjectStep(platform), WorkloadStep(platform)]
