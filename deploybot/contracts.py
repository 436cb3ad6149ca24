"""Collaborator interfaces consumed by the deployment pipeline.

Lookups return `None` (or an empty list) when the entity does not exist and
raise `UpstreamError` when the collaborator cannot be reached or answers
with an unexpected status.
"""
from typing import Protocol

from .models import (
    Commit,
    ImageTag,
    Project,
    RegistryRepository,
    Revision,
    Severity,
    SourceRepository,
    Workload,
)


class SourceControl(Protocol):
    async def check_repository(self, name: str) -> SourceRepository | None: ...

    async def check_commit(self, repository: str, sha: str) -> Commit | None: ...

    async def list_repositories(self) -> list[SourceRepository]: ...

    async def list_commits(self, repository: str) -> list[Commit] | None: ...


class ImageRegistry(Protocol):
    async def check_repository(self, name: str) -> RegistryRepository | None: ...

    async def check_image(self, repository: str, tag: str) -> list[ImageTag]: ...

    async def list_repositories(self) -> list[RegistryRepository]: ...


class OrchestrationPlatform(Protocol):
    async def check_project(self, value: str, field: str = "name") -> Project | None: ...

    async def check_workload(self, project: Project, field: str, value: str) -> Workload | None: ...

    async def list_revisions(self, project_id: str, workload_id: str) -> list[Revision]: ...

    async def perform_action(self, action: str, project_id: str, workload_id: str, payload: dict | None = None) -> bool: ...

    async def list_projects(self) -> list[Project]: ...

    async def list_workloads(self, project_id: str) -> list[Workload] | None: ...


class NotificationSink(Protocol):
    async def notify(self, actor: str, message: str, severity: Severity = "info") -> None: ...
