"""Pytest configuration and shared fixtures."""
from typing import Any

import pytest

from deploybot.config import Settings
from deploybot.models import (
    Commit,
    Container,
    ImageTag,
    Project,
    RegistryRepository,
    Revision,
    SourceRepository,
    Workload,
)
from deploybot.notifier import CollectingSink


class FakeSourceControl:
    def __init__(self, repos=("web-api",), commits=("abc1234",)):
        self.repos = set(repos)
        self.commits = set(commits)
        self.calls: list[tuple] = []

    async def check_repository(self, name: str):
        self.calls.append(("check_repository", name))
        return SourceRepository(id=1, name=name) if name in self.repos else None

    async def check_commit(self, repository: str, sha: str):
        self.calls.append(("check_commit", repository, sha))
        return Commit(sha=sha) if sha in self.commits else None

    async def list_repositories(self):
        self.calls.append(("list_repositories",))
        return [SourceRepository(id=i, name=name) for i, name in enumerate(sorted(self.repos))]

    async def list_commits(self, repository: str):
        self.calls.append(("list_commits", repository))
        if repository not in self.repos:
            return None
        return [Commit(sha=sha, author="dev", email="dev@example.com") for sha in sorted(self.commits)]


class FakeRegistry:
    def __init__(self, repos=("web-api",), tags=(("web-api", "abc1234"),)):
        self.repos = set(repos)
        self.tags = set(tags)
        self.calls: list[tuple] = []

    async def check_repository(self, name: str):
        self.calls.append(("check_repository", name))
        return RegistryRepository(name=name) if name in self.repos else None

    async def check_image(self, repository: str, tag: str):
        self.calls.append(("check_image", repository, tag))
        return [ImageTag(name=tag)] if (repository, tag) in self.tags else []

    async def list_repositories(self):
        self.calls.append(("list_repositories",))
        return [RegistryRepository(name=name, description="") for name in sorted(self.repos)]


class FakePlatform:
    def __init__(self, projects=None, workloads=None, revisions=None, action_result: bool = True):
        self.projects = projects if projects is not None else []
        self.workloads = workloads if workloads is not None else []
        self.revisions = revisions if revisions is not None else []
        self.action_result = action_result
        self.calls: list[tuple] = []
        self.actions: list[dict[str, Any]] = []

    async def check_project(self, value: str, field: str = "name"):
        self.calls.append(("check_project", value, field))
        for p in self.projects:
            if getattr(p, field) == value:
                return p
        return None

    async def check_workload(self, project: Project, field: str, value: str):
        self.calls.append(("check_workload", project.id, field, value))
        for w in self.workloads:
            if w.project_id == project.id and getattr(w, field) == value:
                return w
        return None

    async def list_revisions(self, project_id: str, workload_id: str):
        self.calls.append(("list_revisions", project_id, workload_id))
        return list(self.revisions)

    async def perform_action(self, action: str, project_id: str, workload_id: str, payload: dict | None = None):
        self.calls.append(("perform_action", action, project_id, workload_id))
        self.actions.append({"action": action, "project_id": project_id, "workload_id": workload_id, "payload": payload})
        return self.action_result

    async def list_projects(self):
        self.calls.append(("list_projects",))
        return list(self.projects)

    async def list_workloads(self, project_id: str):
        self.calls.append(("list_workloads", project_id))
        rows = [w for w in self.workloads if w.project_id == project_id]
        return rows or None


def make_revisions() -> list[Revision]:
    """Five revisions in a deliberately scrambled upstream order."""
    return [
        Revision(id="rs-3", name="rev-3", created_ts=3000, image="quay.io/hashlab/web-api:3333333"),
        Revision(id="rs-5", name="rev-5", created_ts=5000, image="quay.io/hashlab/web-api:5555555"),
        Revision(id="rs-1", name="rev-1", created_ts=1000, image="quay.io/hashlab/web-api:1111111"),
        Revision(id="rs-42", name="rev-42", created_ts=4000, image="quay.io/hashlab/web-api:4242424"),
        Revision(id="rs-2", name="rev-2", created_ts=2000, image="quay.io/hashlab/web-api:2222222"),
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        github_token="gh-token",
        quay_token="quay-token",
        rancher_api_url="https://rancher.example.com/v3",
        rancher_access_key="access",
        rancher_secret_key="secret",
        authz_deploy_allow="alice,bob",
        staff_users="sec-lead",
        log_json=False,
    )


@pytest.fixture
def staging() -> Project:
    return Project(id="c-1:p-staging", name="Staging", state="active")


@pytest.fixture
def production() -> Project:
    return Project(id="c-1:p-prod", name="Production", state="active")


@pytest.fixture
def p1() -> Project:
    return Project(id="p1", name="apps", state="active")


@pytest.fixture
def web_api(staging) -> Workload:
    return Workload(
        id="deployment:default:web-api",
        name="web-api",
        project_id=staging.id,
        containers=[
            Container(name="web-api", image="quay.io/hashlab/web-api:0a1b2c3", ports=[{"containerPort": 8080}]),
            Container(name="sidecar", image="quay.io/hashlab/proxy:1.2.3"),
        ],
    )


@pytest.fixture
def web_api_prod(production) -> Workload:
    return Workload(
        id="deployment:default:web-api",
        name="web-api",
        project_id=production.id,
        containers=[Container(name="web-api", image="quay.io/hashlab/web-api:0a1b2c3")],
    )


@pytest.fixture
def w1(p1) -> Workload:
    return Workload(id="w1", name="worker", project_id=p1.id, containers=[Container(image="quay.io/hashlab/worker:fff0000")])


@pytest.fixture
def revisions() -> list[Revision]:
    return make_revisions()


@pytest.fixture
def source_control() -> FakeSourceControl:
    return FakeSourceControl()


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def platform(staging, production, p1, web_api, web_api_prod, w1, revisions) -> FakePlatform:
    return FakePlatform(
        projects=[staging, production, p1],
        workloads=[web_api, web_api_prod, w1],
        revisions=revisions,
    )


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()
