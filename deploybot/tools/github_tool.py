import httpx

from ..config import Settings
from ..models import Commit, SourceRepository
from .http import HttpTool


class GitHubTool(HttpTool):
    service = "GitHub"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(
            settings.github_api_url,
            headers={"Authorization": f"token {settings.github_token}", "Accept": "application/vnd.github+json"},
            timeout=settings.http_timeout,
            transport=transport,
        )
        self.org = settings.github_org

    async def check_repository(self, name: str) -> SourceRepository | None:
        data = await self._get_json(f"repos/{self.org}/{name}")
        if not data or "id" not in data:
            return None
        return SourceRepository(
            id=data["id"],
            name=data.get("name", name),
            private=bool(data.get("private")),
            description=data.get("description"),
            open_issues_count=data.get("open_issues_count") or 0,
        )

    async def check_commit(self, repository: str, sha: str) -> Commit | None:
        # GitHub answers 422 for a sha it cannot resolve.
        data = await self._get_json(f"repos/{self.org}/{repository}/commits/{sha}", missing=(404, 422))
        if not data or "sha" not in data:
            return None
        return Commit.from_api(data)

    async def list_repositories(self) -> list[SourceRepository]:
        data = await self._get_json(f"orgs/{self.org}/repos") or []
        return [
            SourceRepository(
                id=repo["id"],
                name=repo["name"],
                private=bool(repo.get("private")),
                description=repo.get("description"),
                open_issues_count=repo.get("open_issues_count") or 0,
            )
            for repo in data
        ]

    async def list_commits(self, repository: str) -> list[Commit] | None:
        data = await self._get_json(f"repos/{self.org}/{repository}/commits")
        if data is None:
            return None
        return [Commit.from_api(c) for c in data]
