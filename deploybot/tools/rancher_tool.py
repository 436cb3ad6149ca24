import httpx

from ..config import Settings
from ..errors import UpstreamError
from ..models import Project, Revision, Workload
from .http import HttpTool


class RancherTool(HttpTool):
    service = "Rancher"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(
            settings.rancher_api_url,
            auth=(settings.rancher_access_key, settings.rancher_secret_key),
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def _data(self, path: str, params: dict | None = None) -> list[dict] | None:
        body = await self._get_json(path, params=params)
        if body is None:
            return None
        if "data" not in body:
            raise UpstreamError(self.service, f"unexpected payload from {path}", body=str(body)[:300])
        return body["data"]

    async def check_project(self, value: str, field: str = "name") -> Project | None:
        rows = await self._data("projects", params={field: value})
        if not rows:
            return None
        row = rows[0]
        return Project(id=row["id"], name=row.get("name", ""), state=row.get("state", ""))

    async def check_workload(self, project: Project, field: str, value: str) -> Workload | None:
        rows = await self._data(f"projects/{project.id}/workloads", params={field: value})
        if not rows:
            return None
        return Workload.from_api(rows[0])

    async def list_revisions(self, project_id: str, workload_id: str) -> list[Revision]:
        rows = await self._data(f"projects/{project_id}/workloads/{workload_id}/revisions")
        return [Revision.from_api(r) for r in rows or []]

    async def perform_action(self, action: str, project_id: str, workload_id: str, payload: dict | None = None) -> bool:
        path = f"project/{project_id}/workloads/{workload_id}"
        if action == "deploy":
            # A deploy replaces the workload's container list.
            r = await self._request("PUT", path, json=payload)
        else:
            r = await self._request("POST", path, params={"action": action}, json=payload)
        return r.status_code == 200

    async def list_projects(self) -> list[Project]:
        rows = await self._data("projects") or []
        return [Project(id=p["id"], name=p.get("name", ""), state=p.get("state", "")) for p in rows]

    async def list_workloads(self, project_id: str) -> list[Workload] | None:
        rows = await self._data(f"projects/{project_id}/workloads")
        if rows is None:
            return None
        return [Workload.from_api(w) for w in rows]
