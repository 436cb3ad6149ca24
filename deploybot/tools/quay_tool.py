import httpx

from ..config import Settings
from ..models import ImageTag, RegistryRepository
from .http import HttpTool


def parse_repository(image: str) -> str:
    """Repository name of an image URI: `quay.io/org/web-api:abc1234` -> `web-api`."""
    last = image.rsplit("/", 1)[-1]
    return last.split("@", 1)[0].split(":", 1)[0]


class QuayTool(HttpTool):
    service = "Quay"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(
            settings.quay_api_url,
            headers={"Authorization": f"Bearer {settings.quay_token}"},
            timeout=settings.http_timeout,
            transport=transport,
        )
        self.namespace = settings.quay_namespace

    async def check_repository(self, name: str) -> RegistryRepository | None:
        data = await self._get_json(f"repository/{self.namespace}/{name}")
        if not data or data.get("name") != name:
            return None
        return RegistryRepository(name=data["name"], description=data.get("description"))

    async def check_image(self, repository: str, tag: str) -> list[ImageTag]:
        data = await self._get_json(
            f"repository/{self.namespace}/{repository}/tag/",
            params={"specificTag": tag, "onlyActiveTags": "true"},
        )
        if not data:
            return []
        return [ImageTag(name=t["name"]) for t in data.get("tags") or [] if t.get("name") == tag]

    async def list_repositories(self) -> list[RegistryRepository]:
        data = await self._get_json("repository", params={"namespace": self.namespace}) or {}
        return [
            RegistryRepository(name=repo["name"], description=repo.get("description"))
            for repo in data.get("repositories") or []
        ]
