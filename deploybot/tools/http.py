import logging
from typing import Any

import httpx

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


class HttpTool:
    """Thin async JSON client shared by the collaborator tools.

    Redirects are followed transparently. A 404 (or any status listed in
    `missing`) means the entity does not exist and yields `None`; transport
    failures and other non-2xx answers raise `UpstreamError`.
    """

    service = "HTTP"

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        timeout: float = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.auth = auth
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            auth=self.auth,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with self._client() as client:
                r = await client.request(method, url, params=params, json=json)
        except httpx.HTTPError as e:
            raise UpstreamError(self.service, f"{method} {url} failed: {e}", url=url) from e
        logger.debug("%s %s -> %s", method, url, r.status_code, extra={"extra": {"service": self.service}})
        return r

    async def _get_json(self, path: str, params: dict[str, Any] | None = None, missing: tuple[int, ...] = (404,)) -> Any:
        r = await self._request("GET", path, params=params)
        if r.status_code in missing:
            return None
        if r.status_code >= 300:
            raise UpstreamError(
                self.service,
                f"GET {r.request.url} returned {r.status_code}",
                status_code=r.status_code,
                body=r.text[:300],
                url=str(r.request.url),
            )
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError(
                self.service, f"invalid JSON from {r.request.url}", status_code=r.status_code, body=r.text[:300]
            ) from e
        if isinstance(data, dict) and data.get("message") == "Not Found":
            return None
        return data
