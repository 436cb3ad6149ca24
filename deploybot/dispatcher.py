import logging

from .contracts import OrchestrationPlatform
from .models import Revision, Workload

logger = logging.getLogger(__name__)


def replace_tag(image: str, tag: str) -> str:
    """Swap the tag of an image URI, keeping registry and repository as-is.

    `quay.io/org/web-api:0a1b2c3` -> `quay.io/org/web-api:<tag>`. A digest
    reference is replaced by the tag; an untagged image gets one appended.
    """
    slash = image.rfind("/")
    at = image.find("@", slash + 1)
    if at != -1:
        return f"{image[:at]}:{tag}"
    colon = image.rfind(":")
    if colon > slash:
        return image[: colon + 1] + tag
    return f"{image}:{tag}"


def build_payload(action: str, workload: Workload, revision: Revision | None = None, commit: str | None = None) -> dict | None:
    if action == "deploy":
        if not workload.containers:
            raise ValueError(f"workload {workload.id} has no containers to deploy")
        if not commit:
            raise ValueError("deploy needs a commit")
        # Only the first container is addressed; the rest are sent back unchanged.
        containers = [c.model_dump() for c in workload.containers]
        containers[0]["image"] = replace_tag(containers[0]["image"], commit)
        return {"containers": containers}
    if action == "rollback":
        if revision is None:
            raise ValueError("rollback needs a resolved revision")
        return {"replicaSetId": revision.id}
    if action in ("pause", "resume"):
        return None
    raise ValueError(f"unknown action {action!r}")


class ActionDispatcher:
    def __init__(self, platform: OrchestrationPlatform):
        self.platform = platform

    async def dispatch(
        self,
        action: str,
        project_id: str,
        workload: Workload,
        revision: Revision | None = None,
        commit: str | None = None,
    ) -> bool:
        payload = build_payload(action, workload, revision, commit)
        logger.info(
            "Dispatching action",
            extra={"extra": {"action": action, "project_id": project_id, "workload_id": workload.id, "payload": payload}},
        )
        return await self.platform.perform_action(action, project_id, workload.id, payload)
