from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

ActionKind = Literal["deploy", "rollback", "pause", "resume"]
Environment = Literal["Staging", "Production"]
SelectorKind = Literal["revision", "latest", "previous"]
Severity = Literal["info", "success", "error"]

COMMIT_LENGTH = 7
HEX_DIGITS = set("0123456789abcdef")


def normalize_commit(raw: str) -> str:
    """Truncate a commit reference to its first 7 characters, lowercased."""
    short = raw.strip()[:COMMIT_LENGTH].lower()
    if len(short) != COMMIT_LENGTH or not set(short) <= HEX_DIGITS:
        raise ValueError(f"'{raw}' is not a commit sha (need at least {COMMIT_LENGTH} hex characters)")
    return short


class RollbackSelector(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SelectorKind | None = None
    name: str | None = None

    def describe(self) -> str:
        if self.kind == "revision":
            return f"revision {self.name}"
        return self.kind or (self.name or "")


class DeploymentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    actor: str
    action: ActionKind
    project: str
    workload: str
    workload_field: Literal["name", "id"] = "id"
    environment: Environment | None = None
    commit: str | None = None
    repository: str | None = None
    selector: RollbackSelector | None = None
    dry_run: bool = False
    raw_text: str = ""

    @field_validator("commit")
    @classmethod
    def _short_commit(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return normalize_commit(v)

    @property
    def source_repository(self) -> str:
        return self.repository or self.workload


class Container(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    image: str


class Project(BaseModel):
    id: str
    name: str = ""
    state: str = ""


class Workload(BaseModel):
    """Read-only view of a platform workload; unknown fields are kept for updates."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    type: str = ""
    project_id: str = ""
    namespace_id: str = ""
    containers: list[Container] = []

    @classmethod
    def from_api(cls, data: dict) -> "Workload":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            type=data.get("type", ""),
            project_id=data.get("projectId", ""),
            namespace_id=data.get("namespaceId", ""),
            containers=[Container(**c) for c in data.get("containers") or []],
        )

    @property
    def image(self) -> str:
        return self.containers[0].image if self.containers else ""


class Revision(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created: str = ""
    created_ts: int = 0
    image: str = ""
    namespace_id: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Revision":
        containers = data.get("containers") or [{}]
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            created=data.get("created", ""),
            created_ts=int(data.get("createdTS") or 0),
            image=containers[0].get("image", ""),
            namespace_id=data.get("namespaceId", ""),
        )


class SourceRepository(BaseModel):
    id: int | str
    name: str
    private: bool = False
    description: str | None = None
    open_issues_count: int = 0


class Commit(BaseModel):
    sha: str
    message: str = ""
    author: str = ""
    email: str = ""
    date: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Commit":
        detail = data.get("commit") or {}
        author = detail.get("author") or {}
        return cls(
            sha=data["sha"],
            message=detail.get("message", ""),
            author=author.get("name", ""),
            email=author.get("email", ""),
            date=author.get("date", ""),
        )


class RegistryRepository(BaseModel):
    name: str
    description: str | None = None


class ImageTag(BaseModel):
    name: str


class VerificationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    entity: Any = None
    reason: str | None = None


class OutcomeState(str, Enum):
    COMPLETED = "Completed"
    ABORTED = "Aborted"
    DENIED = "Denied"
    FAILED = "Failed"


class PipelineOutcome(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: OutcomeState
    message: str
    stage: str = ""
    dry_run: bool = False
    request: DeploymentRequest | None = None
    cause: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.state == OutcomeState.COMPLETED


class Notification(BaseModel):
    actor: str
    message: str
    severity: Severity = "info"


class ChatRequest(BaseModel):
    user: str
    message: str


class ChatResponse(BaseModel):
    ok: bool
    state: str | None = None
    message: str
    notifications: list[Notification] = []
