import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from .models import DeploymentRequest, OutcomeState, Project, Revision, Workload


class CancellationToken:
    """Stops a single pipeline before its next stage starts.

    The first cancellation wins; later calls keep the original decision.
    """

    def __init__(self) -> None:
        self.state: OutcomeState | None = None
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.state is not None

    def cancel(self, state: OutcomeState, reason: str) -> None:
        if self.state is None:
            self.state = state
            self.reason = reason


@dataclass
class PipelineContext:
    """Per-request state threaded through every stage of one pipeline."""

    request: DeploymentRequest
    token: CancellationToken = field(default_factory=CancellationToken)
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    stage: str = "Idle"
    project: Project | None = None
    workload: Workload | None = None
    registry_repository: str | None = None
    revision: Revision | None = None

    def log_extra(self, **fields) -> dict:
        return {
            "extra": {
                "correlation_id": self.correlation_id,
                "actor": self.request.actor,
                "action": self.request.action,
                "stage": self.stage,
                **fields,
            }
        }


class WorkloadLocks:
    """One asyncio.Lock per verified project+workload pair, shared by all pipelines.

    A lock is dropped once its last holder or waiter leaves, so the map only
    holds workloads with a pipeline in flight.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, project_id: str, workload_id: str, dry_run: bool = False):
        if not self.enabled or dry_run:
            yield
            return
        key = (project_id, workload_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]
