from datetime import datetime, timezone

from .models import Commit, Project, RegistryRepository, Revision, SourceRepository, Workload
from .resolver import sort_revisions


def format_projects(projects: list[Project]) -> str:
    return "\n".join(f"{p.name}:\n*ID:* {p.id}\n_State:_ {p.state}" for p in projects)


def format_workloads(workloads: list[Workload]) -> str:
    return "\n".join(
        f"*{w.name}:*\n_image:_ {w.image}\n_type:_ {w.type}\n_namespaceId:_ {w.namespace_id}\n_id:_ {w.id}"
        for w in workloads
    )


def days_ago(created_ts: int, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    created = datetime.fromtimestamp(created_ts / 1000, tz=timezone.utc)
    return (now - created).days


def format_revisions(revisions: list[Revision], now: datetime | None = None) -> str:
    return "\n".join(
        f"*{r.name}:*\n_image:_ {r.image}\n_namespaceId:_ {r.namespace_id}\n_ID:_ {r.id}\n"
        f"_Created:_ {r.created} ({days_ago(r.created_ts, now)} days ago)"
        for r in sort_revisions(revisions)
    )


def format_source_repositories(repos: list[SourceRepository]) -> str:
    return "\n".join(
        f"*{r.name}*:\n_private:_ {r.private}\n_open issues:_ {r.open_issues_count}\n_description:_ {r.description}"
        for r in repos
    )


def format_commits(commits: list[Commit]) -> str:
    lines = []
    for c in commits:
        date = c.date
        if date:
            date = datetime.fromisoformat(date.replace("Z", "+00:00")).strftime("%H:%M %d-%m-%Y")
        lines.append(f"*{c.sha}*:\n_author:_ {c.author} - {c.email}\n_date:_ {date}\n_message:_ {c.message}")
    return "\n".join(lines)


def format_registry_repositories(repos: list[RegistryRepository]) -> str:
    return "\n".join(f"*{r.name}:* {r.description}" for r in repos)
