"""Rollback target resolution over a workload's revision history."""
from .errors import AmbiguousRequest, RevisionNotFound
from .models import Revision, RollbackSelector


def validate_selector(selector: RollbackSelector | None) -> RollbackSelector:
    """Reject selectors that cannot be resolved without guessing.

    Pure input validation; runs before any collaborator call.
    """
    if selector is None or (selector.kind is None and not selector.name):
        raise AmbiguousRequest("Tell me what to roll back to: `revision <name>`, `latest` or `previous`.")
    if selector.kind is None:
        raise AmbiguousRequest(
            f"Did you mean `revision {selector.name}`? Use the `revision` keyword to roll back to a named revision."
        )
    if selector.kind == "revision" and not selector.name:
        raise AmbiguousRequest("The `revision` keyword needs a revision name.")
    if selector.kind != "revision" and selector.name:
        raise AmbiguousRequest(f"`{selector.kind}` does not take a revision name (got `{selector.name}`).")
    return selector


def sort_revisions(revisions: list[Revision]) -> list[Revision]:
    """Newest first. `sorted` is stable, so equal timestamps keep upstream order."""
    return sorted(revisions, key=lambda r: r.created_ts, reverse=True)


def resolve(selector: RollbackSelector | None, revisions: list[Revision]) -> Revision:
    selector = validate_selector(selector)

    if selector.kind == "revision":
        # Exact name match on the upstream order; names are not assumed unique.
        for revision in revisions:
            if revision.name == selector.name:
                return revision
        raise RevisionNotFound(f"your Rancher revision {selector.name}")

    ordered = sort_revisions(revisions)
    index = 0 if selector.kind == "latest" else 1
    if len(ordered) <= index:
        raise RevisionNotFound(f"a {selector.kind} revision ({len(ordered)} revision(s) recorded)")
    return ordered[index]
