"""Remote state probing and change detection.

Each requested path is fetched from the target branch, one request at a
time, and the operation is kept, reclassified or dropped:

==========  ==================  ==========================================
Operation   Remote state        Result
==========  ==================  ==========================================
add         absent              kept as requested
add         present, same bytes dropped, path listed under ``unchanged``
add         present, changed    kept as requested (the store rejects it)
modify      absent              executed as ``add`` with no SHA
modify      present, same bytes dropped, path listed under ``unchanged``
modify      present, changed    kept, stored SHA adopted
delete      absent              dropped, path listed under ``unchanged``
delete      present             kept, stored SHA adopted
any         probe failed        kept as requested (fail-open)
==========  ==================  ==========================================

A caller-supplied SHA that differs from the stored one is a conflict; what
happens to it depends on ``ConflictResolution``.
"""

from __future__ import annotations

import logging

from ..core.async_utils import run_sync_limited
from ..core.client import GiteaClient
from .models import (
    Absent,
    AddOperation,
    ConflictInfo,
    ConflictResolution,
    DeleteOperation,
    FileOperation,
    ModifyOperation,
    Present,
    ProbeFailed,
    ProbeResult,
    ReconciliationPlan,
    RemoteSnapshot,
    operation_sha,
)

logger = logging.getLogger(__name__)


async def probe_path(
    client: GiteaClient,
    owner: str,
    repo: str,
    path: str,
    ref: str | None,
) -> ProbeResult:
    """Fetch one path and report whether it exists.

    Never raises: any failure other than "not found" comes back as
    ``ProbeFailed`` so the caller decides how to fold it.
    """
    try:
        data = await run_sync_limited(client.get_file, owner, repo, path, ref)
    except Exception as exc:
        return ProbeFailed(error=str(exc))

    if data is None:
        return Absent()

    return Present(
        snapshot=RemoteSnapshot(
            path=path, sha=data["sha"], content=data["content"]
        )
    )


def _encode(content: str) -> bytes:
    return content.encode("utf-8")


async def detect_changes(
    client: GiteaClient,
    owner: str,
    repo: str,
    branch: str,
    operations: list[FileOperation],
    conflict_resolution: ConflictResolution = ConflictResolution.OVERWRITE,
) -> ReconciliationPlan:
    """Probe every operation's path and build the reconciliation plan.

    Args:
        client: Client for the instance that hosts the repository.
        owner: Repository owner (user or organization).
        repo: Repository name.
        branch: Branch the probes read from.
        operations: Normalized operations, in request order.
        conflict_resolution: Handling for stale caller-supplied SHAs.

    Returns:
        A ``ReconciliationPlan`` whose operations keep request order.
    """
    planned: list[FileOperation] = []
    snapshots: dict[str, RemoteSnapshot] = {}
    unchanged: list[str] = []
    conflicts: list[ConflictInfo] = []
    skipped: list[str] = []

    for op in operations:
        result = await probe_path(client, owner, repo, op.path, branch)

        match result:
            case ProbeFailed(error=error):
                logger.warning(
                    "Could not check %s on %s/%s@%s, keeping operation as requested: %s",
                    op.path,
                    owner,
                    repo,
                    branch,
                    error,
                )
                planned.append(op)

            case Absent():
                match op:
                    case AddOperation():
                        planned.append(op)
                    case ModifyOperation(path=path, content=content):
                        logger.debug("%s does not exist, modify becomes add", path)
                        planned.append(AddOperation(path=path, content=content))
                    case DeleteOperation(path=path):
                        logger.debug("%s already absent, nothing to delete", path)
                        unchanged.append(path)

            case Present(snapshot=snapshot):
                snapshots[op.path] = snapshot

                if (
                    isinstance(op, (AddOperation, ModifyOperation))
                    and snapshot.content is not None
                    and _encode(op.content) == snapshot.content
                ):
                    logger.debug("%s is unchanged", op.path)
                    unchanged.append(op.path)
                    continue

                if isinstance(op, AddOperation):
                    planned.append(op)
                    continue

                caller_sha = operation_sha(op)
                if caller_sha and caller_sha != snapshot.sha:
                    conflicts.append(
                        ConflictInfo(
                            path=op.path,
                            reason=(
                                f"supplied sha {caller_sha} does not match "
                                f"stored sha {snapshot.sha}"
                            ),
                            resolution=conflict_resolution,
                        )
                    )
                    if conflict_resolution is ConflictResolution.SKIP:
                        logger.info("Skipping %s: stale sha", op.path)
                        skipped.append(op.path)
                        continue
                    if conflict_resolution is ConflictResolution.FAIL:
                        planned.append(op)
                        continue

                planned.append(op.model_copy(update={"sha": snapshot.sha}))

    logger.info(
        "Change detection for %s/%s@%s: %d of %d operations need executing",
        owner,
        repo,
        branch,
        len(planned),
        len(operations),
    )
    return ReconciliationPlan(
        operations=planned,
        snapshots=snapshots,
        unchanged=unchanged,
        conflicts=conflicts,
        skipped=skipped,
    )
