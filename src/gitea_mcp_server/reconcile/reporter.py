"""Reconciliation summary building.

- ``aggregate`` -- fold a plan and its outcomes into a ``Summary``.
- ``summary_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from typing import Any

from .models import (
    ExecutionOutcome,
    FileOperation,
    OutcomeStatus,
    ReconciliationPlan,
    Strategy,
    Summary,
    operation_sha,
)


def aggregate(
    discovered: int,
    analyzed: int,
    plan: ReconciliationPlan,
    strategy: Strategy,
    outcomes: list[ExecutionOutcome],
    dry_run: bool = False,
) -> Summary:
    """Build the ``Summary`` for one call. Pure; outcome order is kept."""
    succeeded = sum(1 for o in outcomes if o.status is OutcomeStatus.SUCCESS)
    failed = sum(1 for o in outcomes if o.status is OutcomeStatus.FAILED)
    needs_update = len(plan.operations)

    return Summary(
        discovered=discovered,
        analyzed=analyzed,
        needs_update=needs_update,
        processed=len(outcomes),
        succeeded=succeeded,
        failed=failed,
        skipped=analyzed - needs_update,
        strategy=strategy,
        dry_run=dry_run,
        planned=list(plan.operations),
        operations=list(outcomes),
        unchanged=list(plan.unchanged),
        conflicts=list(plan.conflicts),
    )


# ------------------------------------------------------------------
# Structured output
# ------------------------------------------------------------------


def _planned_entry(op: FileOperation) -> dict[str, Any]:
    return {
        "path": op.path,
        "operation": op.kind.value,
        "has_remote_sha": operation_sha(op) is not None,
    }


def summary_to_json(summary: Summary) -> dict[str, Any]:
    """Convert a ``Summary`` to a JSON-serializable dict.

    Dry runs additionally list ``files_needing_update`` with a
    ``has_remote_sha`` flag per planned file.
    """
    result: dict[str, Any] = {
        "success": summary.success,
        "dry_run": summary.dry_run,
        "strategy": summary.strategy.value,
        "summary": {
            "discovered": summary.discovered,
            "analyzed": summary.analyzed,
            "needs_update": summary.needs_update,
            "processed": summary.processed,
            "succeeded": summary.succeeded,
            "failed": summary.failed,
            "skipped": summary.skipped,
        },
        "details": {
            "operations": [
                {
                    "path": o.path,
                    "operation": o.kind.value,
                    "status": o.status.value,
                    **({"error": o.error} if o.error else {}),
                }
                for o in summary.operations
            ],
            "unchanged": list(summary.unchanged),
            "conflicts": [
                {
                    "path": c.path,
                    "reason": c.reason,
                    "resolution": c.resolution.value,
                }
                for c in summary.conflicts
            ],
        },
    }
    if summary.dry_run:
        result["files_needing_update"] = [
            _planned_entry(op) for op in summary.planned
        ]
    return result
