"""Choose between one combined commit and one commit per file."""

from __future__ import annotations

from .models import FileOperation, OperationKind, Strategy


def select_strategy(
    requested: Strategy, operations: list[FileOperation]
) -> Strategy:
    """Resolve ``auto`` against the plan; explicit requests are honored.

    ``auto`` picks individual commits for a single operation or for any
    plan containing a delete, and a batch commit otherwise.
    """
    if requested is not Strategy.AUTO:
        return requested

    if len(operations) == 1:
        return Strategy.INDIVIDUAL
    if any(op.kind is OperationKind.DELETE for op in operations):
        return Strategy.INDIVIDUAL
    return Strategy.BATCH


def resolve_execution_strategy(
    selected: Strategy, operations: list[FileOperation]
) -> Strategy:
    """Downgrade batch to individual when the plan has at most one operation."""
    if selected is Strategy.BATCH and len(operations) <= 1:
        return Strategy.INDIVIDUAL
    return selected
