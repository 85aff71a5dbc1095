"""Data contracts for the file reconciliation engine.

- ``FileOperation``: tagged union of ``AddOperation``, ``ModifyOperation``
  and ``DeleteOperation``, discriminated on ``kind``.
- ``RemoteSnapshot``: stored SHA and content of one path.
- ``Present`` / ``Absent`` / ``ProbeFailed``: result of probing one path.
- ``ReconciliationPlan``: operations that still need executing.
- ``ExecutionOutcome``: result of executing one operation.
- ``Summary``: aggregate report for one reconciliation call.

Pydantic models are frozen; detection produces updated copies rather than
mutating caller input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class OperationKind(str, Enum):
    """Requested change to a single path."""

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"


class Strategy(str, Enum):
    """How a plan is committed."""

    AUTO = "auto"
    BATCH = "batch"
    INDIVIDUAL = "individual"


class ConflictResolution(str, Enum):
    """What to do when a caller-supplied SHA differs from the stored one."""

    OVERWRITE = "overwrite"
    FAIL = "fail"
    SKIP = "skip"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


# ---------------------------------------------------------------------------
# File operations
# ---------------------------------------------------------------------------


class AddOperation(BaseModel):
    """Create *path* with *content*."""

    kind: Literal[OperationKind.ADD] = OperationKind.ADD
    path: str
    content: str

    model_config = {"frozen": True}


class ModifyOperation(BaseModel):
    """Replace the content of *path*; *sha* is the blob being replaced."""

    kind: Literal[OperationKind.MODIFY] = OperationKind.MODIFY
    path: str
    content: str
    sha: str | None = None

    model_config = {"frozen": True}


class DeleteOperation(BaseModel):
    """Remove *path*; *sha* is the blob being removed."""

    kind: Literal[OperationKind.DELETE] = OperationKind.DELETE
    path: str
    sha: str | None = None

    model_config = {"frozen": True}


FileOperation = Annotated[
    Union[AddOperation, ModifyOperation, DeleteOperation],
    Field(discriminator="kind"),
]


def operation_sha(operation: FileOperation) -> str | None:
    """Return the version token an operation carries, if any."""
    match operation:
        case ModifyOperation(sha=sha) | DeleteOperation(sha=sha):
            return sha
        case _:
            return None


# ---------------------------------------------------------------------------
# Remote state
# ---------------------------------------------------------------------------


class RemoteSnapshot(BaseModel):
    """Currently stored version of a path.

    Attributes:
        path: Repository-relative path.
        sha: Blob SHA the store requires for updates and deletes.
        content: Raw stored bytes, or ``None`` when the store did not
            return the body.
    """

    path: str
    sha: str
    content: bytes | None = None

    model_config = {"frozen": True}


@dataclass(frozen=True, slots=True)
class Present:
    snapshot: RemoteSnapshot


@dataclass(frozen=True, slots=True)
class Absent:
    pass


@dataclass(frozen=True, slots=True)
class ProbeFailed:
    error: str


ProbeResult = Union[Present, Absent, ProbeFailed]


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class ConflictInfo(BaseModel):
    """A caller-supplied SHA that no longer matches the stored one.

    Attributes:
        path: Repository-relative path.
        reason: Human-readable description.
        resolution: Conflict resolution mode that was applied.
    """

    path: str
    reason: str
    resolution: ConflictResolution

    model_config = {"frozen": True}


class ReconciliationPlan(BaseModel):
    """Operations determined to need execution, in request order.

    Attributes:
        operations: Operations to execute, possibly reclassified.
        snapshots: Probed remote state keyed by path.
        unchanged: Paths already in the requested state.
        conflicts: SHA mismatches found while probing.
        skipped: Paths dropped because of a conflict in ``skip`` mode.
    """

    operations: list[FileOperation] = []
    snapshots: dict[str, RemoteSnapshot] = {}
    unchanged: list[str] = []
    conflicts: list[ConflictInfo] = []
    skipped: list[str] = []

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Execution and reporting
# ---------------------------------------------------------------------------


class ExecutionOutcome(BaseModel):
    """Result of executing one planned operation."""

    path: str
    kind: OperationKind
    status: OutcomeStatus
    error: str | None = None

    model_config = {"frozen": True}


class ReconcileRequest(BaseModel):
    """Input to ``Reconciler.run``.

    ``files`` holds raw operation records (``path``, ``content``,
    ``operation``, ``sha``); they are validated by the normalizer.
    """

    owner: str
    repository: str
    files: list[dict]
    message: str
    branch: str = "main"
    strategy: Strategy = Strategy.AUTO
    conflict_resolution: ConflictResolution = ConflictResolution.OVERWRITE
    detect_changes: bool = True
    dry_run: bool = False

    model_config = {"frozen": True}


class Summary(BaseModel):
    """Aggregate report for one reconciliation call.

    Attributes:
        discovered: Number of raw operations requested.
        analyzed: Number of operations after normalization.
        needs_update: Size of the reconciliation plan.
        processed: Number of execution outcomes produced.
        succeeded: Outcomes with status ``success``.
        failed: Outcomes with status ``failed``.
        skipped: Normalized operations left out of the plan.
        strategy: Strategy used (or that would be used, for a dry run).
        dry_run: True if no write calls were made.
        planned: The plan itself, in execution order.
        operations: Per-file outcomes, in execution order.
        unchanged: Paths already in the requested state.
        conflicts: SHA mismatches found while probing.
    """

    discovered: int
    analyzed: int
    needs_update: int
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    strategy: Strategy
    dry_run: bool = False
    planned: list[FileOperation] = []
    operations: list[ExecutionOutcome] = []
    unchanged: list[str] = []
    conflicts: list[ConflictInfo] = []

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        """True when no planned operation failed."""
        return self.failed == 0
