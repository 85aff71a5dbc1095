"""File reconciliation engine.

Public API for bringing a Gitea repository branch to the state described
by a batch of add/modify/delete file operations, touching only the files
that actually need changing.

Architecture
------------
Every call re-probes the remote branch; nothing is cached between calls.
Probing is **fail-open**: a path whose state cannot be read stays in the
plan as requested, and the executor reports whatever the store says.

Modules:

- ``engine``     -- ``Reconciler``: orchestrates one reconciliation call.
- ``normalizer`` -- ``normalize_operations``: raw records to typed operations.
- ``detector``   -- ``probe_path`` / ``detect_changes``: remote probing and
  plan building.
- ``strategy``   -- ``select_strategy``: batch vs. individual commits.
- ``executor``   -- ``IndividualExecutor``, ``BatchExecutor``.
- ``models``     -- ``FileOperation``, ``ReconciliationPlan``,
  ``ExecutionOutcome``, ``Summary`` and friends: core data contracts.
- ``reporter``   -- ``aggregate`` and ``summary_to_json``.

Usage example
-------------
::

    from gitea_mcp_server.reconcile import (
        ReconcileRequest,
        Reconciler,
        summary_to_json,
    )

    reconciler = Reconciler(client)   # GiteaClient instance
    summary = await reconciler.run(
        ReconcileRequest(
            owner="alice",
            repository="notes",
            files=[
                {"path": "README.md", "content": "# Notes\\n", "operation": "modify"},
                {"path": "old.txt", "operation": "delete"},
            ],
            message="Tidy up",
            dry_run=True,
        )
    )
    print(summary_to_json(summary))
"""

from .engine import Reconciler
from .executor import BatchExecutor, IndividualExecutor, create_executor
from .models import (
    AddOperation,
    ConflictInfo,
    ConflictResolution,
    DeleteOperation,
    ExecutionOutcome,
    FileOperation,
    ModifyOperation,
    OperationKind,
    OutcomeStatus,
    ReconcileRequest,
    ReconciliationPlan,
    RemoteSnapshot,
    Strategy,
    Summary,
)
from .reporter import (
    aggregate,
    summary_to_json,
)

__all__ = [
    "AddOperation",
    "BatchExecutor",
    "ConflictInfo",
    "ConflictResolution",
    "DeleteOperation",
    "ExecutionOutcome",
    "FileOperation",
    "IndividualExecutor",
    "ModifyOperation",
    "OperationKind",
    "OutcomeStatus",
    "ReconcileRequest",
    "Reconciler",
    "ReconciliationPlan",
    "RemoteSnapshot",
    "Strategy",
    "Summary",
    "aggregate",
    "create_executor",
    "summary_to_json",
]
