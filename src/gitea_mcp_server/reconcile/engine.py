"""Reconciliation engine that orchestrates one ``sync_update`` call.

The ``Reconciler`` ties together the normalizer, detector, strategy
selector, executors and aggregator. It:

1. Validates and normalizes the requested operations.
2. Probes the target branch for each path (unless detection is off).
3. Selects the execution strategy for the resulting plan.
4. Stops here for a dry run, reporting the plan.
5. Executes the plan.
6. Builds and returns a ``Summary``.

Validation errors abort before any network activity. Everything after
planning is reported per file; a call that gets past validation always
returns a complete ``Summary``.
"""

from __future__ import annotations

import logging

from ..core.client import GiteaClient
from ..core.exceptions import ValidationError
from ..validators import validate_commit_message
from .detector import detect_changes
from .executor import create_executor
from .models import (
    ExecutionOutcome,
    FileOperation,
    ReconcileRequest,
    ReconciliationPlan,
    Summary,
)
from .normalizer import (
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MAX_FILES,
    normalize_operations,
)
from .reporter import aggregate
from .strategy import resolve_execution_strategy, select_strategy

logger = logging.getLogger(__name__)


class Reconciler:
    """Bring a repository branch to the state a batch of operations describes.

    Args:
        client: Client for the instance hosting the repository.
        max_files: Maximum operations accepted per call.
        max_file_size: Maximum content size per file, in bytes.
    """

    def __init__(
        self,
        client: GiteaClient,
        max_files: int = DEFAULT_MAX_FILES,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self.client = client
        self.max_files = max_files
        self.max_file_size = max_file_size

    def _validate(self, request: ReconcileRequest) -> None:
        if not request.owner.strip():
            raise ValidationError("Repository owner cannot be empty")
        if not request.repository.strip():
            raise ValidationError("Repository name cannot be empty")
        if not request.branch.strip():
            raise ValidationError("Branch cannot be empty")
        ok, error = validate_commit_message(request.message)
        if not ok:
            raise ValidationError(error)

    def _normalize(self, request: ReconcileRequest) -> list[FileOperation]:
        self._validate(request)
        return normalize_operations(
            request.files,
            max_files=self.max_files,
            max_file_size=self.max_file_size,
        )

    async def _detect(
        self, request: ReconcileRequest, operations: list[FileOperation]
    ) -> ReconciliationPlan:
        if not request.detect_changes:
            return ReconciliationPlan(operations=operations)

        return await detect_changes(
            self.client,
            request.owner,
            request.repository,
            request.branch,
            operations,
            request.conflict_resolution,
        )

    async def plan(self, request: ReconcileRequest) -> ReconciliationPlan:
        """Validate *request* and compute its reconciliation plan.

        Raises:
            ValidationError: If the request or any operation is invalid.
        """
        return await self._detect(request, self._normalize(request))

    async def run(self, request: ReconcileRequest) -> Summary:
        """Execute one reconciliation call.

        Args:
            request: Target repository, operations and execution options.

        Returns:
            A ``Summary``; ``summary.success`` is ``True`` when no file failed.

        Raises:
            ValidationError: If the request or any operation is invalid.
        """
        discovered = len(request.files)
        logger.info(
            "Reconciling %d files into %s/%s@%s (strategy=%s, detect_changes=%s, dry_run=%s)",
            discovered,
            request.owner,
            request.repository,
            request.branch,
            request.strategy.value,
            request.detect_changes,
            request.dry_run,
        )

        operations = self._normalize(request)
        analyzed = len(operations)
        plan = await self._detect(request, operations)
        strategy = resolve_execution_strategy(
            select_strategy(request.strategy, plan.operations),
            plan.operations,
        )

        outcomes: list[ExecutionOutcome] = []
        if request.dry_run:
            logger.info(
                "Dry run: %d operations would be executed (%s)",
                len(plan.operations),
                strategy.value,
            )
        elif plan.operations:
            executor = create_executor(
                strategy, self.client, request.owner, request.repository
            )
            outcomes = await executor.execute(
                plan.operations, request.message, request.branch
            )
        else:
            logger.info("Nothing to do: all files already up to date")

        summary = aggregate(
            discovered=discovered,
            analyzed=analyzed,
            plan=plan,
            strategy=strategy,
            outcomes=outcomes,
            dry_run=request.dry_run,
        )
        logger.info(
            "Reconciliation finished: %d succeeded, %d failed, %d skipped",
            summary.succeeded,
            summary.failed,
            summary.skipped,
        )
        return summary
