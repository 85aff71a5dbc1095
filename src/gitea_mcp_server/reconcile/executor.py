"""Execution strategies for a reconciliation plan.

- ``IndividualExecutor``: one commit per file, issued sequentially; a
  failing file never stops the rest.
- ``BatchExecutor``: one combined commit for the whole plan; every file
  shares the outcome of that single request.

Neither executor raises for store or network failures; those become
``failed`` outcomes. Neither retries. The ``create_executor()`` factory
maps a resolved ``Strategy`` to an executor instance.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ..core.async_utils import run_sync_limited
from ..core.client import GiteaClient, encode_content
from ..core.exceptions import ApiError
from .models import (
    AddOperation,
    DeleteOperation,
    ExecutionOutcome,
    FileOperation,
    ModifyOperation,
    OutcomeStatus,
    Strategy,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class Executor(Protocol):
    """Protocol that both execution strategies satisfy."""

    async def execute(
        self, operations: list[FileOperation], message: str, branch: str
    ) -> list[ExecutionOutcome]:
        """Apply *operations* and return one outcome per operation, in order.

        Raises:
            ValueError: If *operations* is empty.
        """
        ...  # pragma: no cover


def _require_operations(operations: list[FileOperation]) -> None:
    if not operations:
        raise ValueError("Cannot execute an empty reconciliation plan")


# ---------------------------------------------------------------------------
# Individual commits
# ---------------------------------------------------------------------------


class IndividualExecutor:
    """Apply each operation in its own commit."""

    def __init__(self, client: GiteaClient, owner: str, repo: str) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo

    async def execute(
        self, operations: list[FileOperation], message: str, branch: str
    ) -> list[ExecutionOutcome]:
        _require_operations(operations)

        outcomes: list[ExecutionOutcome] = []
        for op in operations:
            try:
                await self._apply(op, message, branch)
            except Exception as exc:
                logger.error(
                    "Failed to %s %s in %s/%s: %s",
                    op.kind.value,
                    op.path,
                    self.owner,
                    self.repo,
                    exc,
                )
                outcomes.append(
                    ExecutionOutcome(
                        path=op.path,
                        kind=op.kind,
                        status=OutcomeStatus.FAILED,
                        error=str(exc),
                    )
                )
            else:
                logger.debug("%s %s: ok", op.kind.value, op.path)
                outcomes.append(
                    ExecutionOutcome(
                        path=op.path, kind=op.kind, status=OutcomeStatus.SUCCESS
                    )
                )
        return outcomes

    async def _apply(
        self, op: FileOperation, message: str, branch: str
    ) -> None:
        match op:
            case AddOperation(path=path, content=content):
                await run_sync_limited(
                    self.client.create_file,
                    self.owner,
                    self.repo,
                    path,
                    content,
                    message,
                    branch,
                )
            case ModifyOperation(path=path, content=content, sha=sha):
                await run_sync_limited(
                    self.client.update_file,
                    self.owner,
                    self.repo,
                    path,
                    content,
                    message,
                    branch,
                    sha,
                )
            case DeleteOperation(path=path, sha=sha):
                await run_sync_limited(
                    self.client.delete_file,
                    self.owner,
                    self.repo,
                    path,
                    message,
                    branch,
                    sha,
                )


# ---------------------------------------------------------------------------
# Combined commit
# ---------------------------------------------------------------------------


def build_change_files(operations: list[FileOperation]) -> list[dict[str, Any]]:
    """Translate operations into Gitea ``ChangeFilesOptions.files`` entries."""
    files: list[dict[str, Any]] = []
    for op in operations:
        match op:
            case AddOperation(path=path, content=content):
                files.append(
                    {
                        "operation": "create",
                        "path": path,
                        "content": encode_content(content),
                    }
                )
            case ModifyOperation(path=path, content=content, sha=sha):
                entry = {
                    "operation": "update",
                    "path": path,
                    "content": encode_content(content),
                }
                if sha:
                    entry["sha"] = sha
                files.append(entry)
            case DeleteOperation(path=path, sha=sha):
                entry = {"operation": "delete", "path": path}
                if sha:
                    entry["sha"] = sha
                files.append(entry)
    return files


class BatchExecutor:
    """Apply the whole plan in a single commit; all succeed or all fail."""

    def __init__(self, client: GiteaClient, owner: str, repo: str) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo

    async def execute(
        self, operations: list[FileOperation], message: str, branch: str
    ) -> list[ExecutionOutcome]:
        _require_operations(operations)

        error: str | None = None
        try:
            await run_sync_limited(
                self.client.change_files,
                self.owner,
                self.repo,
                build_change_files(operations),
                message,
                branch,
            )
        except ApiError as exc:
            error = f"Batch operation failed: {exc.status_code} {exc.body}"
        except Exception as exc:
            error = f"Batch operation error: {exc}"

        if error is not None:
            logger.error(
                "Batch commit of %d files to %s/%s@%s failed: %s",
                len(operations),
                self.owner,
                self.repo,
                branch,
                error,
            )
            status = OutcomeStatus.FAILED
        else:
            logger.info(
                "Batch commit of %d files to %s/%s@%s succeeded",
                len(operations),
                self.owner,
                self.repo,
                branch,
            )
            status = OutcomeStatus.SUCCESS

        return [
            ExecutionOutcome(path=op.path, kind=op.kind, status=status, error=error)
            for op in operations
        ]


_EXECUTOR_MAP = {
    Strategy.INDIVIDUAL: IndividualExecutor,
    Strategy.BATCH: BatchExecutor,
}


def create_executor(
    strategy: Strategy, client: GiteaClient, owner: str, repo: str
) -> Executor:
    """Create the executor for a resolved strategy.

    Raises:
        ValueError: If *strategy* is ``auto`` or otherwise unresolved.
    """
    cls = _EXECUTOR_MAP.get(strategy)
    if cls is None:
        raise ValueError(
            f"No executor for strategy '{strategy.value}'; resolve it first"
        )
    return cls(client, owner, repo)
