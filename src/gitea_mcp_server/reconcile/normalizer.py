"""Turn raw operation records into validated ``FileOperation`` values."""

from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError
from ..validators import format_validation_error, normalize_path, validate_content
from .models import (
    AddOperation,
    DeleteOperation,
    FileOperation,
    ModifyOperation,
    OperationKind,
)

DEFAULT_MAX_FILES = 100
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


def _parse_kind(value: Any, index: int) -> OperationKind:
    if value is None:
        return OperationKind.ADD
    try:
        return OperationKind(str(value).lower())
    except ValueError:
        allowed = ", ".join(k.value for k in OperationKind)
        raise ValidationError(
            f"files[{index}]: unknown operation '{value}' (expected one of: {allowed})"
        ) from None


def _optional_sha(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def normalize_operations(
    raw: list[dict[str, Any]],
    max_files: int = DEFAULT_MAX_FILES,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
) -> list[FileOperation]:
    """Validate raw records and return them as typed operations, in order.

    ``operation`` defaults to ``add``. Any invalid record rejects the whole
    call, so the result always has the same length as *raw*.

    Raises:
        ValidationError: If the list is empty or too long, or any record
            has a bad path, an unknown operation, or missing/oversized content.
    """
    if not raw:
        raise ValidationError("At least one file operation is required")
    if len(raw) > max_files:
        raise ValidationError(
            f"Too many files: {len(raw)} (maximum is {max_files})"
        )

    operations: list[FileOperation] = []
    for index, record in enumerate(raw):
        if not isinstance(record, dict):
            raise ValidationError(f"files[{index}]: expected an object")

        raw_path = record.get("path")
        if not isinstance(raw_path, str):
            raise ValidationError(
                f"files[{index}]: "
                + format_validation_error("Path", "is required")
            )
        path, error = normalize_path(raw_path)
        if error:
            raise ValidationError(f"files[{index}]: {error}")

        kind = _parse_kind(record.get("operation"), index)
        sha = _optional_sha(record.get("sha"))

        if kind is OperationKind.DELETE:
            operations.append(DeleteOperation(path=path, sha=sha))
            continue

        content = record.get("content")
        if not isinstance(content, str):
            raise ValidationError(
                f"files[{index}] ({path}): "
                + format_validation_error(
                    "Content", f"is required for '{kind.value}'"
                )
            )
        ok, error = validate_content(content, max_size=max_file_size)
        if not ok:
            raise ValidationError(f"files[{index}] ({path}): {error}")

        if kind is OperationKind.ADD:
            operations.append(AddOperation(path=path, content=content))
        else:
            operations.append(
                ModifyOperation(path=path, content=content, sha=sha)
            )

    return operations
