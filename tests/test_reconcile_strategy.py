"""Tests for execution strategy selection."""

import pytest

from gitea_mcp_server.reconcile.models import (
    AddOperation,
    DeleteOperation,
    ModifyOperation,
    Strategy,
)
from gitea_mcp_server.reconcile.strategy import (
    resolve_execution_strategy,
    select_strategy,
)

ADD = AddOperation(path="a.txt", content="A")
MODIFY = ModifyOperation(path="b.txt", content="B", sha="s")
DELETE = DeleteOperation(path="c.txt", sha="s")


class TestSelectStrategy:
    @pytest.mark.parametrize("op", [ADD, MODIFY, DELETE])
    def test_auto_single_operation_is_individual(self, op):
        assert select_strategy(Strategy.AUTO, [op]) is Strategy.INDIVIDUAL

    def test_auto_any_delete_is_individual(self):
        assert select_strategy(Strategy.AUTO, [ADD, MODIFY, DELETE]) is Strategy.INDIVIDUAL

    def test_auto_adds_and_modifies_are_batch(self):
        assert select_strategy(Strategy.AUTO, [ADD, MODIFY, ADD]) is Strategy.BATCH

    @pytest.mark.parametrize("requested", [Strategy.BATCH, Strategy.INDIVIDUAL])
    def test_explicit_request_honored(self, requested):
        assert select_strategy(requested, [ADD, DELETE]) is requested

    def test_deterministic(self):
        plan = [ADD, MODIFY]
        assert {select_strategy(Strategy.AUTO, plan) for _ in range(5)} == {Strategy.BATCH}


class TestResolveExecutionStrategy:
    @pytest.mark.parametrize("plan", [[], [ADD]])
    def test_batch_downgraded_for_small_plans(self, plan):
        assert resolve_execution_strategy(Strategy.BATCH, plan) is Strategy.INDIVIDUAL

    def test_batch_kept_for_larger_plans(self):
        assert resolve_execution_strategy(Strategy.BATCH, [ADD, MODIFY]) is Strategy.BATCH

    def test_individual_unchanged(self):
        assert resolve_execution_strategy(Strategy.INDIVIDUAL, [ADD, MODIFY]) is Strategy.INDIVIDUAL
