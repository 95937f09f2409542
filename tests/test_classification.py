"""
tests/test_classification.py

Pytest unit tests for revenue movement classification and the revenue matrix.
"""

from __future__ import annotations

import pytest

from metrics.classification import (
    FLAT,
    Movement,
    MovementKind,
    amounts_of,
    classify,
    classify_matrix,
)
from metrics.revenue import RevenueMatrix
from metrics.types import CustomerRecord


class TestClassify:
    @pytest.mark.parametrize(
        ("curr", "prev", "kind", "amount"),
        [
            (100, 0, MovementKind.NEW, 100),
            (150, 100, MovementKind.UPGRADE, 50),
            (60, 100, MovementKind.DOWNGRADE, -40),
            (0, 100, MovementKind.CHURN, -100),
            (100, 100, MovementKind.FLAT, 0),
            (0, 0, MovementKind.FLAT, 0),
        ],
    )
    def test_movement(self, curr, prev, kind, amount) -> None:
        movement = classify(curr, prev)
        assert movement.kind is kind
        assert movement.amount == amount

    def test_flat_is_shared_constant(self) -> None:
        assert classify(5, 5) is FLAT
        assert FLAT.is_flat
        assert not Movement(MovementKind.NEW, 1).is_flat


class TestRevenueMatrix:
    @pytest.fixture()
    def matrix(self) -> RevenueMatrix:
        return RevenueMatrix(
            [CustomerRecord("A", [10, None, float("nan")]), CustomerRecord("B", [1, 2])],
            month_count=3,
        )

    def test_out_of_range_months_read_as_zero(self, matrix) -> None:
        assert matrix.rev(0, -1) == 0
        assert matrix.rev(0, 3) == 0

    def test_missing_cells_read_as_zero(self, matrix) -> None:
        assert matrix.rev(0, 1) == 0
        assert matrix.rev(0, 2) == 0
        assert matrix.rev(1, 2) == 0

    def test_column(self, matrix) -> None:
        assert matrix.column(0) == (10, 1)
        assert matrix.customer_count == 2
        assert matrix.month_count == 3


class TestClassifyMatrix:
    def test_first_month_compares_against_zero(self) -> None:
        matrix = RevenueMatrix([CustomerRecord("A", [100, 100])], month_count=2)
        grid = classify_matrix(matrix)
        assert grid[0][0] == Movement(MovementKind.NEW, 100)
        assert grid[1][0] is FLAT

    def test_grid_is_month_major(self) -> None:
        matrix = RevenueMatrix(
            [CustomerRecord("A", [100, 0, 0]), CustomerRecord("B", [0, 0, 50])],
            month_count=3,
        )
        grid = classify_matrix(matrix)
        assert len(grid) == 3
        assert all(len(column) == 2 for column in grid)
        assert grid[1][0].kind is MovementKind.CHURN
        assert grid[2][1].kind is MovementKind.NEW

    def test_amounts_of_keeps_customer_order(self) -> None:
        column = (
            Movement(MovementKind.CHURN, -30),
            FLAT,
            Movement(MovementKind.CHURN, -10),
            Movement(MovementKind.NEW, 5),
        )
        assert amounts_of(column, MovementKind.CHURN) == [-30, -10]
        assert amounts_of(column, MovementKind.UPGRADE) == []
