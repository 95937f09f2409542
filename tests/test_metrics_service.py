"""
tests/test_metrics_service.py

Pytest unit tests for MetricsService input checks and net-loss parsing.
"""

from __future__ import annotations

import json
import logging

import pytest

from app.services.metrics_service import (
    MetricsInputError,
    MetricsService,
    parse_net_loss_inputs,
)
from metrics.types import CustomerRecord, MonthKey

_DATES = [MonthKey(2024, 1), MonthKey(2024, 2), MonthKey(2024, 3)]


@pytest.fixture()
def svc() -> MetricsService:
    return MetricsService()


@pytest.fixture()
def customers() -> list[CustomerRecord]:
    return [CustomerRecord("Acme", [100, 120, 0]), CustomerRecord("Beta", [0, 50, 50])]


class TestCompute:
    def test_returns_result(self, svc, customers) -> None:
        result = svc.compute(customers, _DATES)
        assert result.end_mrr == (100, 170, 50)
        assert result.has_efficiency is False

    def test_net_loss_enables_efficiency(self, svc, customers) -> None:
        result = svc.compute(customers, _DATES, [-10, None, -5])
        assert result.has_efficiency is True
        assert result.net_loss == (-10, None, -5)

    def test_all_none_net_loss_is_dropped(self, svc, customers) -> None:
        result = svc.compute(customers, _DATES, [None, None, None])
        assert result.has_efficiency is False
        assert result == svc.compute(customers, _DATES)

    def test_logs_structured_event(self, svc, customers, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="app.services.metrics_service"):
            svc.compute(customers, _DATES)

        payloads = [
            json.loads(record.getMessage())
            for record in caplog.records
            if record.name == "app.services.metrics_service"
        ]
        event = next(p for p in payloads if p["event"] == "metrics_computed")
        assert event["customers"] == 2
        assert event["months"] == 3
        assert event["efficiency"] is False
        assert event["elapsed_ms"] >= 0


class TestComputeRejects:
    def test_empty_month_axis(self, svc) -> None:
        with pytest.raises(MetricsInputError, match="At least one month"):
            svc.compute([CustomerRecord("Acme", [])], [])

    def test_no_customers(self, svc) -> None:
        with pytest.raises(MetricsInputError, match="At least one customer"):
            svc.compute([], _DATES)

    def test_blank_name(self, svc) -> None:
        with pytest.raises(MetricsInputError, match="has no name"):
            svc.compute([CustomerRecord("  ", [1, 2, 3])], _DATES)

    def test_row_length_mismatch(self, svc) -> None:
        with pytest.raises(MetricsInputError, match="expected 3"):
            svc.compute([CustomerRecord("Acme", [1, 2])], _DATES)

    def test_negative_revenue(self, svc) -> None:
        with pytest.raises(MetricsInputError, match="negative revenue"):
            svc.compute([CustomerRecord("Acme", [1, -2, 3])], _DATES)

    def test_no_positive_revenue(self, svc) -> None:
        with pytest.raises(MetricsInputError, match="No customer data with revenue"):
            svc.compute([CustomerRecord("Acme", [0, None, 0])], _DATES)

    def test_net_loss_length_mismatch(self, svc, customers) -> None:
        with pytest.raises(MetricsInputError, match="Net loss has 2 values"):
            svc.compute(customers, _DATES, [-1, -2])


class TestParseNetLossInputs:
    def test_blank_entries_become_none(self) -> None:
        assert parse_net_loss_inputs(["", "-1,500", " "], 3) == [None, -1500.0, None]

    def test_all_blank_disables_efficiency(self) -> None:
        assert parse_net_loss_inputs(["", " ", None], 3) is None

    def test_missing_inputs(self) -> None:
        assert parse_net_loss_inputs(None, 3) is None

    def test_length_mismatch(self) -> None:
        with pytest.raises(MetricsInputError, match="expected 3"):
            parse_net_loss_inputs(["-1"], 3)

    def test_non_numeric_entry(self) -> None:
        with pytest.raises(MetricsInputError, match="month 2"):
            parse_net_loss_inputs(["-1", "lots", ""], 3)
