"""
app/schemas/metrics.py

Request and response schemas for the metrics endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from metrics.result import MetricsResult
from metrics.types import CustomerRecord, MonthKey


class MonthKeyModel(BaseModel):
    """
    One month of the month axis.
    """

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)

    def to_domain(self) -> MonthKey:
        return MonthKey(year=self.year, month=self.month)


class CustomerRevenueModel(BaseModel):
    """
    One customer's monthly revenue, aligned with ``dates``.
    """

    name: str = Field(..., min_length=1)
    revenue: list[float | None]

    def to_domain(self) -> CustomerRecord:
        return CustomerRecord(name=self.name, revenue=tuple(self.revenue))


class MetricsRequest(BaseModel):
    """
    API request model for a metrics computation.

    ``net_loss`` is optional; when omitted, or when no month has a value,
    the efficiency series are absent from the response.
    """

    customers: list[CustomerRevenueModel] = Field(..., min_length=1)
    dates: list[MonthKeyModel] = Field(..., min_length=1)
    net_loss: list[float | None] | None = None

    def customer_records(self) -> list[CustomerRecord]:
        return [customer.to_domain() for customer in self.customers]

    def month_keys(self) -> list[MonthKey]:
        return [month.to_domain() for month in self.dates]


class MetricsResponse(BaseModel):
    """
    API response model for computed metrics.

    ``series`` maps every metric key to one value per month; ``null`` marks
    an undefined value. Efficiency keys are present only when
    ``has_efficiency`` is true.
    """

    dates: list[MonthKeyModel]
    has_efficiency: bool
    series: dict[str, list[int | float | None]]

    @classmethod
    def from_result(cls, result: MetricsResult) -> "MetricsResponse":
        payload = result.as_dict()
        dates = payload.pop("dates")
        return cls(
            dates=[MonthKeyModel(**month) for month in dates],
            has_efficiency=result.has_efficiency,
            series=payload,
        )


class RevenueRowErrorResponse(BaseModel):
    """
    API response model for one skipped spreadsheet row.
    """

    row_number: int = Field(..., ge=1)
    message: str
    column: str | None = None
    value: str | None = None


class RevenueTableSummaryResponse(BaseModel):
    """
    API response model summarising a parsed revenue upload.
    """

    filename: str | None = None
    customers: int = Field(..., ge=0)
    months: int = Field(..., ge=0)
    header_row_number: int = Field(..., ge=1)
    rows_skipped: int = Field(..., ge=0)
    validation_errors: list[RevenueRowErrorResponse] = Field(default_factory=list)


class MetricsUploadResponse(BaseModel):
    """
    API response model for an uploaded revenue file and its metrics.
    """

    table: RevenueTableSummaryResponse
    metrics: MetricsResponse


class HealthResponse(BaseModel):
    status: str = "ok"
