"""Portfolio reports.

Queries happen once at the edge (``load_*``) and produce typed rows; every
statistic is then computed by a pure reducer over those rows, so the
reducers can be exercised without a database.
"""

from __future__ import annotations

import calendar
import csv
import io
import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from models import utcnow
from models.investment import Investment
from models.transaction import Transaction
from services.errors import InvalidRequest

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_TREND_MONTHS = 12
DEFAULT_TOP_PERFORMERS = 5
EXPORT_FORMATS = ("pdf", "csv", "json")


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= ZERO:
        return ZERO
    return part / whole * HUNDRED


def _number(value: Decimal) -> float:
    return float(value)


@dataclass(frozen=True)
class InvestmentRow:
    id: str
    name: str
    type: str
    amount: Decimal
    current_value: Decimal
    purchase_date: datetime

    @property
    def gain_loss(self) -> Decimal:
        return self.current_value - self.amount

    @property
    def gain_loss_percentage(self) -> Decimal:
        return _percentage(self.gain_loss, self.amount)


@dataclass(frozen=True)
class TransactionRow:
    date: datetime
    amount: Decimal


@dataclass(frozen=True)
class InvestmentSummary:
    id: str
    name: str
    gain_loss: Decimal
    gain_loss_percentage: Decimal

    @classmethod
    def from_row(cls, row: InvestmentRow) -> "InvestmentSummary":
        return cls(row.id, row.name, row.gain_loss, row.gain_loss_percentage)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gainLoss": _number(self.gain_loss),
            "gainLossPercentage": _number(self.gain_loss_percentage),
        }


@dataclass(frozen=True)
class PerformanceSummary:
    total_value: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percentage: Decimal
    active_investments: int
    best_investment: InvestmentSummary | None
    worst_investment: InvestmentSummary | None

    def to_dict(self) -> dict:
        return {
            "totalValue": _number(self.total_value),
            "totalGainLoss": _number(self.total_gain_loss),
            "totalGainLossPercentage": _number(self.total_gain_loss_percentage),
            "activeInvestments": self.active_investments,
            "bestInvestment": self.best_investment.to_dict() if self.best_investment else None,
            "worstInvestment": self.worst_investment.to_dict() if self.worst_investment else None,
        }


@dataclass(frozen=True)
class DistributionSlice:
    type: str
    value: Decimal
    percentage: Decimal

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "value": _number(self.value),
            "percentage": _number(self.percentage),
        }


@dataclass(frozen=True)
class TrendPoint:
    month: str
    value: Decimal

    def to_dict(self) -> dict:
        return {"month": self.month, "value": _number(self.value)}


@dataclass(frozen=True)
class TopPerformer:
    investment_id: str
    investment_name: str
    gain_loss: Decimal
    gain_loss_percentage: Decimal
    current_value: Decimal

    def to_dict(self) -> dict:
        return {
            "investmentId": self.investment_id,
            "investmentName": self.investment_name,
            "gainLoss": _number(self.gain_loss),
            "gainLossPercent": _number(self.gain_loss_percentage),
            "currentValue": _number(self.current_value),
        }


@dataclass(frozen=True)
class YearOverYear:
    current_year: int
    previous_year: int
    current_year_value: Decimal
    previous_year_value: Decimal
    change: Decimal
    change_percentage: Decimal

    def to_dict(self) -> dict:
        return {
            "currentYear": self.current_year,
            "previousYear": self.previous_year,
            "current": _number(self.current_year_value),
            "previous": _number(self.previous_year_value),
            "change": _number(self.change),
            "changePercentage": _number(self.change_percentage),
        }


# Reducers


def summarize_performance(rows: Sequence[InvestmentRow]) -> PerformanceSummary:
    total_value = sum((row.current_value for row in rows), ZERO)
    total_amount = sum((row.amount for row in rows), ZERO)
    total_gain_loss = sum((row.gain_loss for row in rows), ZERO)

    best = worst = None
    if rows:
        # max/min keep the first row on ties.
        best = InvestmentSummary.from_row(max(rows, key=lambda row: row.gain_loss))
        worst = InvestmentSummary.from_row(min(rows, key=lambda row: row.gain_loss))

    return PerformanceSummary(
        total_value=total_value,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percentage=_percentage(total_gain_loss, total_amount),
        active_investments=len(rows),
        best_investment=best,
        worst_investment=worst,
    )


def summarize_distribution(rows: Iterable[InvestmentRow]) -> list[DistributionSlice]:
    totals: dict[str, Decimal] = {}
    for row in rows:
        totals[row.type] = totals.get(row.type, ZERO) + row.current_value

    grand_total = sum(totals.values(), ZERO)
    return [
        DistributionSlice(type=type_, value=value, percentage=_percentage(value, grand_total))
        for type_, value in totals.items()
    ]


def months_before(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the target month."""

    index = moment.year * 12 + (moment.month - 1) - months
    year, month_zero = divmod(index, 12)
    month = month_zero + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def summarize_trends(
    rows: Iterable[TransactionRow],
    months: int = DEFAULT_TREND_MONTHS,
    now: datetime | None = None,
) -> list[TrendPoint]:
    """Sum amounts per calendar month inside the trailing window.

    Months without transactions are left out rather than reported as zero.
    """

    now = now or utcnow()
    start = months_before(now, months)
    buckets: dict[str, Decimal] = {}
    for row in rows:
        if row.date < start or row.date > now:
            continue
        key = row.date.strftime("%Y-%m")
        buckets[key] = buckets.get(key, ZERO) + row.amount

    return [TrendPoint(month=key, value=buckets[key]) for key in sorted(buckets)]


def rank_top_performers(
    rows: Iterable[InvestmentRow], limit: int = DEFAULT_TOP_PERFORMERS
) -> list[TopPerformer]:
    """Order by absolute gain/loss (not percentage), best first."""

    ranked = sorted(rows, key=lambda row: row.gain_loss, reverse=True)
    return [
        TopPerformer(
            investment_id=row.id,
            investment_name=row.name,
            gain_loss=row.gain_loss,
            gain_loss_percentage=row.gain_loss_percentage,
            current_value=row.current_value,
        )
        for row in ranked[: max(limit, 0)]
    ]


def compare_year_over_year(
    rows: Iterable[InvestmentRow], today: datetime | None = None
) -> YearOverYear:
    """Compare current value of holdings bought this calendar year against last year's."""

    current_year = (today or utcnow()).year
    previous_year = current_year - 1
    current_value = ZERO
    previous_value = ZERO
    for row in rows:
        if row.purchase_date.year == current_year:
            current_value += row.current_value
        elif row.purchase_date.year == previous_year:
            previous_value += row.current_value

    change = current_value - previous_value
    return YearOverYear(
        current_year=current_year,
        previous_year=previous_year,
        current_year_value=current_value,
        previous_year_value=previous_value,
        change=change,
        change_percentage=_percentage(change, previous_value),
    )


# Query boundary


def _to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def load_active_investments(user_id: str) -> list[InvestmentRow]:
    return [
        InvestmentRow(
            id=investment.id,
            name=investment.name,
            type=investment.type,
            amount=_to_decimal(investment.amount),
            current_value=_to_decimal(investment.current_value),
            purchase_date=investment.purchase_date,
        )
        for investment in Investment.list_active_for_user(user_id)
    ]


def load_transactions(user_id: str, start: datetime, end: datetime) -> list[TransactionRow]:
    return [
        TransactionRow(date=transaction.date, amount=_to_decimal(transaction.amount))
        for transaction in Transaction.list_for_user_in_date_range(user_id, start, end)
    ]


# Per-user reports


def performance_for_user(user_id: str) -> PerformanceSummary:
    return summarize_performance(load_active_investments(user_id))


def distribution_for_user(user_id: str) -> list[DistributionSlice]:
    return summarize_distribution(load_active_investments(user_id))


def trends_for_user(user_id: str, months: int = DEFAULT_TREND_MONTHS) -> list[TrendPoint]:
    if months < 1:
        raise InvalidRequest("months must be a positive integer.")
    now = utcnow()
    rows = load_transactions(user_id, months_before(now, months), now)
    return summarize_trends(rows, months=months, now=now)


def top_performers_for_user(user_id: str, limit: int = DEFAULT_TOP_PERFORMERS) -> list[TopPerformer]:
    if limit < 1:
        raise InvalidRequest("limit must be a positive integer.")
    return rank_top_performers(load_active_investments(user_id), limit)


def year_over_year_for_user(user_id: str) -> YearOverYear:
    return compare_year_over_year(load_active_investments(user_id))


def export_report(user_id: str, export_format: str) -> tuple[bytes, str, str]:
    """Render the combined report as ``(body, mimetype, filename)``."""

    export_format = (export_format or "").lower()
    if export_format not in EXPORT_FORMATS:
        raise InvalidRequest("Invalid format. Use 'pdf', 'csv', or 'json'")
    if export_format == "pdf":
        raise InvalidRequest("PDF export not yet implemented")

    performance = performance_for_user(user_id)
    distribution = distribution_for_user(user_id)
    trends = trends_for_user(user_id)

    if export_format == "json":
        payload = {
            "performance": performance.to_dict(),
            "distribution": [item.to_dict() for item in distribution],
            "trends": [point.to_dict() for point in trends],
        }
        return json.dumps(payload, indent=2).encode("utf-8"), "application/json", "reports.json"

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["section", "label", "value", "percentage"])
    writer.writerow(["performance", "totalValue", performance.total_value, ""])
    writer.writerow(
        [
            "performance",
            "totalGainLoss",
            performance.total_gain_loss,
            round(performance.total_gain_loss_percentage, 2),
        ]
    )
    for item in distribution:
        writer.writerow(["distribution", item.type, item.value, round(item.percentage, 2)])
    for point in trends:
        writer.writerow(["trend", point.month, point.value, ""])
    return buffer.getvalue().encode("utf-8"), "text/csv", "reports.csv"
