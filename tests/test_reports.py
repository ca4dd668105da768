"""Tests for the portfolio report reducers and their query boundary."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from models import db, utcnow
from models.investment import Investment
from models.transaction import Transaction
from services import reports
from services.errors import InvalidRequest
from services.reports import (
    InvestmentRow,
    TransactionRow,
    compare_year_over_year,
    months_before,
    rank_top_performers,
    summarize_distribution,
    summarize_performance,
    summarize_trends,
)

D = Decimal


def _row(id_, amount, current_value, type_="stocks", purchase_date=datetime(2024, 1, 15)):
    return InvestmentRow(
        id=id_,
        name=f"Holding {id_}",
        type=type_,
        amount=D(str(amount)),
        current_value=D(str(current_value)),
        purchase_date=purchase_date,
    )


def test_performance_summary_matches_worked_example():
    summary = summarize_performance([_row("a", 100, 150), _row("b", 200, 180)])

    assert summary.total_value == D("330")
    assert summary.total_gain_loss == D("30")
    assert summary.total_gain_loss_percentage == D("10")
    assert summary.active_investments == 2
    assert summary.best_investment.id == "a"
    assert summary.best_investment.gain_loss == D("50")
    assert summary.worst_investment.id == "b"
    assert summary.worst_investment.gain_loss == D("-20")


def test_performance_summary_of_nothing():
    summary = summarize_performance([])

    assert summary.total_value == 0
    assert summary.total_gain_loss_percentage == 0
    assert summary.best_investment is None
    assert summary.worst_investment is None
    assert summary.to_dict()["bestInvestment"] is None


def test_performance_percentage_is_zero_when_nothing_was_invested():
    summary = summarize_performance([_row("a", 0, 25)])

    assert summary.total_gain_loss == D("25")
    assert summary.total_gain_loss_percentage == 0


def test_distribution_percentages_sum_to_one_hundred():
    rows = [
        _row("a", 10, 100, "stocks"),
        _row("b", 10, 50, "bonds"),
        _row("c", 10, 150, "stocks"),
        _row("d", 10, 33, "crypto"),
    ]

    slices = summarize_distribution(rows)

    assert [item.type for item in slices] == ["stocks", "bonds", "crypto"]
    assert slices[0].value == D("250")
    assert float(sum(item.percentage for item in slices)) == pytest.approx(100)


def test_distribution_percentages_are_zero_without_value():
    slices = summarize_distribution([_row("a", 10, 0, "stocks"), _row("b", 10, 0, "bonds")])

    assert all(item.percentage == 0 for item in slices)


def test_months_before_clamps_to_month_end():
    assert months_before(datetime(2025, 3, 31, 12, 0), 1) == datetime(2025, 2, 28, 12, 0)
    assert months_before(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)
    assert months_before(datetime(2025, 1, 15), 12) == datetime(2024, 1, 15)


def test_trends_bucket_by_month_and_omit_empty_months():
    now = datetime(2025, 6, 20)
    rows = [
        TransactionRow(date=datetime(2025, 6, 1), amount=D("10")),
        TransactionRow(date=datetime(2025, 6, 15), amount=D("5.50")),
        TransactionRow(date=datetime(2025, 3, 2), amount=D("7")),
        TransactionRow(date=datetime(2024, 6, 19), amount=D("99")),  # before window
        TransactionRow(date=datetime(2025, 7, 1), amount=D("99")),  # after now
    ]

    points = summarize_trends(rows, months=12, now=now)

    assert [(point.month, point.value) for point in points] == [
        ("2025-03", D("7")),
        ("2025-06", D("15.50")),
    ]


def test_top_performers_rank_by_absolute_gain():
    rows = [
        _row("small-base", 10, 30),  # +20, 200%
        _row("large-base", 1000, 1100),  # +100, 10%
        _row("loser", 100, 50),
    ]

    ranked = rank_top_performers(rows, limit=2)

    assert [item.investment_id for item in ranked] == ["large-base", "small-base"]
    assert ranked[1].gain_loss_percentage == D("200")
    assert set(ranked[0].to_dict()) == {
        "investmentId",
        "investmentName",
        "gainLoss",
        "gainLossPercent",
        "currentValue",
    }


def test_year_over_year_compares_purchase_years():
    rows = [
        _row("a", 0, 300, purchase_date=datetime(2025, 2, 1)),
        _row("b", 0, 100, purchase_date=datetime(2024, 5, 1)),
        _row("c", 0, 100, purchase_date=datetime(2024, 9, 1)),
        _row("d", 0, 999, purchase_date=datetime(2020, 1, 1)),
    ]

    comparison = compare_year_over_year(rows, today=datetime(2025, 8, 1))

    assert comparison.current_year == 2025
    assert comparison.current_year_value == D("300")
    assert comparison.previous_year_value == D("200")
    assert comparison.change == D("100")
    assert comparison.change_percentage == D("50")


def test_year_over_year_without_previous_value_reports_zero_change_percentage():
    rows = [_row("a", 0, 500, purchase_date=datetime(2025, 2, 1))]

    comparison = compare_year_over_year(rows, today=datetime(2025, 8, 1))

    assert comparison.change == D("500")
    assert comparison.change_percentage == 0


def test_year_over_year_with_negative_previous_value_reports_zero_change_percentage():
    # Sells are not floored, so last year's holdings can be worth less than nothing.
    rows = [
        _row("a", 0, 200, purchase_date=datetime(2025, 2, 1)),
        _row("b", 100, -50, purchase_date=datetime(2024, 3, 1)),
    ]

    comparison = compare_year_over_year(rows, today=datetime(2025, 8, 1))

    assert comparison.previous_year_value == D("-50")
    assert comparison.change == D("250")
    assert comparison.change_percentage == 0


def _investment(user_id, name, amount, current_value, **overrides):
    fields = dict(
        user_id=user_id,
        name=name,
        type="stocks",
        amount=D(str(amount)),
        current_value=D(str(current_value)),
        purchase_date=datetime(2024, 1, 1),
    )
    fields.update(overrides)
    investment = Investment(**fields)
    db.session.add(investment)
    return investment


def test_reports_read_only_the_callers_active_investments(db_session, make_user):
    owner = make_user("owner@example.com")
    stranger = make_user("stranger@example.com")

    _investment(owner, "Kept", 100, 150)
    _investment(owner, "Sold", 100, 900, status="sold")
    deleted = _investment(owner, "Deleted", 100, 900)
    _investment(stranger, "Not mine", 100, 900)
    db.session.flush()
    deleted.soft_delete()
    db.session.commit()

    summary = reports.performance_for_user(owner)

    assert summary.active_investments == 1
    assert summary.total_value == D("150")
    assert summary.best_investment.name == "Kept"


def test_trends_for_user_reads_transactions_in_window(db_session, make_user):
    owner = make_user("owner@example.com")
    investment = _investment(owner, "Kept", 100, 150)
    db.session.flush()
    db.session.add(
        Transaction(
            investment_id=investment.id,
            type="buy",
            quantity=D("2"),
            price=D("10"),
            amount=D("20"),
            date=utcnow(),
        )
    )
    db.session.commit()

    points = reports.trends_for_user(owner, months=1)

    assert len(points) == 1
    assert points[0].value == D("20")


def test_report_arguments_must_be_positive(db_session, make_user):
    owner = make_user("owner@example.com")

    with pytest.raises(InvalidRequest):
        reports.trends_for_user(owner, months=0)
    with pytest.raises(InvalidRequest):
        reports.top_performers_for_user(owner, limit=0)


@pytest.mark.parametrize(
    "export_format, message",
    [
        ("pdf", "PDF export not yet implemented"),
        ("xml", "Invalid format. Use 'pdf', 'csv', or 'json'"),
    ],
)
def test_unsupported_report_exports(db_session, make_user, export_format, message):
    owner = make_user("owner@example.com")

    with pytest.raises(InvalidRequest) as excinfo:
        reports.export_report(owner, export_format)

    assert excinfo.value.message == message
