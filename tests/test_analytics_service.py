from datetime import date
from decimal import Decimal

import pytest

from conftest import USER, FakeTransactionRepository, make_tx
from services.analytics_service import (
    AnalyticsService,
    get_category_analysis,
    get_income_vs_expense,
    get_time_trends,
)
from utils.errors import StoreError, ValidationError


def _mixed_sample():
    return [
        make_tx("income", 1200.0, "Salary", date(2025, 1, 1)),
        make_tx("expense", 45.5, "Food", date(2025, 1, 3)),
        make_tx("expense", 12.25, "Food", date(2025, 1, 4)),
        make_tx("expense", 300.0, "Rent", date(2025, 1, 5)),
        make_tx("income", 80.0, "Food", date(2025, 1, 19)),
        make_tx("expense", 19.99, "Transport", date(2025, 2, 2)),
        make_tx("income", 33.3, "Gifts", date(2025, 3, 31)),
    ]


# ── income vs expense ─────────────────────────────────────

def test_income_vs_expense_scenario():
    result = get_income_vs_expense([make_tx("income", 100), make_tx("expense", 40)])

    assert result.ok
    assert result.data.to_dict() == {
        "income": 100, "expense": 40, "net": 60, "incomeCount": 1, "expenseCount": 1,
    }


def test_income_vs_expense_empty_is_all_zero():
    result = get_income_vs_expense([])

    assert result.ok
    assert result.data.income == 0
    assert result.data.expense == 0
    assert result.data.net == 0
    assert result.data.income_count == result.data.expense_count == 0


def test_net_equals_income_minus_expense():
    data = get_income_vs_expense(_mixed_sample()).data

    assert data.income - data.expense == pytest.approx(data.net)
    assert data.income_count == 3
    assert data.expense_count == 4


@pytest.mark.parametrize("bad", [
    make_tx("transfer", 10),
    make_tx("expense", 0),
    make_tx("expense", -5),
    make_tx("expense", 10, category="   "),
    make_tx("expense", 10, day="2025-01-01"),
])
def test_invalid_transactions_are_rejected_before_computing(bad):
    result = get_income_vs_expense([make_tx("income", 10), bad])

    assert not result.ok
    assert result.data is None
    assert isinstance(result.error, ValidationError)
    assert result.error.code == "VALIDATION_ERROR"


# ── category analysis ─────────────────────────────────────

def test_category_analysis_scenario():
    result = get_category_analysis([
        make_tx("expense", 60, "Food"),
        make_tx("income", 40, "Salary"),
    ])

    food, salary = result.data
    assert (food.category, food.percentage, food.type) == ("Food", 60, "expense")
    assert (salary.category, salary.percentage, salary.type) == ("Salary", 40, "income")


def test_category_with_both_sides_is_mixed_and_not_netted():
    result = get_category_analysis([
        make_tx("expense", 30, "Food"),
        make_tx("income", 20, "Food"),
    ])

    (food,) = result.data
    assert food.type == "mixed"
    assert food.total_amount == 50
    assert food.income_amount == 20
    assert food.expense_amount == 30
    assert food.transaction_count == 2
    assert food.percentage == 100


def test_categories_match_literally():
    result = get_category_analysis([
        make_tx("expense", 10, "Food"),
        make_tx("expense", 10, "food"),
        make_tx("expense", 10, "Food "),
        make_tx("expense", 10, "🍔 Food"),
    ])

    assert sorted(c.category for c in result.data) == sorted(["Food", "food", "Food ", "🍔 Food"])


def test_category_percentages_sum_to_100_and_sorted_desc():
    data = get_category_analysis(_mixed_sample()).data

    assert sum(c.percentage for c in data) == pytest.approx(100.0)
    totals = [c.total_amount for c in data]
    assert totals == sorted(totals, reverse=True)
    assert data[0].category == "Salary"


def test_category_analysis_empty():
    assert get_category_analysis([]).data == []


# ── time trends ───────────────────────────────────────────

def test_daily_trend_is_sparse_and_sorted():
    result = get_time_trends([
        make_tx("expense", 5, day=date(2025, 1, 10)),
        make_tx("income", 50, day=date(2025, 1, 3)),
        make_tx("expense", 7, day=date(2025, 1, 10)),
    ], "day")

    assert [t.date for t in result.data] == [date(2025, 1, 3), date(2025, 1, 10)]
    jan10 = result.data[1]
    assert (jan10.income, jan10.expense, jan10.net, jan10.transaction_count) == (0, 12, -12, 2)


def test_weekly_trend_buckets_on_sunday():
    # 2025-01-01 is a Wednesday; 2025-01-05 is a Sunday
    result = get_time_trends([
        make_tx("expense", 1, day=date(2025, 1, 1)),
        make_tx("expense", 2, day=date(2025, 1, 4)),
        make_tx("expense", 4, day=date(2025, 1, 5)),
        make_tx("expense", 8, day=date(2025, 1, 11)),
    ], "week")

    assert [(t.date, t.expense) for t in result.data] == [
        (date(2024, 12, 29), 3),
        (date(2025, 1, 5), 12),
    ]


def test_monthly_and_yearly_buckets():
    monthly = get_time_trends(_mixed_sample(), "month").data
    yearly = get_time_trends(_mixed_sample(), "year").data

    assert [t.date for t in monthly] == [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)]
    assert [t.date for t in yearly] == [date(2025, 1, 1)]
    assert yearly[0].transaction_count == 7


@pytest.mark.parametrize("group_by", ["day", "week", "month", "year"])
def test_trend_totals_match_income_vs_expense(group_by):
    sample = _mixed_sample()
    totals = get_income_vs_expense(sample).data
    trends = get_time_trends(sample, group_by).data

    assert sum(t.income for t in trends) == pytest.approx(totals.income)
    assert sum(t.expense for t in trends) == pytest.approx(totals.expense)
    assert sum(t.transaction_count for t in trends) == len(sample)


def test_trend_rejects_unknown_grouping():
    result = get_time_trends(_mixed_sample(), "fortnight")

    assert isinstance(result.error, ValidationError)


def test_trend_to_dict_uses_iso_date():
    trend = get_time_trends([make_tx("income", 1, day=date(2025, 2, 9))]).data[0]

    assert trend.to_dict() == {
        "date": "2025-02-09", "income": 1, "expense": 0, "net": 1, "transactionCount": 1,
    }


# ── store-backed service ──────────────────────────────────

def test_service_fetches_range_and_aggregates():
    repo = FakeTransactionRepository(_mixed_sample())
    service = AnalyticsService(repo)

    result = service.get_income_vs_expense(USER, "2025-01-01", "2025-01-31")

    assert result.ok
    assert result.data.income == 1280.0
    assert repo.calls == [(USER, date(2025, 1, 1), date(2025, 1, 31), None, None)]


def test_service_category_analysis_type_filter():
    service = AnalyticsService(FakeTransactionRepository(_mixed_sample()))

    result = service.get_category_analysis(USER, date(2025, 1, 1), date(2025, 12, 31), tx_type="income")

    assert {c.type for c in result.data} == {"income"}


def test_service_time_trends():
    service = AnalyticsService(FakeTransactionRepository(_mixed_sample()))

    result = service.get_time_trends(USER, date(2025, 1, 1), date(2025, 12, 31), group_by="month")

    assert len(result.data) == 3


@pytest.mark.parametrize("user_id, start, end", [
    (None, "2025-01-01", "2025-01-31"),
    ("", "2025-01-01", "2025-01-31"),
    (USER, "2025-02-01", "2025-01-31"),
    (USER, "01/02/2025", "2025-01-31"),
    (USER, "2025-02-30", "2025-03-31"),
])
def test_service_validates_query(user_id, start, end):
    repo = FakeTransactionRepository(_mixed_sample())

    result = AnalyticsService(repo).get_income_vs_expense(user_id, start, end)

    assert isinstance(result.error, ValidationError)
    assert repo.calls == []


def test_service_wraps_store_failures(store_down):
    service = AnalyticsService(FakeTransactionRepository(error=store_down))

    result = service.get_category_analysis(USER, "2025-01-01", "2025-01-31")

    assert isinstance(result.error, StoreError)
    assert result.error.code == "OperationalError"
    assert "could not connect" in result.error.message
    assert result.error.original is store_down


def test_decimal_amounts_from_the_store_are_accepted():
    result = get_income_vs_expense([
        make_tx("income", Decimal("100.00")),
        make_tx("expense", Decimal("40.50")),
    ])

    assert result.ok
    assert result.data.net == pytest.approx(59.5)


def test_category_and_trend_accept_decimal_amounts():
    txs = [make_tx("expense", Decimal("12.25")), make_tx("expense", 7.75)]

    (food,) = get_category_analysis(txs).data
    (day,) = get_time_trends(txs).data

    assert food.total_amount == pytest.approx(20.0)
    assert day.expense == pytest.approx(20.0)
