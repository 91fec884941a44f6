from datetime import date
from decimal import Decimal

import pytest

from conftest import USER, FakeBudgetRepository, FakeTransactionRepository, make_budget, make_tx
from services.budget_service import (
    BudgetService,
    budget_status,
    evaluate,
    evaluate_all,
    evaluation_window,
)
from utils.errors import NotFoundError, StoreError, ValidationError

TODAY = date(2025, 1, 20)


def test_near_at_exactly_eighty_percent():
    result = evaluate(make_budget(limit=500), [make_tx("expense", 400)], TODAY)

    perf = result.data
    assert perf.spent_amount == 400
    assert perf.remaining_amount == 100
    assert perf.percentage_used == pytest.approx(80.0)
    assert perf.status == "near"


def test_just_below_eighty_is_under():
    perf = evaluate(make_budget(limit=500), [make_tx("expense", 399.99)], TODAY).data

    assert perf.status == "under"


def test_exactly_at_limit_is_over():
    perf = evaluate(make_budget(limit=500), [make_tx("expense", 500)], TODAY).data

    assert perf.percentage_used == 100.0
    assert perf.status == "over"


def test_overspend_gives_negative_remaining():
    perf = evaluate(make_budget(limit=100), [make_tx("expense", 150)], TODAY).data

    assert perf.remaining_amount == -50
    assert perf.percentage_used == 150.0
    assert perf.status == "over"


def test_zero_limit_reports_zero_percent():
    perf = evaluate(make_budget(limit=0), [make_tx("expense", 25)], TODAY).data

    assert perf.percentage_used == 0.0
    assert perf.status == "under"
    assert perf.remaining_amount == -25


def test_negative_limit_is_rejected():
    result = evaluate(make_budget(limit=-1), [], TODAY)

    assert isinstance(result.error, ValidationError)


def test_only_exact_category_expenses_count():
    perf = evaluate(make_budget(category="Food", limit=100), [
        make_tx("expense", 10, "Food"),
        make_tx("expense", 20, "food"),
        make_tx("expense", 30, "Food "),
        make_tx("income", 40, "Food"),
    ], TODAY).data

    assert perf.spent_amount == 10


@pytest.mark.parametrize("period, inside, outside", [
    ("weekly", date(2025, 1, 13), date(2025, 1, 12)),
    ("monthly", date(2025, 1, 1), date(2024, 12, 31)),
    ("yearly", date(2025, 1, 1), date(2024, 12, 31)),
])
def test_window_bounds_are_inclusive(period, inside, outside):
    perf = evaluate(make_budget(period=period, limit=1000), [
        make_tx("expense", 10, day=inside),
        make_tx("expense", 100, day=outside),
        make_tx("expense", 1, day=TODAY),
    ], TODAY).data

    assert perf.spent_amount == 11


def test_future_transactions_are_ignored():
    perf = evaluate(make_budget(), [make_tx("expense", 50, day=date(2025, 1, 21))], TODAY).data

    assert perf.spent_amount == 0


def test_evaluation_windows():
    assert evaluation_window("weekly", TODAY) == (date(2025, 1, 13), TODAY)
    assert evaluation_window("monthly", TODAY) == (date(2025, 1, 1), TODAY)
    assert evaluation_window("yearly", TODAY) == (date(2025, 1, 1), TODAY)
    with pytest.raises(ValidationError):
        evaluation_window("daily", TODAY)


@pytest.mark.parametrize("pct, status", [
    (0, "under"), (79.99, "under"), (80, "near"), (99.99, "near"), (100, "over"), (250, "over"),
])
def test_budget_status_thresholds(pct, status):
    assert budget_status(pct) == status


def test_evaluate_all_sorts_by_percentage_used():
    budgets = [
        make_budget("Food", 1000, budget_id="food"),
        make_budget("Rent", 100, budget_id="rent"),
        make_budget("Fun", 200, budget_id="fun"),
    ]
    txs = [
        make_tx("expense", 100, "Food"),
        make_tx("expense", 90, "Rent"),
        make_tx("expense", 100, "Fun"),
    ]

    result = evaluate_all(budgets, txs, TODAY)

    assert [p.budget_id for p in result.data] == ["rent", "fun", "food"]
    assert [p.status for p in result.data] == ["near", "under", "under"]


def test_evaluate_all_empty_and_missing():
    assert evaluate_all([], [], TODAY).data == []
    assert isinstance(evaluate_all(None, [], TODAY).error, ValidationError)


def test_evaluate_all_rejects_invalid_period():
    result = evaluate_all([make_budget(period="daily")], [], TODAY)

    assert isinstance(result.error, ValidationError)


def test_performance_to_dict_keys():
    perf = evaluate(make_budget(), [], TODAY).data

    assert set(perf.to_dict()) == {
        "budgetId", "category", "budgetAmount", "spentAmount",
        "remainingAmount", "percentageUsed", "status", "period",
    }


# ── store-backed service ──────────────────────────────────

def _service(budgets, transactions=(), **errors):
    return BudgetService(
        FakeBudgetRepository(budgets, error=errors.get("budget_error")),
        FakeTransactionRepository(transactions, error=errors.get("tx_error")),
    )


def test_service_filters_by_period():
    service = _service(
        [make_budget(period="monthly", budget_id="m"), make_budget(period="yearly", budget_id="y")],
        [make_tx("expense", 100)],
    )

    result = service.get_budget_performance(USER, period="yearly", today=TODAY)

    assert [p.budget_id for p in result.data] == ["y"]


def test_service_does_not_double_count_across_periods():
    service = _service(
        [
            make_budget("Food", 1000, "monthly", budget_id="m"),
            make_budget("Food", 1000, "yearly", budget_id="y"),
            make_budget("Food", 1000, "weekly", budget_id="w"),
        ],
        [
            make_tx("expense", 100, "Food", day=date(2025, 1, 15)),
            make_tx("expense", 50, "Food", day=date(2024, 12, 31)),
        ],
    )

    result = service.get_budget_performance(USER, today=TODAY)

    spent = {p.budget_id: p.spent_amount for p in result.data}
    assert spent == {"m": 100, "y": 100, "w": 100}
    assert service.transaction_repo.calls == [
        (USER, date(2025, 1, 1), TODAY, "expense", "Food"),
    ]


def test_service_rejects_bad_input():
    service = _service([])

    assert isinstance(service.get_budget_performance("", today=TODAY).error, ValidationError)
    assert isinstance(service.get_budget_performance(USER, period="daily").error, ValidationError)


def test_service_single_budget_and_not_found():
    service = _service([make_budget(budget_id="b1")], [make_tx("expense", 400)])

    found = service.get_performance_for(USER, "b1", today=TODAY)
    missing = service.get_performance_for(USER, "nope", today=TODAY)

    assert found.data.status == "near"
    assert isinstance(missing.error, NotFoundError)
    assert missing.error.code == "NOT_FOUND"


def test_service_store_errors(store_down):
    budgets_down = _service([], budget_error=store_down)
    spending_down = _service([make_budget()], tx_error=store_down)

    for result in (
        budgets_down.get_budget_performance(USER, today=TODAY),
        spending_down.get_budget_performance(USER, today=TODAY),
    ):
        assert isinstance(result.error, StoreError)
        assert result.error.original is store_down


def test_decimal_limit_and_spending():
    perf = evaluate(make_budget(limit=Decimal("500.00")), [make_tx("expense", Decimal("400.00"))], TODAY).data

    assert perf.status == "near"
    assert perf.remaining_amount == pytest.approx(100.0)
