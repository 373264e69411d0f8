"""Pure reductions over already-fetched transactions.

Nothing in this module touches the database or the clock. Callers fetch the
transactions for a window and pass the reference dates in explicitly.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from models import Transaction, TransactionType
from money import ZERO, format_money
from schemas import (
    AlertSeverity,
    BudgetAlert,
    CategoryBreakdownEntry,
    MonthlySummary,
    MonthlyTrendPoint,
)

WARNING_RATIO = Decimal("0.8")

_TYPE_ORDER = {TransactionType.income: 0, TransactionType.expense: 1}


@dataclass
class Totals:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    def add(self, txn: Transaction) -> None:
        if txn.type == TransactionType.income:
            self.income += txn.amount
        else:
            self.expense += txn.amount
        self.count += 1


@dataclass
class _CategoryBucket:
    category_id: int
    name: str
    color: Optional[str]
    type: TransactionType
    total: Decimal = ZERO
    count: int = 0


def totals(transactions: Iterable[Transaction]) -> Totals:
    result = Totals()
    for txn in transactions:
        result.add(txn)
    return result


def summarize_month(
    transactions: Iterable[Transaction], year: int, month: int
) -> MonthlySummary:
    window = totals(transactions)
    return MonthlySummary(
        total_income=window.income,
        total_expense=window.expense,
        balance=window.balance,
        transaction_count=window.count,
        month=month,
        year=year,
    )


def category_breakdown(
    transactions: Iterable[Transaction],
) -> list[CategoryBreakdownEntry]:
    buckets: dict[tuple[int, TransactionType], _CategoryBucket] = {}
    for txn in transactions:
        key = (txn.category_id, txn.type)
        bucket = buckets.get(key)
        if bucket is None:
            category = txn.category
            bucket = _CategoryBucket(
                category_id=txn.category_id,
                name=category.name,
                color=category.color,
                type=txn.type,
            )
            buckets[key] = bucket
        bucket.total += txn.amount
        bucket.count += 1

    ordered = sorted(
        buckets.values(),
        key=lambda b: (_TYPE_ORDER[b.type], -b.total, b.category_id),
    )
    return [
        CategoryBreakdownEntry(
            category_id=b.category_id,
            category_name=b.name,
            category_color=b.color,
            type=b.type,
            total_amount=b.total,
            transaction_count=b.count,
        )
        for b in ordered
    ]


def month_label(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def monthly_trend(
    transactions: Iterable[Transaction], months: Sequence[date]
) -> list[MonthlyTrendPoint]:
    """One point per entry in ``months``, zero-filled when a month is quiet."""
    buckets: dict[date, Totals] = {m.replace(day=1): Totals() for m in months}
    for txn in transactions:
        bucket = buckets.get(txn.date.replace(day=1))
        if bucket is not None:
            bucket.add(txn)

    out: list[MonthlyTrendPoint] = []
    for key in sorted(buckets):
        bucket = buckets[key]
        out.append(
            MonthlyTrendPoint(
                month=month_label(key),
                income=bucket.income,
                expense=bucket.expense,
                balance=bucket.balance,
            )
        )
    return out


def evaluate_budget_alert(
    total_income: Decimal, total_expense: Decimal, currency_symbol: str = "$"
) -> BudgetAlert:
    if total_expense > total_income:
        overspend = format_money(total_expense - total_income, currency_symbol)
        return BudgetAlert(
            message=f"You've spent {overspend} more than you earned this month",
            severity=AlertSeverity.error,
        )
    if total_income > 0 and total_expense >= total_income * WARNING_RATIO:
        return BudgetAlert(
            message="You've spent 80% or more of your income this month",
            severity=AlertSeverity.warning,
        )
    return BudgetAlert(
        message="Your spending is under control this month",
        severity=AlertSeverity.info,
    )
