from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from aggregation import (
    category_breakdown,
    evaluate_budget_alert,
    monthly_trend,
    summarize_month,
    totals,
)
from config import get_settings
from models import Category, Transaction, TransactionType
from money import to_cents
from periods import (
    Period,
    local_today,
    month_period,
    month_starts,
    range_period,
    trailing_period,
)
from schemas import (
    CategoryIn,
    CategoryUpdate,
    DashboardSnapshot,
    MonthlySummary,
    ReportFormat,
    ReportLine,
    ReportSummary,
    TransactionIn,
    TransactionOut,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)


def get_current_user_id() -> int:
    return 1


@dataclass
class TransactionFilters:
    type: Optional[TransactionType] = None
    category_id: Optional[int] = None


class CategoryService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self, type: Optional[TransactionType] = None) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.user_id == self.user_id)
            .order_by(Category.type, Category.name, Category.id)
        )
        if type:
            stmt = stmt.where(Category.type == type)
        return self.session.scalars(stmt).all()

    def get(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if not category or category.user_id != self.user_id:
            raise ValueError("Category not found")
        return category

    def create(self, data: CategoryIn) -> Category:
        existing = self.session.scalar(
            select(Category).where(
                Category.user_id == self.user_id,
                Category.type == data.type,
                func.lower(Category.name) == data.name.strip().lower(),
            )
        )
        if existing:
            raise ValueError("Category with this name already exists")
        category = Category(
            user_id=self.user_id,
            name=data.name.strip(),
            type=data.type,
            color=data.color,
        )
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def update(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get(category_id)
        if data.name is not None:
            name = data.name.strip()
            clash = self.session.scalar(
                select(Category).where(
                    Category.user_id == self.user_id,
                    Category.type == category.type,
                    Category.id != category.id,
                    func.lower(Category.name) == name.lower(),
                )
            )
            if clash:
                raise ValueError("Category with this name already exists")
            category.name = name
        if "color" in data.model_fields_set:
            category.color = data.color
        self.session.commit()
        return category

    def delete(self, category_id: int) -> None:
        category = self.get(category_id)
        in_use = self.session.execute(
            select(func.count(Transaction.id)).where(
                Transaction.category_id == category.id
            )
        ).scalar_one()
        if in_use:
            raise ValueError("Cannot delete category with existing transactions")
        self.session.delete(category)
        self.session.commit()


class TransactionService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def _category_for(self, category_id: int, txn_type: TransactionType) -> Category:
        category = self.session.get(Category, category_id)
        if not category or category.user_id != self.user_id:
            raise ValueError("Category not found")
        if category.type != txn_type:
            raise ValueError("Category type mismatch")
        return category

    def create(self, data: TransactionIn) -> Transaction:
        self._category_for(data.category_id, data.type)
        txn = Transaction(
            user_id=self.user_id,
            date=data.date,
            type=data.type,
            amount_cents=to_cents(data.amount),
            category_id=data.category_id,
            description=data.description,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def get(self, transaction_id: int) -> Transaction:
        stmt = (
            select(Transaction)
            .options(joinedload(Transaction.category))
            .where(
                Transaction.user_id == self.user_id, Transaction.id == transaction_id
            )
        )
        txn = self.session.scalar(stmt)
        if not txn:
            raise ValueError("Transaction not found")
        return txn

    def update(self, transaction_id: int, data: TransactionUpdate) -> Transaction:
        txn = self.get(transaction_id)
        if data.category_id is not None:
            # The transaction keeps its type, so the new category must share it.
            self._category_for(data.category_id, txn.type)
            txn.category_id = data.category_id
        if data.amount is not None:
            txn.amount_cents = to_cents(data.amount)
        if data.description is not None:
            txn.description = data.description
        if data.date is not None:
            txn.date = data.date
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()

    def _base_query(self, filters: Optional[TransactionFilters]):
        stmt = (
            select(Transaction)
            .options(joinedload(Transaction.category))
            .where(Transaction.user_id == self.user_id)
        )
        if filters and filters.type:
            stmt = stmt.where(Transaction.type == filters.type)
        if filters and filters.category_id:
            stmt = stmt.where(Transaction.category_id == filters.category_id)
        return stmt

    def for_period(
        self, period: Period, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        if period.is_empty:
            return []
        stmt = (
            self._base_query(filters)
            .where(Transaction.date.between(period.start, period.last_day))
            .order_by(Transaction.date.asc(), Transaction.id.asc())
        )
        return self.session.scalars(stmt).all()

    def list(
        self,
        period: Optional[Period] = None,
        filters: Optional[TransactionFilters] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transaction]:
        stmt = (
            self._base_query(filters)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        if period is not None:
            stmt = stmt.where(Transaction.date.between(period.start, period.last_day))
        return self.session.scalars(stmt).all()

    def recent(self, limit: int = 10) -> list[Transaction]:
        return self.list(limit=limit)


class MetricsService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.txn_service = TransactionService(session, self.user_id)

    def monthly_summary(self, month: int, year: int) -> MonthlySummary:
        period = month_period(year, month)
        transactions = self.txn_service.for_period(period)
        return summarize_month(transactions, year, month)


class DashboardService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.txn_service = TransactionService(session, self.user_id)
        self.settings = get_settings()

    def snapshot(self, today: Optional[date] = None) -> DashboardSnapshot:
        started = time.perf_counter()
        today = today or local_today()

        current = month_period(today.year, today.month)
        current_txns = self.txn_service.for_period(current)
        summary = summarize_month(current_txns, today.year, today.month)

        recent = self.txn_service.recent(self.settings.recent_limit)

        breakdown = category_breakdown(current_txns)

        trailing = trailing_period(today, self.settings.trend_months)
        trend = monthly_trend(
            self.txn_service.for_period(trailing), month_starts(trailing)
        )

        alert = evaluate_budget_alert(
            summary.total_income,
            summary.total_expense,
            self.settings.currency_symbol,
        )

        snapshot = DashboardSnapshot(
            current_month_summary=summary,
            recent_transactions=[TransactionOut.model_validate(t) for t in recent],
            category_breakdown=breakdown,
            monthly_trend=trend,
            budget_alerts=[alert],
        )
        logger.info(
            f"dashboard_built: user_id={self.user_id} month={today:%Y-%m} "
            f"transactions={summary.transaction_count} severity={alert.severity.value} "
            f"duration={time.perf_counter() - started:.3f}s"
        )
        return snapshot


def report_file_name(
    start: date, end: date, fmt: ReportFormat, generated_at: datetime
) -> str:
    timestamp = int(generated_at.timestamp() * 1000)
    return f"financial_report_{start.isoformat()}_to_{end.isoformat()}_{timestamp}.{fmt}"


class ReportService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.txn_service = TransactionService(session, self.user_id)

    def summary(self, start: date, end: date) -> ReportSummary:
        started = time.perf_counter()
        period = range_period(start, end)
        transactions = self.txn_service.for_period(period)
        window = totals(transactions)

        newest_first = sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)
        lines = [
            ReportLine(
                id=txn.id,
                date=txn.date,
                type=txn.type,
                amount=txn.amount,
                description=txn.description,
                category_id=txn.category_id,
                category_name=txn.category.name,
                category_color=txn.category.color,
            )
            for txn in newest_first
        ]
        report = ReportSummary(
            start=start,
            end=end,
            total_income=window.income,
            total_expense=window.expense,
            balance=window.balance,
            transaction_count=window.count,
            transactions=lines,
            category_breakdown=category_breakdown(transactions),
        )
        logger.info(
            f"report_summary_built: user_id={self.user_id} period={start}to{end} "
            f"transactions={report.transaction_count} "
            f"duration={time.perf_counter() - started:.3f}s"
        )
        return report
