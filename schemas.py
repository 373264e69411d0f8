import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import TransactionType
from money import Money

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

ReportFormat = Literal["pdf", "excel"]


class AlertSeverity(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class CategoryUpdate(BaseModel):
    # No ``type``: a category's type is fixed once created.
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class TransactionIn(BaseModel):
    date: date
    type: TransactionType
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category_id: int
    description: str = Field(..., min_length=1, max_length=500)


class TransactionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[dt.date] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    category_id: Optional[int] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: int
    category_id: int
    type: TransactionType
    amount: Money
    description: str
    date: date
    created_at: datetime
    updated_at: datetime


class MonthlySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_income: Money
    total_expense: Money
    balance: Money
    transaction_count: int
    month: int = Field(..., ge=1, le=12)
    year: int


class CategoryBreakdownEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    category_id: int
    category_name: str
    category_color: Optional[str] = None
    type: TransactionType
    total_amount: Money
    transaction_count: int = Field(default=0, exclude=True)


class MonthlyTrendPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str
    income: Money
    expense: Money
    balance: Money


class BudgetAlert(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    severity: AlertSeverity


class DashboardSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_month_summary: MonthlySummary
    recent_transactions: list[TransactionOut]
    category_breakdown: list[CategoryBreakdownEntry]
    monthly_trend: list[MonthlyTrendPoint]
    budget_alerts: list[BudgetAlert]


class ReportLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    date: date
    type: TransactionType
    amount: Money
    description: str
    category_id: int
    category_name: str
    category_color: Optional[str] = None


class ReportSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date
    total_income: Money
    total_expense: Money
    balance: Money
    transaction_count: int
    transactions: list[ReportLine]
    category_breakdown: list[CategoryBreakdownEntry]
