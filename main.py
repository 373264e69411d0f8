import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import SessionLocal, init_db
from models import TransactionType
from periods import InvalidPeriodError, month_period, resolve_period, year_period
from schemas import DashboardSnapshot, MonthlySummary, ReportSummary, TransactionOut
from services import (
    DashboardService,
    MetricsService,
    ReportService,
    TransactionFilters,
    TransactionService,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Tracker")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.on_event("startup")
def startup_event():
    init_db()


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/summary", response_model=MonthlySummary)
def api_monthly_summary(
    month: int = Query(...),
    year: int = Query(...),
    db: Session = Depends(get_db),
):
    try:
        return MetricsService(db).monthly_summary(month, year)
    except InvalidPeriodError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/dashboard", response_model=DashboardSnapshot)
def api_dashboard(db: Session = Depends(get_db)):
    try:
        return DashboardService(db).snapshot()
    except SQLAlchemyError:
        logger.exception("Error building dashboard")
        raise


@app.get("/api/reports/summary", response_model=ReportSummary)
def api_report_summary(
    start: Optional[date] = None,
    end: Optional[date] = None,
    period: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if (start is None) != (end is None):
        raise HTTPException(
            status_code=400, detail="Custom period requires start and end dates"
        )
    if start is None or end is None:
        try:
            resolved = resolve_period(period or "this_month", None, None)
        except InvalidPeriodError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        start, end = resolved.start, resolved.last_day
    return ReportService(db).summary(start, end)


@app.get("/api/transactions", response_model=list[TransactionOut])
def api_transactions(
    month: Optional[int] = None,
    year: Optional[int] = None,
    type: Optional[TransactionType] = None,
    category_id: Optional[int] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    try:
        if month is not None and year is not None:
            window = month_period(year, month)
        elif year is not None:
            window = year_period(year)
        else:
            window = None
    except InvalidPeriodError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    filters = TransactionFilters(type=type, category_id=category_id)
    items = TransactionService(db).list(window, filters, limit=limit, offset=offset)
    return [TransactionOut.model_validate(txn) for txn in items]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
