from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import create_db_engine, init_db
from main import app, get_db
from models import TransactionType
from schemas import CategoryIn, TransactionIn
from services import CategoryService, TransactionService


@pytest.fixture
def session():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def client(session):
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _seed(session) -> None:
    categories = CategoryService(session)
    salary = categories.create(CategoryIn(name="Salary", type=TransactionType.income))
    food = categories.create(CategoryIn(name="Food", type=TransactionType.expense))
    txns = TransactionService(session)
    txns.create(
        TransactionIn(
            date=date(2025, 3, 1),
            type=TransactionType.income,
            amount=Decimal("1000.00"),
            category_id=salary.id,
            description="Salary",
        )
    )
    txns.create(
        TransactionIn(
            date=date(2025, 3, 9),
            type=TransactionType.expense,
            amount=Decimal("1200.10"),
            category_id=food.id,
            description="Feast",
        )
    )


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_monthly_summary_endpoint(client, session) -> None:
    _seed(session)
    response = client.get("/api/summary", params={"month": 3, "year": 2025})
    assert response.status_code == 200
    assert response.json() == {
        "total_income": "1000.00",
        "total_expense": "1200.10",
        "balance": "-200.10",
        "transaction_count": 2,
        "month": 3,
        "year": 2025,
    }


def test_monthly_summary_rejects_invalid_month(client) -> None:
    response = client.get("/api/summary", params={"month": 13, "year": 2025})
    assert response.status_code == 400
    assert "Month" in response.json()["detail"]


def test_dashboard_endpoint_shape(client) -> None:
    response = client.get("/api/dashboard")
    assert response.status_code == 200
    body = response.json()
    assert body["current_month_summary"]["transaction_count"] == 0
    assert body["recent_transactions"] == []
    assert body["category_breakdown"] == []
    assert len(body["monthly_trend"]) == 6
    assert body["budget_alerts"] == [
        {"message": "Your spending is under control this month", "severity": "info"}
    ]


def test_report_summary_endpoint(client, session) -> None:
    _seed(session)
    response = client.get(
        "/api/reports/summary", params={"start": "2025-03-09", "end": "2025-03-09"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["transaction_count"] == 1
    assert body["transactions"][0]["category_name"] == "Food"
    assert body["category_breakdown"] == [
        {
            "category_id": body["transactions"][0]["category_id"],
            "category_name": "Food",
            "category_color": None,
            "type": "expense",
            "total_amount": "1200.10",
        }
    ]


def test_report_summary_rejects_unknown_period(client) -> None:
    response = client.get("/api/reports/summary", params={"period": "custom"})
    assert response.status_code == 400


def test_transactions_endpoint_filters(client, session) -> None:
    _seed(session)
    response = client.get(
        "/api/transactions", params={"month": 3, "year": 2025, "type": "expense"}
    )
    assert response.status_code == 200
    items = response.json()
    assert [item["description"] for item in items] == ["Feast"]
    assert items[0]["amount"] == "1200.10"


@pytest.mark.parametrize(
    "params", [{"start": "2020-01-01"}, {"end": "2020-01-31", "period": "this_month"}]
)
def test_report_summary_requires_both_bounds(client, params) -> None:
    response = client.get("/api/reports/summary", params=params)
    assert response.status_code == 400
    assert "start and end" in response.json()["detail"]


def test_report_summary_open_ended_to_last_representable_day(client, session) -> None:
    _seed(session)
    response = client.get(
        "/api/reports/summary", params={"start": "2025-03-02", "end": "9999-12-31"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["end"] == "9999-12-31"
    assert body["total_expense"] == "1200.10"
