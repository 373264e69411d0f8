from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import create_db_engine, init_db
from models import Category, TransactionType
from periods import month_period, year_period
from schemas import CategoryIn, CategoryUpdate, TransactionIn, TransactionUpdate
from services import CategoryService, TransactionFilters, TransactionService


def _session() -> Session:
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    return Session(engine)


def test_transaction_type_must_match_category_type() -> None:
    with _session() as session:
        salary = CategoryService(session).create(
            CategoryIn(name="Salary", type=TransactionType.income)
        )
        with pytest.raises(ValueError, match="type mismatch"):
            TransactionService(session).create(
                TransactionIn(
                    date=date(2025, 1, 5),
                    type=TransactionType.expense,
                    amount=Decimal("10.00"),
                    category_id=salary.id,
                    description="Wrong side",
                )
            )


def test_category_of_another_user_is_not_found() -> None:
    with _session() as session:
        foreign = CategoryService(session, user_id=2).create(
            CategoryIn(name="Food", type=TransactionType.expense)
        )
        with pytest.raises(ValueError, match="Category not found"):
            TransactionService(session, user_id=1).create(
                TransactionIn(
                    date=date(2025, 1, 5),
                    type=TransactionType.expense,
                    amount=Decimal("10.00"),
                    category_id=foreign.id,
                    description="Lunch",
                )
            )


def test_amount_must_be_positive_with_cent_precision() -> None:
    with pytest.raises(ValidationError):
        TransactionIn(
            date=date(2025, 1, 5),
            type=TransactionType.expense,
            amount=Decimal("0"),
            category_id=1,
            description="Nothing",
        )
    with pytest.raises(ValidationError):
        TransactionIn(
            date=date(2025, 1, 5),
            type=TransactionType.expense,
            amount=Decimal("1.005"),
            category_id=1,
            description="Too precise",
        )


def test_update_moves_between_categories_of_same_type_only() -> None:
    with _session() as session:
        categories = CategoryService(session)
        food = categories.create(CategoryIn(name="Food", type=TransactionType.expense))
        fun = categories.create(CategoryIn(name="Fun", type=TransactionType.expense))
        salary = categories.create(
            CategoryIn(name="Salary", type=TransactionType.income)
        )
        txns = TransactionService(session)
        txn = txns.create(
            TransactionIn(
                date=date(2025, 1, 5),
                type=TransactionType.expense,
                amount=Decimal("12.99"),
                category_id=food.id,
                description="Cinema",
            )
        )

        updated = txns.update(
            txn.id, TransactionUpdate(category_id=fun.id, amount=Decimal("13.49"))
        )
        assert updated.category_id == fun.id
        assert updated.amount == Decimal("13.49")
        assert updated.type == TransactionType.expense

        with pytest.raises(ValueError, match="type mismatch"):
            txns.update(txn.id, TransactionUpdate(category_id=salary.id))


def test_transaction_update_cannot_change_type() -> None:
    with pytest.raises(ValidationError):
        TransactionUpdate(type="income")


def test_category_type_is_immutable() -> None:
    with pytest.raises(ValidationError):
        CategoryUpdate(type="income")

    with _session() as session:
        categories = CategoryService(session)
        food = categories.create(CategoryIn(name="Food", type=TransactionType.expense))
        renamed = categories.update(
            food.id, CategoryUpdate(name="Groceries", color="#123abc")
        )
        assert renamed.name == "Groceries"
        assert renamed.color == "#123abc"
        assert renamed.type == TransactionType.expense

        cleared = categories.update(food.id, CategoryUpdate(color=None))
        assert cleared.color is None
        assert cleared.name == "Groceries"


def test_category_names_unique_per_type_case_insensitive() -> None:
    with _session() as session:
        categories = CategoryService(session)
        categories.create(CategoryIn(name="Gifts", type=TransactionType.expense))
        with pytest.raises(ValueError, match="already exists"):
            categories.create(CategoryIn(name=" gifts ", type=TransactionType.expense))
        income_gifts = categories.create(
            CategoryIn(name="Gifts", type=TransactionType.income)
        )
        assert income_gifts.type == TransactionType.income


def test_category_in_use_cannot_be_deleted() -> None:
    with _session() as session:
        categories = CategoryService(session)
        food = categories.create(CategoryIn(name="Food", type=TransactionType.expense))
        spare = categories.create(CategoryIn(name="Spare", type=TransactionType.expense))
        txns = TransactionService(session)
        txn = txns.create(
            TransactionIn(
                date=date(2025, 1, 5),
                type=TransactionType.expense,
                amount=Decimal("3.20"),
                category_id=food.id,
                description="Bread",
            )
        )

        with pytest.raises(ValueError, match="existing transactions"):
            categories.delete(food.id)

        categories.delete(spare.id)
        txns.delete(txn.id)
        categories.delete(food.id)
        assert categories.list_all() == []


def test_list_filters_by_window_type_and_category() -> None:
    with _session() as session:
        categories = CategoryService(session)
        food = categories.create(CategoryIn(name="Food", type=TransactionType.expense))
        salary = categories.create(
            CategoryIn(name="Salary", type=TransactionType.income)
        )
        txns = TransactionService(session)
        for on, category, amount in [
            (date(2024, 12, 31), food, "5.00"),
            (date(2025, 1, 1), salary, "900.00"),
            (date(2025, 1, 2), food, "7.00"),
            (date(2025, 2, 1), food, "9.00"),
        ]:
            txns.create(
                TransactionIn(
                    date=on,
                    type=category.type,
                    amount=Decimal(amount),
                    category_id=category.id,
                    description="x",
                )
            )

        january = txns.list(month_period(2025, 1))
        assert [t.date for t in january] == [date(2025, 1, 2), date(2025, 1, 1)]

        expenses_2025 = txns.list(
            year_period(2025), TransactionFilters(type=TransactionType.expense)
        )
        assert [t.amount for t in expenses_2025] == [Decimal("9.00"), Decimal("7.00")]

        by_category = txns.list(filters=TransactionFilters(category_id=salary.id))
        assert len(by_category) == 1

        assert len(txns.list(limit=2, offset=3)) == 1
        assert [c.name for c in categories.list_all(TransactionType.income)] == [
            "Salary"
        ]


def test_store_refuses_to_orphan_transactions() -> None:
    with _session() as session:
        food = CategoryService(session).create(
            CategoryIn(name="Food", type=TransactionType.expense)
        )
        TransactionService(session).create(
            TransactionIn(
                date=date(2025, 1, 5),
                type=TransactionType.expense,
                amount=Decimal("3.20"),
                category_id=food.id,
                description="Bread",
            )
        )
        with pytest.raises(IntegrityError):
            session.execute(delete(Category).where(Category.id == food.id))
        session.rollback()
