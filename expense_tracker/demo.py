"""
Setup demo data for Expense Tracker

    python -m expense_tracker.demo
"""
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from .database import SessionLocal, create_tables
from .models import Category, Expense, ExpenseTag, Tag, User
from .security import hash_password

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.org"
DEMO_PASSWORD = "demo1234"

CATEGORIES = [
    {"name": "Groceries", "color": "#28a745", "icon": "🛒", "is_default": True},
    {"name": "Transport", "color": "#007bff", "icon": "🚗", "is_default": True},
    {"name": "Utilities", "color": "#ffc107", "icon": "⚡"},
    {"name": "Restaurants", "color": "#fd7e14", "icon": "🍽️"},
    {"name": "Healthcare", "color": "#20c997", "icon": "🏥"},
]

TAGS = [
    {"name": "recurring", "color": "#6c757d"},
    {"name": "essential", "color": "#28a745"},
    {"name": "work", "color": "#17a2b8"},
]

EXPENSES = [
    {"description": "Weekly shop", "amount": "45.67", "days_ago": 1, "category": "Groceries", "tags": ["essential"]},
    {"description": "Train ticket", "amount": "8.50", "days_ago": 2, "category": "Transport", "tags": ["work"]},
    {"description": "Electricity bill", "amount": "65.00", "days_ago": 4, "category": "Utilities", "tags": ["recurring", "essential"]},
    {"description": "Team lunch", "amount": "23.99", "days_ago": 6, "category": "Restaurants", "tags": ["work"]},
    {"description": "Pharmacy", "amount": "12.45", "days_ago": 9, "category": "Healthcare", "tags": []},
]


def create_demo_data(db: Session) -> User:
    """Create a demo user with categories, tags and expenses. Safe to run twice."""
    user = db.query(User).filter(User.email == DEMO_EMAIL).first()
    if user:
        logger.info("Demo user already exists, nothing to do")
        return user

    user = User(name="Demo User", email=DEMO_EMAIL, password_hash=hash_password(DEMO_PASSWORD))
    db.add(user)
    db.flush()

    categories = {}
    for cat_data in CATEGORIES:
        category = Category(user_id=user.id, **cat_data)
        db.add(category)
        categories[category.name] = category

    tags = {}
    for tag_data in TAGS:
        tag = db.query(Tag).filter(Tag.name == tag_data["name"]).first()
        if not tag:
            tag = Tag(**tag_data)
            db.add(tag)
        tags[tag.name] = tag
    db.flush()

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    for expense_data in EXPENSES:
        expense = Expense(
            user_id=user.id,
            amount=Decimal(expense_data["amount"]),
            description=expense_data["description"],
            date=now - timedelta(days=expense_data["days_ago"]),
            category_id=categories[expense_data["category"]].id
        )
        expense.tags = [ExpenseTag(tag_id=tags[name].id) for name in expense_data["tags"]]
        db.add(expense)

    db.commit()
    logger.info(
        "Created demo user %s with %d categories, %d tags and %d expenses",
        DEMO_EMAIL, len(CATEGORIES), len(TAGS), len(EXPENSES)
    )
    return user


def main():
    logging.basicConfig(level=logging.INFO)
    create_tables()
    db = SessionLocal()
    try:
        create_demo_data(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    print(f"Log in as {DEMO_EMAIL} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
