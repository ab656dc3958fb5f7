import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ..config import settings
from ..database import get_db
from ..errors import NotFound, ValidationError
from ..models.category import Category
from ..models.expense import Expense
from ..models.tag import Tag, ExpenseTag
from ..schemas import (
    ExpenseCreate,
    ExpensePage,
    ExpenseResponse,
    ExpenseSummary,
    ExpenseTotal,
    ExpenseUpdate,
    IsoDateTime,
    to_naive_utc,
)
from ..security import get_current_user_id
from .tags import escape_like

logger = logging.getLogger(__name__)

router = APIRouter()


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_amount(value) -> Decimal:
    return Decimal(str(value))


def unique_ids(ids: Iterable[int]) -> List[int]:
    """Drop repeated ids, keeping first-seen order"""
    return list(dict.fromkeys(ids))


def expense_query(db: Session):
    """Expense query with category and tag associations eagerly loaded"""
    return db.query(Expense).options(
        joinedload(Expense.category),
        selectinload(Expense.tags)
    )


def get_owned_expense(db: Session, user_id: int, expense_id: int, with_relations: bool = False) -> Expense:
    """Fetch an expense owned by the caller or raise NotFound"""
    query = expense_query(db) if with_relations else db.query(Expense)
    expense = query.filter(
        Expense.id == expense_id,
        Expense.user_id == user_id
    ).first()
    if not expense:
        raise NotFound("Expense not found")
    return expense


def check_references(db: Session, user_id: int, category_id: Optional[int], tag_ids: Optional[List[int]]):
    """Reject category ids the caller does not own and tag ids that do not exist"""
    issues = []
    if category_id is not None:
        owned = db.query(Category.id).filter(
            Category.id == category_id,
            Category.user_id == user_id
        ).first()
        if not owned:
            issues.append({
                "location": "body",
                "field": "categoryId",
                "message": "Category not found",
                "type": "not_found",
            })

    if tag_ids:
        found = {tag_id for (tag_id,) in db.query(Tag.id).filter(Tag.id.in_(tag_ids)).all()}
        missing = [tag_id for tag_id in tag_ids if tag_id not in found]
        if missing:
            issues.append({
                "location": "body",
                "field": "tagIds",
                "message": f"Tags not found: {', '.join(str(tag_id) for tag_id in missing)}",
                "type": "not_found",
            })

    if issues:
        raise ValidationError(issues)


def build_filters(
    user_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    category_id: Optional[int] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    description: Optional[str] = None,
) -> list:
    """Criteria shared by the page query and its count query"""
    filters = [Expense.user_id == user_id]

    # The date range only applies when both bounds are given
    if start_date is not None and end_date is not None:
        filters.append(Expense.date >= to_naive_utc(start_date))
        filters.append(Expense.date <= to_naive_utc(end_date))

    if category_id is not None:
        filters.append(Expense.category_id == category_id)

    if min_amount is not None:
        filters.append(Expense.amount >= to_amount(min_amount))

    if max_amount is not None:
        filters.append(Expense.amount <= to_amount(max_amount))

    if description:
        filters.append(Expense.description.ilike(f"%{escape_like(description)}%", escape="\\"))

    return filters


def aggregate_expenses(db: Session, user_id: int) -> dict:
    """Single source for the summary and total projections"""
    total = db.query(func.coalesce(func.sum(Expense.amount), 0)).filter(
        Expense.user_id == user_id
    ).scalar()
    category_count = db.query(Category).filter(Category.user_id == user_id).count()
    last_expense = db.query(Expense).filter(
        Expense.user_id == user_id
    ).order_by(Expense.date.desc(), Expense.id.desc()).first()

    return {
        "total_expenses": float(total or 0),
        "category_count": category_count,
        "last_expense": {
            "amount": float(last_expense.amount),
            "description": last_expense.description,
            "date": last_expense.date,
        } if last_expense else None,
    }


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(
    data: ExpenseCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create an expense, optionally categorized and tagged"""
    tag_ids = unique_ids(data.tag_ids or [])
    check_references(db, user_id, data.category_id, tag_ids)

    expense = Expense(
        amount=to_amount(data.amount),
        description=data.description,
        date=data.date or utcnow(),
        user_id=user_id,
        category_id=data.category_id
    )
    expense.tags = [ExpenseTag(tag_id=tag_id) for tag_id in tag_ids]
    db.add(expense)
    db.commit()
    logger.info("User %s created expense %s", user_id, expense.id)
    return get_owned_expense(db, user_id, expense.id, with_relations=True)

@router.get("", response_model=ExpensePage)
def get_expenses(
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, alias="perPage"),
    start_date: Optional[IsoDateTime] = Query(None, alias="startDate", description="Start of date range (ISO 8601)"),
    end_date: Optional[IsoDateTime] = Query(None, alias="endDate", description="End of date range (ISO 8601)"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    min_amount: Optional[float] = Query(None, alias="minAmount"),
    max_amount: Optional[float] = Query(None, alias="maxAmount"),
    description: Optional[str] = Query(None, max_length=255, description="Case-insensitive search in description"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a page of the caller's expenses, newest first"""
    filters = build_filters(
        user_id,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        min_amount=min_amount,
        max_amount=max_amount,
        description=description
    )

    total = db.query(Expense).filter(*filters).count()
    expenses = expense_query(db).filter(*filters).order_by(
        Expense.date.desc(),
        Expense.id.desc()
    ).offset((page - 1) * per_page).limit(per_page).all()

    return {
        "data": expenses,
        "meta": {
            "total": total,
            "page": page,
            "per_page": per_page,
            "page_count": math.ceil(total / per_page)
        }
    }

@router.get("/summary", response_model=ExpenseSummary)
def get_summary(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Total spent, number of categories and the most recent expense"""
    return aggregate_expenses(db, user_id)

@router.get("/total", response_model=ExpenseTotal)
def get_total(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Total spent"""
    return {"total": aggregate_expenses(db, user_id)["total_expenses"]}

@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a single expense by ID"""
    return get_owned_expense(db, user_id, expense_id, with_relations=True)

@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update an expense.

    A supplied ``tagIds`` replaces the whole tag set.
    """
    expense = get_owned_expense(db, user_id, expense_id)

    update_data = data.model_dump(exclude_unset=True)
    tag_ids = update_data.pop("tag_ids", None)
    if tag_ids is not None:
        tag_ids = unique_ids(tag_ids)
    check_references(db, user_id, update_data.get("category_id"), tag_ids)

    if tag_ids is not None:
        # Full replace: drop every association row, then insert the new set
        expense.tags.clear()
        db.flush()
        expense.tags.extend(ExpenseTag(tag_id=tag_id) for tag_id in tag_ids)

    if "amount" in update_data:
        update_data["amount"] = to_amount(update_data["amount"])

    # Update only provided fields
    for field, value in update_data.items():
        setattr(expense, field, value)

    db.commit()
    return get_owned_expense(db, user_id, expense_id, with_relations=True)

@router.delete("/{expense_id}", status_code=204)
def delete_expense(
    expense_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete an expense"""
    expense = get_owned_expense(db, user_id, expense_id)

    db.delete(expense)
    db.commit()
    logger.info("User %s deleted expense %s", user_id, expense_id)
    return Response(status_code=204)
