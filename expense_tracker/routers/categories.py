import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import Conflict, InUse, NotFound
from ..models.category import Category
from ..models.expense import Expense
from ..schemas import CategoryCreate, CategoryUpdate, CategoryResponse
from ..security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_NAME = "Category with this name already exists"


def get_owned_category(db: Session, user_id: int, category_id: int) -> Category:
    """Fetch a category owned by the caller or raise NotFound"""
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise NotFound("Category not found")
    return category


def commit_or_conflict(db: Session, message: str):
    """Commit, mapping a lost race on the (user_id, name) constraint to Conflict"""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(message)


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new category"""
    # Check for duplicate name
    existing = db.query(Category).filter(
        Category.name == data.name,
        Category.user_id == user_id
    ).first()
    if existing:
        raise Conflict(DUPLICATE_NAME)

    category = Category(
        name=data.name,
        color=data.color,
        icon=data.icon,
        is_default=data.is_default or False,
        user_id=user_id
    )
    db.add(category)
    commit_or_conflict(db, DUPLICATE_NAME)
    db.refresh(category)
    logger.info("User %s created category %s", user_id, category.id)
    return category

@router.get("", response_model=List[CategoryResponse])
def get_categories(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all of the caller's categories, by name"""
    return db.query(Category).filter(Category.user_id == user_id).order_by(Category.name).all()

@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a single category by ID"""
    return get_owned_category(db, user_id, category_id)

@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    data: CategoryUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update a category"""
    category = get_owned_category(db, user_id, category_id)

    # Check for duplicate name if name is being changed
    if data.name is not None and data.name != category.name:
        existing = db.query(Category).filter(
            Category.name == data.name,
            Category.user_id == user_id,
            Category.id != category_id
        ).first()
        if existing:
            raise Conflict("Another category with this name already exists")

    # Update only provided fields
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(category, field, value)

    commit_or_conflict(db, "Another category with this name already exists")
    db.refresh(category)
    return category

@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a category that no expense refers to"""
    category = get_owned_category(db, user_id, category_id)

    # Every expense pointing at this id counts, whoever owns it
    expenses_count = db.query(Expense).filter(Expense.category_id == category_id).count()
    if expenses_count > 0:
        raise InUse(expenses_count)

    db.delete(category)
    db.commit()
    logger.info("User %s deleted category %s", user_id, category_id)
    return Response(status_code=204)
