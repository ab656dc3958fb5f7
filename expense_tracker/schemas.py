"""
Pydantic schemas for request/response validation.
All API endpoints should use these schemas instead of raw dicts.

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Optional, List
from pydantic import BaseModel, BeforeValidator, EmailStr, Field, StrictInt, condecimal, field_validator, ConfigDict
from pydantic.alias_generators import to_camel
import re

ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")

# Expense.amount is Numeric(10, 2)
AMOUNT_MAX_DIGITS = 10
AMOUNT_DECIMAL_PLACES = 2


def require_iso_datetime(value):
    """Only ISO 8601 strings with a time part; no bare dates or epoch numbers"""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not ISO_DATETIME.match(value):
        raise ValueError("Expected an ISO 8601 date-time such as 2024-01-31T12:00:00Z")
    return value


def require_number(value):
    """JSON numbers only; strings and booleans are not amounts"""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValueError("Input should be a number")
    if isinstance(value, float):
        # Shortest repr, so 12.3 is Decimal("12.3") and not its binary expansion
        return Decimal(str(value))
    return value


def normalize_email(value: str) -> str:
    return value.strip().lower()


IsoDateTime = Annotated[datetime, BeforeValidator(require_iso_datetime)]
Amount = Annotated[
    condecimal(gt=0, max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES),
    BeforeValidator(require_number),
]


class APIModel(BaseModel):
    """Base model: camelCase aliases, accepts either spelling on input"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PartialUpdate(APIModel):
    """Base for PUT bodies: fields may be omitted but not sent as null"""

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Expense dates are stored as naive UTC"""
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# =============================================================================
# User / Session Schemas
# =============================================================================

class UserCreate(APIModel):
    """Schema for registering a user"""
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class UserResponse(APIModel):
    """Schema for user response - never carries the password hash"""
    id: int
    name: str
    email: str
    created_at: Optional[datetime] = None


class SessionCreate(APIModel):
    """Schema for login"""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class TokenResponse(APIModel):
    token: str


# =============================================================================
# Category Schemas
# =============================================================================

class CategoryCreate(APIModel):
    """Schema for creating a category"""
    name: str = Field(..., min_length=2, max_length=100, description="Category name")
    color: Optional[str] = Field(None, max_length=50, description="Color for UI")
    icon: Optional[str] = Field(None, max_length=50, description="Icon identifier")
    is_default: Optional[bool] = Field(None, strict=True)


class CategoryUpdate(PartialUpdate):
    """Schema for updating a category"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    icon: Optional[str] = Field(None, max_length=50)
    is_default: Optional[bool] = Field(None, strict=True)


class CategoryResponse(APIModel):
    """Schema for category response"""
    id: int
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None
    is_default: bool = False
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Tag Schemas
# =============================================================================

class TagCreate(APIModel):
    """Schema for creating a tag"""
    name: str = Field(..., min_length=1, max_length=50, description="Tag name")
    color: Optional[str] = Field(None, max_length=7, pattern=r"^#[0-9A-Fa-f]{6}$", description="Hex color code")


class TagResponse(APIModel):
    """Schema for tag response"""
    id: int
    name: str
    color: Optional[str] = None
    created_at: Optional[datetime] = None


class ExpenseTagResponse(APIModel):
    """Association row between an expense and a tag"""
    expense_id: int
    tag_id: int
    created_at: Optional[datetime] = None
    tag: TagResponse


# =============================================================================
# Expense Schemas
# =============================================================================

class ExpenseCreate(APIModel):
    """Schema for creating an expense"""
    amount: Amount
    description: Optional[str] = Field(None, max_length=500)
    date: Optional[IsoDateTime] = Field(None, description="ISO 8601 instant, defaults to now")
    category_id: Optional[StrictInt] = Field(None, ge=1)
    tag_ids: Optional[List[StrictInt]] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class ExpenseUpdate(PartialUpdate):
    """Schema for updating an expense - only supplied fields change"""
    amount: Optional[Amount] = None
    description: Optional[str] = Field(None, max_length=500)
    date: Optional[IsoDateTime] = None
    category_id: Optional[StrictInt] = Field(None, ge=1)
    tag_ids: Optional[List[StrictInt]] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class CategoryInfo(APIModel):
    """Category info for expense response"""
    id: int
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None


class ExpenseResponse(APIModel):
    """Schema for expense response"""
    id: int
    amount: float
    description: Optional[str] = None
    date: datetime
    user_id: int
    category_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[CategoryInfo] = None
    tags: List[ExpenseTagResponse] = Field(default_factory=list)


class PageMeta(APIModel):
    total: int
    page: int
    per_page: int
    page_count: int


class ExpensePage(APIModel):
    """Paginated list of expenses"""
    data: List[ExpenseResponse]
    meta: PageMeta


class LastExpense(APIModel):
    amount: float
    description: Optional[str] = None
    date: datetime


class ExpenseSummary(APIModel):
    total_expenses: float
    category_count: int
    last_expense: Optional[LastExpense] = None


class ExpenseTotal(APIModel):
    total: float


# =============================================================================
# Common Response Schemas
# =============================================================================

class HealthResponse(BaseModel):
    status: str
