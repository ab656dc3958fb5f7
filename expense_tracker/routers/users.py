import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import Conflict, InvalidCredentials, Unauthorized
from ..models.user import User
from ..schemas import SessionCreate, TokenResponse, UserCreate, UserResponse
from ..security import create_access_token, get_current_user_id, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/users", response_model=UserResponse, status_code=201)
def register_user(data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    if db.query(User).filter(User.email == data.email).first():
        raise Conflict("Email already exists")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password)
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration with the same email
        db.rollback()
        raise Conflict("Email already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user

@router.post("/sessions", response_model=TokenResponse)
def create_session(data: SessionCreate, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token.

    Unknown email and wrong password get the same answer.
    """
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning("Rejected login attempt")
        raise InvalidCredentials()

    return {"token": create_access_token(user.id)}

@router.get("/profile", response_model=UserResponse)
def get_profile(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Get the authenticated user's profile"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthorized("User no longer exists.")
    return user
