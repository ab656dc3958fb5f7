from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from ..database import get_db
from ..errors import Conflict, NotFound
from ..models.tag import Tag
from ..schemas import TagCreate, TagResponse
from ..security import get_current_user_id

router = APIRouter(dependencies=[Depends(get_current_user_id)])

def escape_like(value: str) -> str:
    """Escape SQL wildcards so user input matches literally"""
    return value.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")

@router.get("", response_model=List[TagResponse])
def get_tags(q: Optional[str] = Query(None, max_length=50), db: Session = Depends(get_db)):
    """Get all tags, optionally filtered by query"""
    query = db.query(Tag)
    if q:
        query = query.filter(Tag.name.ilike(f"%{escape_like(q)}%", escape="\\"))
    tags = query.order_by(Tag.name).all()
    return tags

@router.post("", response_model=TagResponse, status_code=201)
def create_tag(data: TagCreate, db: Session = Depends(get_db)):
    """Create a new tag"""
    # Check for duplicate name
    existing = db.query(Tag).filter(Tag.name == data.name).first()
    if existing:
        raise Conflict("Tag with this name already exists")

    tag = Tag(name=data.name, color=data.color)
    db.add(tag)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Tag with this name already exists")
    db.refresh(tag)
    return tag

@router.delete("/{tag_id}", status_code=204)
def delete_tag(tag_id: int, db: Session = Depends(get_db)):
    """Delete a tag and its expense associations"""
    tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise NotFound("Tag not found")

    db.delete(tag)
    db.commit()
    return Response(status_code=204)
