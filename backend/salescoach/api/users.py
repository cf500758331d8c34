from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from salescoach.models.database import get_db
from salescoach.models.models import Assessment, User, UserTeam
from typing import List, Optional
from pydantic import BaseModel, field_validator
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

class TeamSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True

class UserCreate(BaseModel):
    full_name: str
    email: str
    team: Optional[str] = None

class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    team: Optional[str] = None

    # Omitting a field leaves it unchanged; only team may be cleared
    @field_validator("full_name", "email")
    @classmethod
    def required_fields_not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str
    team: Optional[str]
    teams: List[TeamSummary] = []
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/", response_model=List[UserResponse])
async def get_users(db: Session = Depends(get_db)):
    """Get all users ordered by name, with their team memberships."""
    return (
        db.query(User)
        .options(selectinload(User.user_teams).selectinload(UserTeam.team))
        .order_by(User.full_name)
        .all()
    )

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: Session = Depends(get_db)):
    """Get specific user by ID."""
    return get_user_or_404(db, user_id)

@router.post("/", response_model=UserResponse)
async def create_user(user: UserCreate, db: Session = Depends(get_db)):
    """Create a new user (coach or coachee)."""
    existing_user = db.query(User).filter(User.email == user.email).first()
    if existing_user:
        raise HTTPException(status_code=409, detail="User with this email already exists")

    db_user = User(**user.model_dump())
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info("Created user %s (%s)", db_user.id, db_user.email)
    return db_user

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, user: UserUpdate, db: Session = Depends(get_db)):
    """Update name, email or legacy team of a user."""
    db_user = get_user_or_404(db, user_id)
    changes = user.model_dump(exclude_unset=True)

    if changes.get("email") and changes["email"] != db_user.email:
        taken = db.query(User).filter(User.email == changes["email"], User.id != user_id).first()
        if taken:
            raise HTTPException(status_code=409, detail="User with this email already exists")

    if "team" in changes:
        logger.info("Team assignment - user %s moving to team %r", user_id, changes["team"])

    for field, value in changes.items():
        setattr(db_user, field, value)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        message = str(e.orig).lower()
        if "unique" not in message or "email" not in message:
            raise
        raise HTTPException(status_code=409, detail="User with this email already exists")
    db.refresh(db_user)
    return db_user

@router.delete("/{user_id}")
async def delete_user(user_id: int, db: Session = Depends(get_db)):
    """Delete a user who has not coached any sessions."""
    db_user = get_user_or_404(db, user_id)

    sessions = db.query(Assessment).filter(Assessment.user_id == user_id).count()
    if sessions:
        raise HTTPException(status_code=409, detail=f"User has {sessions} coaching sessions and cannot be deleted")

    db.delete(db_user)
    db.commit()
    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted successfully"}
