from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from salescoach.models.database import get_db
from salescoach.models.models import Team, User, UserTeam
from salescoach.api.users import UserResponse, get_user_or_404
from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

class TeamCreate(BaseModel):
    name: str

class TeamResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True

class MembershipUpdate(BaseModel):
    user_ids: List[int]

class UserTeamAssignment(BaseModel):
    user_id: int
    team: Optional[str] = None

class BulkTeamUpdate(BaseModel):
    updates: List[UserTeamAssignment]


def get_team_or_404(db: Session, team_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.get("/", response_model=List[TeamResponse])
async def get_teams(db: Session = Depends(get_db)):
    """Get all teams."""
    return db.query(Team).order_by(Team.name).all()

@router.get("/names", response_model=List[str])
async def get_team_names(db: Session = Depends(get_db)):
    """Get the distinct team names."""
    return [name for (name,) in db.query(Team.name).order_by(Team.name).all()]

@router.post("/", response_model=TeamResponse)
async def create_team(team: TeamCreate, db: Session = Depends(get_db)):
    """Create a new team."""
    name = team.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Team name is required")
    if db.query(Team).filter(Team.name == name).first():
        raise HTTPException(status_code=409, detail="Team with this name already exists")

    db_team = Team(name=name)
    db.add(db_team)
    db.commit()
    db.refresh(db_team)
    logger.info("Created team %r", name)
    return db_team

@router.delete("/{team_id}")
async def delete_team(team_id: int, db: Session = Depends(get_db)):
    """Delete a team and all of its memberships."""
    team = get_team_or_404(db, team_id)
    db.query(UserTeam).filter(UserTeam.team_id == team_id).delete(synchronize_session=False)
    db.delete(team)
    db.commit()
    logger.info("Deleted team %s", team_id)
    return {"message": "Team deleted successfully"}

@router.get("/{team_id}/users", response_model=List[UserResponse])
async def get_team_users(team_id: int, db: Session = Depends(get_db)):
    """Get the members of a team."""
    get_team_or_404(db, team_id)
    return (
        db.query(User)
        .join(UserTeam, UserTeam.user_id == User.id)
        .filter(UserTeam.team_id == team_id)
        .order_by(User.full_name)
        .all()
    )

@router.post("/{team_id}/users/{user_id}")
async def add_user_to_team(team_id: int, user_id: int, db: Session = Depends(get_db)):
    """Add a user to a team."""
    get_team_or_404(db, team_id)
    get_user_or_404(db, user_id)

    existing = db.query(UserTeam).filter(UserTeam.team_id == team_id, UserTeam.user_id == user_id).first()
    if existing:
        raise HTTPException(status_code=409, detail="User is already a member of this team")

    db.add(UserTeam(user_id=user_id, team_id=team_id))
    db.commit()
    logger.info("Added user %s to team %s", user_id, team_id)
    return {"team_id": team_id, "user_id": user_id}

@router.delete("/{team_id}/users/{user_id}")
async def remove_user_from_team(team_id: int, user_id: int, db: Session = Depends(get_db)):
    """Remove a user from a team."""
    membership = db.query(UserTeam).filter(UserTeam.team_id == team_id, UserTeam.user_id == user_id).first()
    if not membership:
        raise HTTPException(status_code=404, detail="User is not a member of this team")

    db.delete(membership)
    db.commit()
    logger.info("Removed user %s from team %s", user_id, team_id)
    return {"message": "User removed from team"}

@router.put("/{team_id}/members")
async def replace_team_members(team_id: int, request: MembershipUpdate, db: Session = Depends(get_db)):
    """
    Replace a team's membership with exactly the given users.
    Members not in the list are removed, new users are added.
    """
    get_team_or_404(db, team_id)

    wanted = set(request.user_ids)
    known = {user_id for (user_id,) in db.query(User.id).filter(User.id.in_(wanted)).all()} if wanted else set()
    unknown = wanted - known
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown user ids: {sorted(unknown)}")

    current = {user_id for (user_id,) in db.query(UserTeam.user_id).filter(UserTeam.team_id == team_id).all()}
    to_add = wanted - current
    to_remove = current - wanted

    if to_remove:
        db.query(UserTeam).filter(
            UserTeam.team_id == team_id,
            UserTeam.user_id.in_(to_remove)
        ).delete(synchronize_session=False)
    for user_id in sorted(to_add):
        db.add(UserTeam(user_id=user_id, team_id=team_id))
    db.commit()

    logger.info("Team %s membership: added %d users, removed %d users", team_id, len(to_add), len(to_remove))
    return {"team_id": team_id, "added": len(to_add), "removed": len(to_remove)}

@router.post("/bulk-update")
async def bulk_update_user_teams(request: BulkTeamUpdate, db: Session = Depends(get_db)):
    """Assign the legacy free-text team of many users at once."""
    # Group users by their new team so each team is a single UPDATE
    grouped = {}
    for assignment in request.updates:
        grouped.setdefault(assignment.team, []).append(assignment.user_id)

    affected = 0
    for team_name, user_ids in grouped.items():
        affected += db.query(User).filter(User.id.in_(user_ids)).update(
            {User.team: team_name, User.updated_at: datetime.now()},
            synchronize_session=False
        )
    db.commit()

    logger.info("Bulk updated %d user team assignments", affected)
    return {"affected_users": affected}
