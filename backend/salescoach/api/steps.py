from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, selectinload
from salescoach.models.database import get_db
from salescoach.models.models import Step, Substep
from typing import List
from pydantic import BaseModel

router = APIRouter()

class BehaviorResponse(BaseModel):
    id: int
    substep_id: int
    description: str
    proficiency_level: int
    order: int

    class Config:
        from_attributes = True

class SubstepResponse(BaseModel):
    id: int
    step_id: int
    title: str
    order: int
    behaviors: List[BehaviorResponse]

    class Config:
        from_attributes = True

class StepResponse(BaseModel):
    id: int
    title: str
    description: str
    target_score: int
    order: int
    substeps: List[SubstepResponse]

    class Config:
        from_attributes = True


def get_ordered_steps(db: Session) -> List[Step]:
    """Load the full rubric hierarchy in display order."""
    return (
        db.query(Step)
        .options(selectinload(Step.substeps).selectinload(Substep.behaviors))
        .order_by(Step.order)
        .all()
    )


@router.get("/", response_model=List[StepResponse])
async def get_steps(db: Session = Depends(get_db)):
    """Get all steps with their substeps and behaviors."""
    return get_ordered_steps(db)
