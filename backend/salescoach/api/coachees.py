from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from salescoach.models.database import get_db
from salescoach.models.models import Assessment
from salescoach.api.assessments import AssessmentResponse, newest_first
from typing import List

router = APIRouter()


@router.get("/", response_model=List[str])
async def get_coachees(db: Session = Depends(get_db)):
    """Get the distinct names of everyone who has been coached."""
    rows = db.query(Assessment.assessee_name).distinct().order_by(Assessment.assessee_name).all()
    return [name for (name,) in rows]

@router.get("/{name}/latest-assessment", response_model=AssessmentResponse)
async def get_latest_assessment(name: str, db: Session = Depends(get_db)):
    """Get the most recent coaching session of a coachee."""
    assessment = newest_first(db.query(Assessment).filter(Assessment.assessee_name == name)).first()
    if not assessment:
        raise HTTPException(status_code=404, detail="No assessments found for this coachee")
    return assessment

@router.get("/{name}/previous-assessment/{exclude_id}", response_model=AssessmentResponse)
async def get_previous_assessment(name: str, exclude_id: int, db: Session = Depends(get_db)):
    """Get the most recent coaching session of a coachee other than the given one."""
    assessment = newest_first(
        db.query(Assessment).filter(Assessment.assessee_name == name, Assessment.id != exclude_id)
    ).first()
    if not assessment:
        raise HTTPException(status_code=404, detail="No previous assessment found for this coachee")
    return assessment
