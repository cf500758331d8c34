from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from salescoach.models.database import get_db
from salescoach.models.models import Assessment, AssessmentScore, Behavior, Step, StepScore, User
from salescoach.api.steps import get_ordered_steps
from salescoach.api.users import UserResponse
from salescoach.services.pdf_report import generate_coaching_report, save_report
from salescoach.utils.spider import spider_graph_data
from salescoach.utils.step_levels import (
    checked_behavior_ids,
    get_level_badge_class,
    get_level_short_code,
    get_level_text,
    get_overall_proficiency,
    get_unified_step_levels,
    manual_step_levels,
)
from salescoach.utils.substep_scoring import calculate_substep_proficiency
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

class AssessmentCreate(BaseModel):
    title: str
    user_id: int
    assessee_name: str
    context: Optional[str] = None
    carry_over_previous: bool = False

class AssessmentUpdate(BaseModel):
    title: Optional[str] = None
    context: Optional[str] = None
    key_observations: Optional[str] = None
    what_worked_well: Optional[str] = None
    what_can_be_improved: Optional[str] = None
    next_steps: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_null(cls, value):
        if value is None:
            raise ValueError("title cannot be null")
        return value

class AssessmentResponse(BaseModel):
    id: int
    title: str
    user_id: int
    assessee_name: str
    context: Optional[str]
    key_observations: Optional[str]
    what_worked_well: Optional[str]
    what_can_be_improved: Optional[str]
    next_steps: Optional[str]
    pdf_file_path: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True

class AssessmentDetail(AssessmentResponse):
    user: UserResponse

class ScoreUpdate(BaseModel):
    checked: bool

class AssessmentScoreResponse(BaseModel):
    id: int
    assessment_id: int
    behavior_id: int
    checked: bool

    class Config:
        from_attributes = True

class StepScoreUpdate(BaseModel):
    level: int = Field(..., ge=1, le=4)

class StepScoreResponse(BaseModel):
    id: int
    assessment_id: int
    step_id: int
    level: int

    class Config:
        from_attributes = True

class SubstepProficiency(BaseModel):
    substep_id: int
    title: str
    score: int
    level: str
    class_name: str

class StepLevelResponse(BaseModel):
    step_id: int
    title: str
    level: int
    source: str
    percentage: Optional[int] = None
    level_text: str
    short_code: str
    badge_class: str
    substeps: List[SubstepProficiency]

class OverallProficiencyResponse(BaseModel):
    level: int
    text: str
    average: float

class AssessmentLevelsResponse(BaseModel):
    assessment_id: int
    steps: List[StepLevelResponse]
    overall: OverallProficiencyResponse

class SpiderPoint(BaseModel):
    step_id: int
    step: str
    actual: int
    target: int
    actual_percent: int
    target_percent: int


def get_assessment_or_404(db: Session, assessment_id: int) -> Assessment:
    assessment = db.query(Assessment).filter(Assessment.id == assessment_id).first()
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return assessment

def newest_first(query):
    return query.order_by(Assessment.created_at.desc(), Assessment.id.desc())

def find_assessment_score(db: Session, assessment_id: int, behavior_id: int) -> Optional[AssessmentScore]:
    return db.query(AssessmentScore).filter(
        AssessmentScore.assessment_id == assessment_id,
        AssessmentScore.behavior_id == behavior_id
    ).first()

def find_step_score(db: Session, assessment_id: int, step_id: int) -> Optional[StepScore]:
    return db.query(StepScore).filter(
        StepScore.assessment_id == assessment_id,
        StepScore.step_id == step_id
    ).first()

def save_assessment_score(db: Session, assessment_id: int, behavior_id: int, checked: bool) -> AssessmentScore:
    """Insert or update the checklist row for a behavior and commit."""
    score = find_assessment_score(db, assessment_id, behavior_id)
    if score:
        score.checked = checked
        db.commit()
        return score

    try:
        score = AssessmentScore(assessment_id=assessment_id, behavior_id=behavior_id, checked=checked)
        db.add(score)
        db.commit()
    except IntegrityError:
        # Another request inserted the row first
        db.rollback()
        score = find_assessment_score(db, assessment_id, behavior_id)
        score.checked = checked
        db.commit()
    return score

def save_step_score(db: Session, assessment_id: int, step_id: int, level: int) -> StepScore:
    """Insert or update the manual level of a step and commit."""
    score = find_step_score(db, assessment_id, step_id)
    if score:
        score.level = level
        db.commit()
        return score

    try:
        score = StepScore(assessment_id=assessment_id, step_id=step_id, level=level)
        db.add(score)
        db.commit()
    except IntegrityError:
        db.rollback()
        score = find_step_score(db, assessment_id, step_id)
        score.level = level
        db.commit()
    return score


@router.get("/", response_model=List[AssessmentResponse])
async def get_assessments(
    search: Optional[str] = Query(None, description="Match against title or coachee name"),
    coachee: Optional[str] = None,
    user_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Get coaching sessions, newest first."""
    query = db.query(Assessment)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Assessment.title.ilike(pattern), Assessment.assessee_name.ilike(pattern)))
    if coachee:
        query = query.filter(Assessment.assessee_name == coachee)
    if user_id is not None:
        query = query.filter(Assessment.user_id == user_id)
    return newest_first(query).all()

@router.post("/", response_model=AssessmentResponse)
async def create_assessment(request: AssessmentCreate, db: Session = Depends(get_db)):
    """
    Create a new coaching session.
    With carry_over_previous, the coachee's latest session's checked behaviors
    are copied into the new session as a baseline.
    """
    coach = db.query(User).filter(User.id == request.user_id).first()
    if not coach:
        raise HTTPException(status_code=400, detail="Coach not found")

    previous = None
    if request.carry_over_previous:
        previous = newest_first(db.query(Assessment).filter(Assessment.assessee_name == request.assessee_name)).first()

    assessment = Assessment(**request.model_dump(exclude={"carry_over_previous"}))
    db.add(assessment)
    db.flush()

    if previous:
        carried = 0
        for score in previous.scores:
            if score.checked:
                db.add(AssessmentScore(assessment_id=assessment.id, behavior_id=score.behavior_id, checked=True))
                carried += 1
        logger.info("Carried over %d checked behaviors from assessment %s to %s", carried, previous.id, assessment.id)

    db.commit()
    db.refresh(assessment)
    logger.info("Created assessment %s for coachee %r", assessment.id, assessment.assessee_name)
    return assessment

@router.get("/{assessment_id}", response_model=AssessmentDetail)
async def get_assessment(assessment_id: int, db: Session = Depends(get_db)):
    """Get an assessment together with its coach."""
    return get_assessment_or_404(db, assessment_id)

@router.patch("/{assessment_id}", response_model=AssessmentResponse)
async def update_assessment(assessment_id: int, request: AssessmentUpdate, db: Session = Depends(get_db)):
    """Update the context and coaching notes of an assessment."""
    assessment = get_assessment_or_404(db, assessment_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(assessment, field, value)
    db.commit()
    db.refresh(assessment)
    return assessment

@router.delete("/{assessment_id}")
async def delete_assessment(assessment_id: int, db: Session = Depends(get_db)):
    """Delete an assessment with its scores."""
    assessment = get_assessment_or_404(db, assessment_id)
    db.delete(assessment)
    db.commit()
    logger.info("Deleted assessment %s", assessment_id)
    return {"message": "Assessment deleted successfully"}

@router.get("/{assessment_id}/scores", response_model=List[AssessmentScoreResponse])
async def get_assessment_scores(assessment_id: int, db: Session = Depends(get_db)):
    """Get the behavior checklist of an assessment."""
    get_assessment_or_404(db, assessment_id)
    return db.query(AssessmentScore).filter(AssessmentScore.assessment_id == assessment_id).all()

@router.put("/{assessment_id}/scores/{behavior_id}", response_model=AssessmentScoreResponse)
async def update_assessment_score(
    assessment_id: int,
    behavior_id: int,
    request: ScoreUpdate,
    db: Session = Depends(get_db)
):
    """Mark a behavior as observed or not observed."""
    get_assessment_or_404(db, assessment_id)
    if not db.query(Behavior).filter(Behavior.id == behavior_id).first():
        raise HTTPException(status_code=404, detail="Behavior not found")

    logger.debug("Updating score for assessment %s, behavior %s, checked: %s",
                 assessment_id, behavior_id, request.checked)
    score = save_assessment_score(db, assessment_id, behavior_id, request.checked)
    db.refresh(score)
    return score

@router.get("/{assessment_id}/step-scores", response_model=List[StepScoreResponse])
async def get_step_scores(assessment_id: int, db: Session = Depends(get_db)):
    """Get the manual step level overrides of an assessment."""
    get_assessment_or_404(db, assessment_id)
    return db.query(StepScore).filter(StepScore.assessment_id == assessment_id).all()

@router.put("/{assessment_id}/step-scores/{step_id}", response_model=StepScoreResponse)
async def update_step_score(
    assessment_id: int,
    step_id: int,
    request: StepScoreUpdate,
    db: Session = Depends(get_db)
):
    """Set a manual level for a step, overriding the calculated level."""
    get_assessment_or_404(db, assessment_id)
    if not db.query(Step).filter(Step.id == step_id).first():
        raise HTTPException(status_code=404, detail="Step not found")

    score = save_step_score(db, assessment_id, step_id, request.level)
    db.refresh(score)

    logger.info("Manual level %s set for assessment %s, step %s", request.level, assessment_id, step_id)
    return score

@router.delete("/{assessment_id}/step-scores/{step_id}")
async def clear_step_score(assessment_id: int, step_id: int, db: Session = Depends(get_db)):
    """Remove a manual step level so the calculated level applies again."""
    get_assessment_or_404(db, assessment_id)
    deleted = db.query(StepScore).filter(
        StepScore.assessment_id == assessment_id,
        StepScore.step_id == step_id
    ).delete(synchronize_session=False)
    if not deleted:
        raise HTTPException(status_code=404, detail="No manual score for this step")
    db.commit()
    return {"message": "Manual step score cleared"}

@router.get("/{assessment_id}/levels", response_model=AssessmentLevelsResponse)
async def get_assessment_levels(assessment_id: int, db: Session = Depends(get_db)):
    """
    Get the unified level of every step (manual override or calculated from
    checked behaviors), the substep point proficiencies and the overall level.
    """
    assessment = get_assessment_or_404(db, assessment_id)
    steps = get_ordered_steps(db)
    checked = checked_behavior_ids(assessment.scores)
    unified = get_unified_step_levels(steps, checked, manual_step_levels(assessment.step_scores))
    overall = get_overall_proficiency(unified)

    step_levels = []
    for step, level in zip(steps, unified):
        substeps = []
        for substep in step.substeps:
            proficiency = calculate_substep_proficiency(substep, checked)
            substeps.append(SubstepProficiency(substep_id=substep.id, title=substep.title, **proficiency))

        step_levels.append(StepLevelResponse(
            step_id=step.id,
            title=step.title,
            level=level.level,
            source=level.source,
            percentage=level.percentage,
            level_text=get_level_text(level.level),
            short_code=get_level_short_code(level.level),
            badge_class=get_level_badge_class(level.level),
            substeps=substeps
        ))

    return AssessmentLevelsResponse(
        assessment_id=assessment.id,
        steps=step_levels,
        overall=OverallProficiencyResponse(level=overall.level, text=overall.text, average=overall.average)
    )

@router.get("/{assessment_id}/spider", response_model=List[SpiderPoint])
async def get_spider_graph(assessment_id: int, db: Session = Depends(get_db)):
    """Get the points-vs-target radar series of an assessment."""
    assessment = get_assessment_or_404(db, assessment_id)
    return spider_graph_data(get_ordered_steps(db), checked_behavior_ids(assessment.scores))

@router.get("/{assessment_id}/pdf")
async def export_assessment_pdf(assessment_id: int, db: Session = Depends(get_db)):
    """Render the coaching report PDF, store it and return it as a download."""
    assessment = get_assessment_or_404(db, assessment_id)

    pdf_bytes = generate_coaching_report(
        assessment=assessment,
        coach=assessment.user,
        steps=get_ordered_steps(db),
        assessment_scores=assessment.scores,
        step_scores=assessment.step_scores
    )

    try:
        assessment.pdf_file_path = save_report(pdf_bytes, assessment.id)
        db.commit()
    except OSError as e:
        # The download still succeeds when the reports directory is not writable
        db.rollback()
        logger.warning("Could not store report for assessment %s: %s", assessment_id, e)

    filename = f"coaching-report-{assessment.id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
