from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from salescoach.models.database import Base


class Step(Base):
    __tablename__ = "steps"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    target_score = Column(Integer, nullable=False)
    order = Column(Integer, nullable=False)

    # Relationships
    substeps = relationship("Substep", back_populates="step", order_by="Substep.order",
                            cascade="all, delete-orphan")
    step_scores = relationship("StepScore", back_populates="step")


class Substep(Base):
    __tablename__ = "substeps"

    id = Column(Integer, primary_key=True, index=True)
    step_id = Column(Integer, ForeignKey("steps.id"), nullable=False)
    title = Column(Text, nullable=False)
    order = Column(Integer, nullable=False)

    # Relationships
    step = relationship("Step", back_populates="substeps")
    behaviors = relationship("Behavior", back_populates="substep",
                             order_by="Behavior.order",
                             cascade="all, delete-orphan")


class Behavior(Base):
    __tablename__ = "behaviors"

    id = Column(Integer, primary_key=True, index=True)
    substep_id = Column(Integer, ForeignKey("substeps.id"), nullable=False)
    description = Column(Text, nullable=False)
    proficiency_level = Column(Integer, nullable=False)  # 1-4
    order = Column(Integer, nullable=False)

    # Relationships
    substep = relationship("Substep", back_populates="behaviors")
    scores = relationship("AssessmentScore", back_populates="behavior")


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user_teams = relationship("UserTeam", back_populates="team", cascade="all, delete-orphan")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    team = Column(String(200))  # legacy free-text team, kept alongside user_teams
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    assessments = relationship("Assessment", back_populates="user")
    user_teams = relationship("UserTeam", back_populates="user", cascade="all, delete-orphan")

    @property
    def teams(self):
        return [membership.team for membership in self.user_teams]


class UserTeam(Base):
    __tablename__ = "user_teams"
    __table_args__ = (UniqueConstraint("user_id", "team_id", name="uq_user_team"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="user_teams")
    team = relationship("Team", back_populates="user_teams")


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)  # coach
    assessee_name = Column(Text, nullable=False)  # coachee
    context = Column(Text)
    key_observations = Column(Text)
    what_worked_well = Column(Text)
    what_can_be_improved = Column(Text)
    next_steps = Column(Text)
    pdf_file_path = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="assessments")
    scores = relationship("AssessmentScore", back_populates="assessment", cascade="all, delete-orphan")
    step_scores = relationship("StepScore", back_populates="assessment", cascade="all, delete-orphan")


class AssessmentScore(Base):
    __tablename__ = "assessment_scores"
    __table_args__ = (UniqueConstraint("assessment_id", "behavior_id", name="uq_assessment_behavior"),)

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id"), nullable=False)
    behavior_id = Column(Integer, ForeignKey("behaviors.id"), nullable=False)
    checked = Column(Boolean, nullable=False, default=False)

    # Relationships
    assessment = relationship("Assessment", back_populates="scores")
    behavior = relationship("Behavior", back_populates="scores")


class StepScore(Base):
    __tablename__ = "step_scores"
    __table_args__ = (UniqueConstraint("assessment_id", "step_id", name="uq_assessment_step"),)

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id"), nullable=False)
    step_id = Column(Integer, ForeignKey("steps.id"), nullable=False)
    level = Column(Integer, nullable=False)  # 1=Learner, 2=Qualified, 3=Experienced, 4=Master

    # Relationships
    assessment = relationship("Assessment", back_populates="step_scores")
    step = relationship("Step", back_populates="step_scores")
