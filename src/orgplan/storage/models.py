from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import (
    String, Integer, Boolean, Text, JSON, Date, DateTime, ForeignKey,
    UniqueConstraint, Enum as SAEnum, func
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

class Base(DeclarativeBase):
    pass

# Helper to support both Postgres JSONB and generic JSON (for SQLite tests)
JSON_TYPE = JSON().with_variant(JSONB, 'postgresql')
TIMESTAMP_TYPE = DateTime(timezone=True).with_variant(TIMESTAMP(timezone=True), 'postgresql')


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def enum_column(enum_cls) -> SAEnum:
    """Closed enum stored as its string value (VARCHAR + CHECK, no native type)."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        values_callable=_enum_values,
        length=32,
        validate_strings=True,
    )

# --- Enumerations ---

class MemberRole(str, Enum):
    LEAD = "lead"
    SENIOR = "senior"
    MID = "mid"
    JUNIOR = "junior"


class AssignmentRole(str, Enum):
    PRIMARY = "primary"
    SUPPORTING = "supporting"


class InitiativeStatus(str, Enum):
    DRAFT = "Draft"
    PROPOSAL = "Proposal"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"


class RoadmapStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConflictType(str, Enum):
    """Types of resource conflicts. Only overallocation is detected."""
    OVERALLOCATION = "overallocation"
    SKILL_GAP = "skill_gap"
    TIMELINE_CONFLICT = "timeline_conflict"


class ConflictSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

# --- Teams ---

class TeamModel(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    manager_id: Mapped[Optional[str]] = mapped_column(String)
    manager_name: Mapped[Optional[str]] = mapped_column(String)

    # Ledger counters, mutated only through TeamRepository.adjust_counters
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    current_workload: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    skills: Mapped[List[str]] = mapped_column(JSON_TYPE, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())

    members: Mapped[List["TeamMemberModel"]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )
    assignments: Mapped[List["TeamAssignmentModel"]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )


class TeamMemberModel(Base):
    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False, index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String)
    role: Mapped[MemberRole] = mapped_column(enum_column(MemberRole), nullable=False, default=MemberRole.MID)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    skills: Mapped[List[str]] = mapped_column(JSON_TYPE, nullable=False, default=list)
    joined_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, default=datetime.utcnow)

    team: Mapped["TeamModel"] = relationship(back_populates="members")

# --- Initiatives ---

class InitiativeModel(Base):
    __tablename__ = "initiatives"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[InitiativeStatus] = mapped_column(
        enum_column(InitiativeStatus), nullable=False, default=InitiativeStatus.DRAFT
    )
    priority: Mapped[Priority] = mapped_column(enum_column(Priority), nullable=False, default=Priority.MEDIUM)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())

    assignments: Mapped[List["TeamAssignmentModel"]] = relationship(
        back_populates="initiative", cascade="all, delete-orphan"
    )


class TeamAssignmentModel(Base):
    __tablename__ = "team_assignments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    initiative_id: Mapped[str] = mapped_column(ForeignKey("initiatives.id"), nullable=False, index=True)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False, index=True)
    allocated_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    role: Mapped[AssignmentRole] = mapped_column(
        enum_column(AssignmentRole), nullable=False, default=AssignmentRole.PRIMARY
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())

    team: Mapped["TeamModel"] = relationship(back_populates="assignments")
    initiative: Mapped["InitiativeModel"] = relationship(back_populates="assignments")

    __table_args__ = (
        UniqueConstraint('initiative_id', 'team_id', name='uq_assignment_initiative_team'),
    )

# --- Roadmap ---

class RoadmapItemModel(Base):
    __tablename__ = "roadmap_items"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    initiative_id: Mapped[str] = mapped_column(ForeignKey("initiatives.id"), nullable=False, unique=True)
    initiative_name: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[RoadmapStatus] = mapped_column(
        enum_column(RoadmapStatus), nullable=False, default=RoadmapStatus.PLANNED, index=True
    )
    priority: Mapped[Priority] = mapped_column(enum_column(Priority), nullable=False, default=Priority.MEDIUM)
    # Roadmap item ids this item depends on
    dependencies: Mapped[List[str]] = mapped_column(JSON_TYPE, nullable=False, default=list)
    estimated_effort: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    actual_effort: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())

    initiative: Mapped["InitiativeModel"] = relationship()
    milestones: Mapped[List["RoadmapMilestoneModel"]] = relationship(
        back_populates="roadmap_item", cascade="all, delete-orphan"
    )


class RoadmapMilestoneModel(Base):
    __tablename__ = "roadmap_milestones"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    roadmap_item_id: Mapped[str] = mapped_column(ForeignKey("roadmap_items.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    roadmap_item: Mapped["RoadmapItemModel"] = relationship(back_populates="milestones")

# --- Conflicts (append-only audit log) ---

class ResourceConflictModel(Base):
    __tablename__ = "resource_conflicts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    type: Mapped[ConflictType] = mapped_column(enum_column(ConflictType), nullable=False, index=True)
    severity: Mapped[ConflictSeverity] = mapped_column(enum_column(ConflictSeverity), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    affected_teams: Mapped[List[str]] = mapped_column(JSON_TYPE, nullable=False, default=list)
    affected_initiatives: Mapped[List[str]] = mapped_column(JSON_TYPE, nullable=False, default=list)
    suggested_resolution: Mapped[str] = mapped_column(Text, nullable=False)
    detected_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, nullable=False, default=datetime.utcnow, index=True)
