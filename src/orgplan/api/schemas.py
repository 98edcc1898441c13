from typing import ClassVar, Dict, List, Optional, Tuple
from datetime import date, datetime
from pydantic import BaseModel, Field, model_validator

from orgplan.storage.models import (
    AssignmentRole,
    ConflictSeverity,
    ConflictType,
    InitiativeStatus,
    MemberRole,
    Priority,
    RoadmapStatus,
)
from orgplan.schedulers.capacity_projector import RecommendationType
from orgplan.schedulers.timeline_analyzer import RiskFactor, RiskImpact

# --- Partial updates ---

class PartialUpdate(BaseModel):
    """Body of a PUT: omitted fields are left alone, listed fields may not be null."""

    non_nullable_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in self.non_nullable_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

# --- Teams ---

class TeamCreate(BaseModel):
    name: str = Field(..., description="Team name")
    description: Optional[str] = None
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    capacity: int = Field(100, ge=0, description="Initial capacity in work units")
    skills: List[str] = Field(default_factory=list)

class TeamUpdate(PartialUpdate):
    non_nullable_fields = ("name", "skills")

    name: Optional[str] = None
    description: Optional[str] = None
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    skills: Optional[List[str]] = None

class TeamResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    capacity: int
    current_workload: int
    member_count: int
    skills: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- Team Members ---

class TeamMemberCreate(BaseModel):
    team_id: str
    name: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: MemberRole = MemberRole.MID
    capacity: int = Field(100, ge=0)
    skills: List[str] = Field(default_factory=list)

class TeamMemberUpdate(PartialUpdate):
    non_nullable_fields = ("name", "role", "capacity", "skills")

    name: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[MemberRole] = None
    capacity: Optional[int] = Field(None, ge=0)
    skills: Optional[List[str]] = None

class TeamMemberResponse(BaseModel):
    id: str
    team_id: str
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    role: MemberRole
    capacity: int
    skills: List[str]
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- Initiatives & Assignments ---

class InitiativeCreate(BaseModel):
    name: str
    description: Optional[str] = None
    status: InitiativeStatus = InitiativeStatus.DRAFT
    priority: Priority = Priority.MEDIUM

class InitiativeUpdate(PartialUpdate):
    non_nullable_fields = ("name", "status", "priority")

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[InitiativeStatus] = None
    priority: Optional[Priority] = None

class InitiativeResponse(InitiativeCreate):
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AssignmentCreate(BaseModel):
    team_id: str
    allocated_capacity: int = Field(..., ge=0, le=100, description="Percentage of capacity committed")
    start_date: date
    end_date: date
    role: AssignmentRole = AssignmentRole.PRIMARY

class AssignmentResponse(BaseModel):
    id: str
    initiative_id: str
    team_id: str
    allocated_capacity: int
    start_date: date
    end_date: date
    role: AssignmentRole

    class Config:
        from_attributes = True

# --- Resources ---

class TeamAllocationResponse(BaseModel):
    team_id: str
    team_name: str
    total_capacity: int
    allocated_capacity: int
    available_capacity: int
    utilization_percentage: float
    assignments: List[AssignmentResponse]

    class Config:
        from_attributes = True

class ConflictResponse(BaseModel):
    id: str
    type: ConflictType
    severity: ConflictSeverity
    description: str
    affected_teams: List[str]
    affected_initiatives: List[str]
    suggested_resolution: str
    detected_at: datetime

    class Config:
        from_attributes = True

# --- Roadmap ---

class MilestoneCreate(BaseModel):
    roadmap_item_id: str
    name: str
    description: Optional[str] = None
    target_date: date
    completed: bool = False

class MilestoneUpdate(PartialUpdate):
    non_nullable_fields = ("name", "target_date", "completed")

    name: Optional[str] = None
    description: Optional[str] = None
    target_date: Optional[date] = None
    completed: Optional[bool] = None

class MilestoneResponse(MilestoneCreate):
    id: str

    class Config:
        from_attributes = True

class RoadmapItemCreate(BaseModel):
    initiative_id: str
    start_date: date
    end_date: date
    status: RoadmapStatus = RoadmapStatus.PLANNED
    priority: Priority = Priority.MEDIUM
    dependencies: List[str] = Field(default_factory=list, description="Ids of roadmap items this one depends on")
    estimated_effort: int = Field(0, ge=0)
    actual_effort: Optional[int] = Field(None, ge=0)

class RoadmapItemUpdate(PartialUpdate):
    non_nullable_fields = (
        "start_date", "end_date", "status", "priority", "dependencies", "estimated_effort",
    )

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[RoadmapStatus] = None
    priority: Optional[Priority] = None
    dependencies: Optional[List[str]] = None
    estimated_effort: Optional[int] = Field(None, ge=0)
    actual_effort: Optional[int] = Field(None, ge=0)

class RoadmapItemResponse(BaseModel):
    id: str
    initiative_id: str
    initiative_name: str
    start_date: date
    end_date: date
    status: RoadmapStatus
    priority: Priority
    dependencies: List[str]
    estimated_effort: int
    actual_effort: Optional[int] = None
    milestones: List[MilestoneResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True

class TimelineUpdate(BaseModel):
    start_date: date
    end_date: date
    validate_resources: bool = False

class TimelineUpdateResponse(BaseModel):
    item: RoadmapItemResponse
    conflicts: List[ConflictResponse]

    class Config:
        from_attributes = True

class BulkTimelineEntry(BaseModel):
    item_id: str
    start_date: date
    end_date: date

class BulkTimelineUpdate(BaseModel):
    updates: List[BulkTimelineEntry]

class BulkTimelineResponse(BaseModel):
    successful: List[str]
    failed: List[Dict[str, str]]

    class Config:
        from_attributes = True

# --- Analytics ---

class RiskItemResponse(BaseModel):
    item: RoadmapItemResponse
    risk_factors: List[RiskFactor]
    impact: RiskImpact

    class Config:
        from_attributes = True

class TimelineAnalysisResponse(BaseModel):
    total_initiatives: int
    completed_initiatives: int
    in_progress_initiatives: int
    planned_initiatives: int
    on_hold_initiatives: int
    overall_progress: float
    critical_path: List[RoadmapItemResponse]
    risky_items: List[RiskItemResponse]

    class Config:
        from_attributes = True

class TeamWeekLoadResponse(BaseModel):
    team_id: str
    team_name: str
    capacity: int
    allocated: int
    available: int
    utilization: float

    class Config:
        from_attributes = True

class WeeklyCapacityResponse(BaseModel):
    week_start: date
    week_end: date
    total_capacity: int
    allocated_capacity: int
    available_capacity: int
    utilization_rate: float
    teams: List[TeamWeekLoadResponse]

    class Config:
        from_attributes = True

class RecommendationResponse(BaseModel):
    type: RecommendationType
    team_id: str
    description: str
    impact: str
    severity: Optional[ConflictSeverity] = None
    week_start: Optional[date] = None

    class Config:
        from_attributes = True

class CapacityProjectionResponse(BaseModel):
    start_date: date
    end_date: date
    timeline: List[WeeklyCapacityResponse]
    recommendations: List[RecommendationResponse]

    class Config:
        from_attributes = True
