from fastapi import HTTPException

from orgplan.api.database import get_db, get_postgres_adapter, close_postgres_adapter
from orgplan.engine.assignment_manager import AssignmentManager
from orgplan.engine.errors import DuplicateError, NotFoundError, PlanningError
from orgplan.engine.roadmap_service import RoadmapService
from orgplan.platform.config import settings
from orgplan.platform.logging import get_logger
from orgplan.schedulers.capacity_projector import CapacityProjector
from orgplan.schedulers.conflict_detector import ConflictDetector
from orgplan.schedulers.timeline_analyzer import TimelineAnalyzer
from orgplan.storage.repositories.assignment_repository import AssignmentRepository
from orgplan.storage.repositories.conflict_repository import ConflictRepository
from orgplan.storage.repositories.roadmap_repository import (
    InitiativeRepository,
    MilestoneRepository,
    RoadmapItemRepository,
)
from orgplan.storage.repositories.team_repository import TeamMemberRepository, TeamRepository

logger = get_logger(__name__)

__all__ = [
    "get_db",
    "get_assignment_manager",
    "get_roadmap_service",
    "get_conflict_detector",
    "get_timeline_analyzer",
    "get_capacity_projector",
    "http_error",
]


def get_conflict_detector() -> ConflictDetector:
    return ConflictDetector(TeamRepository(), AssignmentRepository(), ConflictRepository())


def get_assignment_manager() -> AssignmentManager:
    team_repo = TeamRepository()
    assignment_repo = AssignmentRepository()
    return AssignmentManager(
        team_repo=team_repo,
        member_repo=TeamMemberRepository(),
        assignment_repo=assignment_repo,
        initiative_repo=InitiativeRepository(),
        detector=ConflictDetector(team_repo, assignment_repo, ConflictRepository()),
    )


def get_roadmap_service() -> RoadmapService:
    team_repo = TeamRepository()
    assignment_repo = AssignmentRepository()
    return RoadmapService(
        initiative_repo=InitiativeRepository(),
        roadmap_repo=RoadmapItemRepository(),
        milestone_repo=MilestoneRepository(),
        assignment_repo=assignment_repo,
        detector=ConflictDetector(team_repo, assignment_repo, ConflictRepository()),
        team_repo=team_repo,
    )


def get_timeline_analyzer() -> TimelineAnalyzer:
    return TimelineAnalyzer(
        roadmap_repo=RoadmapItemRepository(),
        assignment_repo=AssignmentRepository(),
        critical_path_size=settings.CRITICAL_PATH_SIZE,
    )


def get_capacity_projector() -> CapacityProjector:
    return CapacityProjector(
        team_repo=TeamRepository(),
        assignment_repo=AssignmentRepository(),
        max_weeks=settings.CAPACITY_PROJECTION_MAX_WEEKS,
    )


def http_error(error: PlanningError) -> HTTPException:
    """Map a service error onto the HTTP status it stands for."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, DuplicateError):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=422, detail=str(error))


def init_resources() -> None:
    """Connect the database (and create tables when configured to)."""
    adapter = get_postgres_adapter()
    adapter.connect()
    if settings.DB_CREATE_SCHEMA:
        adapter.create_schema()


def close_resources() -> None:
    """Close all resources."""
    close_postgres_adapter()
    logger.info("Resources closed")
