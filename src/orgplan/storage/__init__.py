"""OrgPlan Storage Layer - SQLAlchemy models, Postgres adapter and repositories."""

from .base import StorageAdapter
from .postgres_adapter import PostgresAdapter, PostgresConfig
from .models import (
    Base,
    InitiativeModel,
    ResourceConflictModel,
    RoadmapItemModel,
    RoadmapMilestoneModel,
    TeamAssignmentModel,
    TeamMemberModel,
    TeamModel,
)

__all__ = [
    "StorageAdapter",
    "PostgresAdapter",
    "PostgresConfig",
    "Base",
    "TeamModel",
    "TeamMemberModel",
    "TeamAssignmentModel",
    "InitiativeModel",
    "RoadmapItemModel",
    "RoadmapMilestoneModel",
    "ResourceConflictModel",
]
