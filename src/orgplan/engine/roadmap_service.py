"""
Roadmap Service - Initiatives, roadmap items and milestones.

Timeline moves can optionally carry the initiative's team assignments along
and re-run conflict detection for every affected team.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orgplan.engine.errors import DuplicateError, NotFoundError, PlanningError, ValidationError
from orgplan.schedulers.conflict_detector import ConflictDetector
from orgplan.storage.models import (
    InitiativeModel,
    Priority,
    ResourceConflictModel,
    RoadmapItemModel,
    RoadmapMilestoneModel,
    RoadmapStatus,
)
from orgplan.storage.repositories.assignment_repository import AssignmentRepository
from orgplan.storage.repositories.roadmap_repository import (
    InitiativeRepository,
    MilestoneRepository,
    RoadmapItemRepository,
)
from orgplan.storage.repositories.team_repository import TeamRepository

logger = logging.getLogger(__name__)


@dataclass
class TimelineChange:
    item_id: str
    start_date: date
    end_date: date


@dataclass
class TimelineUpdateResult:
    item: RoadmapItemModel
    conflicts: List[ResourceConflictModel] = field(default_factory=list)


@dataclass
class BulkTimelineResult:
    successful: List[str] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)


class RoadmapService:
    """
    Service layer for the roadmap.

    Each public operation commits its own transaction.
    """

    def __init__(
        self,
        initiative_repo: Optional[InitiativeRepository] = None,
        roadmap_repo: Optional[RoadmapItemRepository] = None,
        milestone_repo: Optional[MilestoneRepository] = None,
        assignment_repo: Optional[AssignmentRepository] = None,
        detector: Optional[ConflictDetector] = None,
        team_repo: Optional[TeamRepository] = None,
    ):
        self.initiative_repo = initiative_repo or InitiativeRepository()
        self.roadmap_repo = roadmap_repo or RoadmapItemRepository()
        self.milestone_repo = milestone_repo or MilestoneRepository()
        self.assignment_repo = assignment_repo or AssignmentRepository()
        self.team_repo = team_repo or TeamRepository()
        self.detector = detector or ConflictDetector(self.team_repo, self.assignment_repo)

    # --- Initiatives ---

    def create_initiative(self, session: Session, initiative: InitiativeModel) -> InitiativeModel:
        initiative.id = initiative.id or str(uuid.uuid4())
        created = self.initiative_repo.create(session, initiative)
        session.commit()
        logger.info(f"Created initiative {created.id}")
        return created

    def get_initiative(self, session: Session, initiative_id: str) -> InitiativeModel:
        initiative = self.initiative_repo.get(session, initiative_id)
        if not initiative:
            raise NotFoundError("Initiative", initiative_id)
        return initiative

    def list_initiatives(self, session: Session, limit: int = 100, offset: int = 0) -> List[InitiativeModel]:
        return self.initiative_repo.list(session, limit, offset)

    def update_initiative(self, session: Session, initiative_id: str, updates: Dict[str, Any]) -> InitiativeModel:
        initiative = self.initiative_repo.update(session, initiative_id, updates)
        if not initiative:
            raise NotFoundError("Initiative", initiative_id)
        session.commit()
        return initiative

    def delete_initiative(self, session: Session, initiative_id: str) -> None:
        """
        Delete an initiative with its roadmap item and team assignments.

        Each assignment's allocation is released from its team's workload
        (floored at zero) in the same transaction that removes it.

        Raises:
            NotFoundError: Initiative does not exist
        """
        initiative = self.get_initiative(session, initiative_id)

        released = 0
        for assignment in self.assignment_repo.list_by_initiative(session, initiative_id):
            self.team_repo.release_workload(session, assignment.team_id, assignment.allocated_capacity)
            self.assignment_repo.delete(session, assignment.id)
            released += 1

        item = self.roadmap_repo.get_by_initiative(session, initiative_id)
        if item:
            self.roadmap_repo.delete(session, item.id)

        # Reload so the delete cascade only sees rows still in the database
        session.expire(initiative, ["assignments"])
        self.initiative_repo.delete(session, initiative_id)
        session.commit()
        logger.info(f"Deleted initiative {initiative_id} ({released} assignments released)")

    # --- Roadmap items ---

    def create_item(self, session: Session, item: RoadmapItemModel) -> RoadmapItemModel:
        """
        Create the roadmap item of an initiative.

        The initiative's name is copied onto the item.

        Raises:
            ValidationError: end_date before start_date
            NotFoundError: Initiative does not exist
            DuplicateError: Initiative already has a roadmap item
        """
        self._validate_window(item.start_date, item.end_date)
        initiative = self.get_initiative(session, item.initiative_id)
        if self.roadmap_repo.get_by_initiative(session, item.initiative_id):
            raise DuplicateError(f"Initiative {item.initiative_id} already has a roadmap item")

        item.id = item.id or str(uuid.uuid4())
        item.initiative_name = initiative.name
        created = self.roadmap_repo.create(session, item)
        session.commit()

        logger.info(f"Created roadmap item {created.id} for initiative {created.initiative_id}")
        return created

    def get_item(self, session: Session, item_id: str) -> RoadmapItemModel:
        item = self.roadmap_repo.get(session, item_id)
        if not item:
            raise NotFoundError("Roadmap item", item_id)
        return item

    def list_items(
        self,
        session: Session,
        statuses: Optional[Sequence[RoadmapStatus]] = None,
        priorities: Optional[Sequence[Priority]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        team_ids: Optional[Sequence[str]] = None,
    ) -> List[RoadmapItemModel]:
        """Roadmap items ordered by start date, optionally filtered."""
        initiative_ids = None
        if team_ids:
            initiative_ids = self.assignment_repo.list_initiative_ids_for_teams(session, list(team_ids))

        return self.roadmap_repo.list_filtered(
            session,
            statuses=statuses,
            priorities=priorities,
            start_date=start_date,
            end_date=end_date,
            initiative_ids=initiative_ids,
        )

    def update_item(self, session: Session, item_id: str, updates: Dict[str, Any]) -> RoadmapItemModel:
        item = self.get_item(session, item_id)
        for key in ("start_date", "end_date"):
            if key in updates and updates[key] is None:
                raise ValidationError(f"{key} must not be null")
        self._validate_window(
            updates.get("start_date", item.start_date),
            updates.get("end_date", item.end_date),
        )
        self.roadmap_repo.update(session, item_id, updates)
        session.commit()
        return item

    def delete_item(self, session: Session, item_id: str) -> None:
        if not self.roadmap_repo.delete(session, item_id):
            raise NotFoundError("Roadmap item", item_id)
        session.commit()
        logger.info(f"Deleted roadmap item {item_id}")

    def update_item_timeline(
        self,
        session: Session,
        item_id: str,
        start_date: date,
        end_date: date,
        validate_resources: bool = False,
    ) -> TimelineUpdateResult:
        """
        Move a roadmap item to a new window.

        Args:
            session: Database session
            item_id: Roadmap item to move
            start_date: New start date
            end_date: New end date
            validate_resources: Also move the initiative's assignments and
                re-run conflict detection for each assigned team

        Returns:
            TimelineUpdateResult with the moved item and any recorded conflicts
        """
        self._validate_window(start_date, end_date)
        item = self.get_item(session, item_id)

        item.start_date = start_date
        item.end_date = end_date

        assignments = []
        if validate_resources:
            assignments = self.assignment_repo.list_by_initiative(session, item.initiative_id)
            for assignment in assignments:
                assignment.start_date = start_date
                assignment.end_date = end_date

        session.commit()
        logger.info(f"Moved roadmap item {item_id} to {start_date.isoformat()}..{end_date.isoformat()}")

        conflicts = []
        for team_id in dict.fromkeys(a.team_id for a in assignments):
            conflicts.extend(self.detector.detect(session, team_id, start_date, end_date))

        return TimelineUpdateResult(item=item, conflicts=conflicts)

    def bulk_update_timeline(self, session: Session, changes: Sequence[TimelineChange]) -> BulkTimelineResult:
        """
        Apply several timeline moves, each in its own transaction.

        A failing entry is reported and does not stop the remaining ones.
        """
        result = BulkTimelineResult()

        for change in changes:
            try:
                self.update_item_timeline(session, change.item_id, change.start_date, change.end_date)
                result.successful.append(change.item_id)
            except PlanningError as e:
                result.failed.append({"item_id": change.item_id, "error": str(e)})
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to move roadmap item {change.item_id}", exc_info=e)
                result.failed.append({"item_id": change.item_id, "error": "Failed to update timeline"})

        logger.info(
            f"Bulk timeline update: {len(result.successful)} succeeded, {len(result.failed)} failed"
        )
        return result

    # --- Milestones ---

    def create_milestone(self, session: Session, milestone: RoadmapMilestoneModel) -> RoadmapMilestoneModel:
        self.get_item(session, milestone.roadmap_item_id)
        milestone.id = milestone.id or str(uuid.uuid4())
        created = self.milestone_repo.create(session, milestone)
        session.commit()
        return created

    def update_milestone(self, session: Session, milestone_id: str, updates: Dict[str, Any]) -> RoadmapMilestoneModel:
        milestone = self.milestone_repo.update(session, milestone_id, updates)
        if not milestone:
            raise NotFoundError("Milestone", milestone_id)
        session.commit()
        return milestone

    def delete_milestone(self, session: Session, milestone_id: str) -> None:
        if not self.milestone_repo.delete(session, milestone_id):
            raise NotFoundError("Milestone", milestone_id)
        session.commit()

    def _validate_window(self, start_date: Optional[date], end_date: Optional[date]) -> None:
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
