from datetime import date
from typing import List, Optional, Dict, Any, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import select

from orgplan.storage.models import (
    InitiativeModel,
    RoadmapItemModel,
    RoadmapMilestoneModel,
    RoadmapStatus,
    Priority,
)
from .base import BaseRepository

class InitiativeRepository(BaseRepository[InitiativeModel]):
    """Repository for Initiatives."""

    updatable_fields = ("name", "description", "status", "priority")

    def create(self, session: Session, entity: InitiativeModel) -> InitiativeModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[InitiativeModel]:
        return session.get(InitiativeModel, id)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[InitiativeModel]:
        initiative = self.get(session, id)
        if not initiative:
            return None
        self._apply_updates(initiative, updates)
        session.flush()
        return initiative

    def delete(self, session: Session, id: str) -> bool:
        initiative = self.get(session, id)
        if not initiative:
            return False
        session.delete(initiative)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[InitiativeModel]:
        stmt = select(InitiativeModel).order_by(InitiativeModel.name).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())


class RoadmapItemRepository(BaseRepository[RoadmapItemModel]):
    """Repository for Roadmap Items (one per initiative)."""

    updatable_fields = (
        "start_date", "end_date", "status", "priority",
        "dependencies", "estimated_effort", "actual_effort",
    )

    def create(self, session: Session, entity: RoadmapItemModel) -> RoadmapItemModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[RoadmapItemModel]:
        return session.get(RoadmapItemModel, id)

    def get_by_initiative(self, session: Session, initiative_id: str) -> Optional[RoadmapItemModel]:
        stmt = select(RoadmapItemModel).where(RoadmapItemModel.initiative_id == initiative_id)
        return session.scalar(stmt)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[RoadmapItemModel]:
        item = self.get(session, id)
        if not item:
            return None
        self._apply_updates(item, updates)
        session.flush()
        return item

    def delete(self, session: Session, id: str) -> bool:
        item = self.get(session, id)
        if not item:
            return False
        session.delete(item)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 1000, offset: int = 0) -> List[RoadmapItemModel]:
        return self.list_filtered(session, limit=limit, offset=offset)

    def list_filtered(
        self,
        session: Session,
        statuses: Optional[Sequence[RoadmapStatus]] = None,
        priorities: Optional[Sequence[Priority]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        initiative_ids: Optional[Sequence[str]] = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> List[RoadmapItemModel]:
        """
        List roadmap items ordered by start date.

        Args:
            session: Database session
            statuses: Keep items in any of these statuses
            priorities: Keep items with any of these priorities
            start_date: Keep items starting on or after this date
            end_date: Keep items ending on or before this date
            initiative_ids: Keep items of these initiatives (an empty list matches nothing)
            limit: Maximum number of results
            offset: Pagination offset

        Returns:
            List of RoadmapItemModel instances
        """
        stmt = select(RoadmapItemModel)
        if statuses:
            stmt = stmt.where(RoadmapItemModel.status.in_(list(statuses)))
        if priorities:
            stmt = stmt.where(RoadmapItemModel.priority.in_(list(priorities)))
        if start_date:
            stmt = stmt.where(RoadmapItemModel.start_date >= start_date)
        if end_date:
            stmt = stmt.where(RoadmapItemModel.end_date <= end_date)
        if initiative_ids is not None:
            if not initiative_ids:
                return []
            stmt = stmt.where(RoadmapItemModel.initiative_id.in_(list(initiative_ids)))
        stmt = stmt.order_by(RoadmapItemModel.start_date).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())


class MilestoneRepository(BaseRepository[RoadmapMilestoneModel]):
    """Repository for Roadmap Milestones."""

    updatable_fields = ("name", "description", "target_date", "completed")

    def create(self, session: Session, entity: RoadmapMilestoneModel) -> RoadmapMilestoneModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[RoadmapMilestoneModel]:
        return session.get(RoadmapMilestoneModel, id)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[RoadmapMilestoneModel]:
        milestone = self.get(session, id)
        if not milestone:
            return None
        self._apply_updates(milestone, updates)
        session.flush()
        return milestone

    def delete(self, session: Session, id: str) -> bool:
        milestone = self.get(session, id)
        if not milestone:
            return False
        session.delete(milestone)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[RoadmapMilestoneModel]:
        stmt = select(RoadmapMilestoneModel).order_by(RoadmapMilestoneModel.target_date).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())
