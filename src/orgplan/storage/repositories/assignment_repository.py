from datetime import date
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import select

from orgplan.storage.models import TeamAssignmentModel
from .base import BaseRepository

class AssignmentRepository(BaseRepository[TeamAssignmentModel]):
    """Repository for team <-> initiative assignments."""

    updatable_fields = ("start_date", "end_date", "role")

    def create(self, session: Session, entity: TeamAssignmentModel) -> TeamAssignmentModel:
        session.add(entity)
        # Flush so the (initiative_id, team_id) unique constraint fires here
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[TeamAssignmentModel]:
        return session.get(TeamAssignmentModel, id)

    def get_by_pair(self, session: Session, initiative_id: str, team_id: str) -> Optional[TeamAssignmentModel]:
        stmt = select(TeamAssignmentModel).where(
            TeamAssignmentModel.initiative_id == initiative_id,
            TeamAssignmentModel.team_id == team_id,
        )
        return session.scalar(stmt)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[TeamAssignmentModel]:
        assignment = self.get(session, id)
        if not assignment:
            return None
        self._apply_updates(assignment, updates)
        session.flush()
        return assignment

    def delete(self, session: Session, id: str) -> bool:
        assignment = self.get(session, id)
        if not assignment:
            return False
        session.delete(assignment)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 1000, offset: int = 0) -> List[TeamAssignmentModel]:
        stmt = select(TeamAssignmentModel).order_by(TeamAssignmentModel.start_date).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    def list_by_team(self, session: Session, team_id: str) -> List[TeamAssignmentModel]:
        stmt = select(TeamAssignmentModel).where(
            TeamAssignmentModel.team_id == team_id
        ).order_by(TeamAssignmentModel.start_date)
        return list(session.scalars(stmt).all())

    def list_by_initiative(self, session: Session, initiative_id: str) -> List[TeamAssignmentModel]:
        stmt = select(TeamAssignmentModel).where(
            TeamAssignmentModel.initiative_id == initiative_id
        ).order_by(TeamAssignmentModel.team_id)
        return list(session.scalars(stmt).all())

    def list_initiative_ids_for_teams(self, session: Session, team_ids: List[str]) -> List[str]:
        """Distinct initiative ids that have an assignment on any of the given teams."""
        if not team_ids:
            return []
        stmt = select(TeamAssignmentModel.initiative_id).where(
            TeamAssignmentModel.team_id.in_(team_ids)
        ).distinct()
        return list(session.scalars(stmt).all())

    def list_overlapping(
        self,
        session: Session,
        start_date: date,
        end_date: date,
        team_ids: Optional[List[str]] = None,
    ) -> List[TeamAssignmentModel]:
        """Assignments whose [start_date, end_date] intersects the given window."""
        stmt = select(TeamAssignmentModel).where(
            TeamAssignmentModel.start_date <= end_date,
            TeamAssignmentModel.end_date >= start_date,
        )
        if team_ids:
            stmt = stmt.where(TeamAssignmentModel.team_id.in_(team_ids))
        return list(session.scalars(stmt.order_by(TeamAssignmentModel.start_date)).all())
