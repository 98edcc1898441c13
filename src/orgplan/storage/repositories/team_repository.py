from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import select, update, case
import logging

from orgplan.storage.models import TeamModel, TeamMemberModel
from .base import BaseRepository

logger = logging.getLogger(__name__)

class TeamRepository(BaseRepository[TeamModel]):
    """Repository for Teams and their capacity ledger counters.

    Counter changes go through `adjust_counters` / `release_workload`, which
    issue a single `UPDATE ... SET col = col + :delta` so that two writers on
    the same team cannot overwrite each other's change.
    """

    updatable_fields = ("name", "description", "manager_id", "manager_name", "skills")

    def create(self, session: Session, entity: TeamModel) -> TeamModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[TeamModel]:
        return session.get(TeamModel, id)

    def refresh(self, session: Session, id: str) -> Optional[TeamModel]:
        """Re-read a team so the identity map reflects SQL-side counter updates."""
        return session.get(TeamModel, id, populate_existing=True)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[TeamModel]:
        team = self.get(session, id)
        if not team:
            return None
        self._apply_updates(team, updates)
        session.flush()
        return team

    def delete(self, session: Session, id: str) -> bool:
        team = self.get(session, id)
        if not team:
            return False
        session.delete(team)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[TeamModel]:
        stmt = select(TeamModel).order_by(TeamModel.name).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    def list_all(self, session: Session) -> List[TeamModel]:
        """Every team, ordered by name."""
        stmt = select(TeamModel).order_by(TeamModel.name)
        return list(session.scalars(stmt).all())

    def list_by_ids(self, session: Session, ids: List[str]) -> List[TeamModel]:
        if not ids:
            return []
        stmt = select(TeamModel).where(TeamModel.id.in_(ids)).order_by(TeamModel.name)
        return list(session.scalars(stmt).all())

    # --- Ledger counters ---

    def adjust_counters(
        self,
        session: Session,
        team_id: str,
        capacity: int = 0,
        current_workload: int = 0,
        member_count: int = 0,
    ) -> Optional[TeamModel]:
        """
        Atomically add deltas to a team's counters.

        Args:
            session: Database session
            team_id: Team to adjust
            capacity: Delta for `capacity`
            current_workload: Delta for `current_workload`
            member_count: Delta for `member_count`

        Returns:
            The refreshed team, or None if it does not exist
        """
        deltas = {
            "capacity": capacity,
            "current_workload": current_workload,
            "member_count": member_count,
        }
        values = {
            name: getattr(TeamModel, name) + delta
            for name, delta in deltas.items()
            if delta
        }
        if values:
            stmt = (
                update(TeamModel)
                .where(TeamModel.id == team_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = session.execute(stmt)
            if result.rowcount == 0:
                return None
            logger.debug(f"Adjusted counters for team {team_id}: {deltas}")
        return self.refresh(session, team_id)

    def release_workload(self, session: Session, team_id: str, amount: int) -> Optional[TeamModel]:
        """Atomically subtract `amount` from current_workload, never going below 0."""
        remaining = TeamModel.current_workload - amount
        stmt = (
            update(TeamModel)
            .where(TeamModel.id == team_id)
            .values(current_workload=case((remaining < 0, 0), else_=remaining))
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        if result.rowcount == 0:
            return None
        return self.refresh(session, team_id)


class TeamMemberRepository(BaseRepository[TeamMemberModel]):
    """Repository for Team Members. Does not touch team counters."""

    updatable_fields = ("user_id", "name", "email", "role", "skills")

    def create(self, session: Session, entity: TeamMemberModel) -> TeamMemberModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[TeamMemberModel]:
        return session.get(TeamMemberModel, id)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[TeamMemberModel]:
        member = self.get(session, id)
        if not member:
            return None
        self._apply_updates(member, updates)
        session.flush()
        return member

    def delete(self, session: Session, id: str) -> bool:
        member = self.get(session, id)
        if not member:
            return False
        session.delete(member)
        session.flush()
        return True

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[TeamMemberModel]:
        stmt = select(TeamMemberModel).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())

    def list_by_team(self, session: Session, team_id: str) -> List[TeamMemberModel]:
        stmt = select(TeamMemberModel).where(TeamMemberModel.team_id == team_id).order_by(TeamMemberModel.name)
        return list(session.scalars(stmt).all())
