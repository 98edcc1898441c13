"""
Assignment Manager - Owns the team capacity ledger on the write path.

Every mutating call adjusts the affected team's counters incrementally
(`capacity`, `current_workload`, `member_count`); counters are never
recomputed by aggregation. After an assignment is committed the Conflict
Detector runs as a best-effort side channel.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orgplan.engine.errors import DuplicateError, NotFoundError, ValidationError
from orgplan.schedulers.conflict_detector import ConflictDetector
from orgplan.storage.models import (
    AssignmentRole,
    TeamAssignmentModel,
    TeamMemberModel,
    TeamModel,
)
from orgplan.storage.repositories.assignment_repository import AssignmentRepository
from orgplan.storage.repositories.roadmap_repository import InitiativeRepository
from orgplan.storage.repositories.team_repository import TeamMemberRepository, TeamRepository

logger = logging.getLogger(__name__)


@dataclass
class TeamAllocation:
    """Ledger view of one team."""
    team_id: str
    team_name: str
    total_capacity: int
    allocated_capacity: int
    available_capacity: int
    utilization_percentage: float
    assignments: List[TeamAssignmentModel] = field(default_factory=list)


class AssignmentManager:
    """
    Service layer for teams, members and team-initiative assignments.

    This service ensures that:
    1. Ledger counters only change through atomic repository increments
    2. Each operation commits its own transaction
    3. Conflict detection never blocks or undoes an assignment
    """

    MIN_ALLOCATION = 0
    MAX_ALLOCATION = 100

    def __init__(
        self,
        team_repo: Optional[TeamRepository] = None,
        member_repo: Optional[TeamMemberRepository] = None,
        assignment_repo: Optional[AssignmentRepository] = None,
        initiative_repo: Optional[InitiativeRepository] = None,
        detector: Optional[ConflictDetector] = None,
    ):
        self.team_repo = team_repo or TeamRepository()
        self.member_repo = member_repo or TeamMemberRepository()
        self.assignment_repo = assignment_repo or AssignmentRepository()
        self.initiative_repo = initiative_repo or InitiativeRepository()
        self.detector = detector or ConflictDetector(self.team_repo, self.assignment_repo)

    # --- Teams ---

    def create_team(self, session: Session, team: TeamModel) -> TeamModel:
        """Create a team. Workload and member count always start at zero."""
        if team.capacity is not None and team.capacity < 0:
            raise ValidationError("Team capacity must not be negative")

        team.id = team.id or str(uuid.uuid4())
        team.current_workload = 0
        team.member_count = 0
        created = self.team_repo.create(session, team)
        session.commit()

        logger.info(f"Created team {created.id} with capacity {created.capacity}")
        return created

    def get_team(self, session: Session, team_id: str) -> TeamModel:
        team = self.team_repo.get(session, team_id)
        if not team:
            raise NotFoundError("Team", team_id)
        return team

    def list_teams(self, session: Session, limit: int = 100, offset: int = 0) -> List[TeamModel]:
        return self.team_repo.list(session, limit, offset)

    def update_team(self, session: Session, team_id: str, updates: Dict[str, Any]) -> TeamModel:
        """Update descriptive fields. Ledger counters in `updates` are ignored."""
        team = self.team_repo.update(session, team_id, updates)
        if not team:
            raise NotFoundError("Team", team_id)
        session.commit()
        return team

    def delete_team(self, session: Session, team_id: str) -> None:
        """Delete a team together with its members and assignments."""
        if not self.team_repo.delete(session, team_id):
            raise NotFoundError("Team", team_id)
        session.commit()
        logger.info(f"Deleted team {team_id}")

    def list_members(self, session: Session, team_id: str) -> List[TeamMemberModel]:
        self.get_team(session, team_id)
        return self.member_repo.list_by_team(session, team_id)

    # --- Members ---

    def add_member(self, session: Session, member: TeamMemberModel) -> TeamMemberModel:
        """
        Add a member and grow the owning team's capacity by the member's capacity.

        Args:
            session: Database session
            member: Member to create (team_id must reference an existing team)

        Returns:
            Created member
        """
        self._validate_member_capacity(member.capacity)
        self.get_team(session, member.team_id)

        member.id = member.id or str(uuid.uuid4())
        created = self.member_repo.create(session, member)
        self.team_repo.adjust_counters(
            session, member.team_id, capacity=created.capacity, member_count=1
        )
        session.commit()

        logger.info(f"Added member {created.id} to team {created.team_id} (+{created.capacity} capacity)")
        return created

    def remove_member(self, session: Session, member_id: str) -> None:
        """Remove a member and shrink the owning team's capacity accordingly."""
        member = self.member_repo.get(session, member_id)
        if not member:
            raise NotFoundError("Team member", member_id)

        team_id, capacity = member.team_id, member.capacity
        self.team_repo.adjust_counters(session, team_id, capacity=-capacity, member_count=-1)
        self.member_repo.delete(session, member_id)
        session.commit()

        logger.info(f"Removed member {member_id} from team {team_id} (-{capacity} capacity)")

    def update_member_capacity(self, session: Session, member_id: str, new_capacity: int) -> TeamMemberModel:
        """Change a member's capacity; the team's capacity moves by the difference."""
        member = self.member_repo.get(session, member_id)
        if not member:
            raise NotFoundError("Team member", member_id)

        self._change_member_capacity(session, member, new_capacity)
        session.commit()
        return member

    def update_member(self, session: Session, member_id: str, updates: Dict[str, Any]) -> TeamMemberModel:
        """Update member fields, routing a capacity change through the ledger."""
        member = self.member_repo.get(session, member_id)
        if not member:
            raise NotFoundError("Team member", member_id)

        updates = dict(updates)
        new_capacity = updates.pop("capacity", None)
        if new_capacity is not None:
            self._change_member_capacity(session, member, new_capacity)

        self.member_repo.update(session, member_id, updates)
        session.commit()
        return member

    def _change_member_capacity(self, session: Session, member: TeamMemberModel, new_capacity: int) -> None:
        self._validate_member_capacity(new_capacity)
        difference = new_capacity - member.capacity
        if difference:
            self.team_repo.adjust_counters(session, member.team_id, capacity=difference)
            member.capacity = new_capacity
            session.flush()

    def _validate_member_capacity(self, capacity: Optional[int]) -> None:
        if capacity is not None and capacity < 0:
            raise ValidationError("Member capacity must not be negative")

    # --- Assignments ---

    def assign(
        self,
        session: Session,
        initiative_id: str,
        team_id: str,
        allocated_capacity: int,
        start_date: date,
        end_date: date,
        role: AssignmentRole = AssignmentRole.PRIMARY,
    ) -> TeamAssignmentModel:
        """
        Assign a team to an initiative and commit the allocation to its workload.

        Args:
            session: Database session
            initiative_id: Initiative receiving the team
            team_id: Team being assigned
            allocated_capacity: Capacity units committed, within [0, 100]
            start_date: First day of the assignment
            end_date: Last day of the assignment
            role: Primary or supporting team

        Returns:
            Created assignment

        Raises:
            ValidationError: Allocation outside [0, 100] or end before start
            NotFoundError: Initiative or team does not exist
            DuplicateError: The team is already assigned to the initiative
        """
        if not self.MIN_ALLOCATION <= allocated_capacity <= self.MAX_ALLOCATION:
            raise ValidationError(
                f"allocated_capacity must be between {self.MIN_ALLOCATION} and {self.MAX_ALLOCATION}"
            )
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        if not self.initiative_repo.get(session, initiative_id):
            raise NotFoundError("Initiative", initiative_id)
        if not self.team_repo.get(session, team_id):
            raise NotFoundError("Team", team_id)
        if self.assignment_repo.get_by_pair(session, initiative_id, team_id):
            raise DuplicateError("Team is already assigned to this initiative")

        assignment = TeamAssignmentModel(
            id=str(uuid.uuid4()),
            initiative_id=initiative_id,
            team_id=team_id,
            allocated_capacity=allocated_capacity,
            start_date=start_date,
            end_date=end_date,
            role=role,
        )
        try:
            self.assignment_repo.create(session, assignment)
        except IntegrityError:
            # Lost the race against a concurrent assign for the same pair
            session.rollback()
            raise DuplicateError("Team is already assigned to this initiative")

        self.team_repo.adjust_counters(session, team_id, current_workload=allocated_capacity)
        session.commit()

        logger.info(
            f"Assigned team {team_id} to initiative {initiative_id} "
            f"(+{allocated_capacity} workload)"
        )

        self._detect_conflicts(session, team_id, start_date, end_date)
        return assignment

    def unassign(self, session: Session, initiative_id: str, team_id: str) -> None:
        """
        Remove an assignment and release its allocation from the team's workload.

        The workload is floored at zero.

        Raises:
            NotFoundError: No assignment exists for the pair
        """
        assignment = self.assignment_repo.get_by_pair(session, initiative_id, team_id)
        if not assignment:
            raise NotFoundError("Assignment", f"{initiative_id}/{team_id}")

        released = assignment.allocated_capacity
        self.team_repo.release_workload(session, team_id, released)
        self.assignment_repo.delete(session, assignment.id)
        session.commit()

        logger.info(
            f"Unassigned team {team_id} from initiative {initiative_id} (-{released} workload)"
        )

    def get_resource_allocation(self, session: Session) -> List[TeamAllocation]:
        """Per-team ledger snapshot with the assignments behind it."""
        allocations = []
        for team in self.team_repo.list_all(session):
            total = team.capacity
            allocated = team.current_workload
            allocations.append(TeamAllocation(
                team_id=team.id,
                team_name=team.name,
                total_capacity=total,
                allocated_capacity=allocated,
                available_capacity=max(0, total - allocated),
                utilization_percentage=(allocated / total) * 100 if total > 0 else 0.0,
                assignments=self.assignment_repo.list_by_team(session, team.id),
            ))
        return allocations

    def _detect_conflicts(self, session: Session, team_id: str, start_date: date, end_date: date) -> None:
        try:
            self.detector.detect(session, team_id, start_date, end_date)
        except Exception as e:
            logger.error(f"Conflict detection failed for team {team_id}", exc_info=e)
