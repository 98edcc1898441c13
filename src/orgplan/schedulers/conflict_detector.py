"""
Conflict Detector Scheduler

Inspects a team's capacity ledger and records resource conflicts.

Conflict Types:
- Overallocation (current workload > capacity)
- Skill gap (declared, not detected)
- Timeline conflict (declared, not detected)

Every detection that finds an overallocated team appends a new row to the
conflict audit log. Rows are never deduplicated, updated, or resolved, so
running detection twice on an unchanged team records the finding twice.

Usage:
    detector = ConflictDetector()

    # Check one team after its workload changed
    conflicts = detector.detect(session, team_id, start_date, end_date)

    # Evaluate a hypothetical load without persisting anything
    finding = detector.assess(team, workload=130)

    # Read the audit log
    conflicts = detector.list_conflicts(session, severity=ConflictSeverity.HIGH)
"""

import math
import uuid
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from orgplan.storage.models import (
    ConflictSeverity,
    ConflictType,
    ResourceConflictModel,
    TeamModel,
)
from orgplan.storage.repositories.conflict_repository import ConflictRepository
from .base import SchedulerBase


@dataclass
class OverallocationFinding:
    """An overallocated team, before it is written to the audit log."""
    team_id: str
    team_name: str
    capacity: int
    workload: int
    overallocated_amount: int
    # None when the team has no capacity at all
    overallocation_percentage: Optional[int]
    severity: ConflictSeverity

    @property
    def description(self) -> str:
        if self.overallocation_percentage is None:
            return (
                f"Team {self.team_name} has no capacity but "
                f"{self.overallocated_amount} capacity units committed"
            )
        return (
            f"Team {self.team_name} is overallocated by "
            f"{self.overallocation_percentage}% ({self.overallocated_amount} capacity units)"
        )


class ConflictDetector(SchedulerBase):
    """
    Detects overallocated teams and records them as resource conflicts.

    Detection is a best-effort side channel of the write path: any failure
    is logged and yields an empty result, and never reaches the caller.
    """

    # Severity thresholds on the overallocation percentage
    HIGH_SEVERITY_THRESHOLD = 20
    MEDIUM_SEVERITY_THRESHOLD = 10

    SUGGESTED_RESOLUTION = "Reduce allocation or extend timelines for some initiatives"

    def __init__(self, team_repo=None, assignment_repo=None, conflict_repo: Optional[ConflictRepository] = None):
        super().__init__(team_repo, assignment_repo)
        self.conflict_repo = conflict_repo or ConflictRepository()

    def run(
        self,
        session: Session,
        team_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ResourceConflictModel]:
        return self.detect(session, team_id, start_date, end_date)

    def detect(
        self,
        session: Session,
        team_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ResourceConflictModel]:
        """
        Check one team for overallocation and record any finding.

        The date window is accepted for interface compatibility but does not
        filter anything: the check uses the team's whole current workload and
        lists every initiative assigned to it.

        Args:
            session: Database session (committed on success, rolled back on failure)
            team_id: Team to inspect
            start_date: Start of the window that triggered the check
            end_date: End of the window that triggered the check

        Returns:
            The conflicts recorded by this call (empty if none or on failure)
        """
        try:
            team = self.team_repo.get(session, team_id)
            if not team:
                return []

            finding = self.assess(team)
            if finding is None:
                return []

            assignments = self.assignment_repo.list_by_team(session, team_id)

            conflict = ResourceConflictModel(
                id=str(uuid.uuid4()),
                type=ConflictType.OVERALLOCATION,
                severity=finding.severity,
                description=finding.description,
                affected_teams=[team.id],
                affected_initiatives=[a.initiative_id for a in assignments],
                suggested_resolution=self.SUGGESTED_RESOLUTION,
                detected_at=self.now(),
            )
            self.conflict_repo.create(session, conflict)
            session.commit()

            self.logger.warning(
                f"Recorded {finding.severity.value} overallocation for team {team_id}: "
                f"{finding.workload}/{finding.capacity}"
            )
            return [conflict]

        except Exception as e:
            self.logger.error(f"Error detecting resource conflicts for team {team_id}: {e}", exc_info=e)
            session.rollback()
            return []

    def assess(
        self,
        team: TeamModel,
        workload: Optional[int] = None,
        capacity: Optional[int] = None,
    ) -> Optional[OverallocationFinding]:
        """
        Evaluate the overallocation rule without touching the database.

        Args:
            team: Team being evaluated
            workload: Workload to evaluate (defaults to team.current_workload)
            capacity: Capacity to evaluate (defaults to team.capacity)

        Returns:
            An OverallocationFinding, or None if workload fits capacity
        """
        workload = team.current_workload if workload is None else workload
        capacity = team.capacity if capacity is None else capacity

        if workload <= capacity:
            return None

        overallocated_amount = workload - capacity
        if capacity > 0:
            # Half-up rounding
            percentage = math.floor(overallocated_amount / capacity * 100 + 0.5)
            severity = self.classify_severity(percentage)
        else:
            percentage = None
            severity = ConflictSeverity.HIGH

        return OverallocationFinding(
            team_id=team.id,
            team_name=team.name,
            capacity=capacity,
            workload=workload,
            overallocated_amount=overallocated_amount,
            overallocation_percentage=percentage,
            severity=severity,
        )

    def classify_severity(self, overallocation_percentage: int) -> ConflictSeverity:
        if overallocation_percentage > self.HIGH_SEVERITY_THRESHOLD:
            return ConflictSeverity.HIGH
        if overallocation_percentage > self.MEDIUM_SEVERITY_THRESHOLD:
            return ConflictSeverity.MEDIUM
        return ConflictSeverity.LOW

    def list_conflicts(
        self,
        session: Session,
        severity: Optional[ConflictSeverity] = None,
        conflict_type: Optional[ConflictType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ResourceConflictModel]:
        """Recorded conflicts, most recently detected first."""
        return self.conflict_repo.list_filtered(
            session,
            severity=severity,
            conflict_type=conflict_type,
            limit=limit,
            offset=offset,
        )
