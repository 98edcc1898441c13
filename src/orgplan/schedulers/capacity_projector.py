"""
Capacity Projector Scheduler

Projects team capacity forward in weekly buckets and turns the projected
overallocations into recommendations.

A bucket starts on `start_date + 7k` and covers seven days. An assignment
counts toward every bucket its [start_date, end_date] intersects.

Usage:
    projector = CapacityProjector()
    projection = projector.project(session, date(2026, 3, 2), date(2026, 4, 27))
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy.orm import Session

from orgplan.engine.errors import ValidationError
from orgplan.storage.models import ConflictSeverity, TeamAssignmentModel, TeamModel
from .base import SchedulerBase
from .conflict_detector import ConflictDetector


class RecommendationType(str, Enum):
    REBALANCE = "rebalance"
    ADDITIONAL_RESOURCES = "additional_resources"
    UNDERUTILIZED = "underutilized"


@dataclass
class TeamWeekLoad:
    team_id: str
    team_name: str
    capacity: int
    allocated: int
    available: int
    utilization: float


@dataclass
class WeeklyCapacity:
    week_start: date
    week_end: date
    total_capacity: int
    allocated_capacity: int
    available_capacity: int
    utilization_rate: float
    teams: List[TeamWeekLoad] = field(default_factory=list)

    def team(self, team_id: str) -> Optional[TeamWeekLoad]:
        return next((load for load in self.teams if load.team_id == team_id), None)


@dataclass
class CapacityRecommendation:
    type: RecommendationType
    team_id: str
    description: str
    impact: str
    severity: Optional[ConflictSeverity] = None
    week_start: Optional[date] = None


@dataclass
class CapacityProjection:
    start_date: date
    end_date: date
    timeline: List[WeeklyCapacity]
    recommendations: List[CapacityRecommendation]


class CapacityProjector(SchedulerBase):
    """
    Weekly capacity projection over live team assignments.

    Recommendations come from running the Conflict Detector's overallocation
    rule on each team's projected weekly load.
    """

    WEEK = timedelta(days=7)
    UNDERUTILIZATION_THRESHOLD = 0.5
    DEFAULT_MAX_WEEKS = 52

    def __init__(
        self,
        team_repo=None,
        assignment_repo=None,
        detector: Optional[ConflictDetector] = None,
        max_weeks: Optional[int] = None,
    ):
        super().__init__(team_repo, assignment_repo)
        self.detector = detector or ConflictDetector(self.team_repo, self.assignment_repo)
        self.max_weeks = max_weeks or self.DEFAULT_MAX_WEEKS

    def run(self, session: Session, start_date: date, end_date: date, team_ids=None) -> CapacityProjection:
        return self.project(session, start_date, end_date, team_ids)

    def project(
        self,
        session: Session,
        start_date: date,
        end_date: date,
        team_ids: Optional[Sequence[str]] = None,
    ) -> CapacityProjection:
        """
        Project capacity week by week.

        Args:
            session: Database session
            start_date: First day of the first bucket
            end_date: Last day a bucket may start on
            team_ids: Optional team filter (all teams when omitted)

        Returns:
            CapacityProjection with the weekly timeline and recommendations

        Raises:
            ValidationError: If the window is inverted or longer than max_weeks
        """
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        week_starts = list(self.week_starts(start_date, end_date))
        if len(week_starts) > self.max_weeks:
            raise ValidationError(
                f"Projection window spans {len(week_starts)} weeks; the maximum is {self.max_weeks}"
            )

        if team_ids:
            teams = self.team_repo.list_by_ids(session, list(team_ids))
        else:
            teams = self.team_repo.list_all(session)

        by_team: Dict[str, List[TeamAssignmentModel]] = defaultdict(list)
        if teams:
            window_end = week_starts[-1] + self.WEEK - timedelta(days=1)
            assignments = self.assignment_repo.list_overlapping(
                session, start_date, window_end, team_ids=[t.id for t in teams]
            )
            for assignment in assignments:
                by_team[assignment.team_id].append(assignment)

        timeline = [self._project_week(week_start, teams, by_team) for week_start in week_starts]
        recommendations = self.recommend(teams, timeline)

        self.logger.info(
            f"Capacity projection complete: {len(timeline)} weeks, {len(teams)} teams, "
            f"{len(recommendations)} recommendations"
        )
        return CapacityProjection(
            start_date=start_date,
            end_date=end_date,
            timeline=timeline,
            recommendations=recommendations,
        )

    def week_starts(self, start_date: date, end_date: date) -> Iterator[date]:
        current = start_date
        while current <= end_date:
            yield current
            current += self.WEEK

    def _project_week(
        self,
        week_start: date,
        teams: Sequence[TeamModel],
        by_team: Dict[str, List[TeamAssignmentModel]],
    ) -> WeeklyCapacity:
        week_end = week_start + self.WEEK - timedelta(days=1)

        loads = []
        for team in teams:
            allocated = sum(
                a.allocated_capacity
                for a in by_team.get(team.id, [])
                if self.ranges_overlap(a.start_date, a.end_date, week_start, week_end)
            )
            capacity = team.capacity
            loads.append(TeamWeekLoad(
                team_id=team.id,
                team_name=team.name,
                capacity=capacity,
                allocated=allocated,
                available=max(0, capacity - allocated),
                utilization=(allocated / capacity) if capacity > 0 else 0.0,
            ))

        total = sum(load.capacity for load in loads)
        allocated_total = sum(load.allocated for load in loads)

        return WeeklyCapacity(
            week_start=week_start,
            week_end=week_end,
            total_capacity=total,
            allocated_capacity=allocated_total,
            available_capacity=max(0, total - allocated_total),
            utilization_rate=(allocated_total / total) if total > 0 else 0.0,
            teams=loads,
        )

    def recommend(
        self,
        teams: Sequence[TeamModel],
        timeline: Sequence[WeeklyCapacity],
    ) -> List[CapacityRecommendation]:
        """
        Derive recommendations from projected overallocations.

        For each team, the week with the largest projected overallocation
        produces either a rebalance toward the team with the most spare
        capacity that week (when that spare covers the excess) or a request
        for additional resources. Teams that never reach the
        underutilization threshold are flagged as having room.
        """
        recommendations = []

        for team in teams:
            worst = None
            peak_utilization = 0.0

            for week in timeline:
                load = week.team(team.id)
                if load is None:
                    continue
                peak_utilization = max(peak_utilization, load.utilization)
                finding = self.detector.assess(team, workload=load.allocated, capacity=load.capacity)
                if finding and (worst is None or finding.overallocated_amount > worst[0].overallocated_amount):
                    worst = (finding, week)

            if worst:
                finding, week = worst
                excess = finding.overallocated_amount
                donor = max(
                    (load for load in week.teams if load.team_id != team.id),
                    key=lambda load: load.available,
                    default=None,
                )
                impact = f"{finding.description} in the week of {week.week_start.isoformat()}"

                if donor and donor.available >= excess:
                    recommendations.append(CapacityRecommendation(
                        type=RecommendationType.REBALANCE,
                        team_id=team.id,
                        description=(
                            f"Move {excess} capacity units of work from {team.name} "
                            f"to {donor.team_name}, which has {donor.available} units available"
                        ),
                        impact=impact,
                        severity=finding.severity,
                        week_start=week.week_start,
                    ))
                else:
                    recommendations.append(CapacityRecommendation(
                        type=RecommendationType.ADDITIONAL_RESOURCES,
                        team_id=team.id,
                        description=(
                            f"{team.name} needs {excess} more capacity units; "
                            f"no other team has enough spare capacity that week"
                        ),
                        impact=impact,
                        severity=finding.severity,
                        week_start=week.week_start,
                    ))

            elif timeline and team.capacity > 0 and peak_utilization < self.UNDERUTILIZATION_THRESHOLD:
                recommendations.append(CapacityRecommendation(
                    type=RecommendationType.UNDERUTILIZED,
                    team_id=team.id,
                    description=f"{team.name} peaks at {peak_utilization:.0%} utilization and can take on more work",
                    impact="Spare capacity available for new or rebalanced initiatives",
                ))

        return recommendations
