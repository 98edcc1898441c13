"""
Timeline Analyzer Scheduler

Aggregates roadmap items into a portfolio timeline report:
- Status counts and overall progress
- A "critical path" proxy: the items with the most dependencies
- Risk classification (tight timelines, heavy dependency fan-in)

The critical path here is a dependency-count ranking. No dependency graph
is built from the id lists and no longest-path search is performed.

Usage:
    analyzer = TimelineAnalyzer()
    analysis = analyzer.analyze(session, team_ids=["team_1"], start_date=date(2026, 1, 1))
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from orgplan.storage.models import RoadmapItemModel, RoadmapStatus
from orgplan.storage.repositories.roadmap_repository import RoadmapItemRepository
from .base import SchedulerBase


class RiskFactor(str, Enum):
    TIGHT_TIMELINE = "tight_timeline"
    HIGH_DEPENDENCIES = "high_dependencies"


class RiskImpact(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class RiskAssessment:
    """Risk factors found on one roadmap item."""
    item: RoadmapItemModel
    risk_factors: List[RiskFactor] = field(default_factory=list)
    impact: RiskImpact = RiskImpact.LOW


@dataclass
class TimelineAnalysis:
    """Result of a timeline analysis run."""
    total_initiatives: int
    completed_initiatives: int
    in_progress_initiatives: int
    planned_initiatives: int
    on_hold_initiatives: int
    overall_progress: float
    # Top items by dependency count (heuristic proxy, not a graph critical path)
    critical_path: List[RoadmapItemModel]
    risky_items: List[RiskAssessment]


class TimelineAnalyzer(SchedulerBase):
    """
    Builds timeline analytics over roadmap items.
    """

    # Risk thresholds
    TIGHT_TIMELINE_MAX_DAYS = 14
    TIGHT_TIMELINE_MIN_EFFORT = 50
    HIGH_DEPENDENCY_COUNT = 3

    CRITICAL_PATH_SIZE = 5

    def __init__(
        self,
        roadmap_repo: Optional[RoadmapItemRepository] = None,
        assignment_repo=None,
        critical_path_size: Optional[int] = None,
    ):
        super().__init__(assignment_repo=assignment_repo)
        self.roadmap_repo = roadmap_repo or RoadmapItemRepository()
        self.critical_path_size = self.CRITICAL_PATH_SIZE if critical_path_size is None else critical_path_size

    def run(self, session: Session, **filters) -> TimelineAnalysis:
        return self.analyze(session, **filters)

    def analyze(
        self,
        session: Session,
        team_ids: Optional[Sequence[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TimelineAnalysis:
        """
        Analyze the roadmap.

        Args:
            session: Database session
            team_ids: Only items whose initiative is assigned to one of these teams
            start_date: Only items starting on or after this date
            end_date: Only items ending on or before this date

        Returns:
            TimelineAnalysis
        """
        items = self.select_items(session, team_ids, start_date, end_date)
        analysis = self.summarize(items)

        self.logger.info(
            f"Timeline analysis complete: {analysis.total_initiatives} items, "
            f"{len(analysis.risky_items)} at risk"
        )
        return analysis

    def select_items(
        self,
        session: Session,
        team_ids: Optional[Sequence[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[RoadmapItemModel]:
        initiative_ids = None
        if team_ids:
            initiative_ids = self.assignment_repo.list_initiative_ids_for_teams(session, list(team_ids))

        return self.roadmap_repo.list_filtered(
            session,
            start_date=start_date,
            end_date=end_date,
            initiative_ids=initiative_ids,
        )

    def summarize(self, items: Sequence[RoadmapItemModel]) -> TimelineAnalysis:
        """Compute the analysis for an already-selected list of items."""
        total = len(items)
        by_status = {status: 0 for status in RoadmapStatus}
        for item in items:
            by_status[RoadmapStatus(item.status)] += 1

        completed = by_status[RoadmapStatus.COMPLETED]
        overall_progress = (completed / total) * 100 if total > 0 else 0.0

        risky_items = []
        for item in items:
            assessment = self.assess_risk(item)
            if assessment.risk_factors:
                risky_items.append(assessment)

        return TimelineAnalysis(
            total_initiatives=total,
            completed_initiatives=completed,
            in_progress_initiatives=by_status[RoadmapStatus.IN_PROGRESS],
            planned_initiatives=by_status[RoadmapStatus.PLANNED],
            on_hold_initiatives=by_status[RoadmapStatus.ON_HOLD],
            overall_progress=overall_progress,
            critical_path=self.rank_by_dependencies(items),
            risky_items=risky_items,
        )

    def rank_by_dependencies(self, items: Sequence[RoadmapItemModel]) -> List[RoadmapItemModel]:
        """Items with the most dependencies first; ties keep their input order."""
        ranked = sorted(items, key=lambda item: len(item.dependencies or []), reverse=True)
        return ranked[:self.critical_path_size]

    def assess_risk(self, item: RoadmapItemModel) -> RiskAssessment:
        risk_factors = []

        duration = self.duration_days(item.start_date, item.end_date)
        if duration < self.TIGHT_TIMELINE_MAX_DAYS and (item.estimated_effort or 0) > self.TIGHT_TIMELINE_MIN_EFFORT:
            risk_factors.append(RiskFactor.TIGHT_TIMELINE)

        if len(item.dependencies or []) > self.HIGH_DEPENDENCY_COUNT:
            risk_factors.append(RiskFactor.HIGH_DEPENDENCIES)

        if len(risk_factors) > 1:
            impact = RiskImpact.HIGH
        elif risk_factors:
            impact = RiskImpact.MEDIUM
        else:
            impact = RiskImpact.LOW

        return RiskAssessment(item=item, risk_factors=risk_factors, impact=impact)
