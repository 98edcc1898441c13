"""
Tests for the Timeline Analyzer scheduler.
"""

import pytest
from datetime import date, timedelta

from orgplan.schedulers.timeline_analyzer import RiskFactor, RiskImpact, TimelineAnalyzer
from orgplan.storage.models import Priority, RoadmapItemModel, RoadmapStatus, TeamAssignmentModel


def _item(id, dependencies=0, status=RoadmapStatus.PLANNED, start=date(2026, 1, 1), days=60, effort=0,
          initiative_id=None):
    return RoadmapItemModel(
        id=id,
        initiative_id=initiative_id or f"init_{id}",
        initiative_name=f"Initiative {id}",
        start_date=start,
        end_date=start + timedelta(days=days),
        status=status,
        priority=Priority.MEDIUM,
        dependencies=[f"dep_{n}" for n in range(dependencies)],
        estimated_effort=effort,
    )


@pytest.fixture
def analyzer():
    return TimelineAnalyzer()


class TestSummarize:

    def test_empty_roadmap(self, analyzer):
        analysis = analyzer.summarize([])

        assert analysis.total_initiatives == 0
        assert analysis.overall_progress == 0
        assert analysis.critical_path == []
        assert analysis.risky_items == []

    def test_status_counts_and_progress(self, analyzer):
        items = [
            _item("a", status=RoadmapStatus.COMPLETED),
            _item("b", status=RoadmapStatus.COMPLETED),
            _item("c", status=RoadmapStatus.IN_PROGRESS),
            _item("d", status=RoadmapStatus.ON_HOLD),
            _item("e"),
        ]
        analysis = analyzer.summarize(items)

        assert analysis.total_initiatives == 5
        assert analysis.completed_initiatives == 2
        assert analysis.in_progress_initiatives == 1
        assert analysis.planned_initiatives == 1
        assert analysis.on_hold_initiatives == 1
        assert analysis.overall_progress == 40.0

    def test_critical_path_is_stable_dependency_ranking(self, analyzer):
        counts = [5, 3, 3, 1, 0, 0]
        items = [_item(f"item_{i}", dependencies=n) for i, n in enumerate(counts)]

        critical_path = analyzer.summarize(items).critical_path

        assert [i.id for i in critical_path] == ["item_0", "item_1", "item_2", "item_3", "item_4"]

    def test_critical_path_size_is_configurable(self):
        analyzer = TimelineAnalyzer(critical_path_size=2)
        items = [_item("x", dependencies=1), _item("y", dependencies=4), _item("z", dependencies=4)]

        assert [i.id for i in analyzer.rank_by_dependencies(items)] == ["y", "z"]

    def test_critical_path_size_zero_is_respected(self):
        analyzer = TimelineAnalyzer(critical_path_size=0)

        assert analyzer.summarize([_item("x", dependencies=2)]).critical_path == []


class TestRisk:

    def test_two_factors_is_high(self, analyzer):
        assessment = analyzer.assess_risk(_item("r", dependencies=4, days=10, effort=60))

        assert assessment.risk_factors == [RiskFactor.TIGHT_TIMELINE, RiskFactor.HIGH_DEPENDENCIES]
        assert assessment.impact == RiskImpact.HIGH

    @pytest.mark.parametrize("kwargs, factor", [
        ({"days": 13, "effort": 51}, RiskFactor.TIGHT_TIMELINE),
        ({"dependencies": 4}, RiskFactor.HIGH_DEPENDENCIES),
    ])
    def test_one_factor_is_medium(self, analyzer, kwargs, factor):
        assessment = analyzer.assess_risk(_item("r", **kwargs))

        assert assessment.risk_factors == [factor]
        assert assessment.impact == RiskImpact.MEDIUM

    @pytest.mark.parametrize("kwargs", [
        {"days": 14, "effort": 100},
        {"days": 5, "effort": 50},
        {"dependencies": 3},
    ])
    def test_boundaries_are_not_risky(self, analyzer, kwargs):
        assessment = analyzer.assess_risk(_item("r", **kwargs))

        assert assessment.risk_factors == []
        assert assessment.impact == RiskImpact.LOW

    def test_only_risky_items_are_reported(self, analyzer):
        analysis = analyzer.summarize([_item("safe"), _item("risky", dependencies=6)])

        assert [r.item.id for r in analysis.risky_items] == ["risky"]


class TestAnalyze:

    def test_filters_by_team_and_dates(self, session, analyzer, make_team, make_initiative):
        make_team("team_a")
        make_team("team_b")
        for initiative_id in ("init_1", "init_2", "init_3"):
            make_initiative(initiative_id)
        session.add_all([
            _item("r1", initiative_id="init_1", start=date(2026, 1, 1), status=RoadmapStatus.COMPLETED),
            _item("r2", initiative_id="init_2", start=date(2026, 2, 1)),
            _item("r3", initiative_id="init_3", start=date(2026, 3, 1)),
            TeamAssignmentModel(id="a1", initiative_id="init_1", team_id="team_a", allocated_capacity=10,
                                start_date=date(2026, 1, 1), end_date=date(2026, 2, 1)),
            TeamAssignmentModel(id="a2", initiative_id="init_3", team_id="team_a", allocated_capacity=10,
                                start_date=date(2026, 3, 1), end_date=date(2026, 4, 1)),
            TeamAssignmentModel(id="a3", initiative_id="init_2", team_id="team_b", allocated_capacity=10,
                                start_date=date(2026, 2, 1), end_date=date(2026, 3, 1)),
        ])
        session.commit()

        analysis = analyzer.analyze(session, team_ids=["team_a"])
        assert analysis.total_initiatives == 2
        assert analysis.overall_progress == 50.0

        analysis = analyzer.analyze(session, start_date=date(2026, 2, 1))
        assert [i.id for i in analysis.critical_path] == ["r2", "r3"]

        analysis = analyzer.analyze(session, team_ids=["team_without_work"])
        assert analysis.total_initiatives == 0
