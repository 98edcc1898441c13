"""
Tests for the Conflict Detector scheduler.
"""

import pytest
from datetime import date
from unittest.mock import MagicMock

from orgplan.schedulers.conflict_detector import ConflictDetector
from orgplan.storage.models import (
    ConflictSeverity,
    ConflictType,
    ResourceConflictModel,
    TeamAssignmentModel,
    TeamModel,
)


@pytest.fixture
def detector():
    return ConflictDetector()


def _team(capacity=100, workload=0):
    return TeamModel(id="team_core", name="Core", capacity=capacity, current_workload=workload)


class TestAssess:

    @pytest.mark.parametrize("workload, severity, amount, percentage", [
        (130, ConflictSeverity.HIGH, 30, 30),
        (121, ConflictSeverity.HIGH, 21, 21),
        (120, ConflictSeverity.MEDIUM, 20, 20),
        (115, ConflictSeverity.MEDIUM, 15, 15),
        (110, ConflictSeverity.LOW, 10, 10),
        (108, ConflictSeverity.LOW, 8, 8),
    ])
    def test_severity_thresholds(self, detector, workload, severity, amount, percentage):
        finding = detector.assess(_team(workload=workload))

        assert finding.severity == severity
        assert finding.overallocated_amount == amount
        assert finding.overallocation_percentage == percentage

    def test_no_finding_within_capacity(self, detector):
        assert detector.assess(_team(workload=100)) is None
        assert detector.assess(_team(workload=0)) is None

    def test_percentage_rounds_half_up(self, detector):
        # 1/8 = 12.5% rounds to 13
        finding = detector.assess(_team(capacity=8, workload=9))
        assert finding.overallocation_percentage == 13
        assert finding.severity == ConflictSeverity.MEDIUM

    def test_zero_capacity_is_high_without_percentage(self, detector):
        finding = detector.assess(_team(capacity=0, workload=5))

        assert finding.severity == ConflictSeverity.HIGH
        assert finding.overallocation_percentage is None
        assert "has no capacity" in finding.description

    def test_hypothetical_load(self, detector):
        team = _team(workload=10)
        finding = detector.assess(team, workload=150, capacity=100)

        assert finding.overallocated_amount == 50
        assert finding.description == "Team Core is overallocated by 50% (50 capacity units)"


class TestDetect:

    def _seed(self, session, make_team, make_initiative, workload):
        make_team("team_core", capacity=100, current_workload=workload, name="Core")
        make_initiative("init_1")
        make_initiative("init_2")
        session.add_all([
            TeamAssignmentModel(id="a1", initiative_id="init_1", team_id="team_core", allocated_capacity=70,
                                start_date=date(2026, 1, 1), end_date=date(2026, 1, 31)),
            TeamAssignmentModel(id="a2", initiative_id="init_2", team_id="team_core", allocated_capacity=60,
                                start_date=date(2026, 6, 1), end_date=date(2026, 6, 30)),
        ])
        session.commit()

    def test_records_overallocation(self, session, detector, make_team, make_initiative):
        self._seed(session, make_team, make_initiative, workload=130)

        conflicts = detector.detect(session, "team_core", date(2026, 1, 1), date(2026, 1, 31))

        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.type == ConflictType.OVERALLOCATION
        assert conflict.severity == ConflictSeverity.HIGH
        assert conflict.affected_teams == ["team_core"]
        # The window does not filter: both assignments are listed
        assert sorted(conflict.affected_initiatives) == ["init_1", "init_2"]
        assert "30 capacity units" in conflict.description
        assert conflict.suggested_resolution == ConflictDetector.SUGGESTED_RESOLUTION
        assert session.query(ResourceConflictModel).count() == 1

    def test_repeated_detection_appends(self, session, detector, make_team, make_initiative):
        self._seed(session, make_team, make_initiative, workload=115)

        detector.detect(session, "team_core")
        detector.detect(session, "team_core")

        conflicts = detector.list_conflicts(session)
        assert len(conflicts) == 2
        assert all(c.severity == ConflictSeverity.MEDIUM for c in conflicts)

    def test_no_conflict_within_capacity(self, session, detector, make_team, make_initiative):
        self._seed(session, make_team, make_initiative, workload=90)

        assert detector.detect(session, "team_core") == []
        assert detector.list_conflicts(session) == []

    def test_missing_team(self, session, detector):
        assert detector.detect(session, "team_missing") == []

    def test_failure_is_swallowed_and_rolled_back(self):
        team_repo = MagicMock()
        team_repo.get.return_value = _team(workload=130)
        conflict_repo = MagicMock()
        conflict_repo.create.side_effect = RuntimeError("insert failed")
        session = MagicMock()

        detector = ConflictDetector(team_repo=team_repo, assignment_repo=MagicMock(), conflict_repo=conflict_repo)

        assert detector.detect(session, "team_core") == []
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_list_conflicts_filters(self, session, detector, make_team, make_initiative):
        self._seed(session, make_team, make_initiative, workload=130)
        detector.detect(session, "team_core")

        assert len(detector.list_conflicts(session, severity=ConflictSeverity.HIGH)) == 1
        assert detector.list_conflicts(session, severity=ConflictSeverity.LOW) == []
        assert detector.list_conflicts(session, conflict_type=ConflictType.TIMELINE_CONFLICT) == []
