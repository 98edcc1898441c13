import pytest
from datetime import date
from unittest.mock import MagicMock, patch

from orgplan.engine.assignment_manager import AssignmentManager
from orgplan.engine.errors import DuplicateError, NotFoundError, ValidationError
from orgplan.schedulers.conflict_detector import ConflictDetector
from orgplan.storage.models import (
    AssignmentRole,
    ConflictSeverity,
    ResourceConflictModel,
    TeamAssignmentModel,
    TeamMemberModel,
    TeamModel,
)

START, END = date(2026, 1, 5), date(2026, 3, 27)


@pytest.fixture
def manager():
    return AssignmentManager()


@pytest.fixture
def setup(session, make_team, make_initiative):
    make_team("team_core", capacity=100)
    for initiative_id in ("init_1", "init_2", "init_3", "init_4"):
        make_initiative(initiative_id)


def _assigned_total(session, team_id):
    return sum(
        a.allocated_capacity
        for a in session.query(TeamAssignmentModel).filter_by(team_id=team_id).all()
    )


class TestAssign:

    def test_assign_increments_workload(self, session, manager, setup):
        assignment = manager.assign(session, "init_1", "team_core", 40, START, END, AssignmentRole.SUPPORTING)

        assert assignment.allocated_capacity == 40
        assert assignment.role == AssignmentRole.SUPPORTING
        assert manager.get_team(session, "team_core").current_workload == 40

    def test_workload_tracks_allocations_over_a_sequence(self, session, manager, setup):
        manager.assign(session, "init_1", "team_core", 40, START, END)
        manager.assign(session, "init_2", "team_core", 35, START, END)
        manager.unassign(session, "init_1", "team_core")
        manager.assign(session, "init_3", "team_core", 50, START, END)
        manager.assign(session, "init_1", "team_core", 10, START, END)
        manager.unassign(session, "init_2", "team_core")
        manager.assign(session, "init_4", "team_core", 0, START, END)

        team = manager.get_team(session, "team_core")
        assert team.current_workload == 60
        assert team.current_workload == _assigned_total(session, "team_core")

    def test_duplicate_pair_is_rejected(self, session, manager, setup):
        manager.assign(session, "init_1", "team_core", 40, START, END)

        with pytest.raises(DuplicateError):
            manager.assign(session, "init_1", "team_core", 20, START, END)

        assert manager.get_team(session, "team_core").current_workload == 40

    def test_duplicate_detected_by_unique_constraint(self, session, manager, setup):
        manager.assign(session, "init_1", "team_core", 40, START, END)

        # Simulate a concurrent writer that passed the pre-check
        with patch.object(manager.assignment_repo, "get_by_pair", return_value=None):
            with pytest.raises(DuplicateError):
                manager.assign(session, "init_1", "team_core", 20, START, END)

        assert manager.get_team(session, "team_core").current_workload == 40
        assert _assigned_total(session, "team_core") == 40

    @pytest.mark.parametrize("allocation", [-1, 101])
    def test_allocation_outside_range_is_rejected(self, session, manager, setup, allocation):
        with pytest.raises(ValidationError):
            manager.assign(session, "init_1", "team_core", allocation, START, END)

    def test_end_before_start_is_rejected(self, session, manager, setup):
        with pytest.raises(ValidationError):
            manager.assign(session, "init_1", "team_core", 10, END, START)

    def test_missing_initiative_or_team(self, session, manager, setup):
        with pytest.raises(NotFoundError, match="Initiative"):
            manager.assign(session, "init_missing", "team_core", 10, START, END)
        with pytest.raises(NotFoundError, match="Team"):
            manager.assign(session, "init_1", "team_missing", 10, START, END)

    def test_overallocation_is_recorded(self, session, manager, setup, make_team):
        make_team("team_small", capacity=50)
        manager.assign(session, "init_1", "team_small", 40, START, END)
        manager.assign(session, "init_2", "team_small", 25, START, END)

        conflicts = session.query(ResourceConflictModel).all()
        assert len(conflicts) == 1
        assert conflicts[0].severity == ConflictSeverity.HIGH
        assert conflicts[0].affected_teams == ["team_small"]
        assert sorted(conflicts[0].affected_initiatives) == ["init_1", "init_2"]

    def test_detector_failure_does_not_undo_assignment(self, session, setup):
        detector = MagicMock(spec=ConflictDetector)
        detector.detect.side_effect = RuntimeError("detector down")
        manager = AssignmentManager(detector=detector)

        assignment = manager.assign(session, "init_1", "team_core", 70, START, END)

        assert assignment.id
        detector.detect.assert_called_once_with(session, "team_core", START, END)
        session.expire_all()
        assert manager.get_team(session, "team_core").current_workload == 70


class TestUnassign:

    def test_unassign_releases_allocation(self, session, manager, setup):
        manager.assign(session, "init_1", "team_core", 40, START, END)
        manager.unassign(session, "init_1", "team_core")

        assert manager.get_team(session, "team_core").current_workload == 0
        assert manager.assignment_repo.get_by_pair(session, "init_1", "team_core") is None

    def test_unassign_never_goes_below_zero(self, session, manager, setup):
        manager.assign(session, "init_1", "team_core", 40, START, END)
        # Counter drifted below the allocation (e.g. edited out of band)
        manager.team_repo.adjust_counters(session, "team_core", current_workload=-30)
        session.commit()

        manager.unassign(session, "init_1", "team_core")
        assert manager.get_team(session, "team_core").current_workload == 0

    def test_unassign_missing_pair(self, session, manager, setup):
        with pytest.raises(NotFoundError):
            manager.unassign(session, "init_1", "team_core")


class TestMembers:

    def test_adding_then_removing_members_restores_capacity(self, session, manager, setup):
        capacities = [40, 60, 25, 0, 100]
        members = [
            manager.add_member(session, TeamMemberModel(team_id="team_core", name=f"Member {i}", capacity=c))
            for i, c in enumerate(capacities)
        ]

        team = manager.get_team(session, "team_core")
        assert team.capacity == 100 + sum(capacities)
        assert team.member_count == len(capacities)

        for member in members:
            manager.remove_member(session, member.id)

        team = manager.get_team(session, "team_core")
        assert team.capacity == 100
        assert team.member_count == 0

    def test_update_member_capacity_moves_team_capacity(self, session, manager, setup):
        member = manager.add_member(session, TeamMemberModel(team_id="team_core", name="Ana", capacity=40))

        manager.update_member_capacity(session, member.id, 70)
        assert manager.get_team(session, "team_core").capacity == 170

        manager.update_member(session, member.id, {"capacity": 20, "email": "ana@example.com"})
        team = manager.get_team(session, "team_core")
        assert team.capacity == 120
        assert member.capacity == 20
        assert member.email == "ana@example.com"

    def test_negative_member_capacity_is_rejected(self, session, manager, setup):
        with pytest.raises(ValidationError):
            manager.add_member(session, TeamMemberModel(team_id="team_core", name="Ana", capacity=-5))

        member = manager.add_member(session, TeamMemberModel(team_id="team_core", name="Ana", capacity=10))
        with pytest.raises(ValidationError):
            manager.update_member_capacity(session, member.id, -1)

    def test_member_not_found(self, session, manager, setup):
        with pytest.raises(NotFoundError):
            manager.add_member(session, TeamMemberModel(team_id="team_missing", name="Ana", capacity=10))
        with pytest.raises(NotFoundError):
            manager.remove_member(session, "member_missing")
        with pytest.raises(NotFoundError):
            manager.update_member_capacity(session, "member_missing", 10)


class TestTeams:

    def test_team_crud(self, session, manager):
        team = manager.create_team(session, TeamModel(name="Platform", capacity=80, current_workload=55))
        assert team.id
        assert team.current_workload == 0
        assert team.member_count == 0

        updated = manager.update_team(session, team.id, {"description": "Infra", "capacity": 5})
        assert updated.description == "Infra"
        assert updated.capacity == 80

        assert [t.id for t in manager.list_teams(session)] == [team.id]

        manager.delete_team(session, team.id)
        with pytest.raises(NotFoundError):
            manager.get_team(session, team.id)
        with pytest.raises(NotFoundError):
            manager.delete_team(session, team.id)

    def test_delete_team_removes_members_and_assignments(self, session, manager, setup):
        manager.add_member(session, TeamMemberModel(team_id="team_core", name="Ana", capacity=10))
        manager.assign(session, "init_1", "team_core", 30, START, END)

        manager.delete_team(session, "team_core")

        assert session.query(TeamMemberModel).count() == 0
        assert session.query(TeamAssignmentModel).count() == 0

    def test_resource_allocation(self, session, manager, setup, make_team):
        make_team("team_empty", capacity=0)
        manager.assign(session, "init_1", "team_core", 30, START, END)
        manager.assign(session, "init_2", "team_core", 45, START, END)

        allocations = {a.team_id: a for a in manager.get_resource_allocation(session)}

        core = allocations["team_core"]
        assert core.total_capacity == 100
        assert core.allocated_capacity == 75
        assert core.available_capacity == 25
        assert core.utilization_percentage == 75.0
        assert len(core.assignments) == 2

        empty = allocations["team_empty"]
        assert empty.utilization_percentage == 0.0
        assert empty.available_capacity == 0
