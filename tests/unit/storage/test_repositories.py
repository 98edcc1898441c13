import pytest
from datetime import date, datetime, timedelta
from sqlalchemy.exc import IntegrityError

from orgplan.storage.models import (
    ConflictSeverity,
    ConflictType,
    InitiativeStatus,
    Priority,
    ResourceConflictModel,
    RoadmapItemModel,
    RoadmapStatus,
    TeamAssignmentModel,
    TeamMemberModel,
)
from orgplan.storage.repositories.assignment_repository import AssignmentRepository
from orgplan.storage.repositories.conflict_repository import ConflictRepository
from orgplan.storage.repositories.roadmap_repository import InitiativeRepository, RoadmapItemRepository
from orgplan.storage.repositories.team_repository import TeamMemberRepository, TeamRepository


def _assignment(id, initiative_id, team_id, allocated=40, start=date(2026, 1, 1), end=date(2026, 1, 31)):
    return TeamAssignmentModel(
        id=id,
        initiative_id=initiative_id,
        team_id=team_id,
        allocated_capacity=allocated,
        start_date=start,
        end_date=end,
    )


def test_team_counters_adjust_atomically(session, make_team):
    repo = TeamRepository()
    make_team("team_core", capacity=100)

    team = repo.adjust_counters(session, "team_core", capacity=20, current_workload=30, member_count=1)
    assert (team.capacity, team.current_workload, team.member_count) == (120, 30, 1)

    team = repo.adjust_counters(session, "team_core", capacity=-20, member_count=-1)
    assert (team.capacity, team.current_workload, team.member_count) == (100, 30, 0)

    assert repo.adjust_counters(session, "missing", current_workload=5) is None


def test_release_workload_floors_at_zero(session, make_team):
    repo = TeamRepository()
    make_team("team_core", current_workload=10)

    team = repo.release_workload(session, "team_core", 40)
    assert team.current_workload == 0

    assert repo.release_workload(session, "missing", 1) is None


def test_list_all_is_not_paginated(session, make_team):
    repo = TeamRepository()
    for n in range(105):
        make_team(f"team_{n:03d}")

    assert len(repo.list(session)) == 100
    teams = repo.list_all(session)
    assert len(teams) == 105
    assert teams[0].id == "team_000"


def test_team_update_ignores_counters(session, make_team):
    repo = TeamRepository()
    make_team("team_core", capacity=100)

    team = repo.update(session, "team_core", {"name": "Core", "capacity": 999, "current_workload": 5})
    assert team.name == "Core"
    assert team.capacity == 100
    assert team.current_workload == 0


def test_member_repository_lists_by_team(session, make_team):
    make_team("team_a")
    make_team("team_b")
    repo = TeamMemberRepository()
    repo.create(session, TeamMemberModel(id="m1", team_id="team_a", name="Zoe", capacity=80))
    repo.create(session, TeamMemberModel(id="m2", team_id="team_a", name="Ana", capacity=60))
    repo.create(session, TeamMemberModel(id="m3", team_id="team_b", name="Bob", capacity=50))

    members = repo.list_by_team(session, "team_a")
    assert [m.name for m in members] == ["Ana", "Zoe"]

    # Capacity is a ledger input and cannot be changed through a plain update
    repo.update(session, "m1", {"capacity": 10, "email": "zoe@example.com"})
    member = repo.get(session, "m1")
    assert member.capacity == 80
    assert member.email == "zoe@example.com"


def test_assignment_pair_is_unique(session, make_team, make_initiative):
    make_team("team_core")
    make_initiative("init_1")
    repo = AssignmentRepository()

    repo.create(session, _assignment("a1", "init_1", "team_core"))
    assert repo.get_by_pair(session, "init_1", "team_core").id == "a1"

    with pytest.raises(IntegrityError):
        repo.create(session, _assignment("a2", "init_1", "team_core"))
    session.rollback()


def test_assignment_overlap_and_team_queries(session, make_team, make_initiative):
    make_team("team_a")
    make_team("team_b")
    for initiative_id in ("init_1", "init_2", "init_3"):
        make_initiative(initiative_id)
    repo = AssignmentRepository()
    repo.create(session, _assignment("a1", "init_1", "team_a", start=date(2026, 1, 1), end=date(2026, 1, 10)))
    repo.create(session, _assignment("a2", "init_2", "team_a", start=date(2026, 2, 1), end=date(2026, 2, 28)))
    repo.create(session, _assignment("a3", "init_3", "team_b", start=date(2026, 1, 8), end=date(2026, 1, 20)))
    session.commit()

    overlapping = repo.list_overlapping(session, date(2026, 1, 10), date(2026, 1, 16))
    assert [a.id for a in overlapping] == ["a1", "a3"]

    only_b = repo.list_overlapping(session, date(2026, 1, 1), date(2026, 3, 1), team_ids=["team_b"])
    assert [a.id for a in only_b] == ["a3"]

    assert sorted(repo.list_initiative_ids_for_teams(session, ["team_a"])) == ["init_1", "init_2"]
    assert repo.list_initiative_ids_for_teams(session, []) == []


def test_conflict_log_is_append_only_and_newest_first(session):
    repo = ConflictRepository()
    now = datetime(2026, 1, 1, 12, 0)
    for i, severity in enumerate([ConflictSeverity.LOW, ConflictSeverity.HIGH, ConflictSeverity.HIGH]):
        repo.create(session, ResourceConflictModel(
            id=f"c{i}",
            type=ConflictType.OVERALLOCATION,
            severity=severity,
            description="overallocated",
            affected_teams=["team_core"],
            affected_initiatives=[],
            suggested_resolution="reduce",
            detected_at=now + timedelta(minutes=i),
        ))
    session.commit()

    assert [c.id for c in repo.list(session)] == ["c2", "c1", "c0"]
    assert [c.id for c in repo.list_filtered(session, severity=ConflictSeverity.HIGH)] == ["c2", "c1"]
    assert repo.list_filtered(session, conflict_type=ConflictType.SKILL_GAP) == []

    with pytest.raises(NotImplementedError):
        repo.update(session, "c0", {"severity": ConflictSeverity.MEDIUM})
    with pytest.raises(NotImplementedError):
        repo.delete(session, "c0")


def test_roadmap_item_filters(session, make_initiative):
    for initiative_id in ("init_1", "init_2", "init_3"):
        make_initiative(initiative_id)
    repo = RoadmapItemRepository()
    repo.create(session, RoadmapItemModel(
        id="r1", initiative_id="init_1", initiative_name="One",
        start_date=date(2026, 3, 1), end_date=date(2026, 4, 1),
        status=RoadmapStatus.PLANNED, priority=Priority.HIGH,
    ))
    repo.create(session, RoadmapItemModel(
        id="r2", initiative_id="init_2", initiative_name="Two",
        start_date=date(2026, 1, 1), end_date=date(2026, 2, 1),
        status=RoadmapStatus.COMPLETED, priority=Priority.LOW,
    ))
    repo.create(session, RoadmapItemModel(
        id="r3", initiative_id="init_3", initiative_name="Three",
        start_date=date(2026, 2, 1), end_date=date(2026, 6, 1),
        status=RoadmapStatus.IN_PROGRESS, priority=Priority.HIGH,
    ))
    session.commit()

    assert [i.id for i in repo.list(session)] == ["r2", "r3", "r1"]
    assert [i.id for i in repo.list_filtered(session, priorities=[Priority.HIGH])] == ["r3", "r1"]
    assert [i.id for i in repo.list_filtered(
        session, statuses=[RoadmapStatus.COMPLETED, RoadmapStatus.PLANNED]
    )] == ["r2", "r1"]
    assert [i.id for i in repo.list_filtered(
        session, start_date=date(2026, 2, 1), end_date=date(2026, 5, 1)
    )] == ["r1"]
    assert repo.list_filtered(session, initiative_ids=[]) == []
    assert repo.get_by_initiative(session, "init_2").id == "r2"


def test_initiative_enum_round_trip(session, make_initiative):
    repo = InitiativeRepository()
    make_initiative("init_1")
    repo.update(session, "init_1", {"status": InitiativeStatus.ON_HOLD})
    session.commit()
    session.expire_all()

    initiative = repo.get(session, "init_1")
    assert initiative.status == InitiativeStatus.ON_HOLD
    assert initiative.status.value == "On Hold"
