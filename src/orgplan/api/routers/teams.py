"""
Routers for Team and Team Member endpoints.

Capacity and member counts are ledger counters: they are returned but can
only change through member and assignment operations.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from orgplan.api import schemas
from orgplan.api.dependencies import get_assignment_manager, get_db, http_error
from orgplan.engine.assignment_manager import AssignmentManager
from orgplan.engine.errors import PlanningError
from orgplan.storage.models import TeamMemberModel, TeamModel
from orgplan.platform.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()
members_router = APIRouter()


@router.post("/", response_model=schemas.TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(
    team_create: schemas.TeamCreate,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Create a new Team.
    """
    model = TeamModel(**team_create.model_dump())
    try:
        return manager.create_team(session, model)
    except PlanningError as e:
        raise http_error(e)


@router.get("/", response_model=List[schemas.TeamResponse])
def list_teams(
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
    limit: int = 100,
    offset: int = 0,
):
    return manager.list_teams(session, limit, offset)


@router.get("/{team_id}", response_model=schemas.TeamResponse)
def get_team(
    team_id: str,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        return manager.get_team(session, team_id)
    except PlanningError as e:
        raise http_error(e)


@router.put("/{team_id}", response_model=schemas.TeamResponse)
def update_team(
    team_id: str,
    updates: schemas.TeamUpdate,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Update a Team's descriptive fields.
    """
    update_data = updates.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return manager.update_team(session, team_id, update_data)
    except PlanningError as e:
        raise http_error(e)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: str,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Delete a Team with its members and assignments.
    """
    try:
        manager.delete_team(session, team_id)
    except PlanningError as e:
        raise http_error(e)
    logger.info("Team deleted", team_id=team_id)
    return None


@router.get("/{team_id}/members", response_model=List[schemas.TeamMemberResponse])
def list_members(
    team_id: str,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        return manager.list_members(session, team_id)
    except PlanningError as e:
        raise http_error(e)


# --- Team Members ---

@members_router.post("/", response_model=schemas.TeamMemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    member_create: schemas.TeamMemberCreate,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Add a member to a team. The team's capacity grows by the member's capacity.
    """
    model = TeamMemberModel(**member_create.model_dump())
    try:
        created = manager.add_member(session, model)
    except PlanningError as e:
        raise http_error(e)
    logger.info("Member added", member_id=created.id, team_id=created.team_id, capacity=created.capacity)
    return created


@members_router.put("/{member_id}", response_model=schemas.TeamMemberResponse)
def update_member(
    member_id: str,
    updates: schemas.TeamMemberUpdate,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    update_data = updates.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return manager.update_member(session, member_id, update_data)
    except PlanningError as e:
        raise http_error(e)


@members_router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    member_id: str,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        manager.remove_member(session, member_id)
    except PlanningError as e:
        raise http_error(e)
    return None
