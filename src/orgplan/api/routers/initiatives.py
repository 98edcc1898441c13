"""
Router for Initiatives and team assignments.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from orgplan.api import schemas
from orgplan.api.dependencies import get_assignment_manager, get_db, get_roadmap_service, http_error
from orgplan.engine.assignment_manager import AssignmentManager
from orgplan.engine.errors import PlanningError
from orgplan.engine.roadmap_service import RoadmapService
from orgplan.storage.models import InitiativeModel
from orgplan.platform.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=schemas.InitiativeResponse, status_code=status.HTTP_201_CREATED)
def create_initiative(
    initiative_create: schemas.InitiativeCreate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    model = InitiativeModel(**initiative_create.model_dump())
    return service.create_initiative(session, model)


@router.get("/", response_model=List[schemas.InitiativeResponse])
def list_initiatives(
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
    limit: int = 100,
    offset: int = 0,
):
    return service.list_initiatives(session, limit, offset)


@router.get("/{initiative_id}", response_model=schemas.InitiativeResponse)
def get_initiative(
    initiative_id: str,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        return service.get_initiative(session, initiative_id)
    except PlanningError as e:
        raise http_error(e)


@router.put("/{initiative_id}", response_model=schemas.InitiativeResponse)
def update_initiative(
    initiative_id: str,
    updates: schemas.InitiativeUpdate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    update_data = updates.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return service.update_initiative(session, initiative_id, update_data)
    except PlanningError as e:
        raise http_error(e)


@router.delete("/{initiative_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_initiative(
    initiative_id: str,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Delete an Initiative, releasing every team allocation it holds.
    """
    try:
        service.delete_initiative(session, initiative_id)
    except PlanningError as e:
        raise http_error(e)
    logger.info("Initiative deleted", initiative_id=initiative_id)
    return None


@router.post(
    "/{initiative_id}/assign",
    response_model=schemas.AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_team(
    initiative_id: str,
    assignment: schemas.AssignmentCreate,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Assign a team to an initiative.

    Returns 404 for an unknown initiative or team, 409 when the team is
    already assigned, and 422 for an invalid allocation or date range.
    """
    try:
        created = manager.assign(
            session,
            initiative_id=initiative_id,
            team_id=assignment.team_id,
            allocated_capacity=assignment.allocated_capacity,
            start_date=assignment.start_date,
            end_date=assignment.end_date,
            role=assignment.role,
        )
    except PlanningError as e:
        logger.warning("Assignment rejected", initiative_id=initiative_id, team_id=assignment.team_id, error=str(e))
        raise http_error(e)

    logger.info(
        "Team assigned",
        initiative_id=initiative_id,
        team_id=assignment.team_id,
        allocated_capacity=assignment.allocated_capacity,
    )
    return created


@router.delete("/{initiative_id}/unassign/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_team(
    initiative_id: str,
    team_id: str,
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        manager.unassign(session, initiative_id, team_id)
    except PlanningError as e:
        raise http_error(e)
    logger.info("Team unassigned", initiative_id=initiative_id, team_id=team_id)
    return None
