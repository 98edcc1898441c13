"""
Routers for the Roadmap, its milestones and the roadmap analytics.
"""

from datetime import date
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from orgplan.api import schemas
from orgplan.api.dependencies import (
    get_capacity_projector,
    get_db,
    get_roadmap_service,
    get_timeline_analyzer,
    http_error,
)
from orgplan.engine.errors import PlanningError, ValidationError
from orgplan.engine.roadmap_service import RoadmapService, TimelineChange
from orgplan.schedulers.capacity_projector import CapacityProjector
from orgplan.schedulers.timeline_analyzer import TimelineAnalyzer
from orgplan.storage.models import Priority, RoadmapItemModel, RoadmapMilestoneModel, RoadmapStatus
from orgplan.platform.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()
milestones_router = APIRouter()


# --- Analytics ---

@router.get("/analysis", response_model=schemas.TimelineAnalysisResponse)
def analyze_timeline(
    analyzer: Annotated[TimelineAnalyzer, Depends(get_timeline_analyzer)],
    session: Annotated[Session, Depends(get_db)],
    team_ids: Optional[List[str]] = Query(None),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """
    Status counts, progress, dependency ranking and risky items.
    """
    analysis = analyzer.analyze(session, team_ids=team_ids, start_date=start_date, end_date=end_date)
    return schemas.TimelineAnalysisResponse.model_validate(analysis)


@router.get("/capacity-projection", response_model=schemas.CapacityProjectionResponse)
def project_capacity(
    projector: Annotated[CapacityProjector, Depends(get_capacity_projector)],
    session: Annotated[Session, Depends(get_db)],
    start_date: date,
    end_date: date,
    team_ids: Optional[List[str]] = Query(None),
):
    """
    Weekly capacity projection with recommendations.
    """
    try:
        projection = projector.project(session, start_date, end_date, team_ids)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return schemas.CapacityProjectionResponse.model_validate(projection)


# --- Roadmap items ---

@router.get("/", response_model=List[schemas.RoadmapItemResponse])
def list_items(
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
    item_status: Optional[List[RoadmapStatus]] = Query(None, alias="status"),
    priority: Optional[List[Priority]] = Query(None),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    team_ids: Optional[List[str]] = Query(None),
):
    return service.list_items(
        session,
        statuses=item_status,
        priorities=priority,
        start_date=start_date,
        end_date=end_date,
        team_ids=team_ids,
    )


@router.post("/", response_model=schemas.RoadmapItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    item_create: schemas.RoadmapItemCreate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    model = RoadmapItemModel(**item_create.model_dump())
    try:
        return service.create_item(session, model)
    except PlanningError as e:
        raise http_error(e)


@router.put("/bulk-timeline", response_model=schemas.BulkTimelineResponse)
def bulk_update_timeline(
    bulk: schemas.BulkTimelineUpdate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Move several items at once. Failures are reported per item.
    """
    changes = [TimelineChange(**entry.model_dump()) for entry in bulk.updates]
    result = service.bulk_update_timeline(session, changes)
    logger.info("Bulk timeline update", successful=len(result.successful), failed=len(result.failed))
    return schemas.BulkTimelineResponse.model_validate(result)


@router.get("/{item_id}", response_model=schemas.RoadmapItemResponse)
def get_item(
    item_id: str,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        return service.get_item(session, item_id)
    except PlanningError as e:
        raise http_error(e)


@router.put("/{item_id}", response_model=schemas.RoadmapItemResponse)
def update_item(
    item_id: str,
    updates: schemas.RoadmapItemUpdate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    update_data = updates.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return service.update_item(session, item_id, update_data)
    except PlanningError as e:
        raise http_error(e)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: str,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        service.delete_item(session, item_id)
    except PlanningError as e:
        raise http_error(e)
    return None


@router.put("/{item_id}/timeline", response_model=schemas.TimelineUpdateResponse)
def update_item_timeline(
    item_id: str,
    timeline: schemas.TimelineUpdate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Move an item. With validate_resources the initiative's assignments move
    too and conflict detection re-runs for each assigned team.
    """
    try:
        result = service.update_item_timeline(
            session,
            item_id,
            timeline.start_date,
            timeline.end_date,
            validate_resources=timeline.validate_resources,
        )
    except PlanningError as e:
        raise http_error(e)
    return schemas.TimelineUpdateResponse.model_validate(result)


# --- Milestones ---

@milestones_router.post("/", response_model=schemas.MilestoneResponse, status_code=status.HTTP_201_CREATED)
def create_milestone(
    milestone_create: schemas.MilestoneCreate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    model = RoadmapMilestoneModel(**milestone_create.model_dump())
    try:
        return service.create_milestone(session, model)
    except PlanningError as e:
        raise http_error(e)


@milestones_router.put("/{milestone_id}", response_model=schemas.MilestoneResponse)
def update_milestone(
    milestone_id: str,
    updates: schemas.MilestoneUpdate,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    update_data = updates.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return service.update_milestone(session, milestone_id, update_data)
    except PlanningError as e:
        raise http_error(e)


@milestones_router.delete("/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(
    milestone_id: str,
    service: Annotated[RoadmapService, Depends(get_roadmap_service)],
    session: Annotated[Session, Depends(get_db)],
):
    try:
        service.delete_milestone(session, milestone_id)
    except PlanningError as e:
        raise http_error(e)
    return None
