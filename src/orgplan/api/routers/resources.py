"""
Router for resource allocation and the conflict audit log.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orgplan.api import schemas
from orgplan.api.dependencies import get_assignment_manager, get_conflict_detector, get_db
from orgplan.engine.assignment_manager import AssignmentManager
from orgplan.schedulers.conflict_detector import ConflictDetector
from orgplan.storage.models import ConflictSeverity, ConflictType

router = APIRouter()


@router.get("/allocation", response_model=List[schemas.TeamAllocationResponse])
def get_resource_allocation(
    manager: Annotated[AssignmentManager, Depends(get_assignment_manager)],
    session: Annotated[Session, Depends(get_db)],
):
    """
    Capacity, workload and assignments of every team.
    """
    return [
        schemas.TeamAllocationResponse.model_validate(allocation)
        for allocation in manager.get_resource_allocation(session)
    ]


@router.get("/conflicts", response_model=List[schemas.ConflictResponse])
def list_conflicts(
    detector: Annotated[ConflictDetector, Depends(get_conflict_detector)],
    session: Annotated[Session, Depends(get_db)],
    severity: Optional[ConflictSeverity] = Query(None, description="Filter by severity"),
    conflict_type: Optional[ConflictType] = Query(None, alias="type", description="Filter by conflict type"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """
    Recorded resource conflicts, most recently detected first.
    """
    return detector.list_conflicts(
        session,
        severity=severity,
        conflict_type=conflict_type,
        limit=limit,
        offset=offset,
    )
