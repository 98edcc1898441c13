from typing import Optional, Dict, Any, List
from sqlalchemy import select
from sqlalchemy.orm import Session

from orgplan.storage.repositories.base import BaseRepository
from orgplan.storage.models import ResourceConflictModel, ConflictSeverity, ConflictType

class ConflictRepository(BaseRepository[ResourceConflictModel]):
    """Repository for the resource conflict audit log.

    Rows are appended and never changed: `update` and `delete` refuse.
    """

    def create(self, session: Session, entity: ResourceConflictModel) -> ResourceConflictModel:
        session.add(entity)
        session.flush()
        return entity

    def get(self, session: Session, id: str) -> Optional[ResourceConflictModel]:
        return session.get(ResourceConflictModel, id)

    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[ResourceConflictModel]:
        raise NotImplementedError("Resource conflicts are append-only")

    def delete(self, session: Session, id: str) -> bool:
        raise NotImplementedError("Resource conflicts are append-only")

    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[ResourceConflictModel]:
        return self.list_filtered(session, limit=limit, offset=offset)

    def list_filtered(
        self,
        session: Session,
        severity: Optional[ConflictSeverity] = None,
        conflict_type: Optional[ConflictType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ResourceConflictModel]:
        """Conflicts, most recently detected first."""
        stmt = select(ResourceConflictModel)
        if severity:
            stmt = stmt.where(ResourceConflictModel.severity == severity)
        if conflict_type:
            stmt = stmt.where(ResourceConflictModel.type == conflict_type)
        stmt = stmt.order_by(ResourceConflictModel.detected_at.desc()).limit(limit).offset(offset)
        return list(session.scalars(stmt).all())
