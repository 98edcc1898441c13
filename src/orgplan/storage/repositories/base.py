from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, List, Dict, Any, Iterable
from sqlalchemy.orm import Session

T = TypeVar("T")

class BaseRepository(Generic[T], ABC):
    """Abstract base repository defining CRUD contracts using SQLAlchemy Session.

    Repositories never commit; the calling service owns the transaction.
    """

    # Attributes `update()` may set. Ledger counters are never listed here.
    updatable_fields: Iterable[str] = ()

    @abstractmethod
    def create(self, session: Session, entity: Any) -> T:
        pass

    @abstractmethod
    def get(self, session: Session, id: str) -> Optional[T]:
        pass

    @abstractmethod
    def update(self, session: Session, id: str, updates: Dict[str, Any]) -> Optional[T]:
        pass

    @abstractmethod
    def delete(self, session: Session, id: str) -> bool:
        pass

    @abstractmethod
    def list(self, session: Session, limit: int = 100, offset: int = 0) -> List[T]:
        pass

    def _apply_updates(self, entity: T, updates: Dict[str, Any]) -> T:
        """Copy whitelisted fields from `updates` onto `entity`."""
        for key, value in updates.items():
            if key in self.updatable_fields:
                setattr(entity, key, value)
        return entity
