"""
Base Scheduler class for OrgPlan schedulers.

Provides common functionality for date arithmetic, logging, and the
shared repositories the schedulers read from.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Optional

from orgplan.storage.repositories.team_repository import TeamRepository
from orgplan.storage.repositories.assignment_repository import AssignmentRepository


logger = logging.getLogger(__name__)


class SchedulerBase(ABC):
    """
    Base class for all OrgPlan schedulers.

    Schedulers never open their own sessions; every entry point takes the
    caller's SQLAlchemy Session so reads see the caller's transaction.
    """

    def __init__(
        self,
        team_repo: Optional[TeamRepository] = None,
        assignment_repo: Optional[AssignmentRepository] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            team_repo: Repository for teams and their counters
            assignment_repo: Repository for team assignments
        """
        self.team_repo = team_repo or TeamRepository()
        self.assignment_repo = assignment_repo or AssignmentRepository()
        self.logger = logging.getLogger(f"{type(self).__module__}.{type(self).__name__}")

    def now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.utcnow()

    @staticmethod
    def duration_days(start: date, end: date) -> int:
        """Whole days between two dates (negative if end precedes start)."""
        return (end - start).days

    @staticmethod
    def ranges_overlap(start1: date, end1: date, start2: date, end2: date) -> bool:
        """Inclusive interval intersection test."""
        return start1 <= end2 and start2 <= end1

    @abstractmethod
    def run(self, *args, **kwargs) -> Any:
        """
        Main entry point for the scheduler.

        Must be implemented by subclasses.
        """
        pass
