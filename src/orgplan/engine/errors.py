"""
Errors raised by the OrgPlan services.

All of them are ValueErrors so callers that only care about "bad request"
can keep catching ValueError.
"""


class PlanningError(ValueError):
    """Base class for capacity planning errors."""


class NotFoundError(PlanningError):
    """A referenced initiative, team, member, assignment or roadmap item is missing."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DuplicateError(PlanningError):
    """The entity already exists (e.g. a second assignment for the same pair)."""


class ValidationError(PlanningError):
    """Input is outside the accepted domain (e.g. allocation outside [0, 100])."""
