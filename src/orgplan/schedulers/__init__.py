"""
OrgPlan - Schedulers

Read-side analytics and the conflict detection side channel:
- ConflictDetector: Overallocation detection and the conflict audit log
- TimelineAnalyzer: Roadmap status, dependency ranking and risk report
- CapacityProjector: Weekly capacity projection and recommendations
"""

from .conflict_detector import ConflictDetector
from .timeline_analyzer import TimelineAnalyzer
from .capacity_projector import CapacityProjector

__all__ = [
    "ConflictDetector",
    "TimelineAnalyzer",
    "CapacityProjector",
]
