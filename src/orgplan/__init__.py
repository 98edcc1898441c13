"""
OrgPlan - Team Capacity Ledger and Roadmap Analytics

This package contains the OrgPlan backend services:
- api: FastAPI REST endpoints
- engine: Assignment Manager and Roadmap Service (write path)
- schedulers: Conflict Detector, Timeline Analyzer, Capacity Projector
- storage: SQLAlchemy models, Postgres adapter and repositories
- platform: Cross-cutting concerns (configuration, logging)
"""

__version__ = "0.1.0"
