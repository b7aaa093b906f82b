"""
Persistence Layer - SQLAlchemy models and session management.
"""

from dionysus.db.database import Base, SessionLocal, engine, get_db, init_db
from dionysus.db.models import (
    Commit,
    Invoice,
    InvoiceStatus,
    Meeting,
    Payment,
    PaymentStatus,
    Project,
    Question,
    User,
    project_users,
)

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "init_db",
    "Commit",
    "Invoice",
    "InvoiceStatus",
    "Meeting",
    "Payment",
    "PaymentStatus",
    "Project",
    "Question",
    "User",
    "project_users",
]
