"""Database infrastructure module."""

from workshop_enrollment_ms.shared.infrastructure.database.connection import (
    Base,
    DatabaseSession,
    close_db,
    get_db_session,
    init_db,
)

__all__ = ["Base", "DatabaseSession", "close_db", "get_db_session", "init_db"]
