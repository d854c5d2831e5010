from src.application.queries.health.check_database import (
    CheckDatabaseHandler,
    CheckDatabaseQuery,
    DatabaseHealth,
)

__all__ = ["CheckDatabaseHandler", "CheckDatabaseQuery", "DatabaseHealth"]
