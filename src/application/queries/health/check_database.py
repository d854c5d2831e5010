"""CheckDatabase Query - Which Airtable tables answer, and what the base holds."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.application.common.interfaces import Query, QueryHandler
from src.config.settings import Config
from src.domain.ports.database_inspector import DatabaseInspector

CORE_TABLES = ("User Profiles", "Opportunities", "Resources")


@dataclass
class DatabaseHealth:
    configured: bool
    has_token: bool
    has_base_id: bool
    base_id: str = ""
    status: dict[str, bool] = field(default_factory=dict)
    discovered: list[str] = field(default_factory=list)

    @property
    def accessible(self) -> int:
        return sum(1 for ok in self.status.values() if ok)

    @property
    def total(self) -> int:
        return len(self.status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": "Database health check completed",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": {
                "environment": {
                    "hasToken": self.has_token,
                    "hasBaseId": self.has_base_id,
                    "baseId": self.base_id,
                },
                "tables": {
                    "accessible": self.accessible,
                    "total": self.total,
                    "status": self.status,
                    "discovered": self.discovered,
                },
                "summary": {
                    "connectionHealthy": self.accessible > 0,
                    "coreTablesFound": any(self.status.get(t) for t in CORE_TABLES),
                    "percentageAccessible": (
                        round(self.accessible / self.total * 100) if self.total else 0
                    ),
                },
            },
        }


@dataclass(frozen=True)
class CheckDatabaseQuery(Query[DatabaseHealth]):
    pass


class CheckDatabaseHandler(QueryHandler[DatabaseHealth]):
    def __init__(self, inspector: DatabaseInspector):
        self._inspector = inspector

    async def execute(self, query: CheckDatabaseQuery) -> DatabaseHealth:
        has_token = bool(Config.AIRTABLE_TOKEN)
        has_base_id = bool(Config.AIRTABLE_BASE_ID)
        health = DatabaseHealth(
            configured=self._inspector.is_configured,
            has_token=has_token,
            has_base_id=has_base_id,
            base_id=Config.AIRTABLE_BASE_ID,
        )
        if not health.configured:
            return health

        health.status, health.discovered = await asyncio.gather(
            self._inspector.test_connection(),
            self._inspector.list_all_tables_in_base(),
        )
        return health
