"""
Airtable Catalog Repository Implementation.

Opportunities, resources and the per-user match tables. The search_*
methods return lightweight rows meant for LLM context, not full records.
"""

import logging
from typing import Any, Optional

from src.domain.entities.opportunity import Opportunity, Resource, UserMatches
from src.domain.ports.repositories import CatalogRepository
from src.infrastructure.airtable import (
    AirtableError,
    AirtableNotFoundError,
    AirtableTables,
    field_equals,
    formula_literal,
    safe_table_operation,
)
from src.infrastructure.airtable.mappers import (
    map_opportunity_record,
    map_resource_record,
    map_search_opportunity,
    map_search_resource,
    map_user_match,
)
from src.infrastructure.airtable.tables import (
    MATCHES,
    MATCHES_RESOURCES,
    OPPORTUNITIES,
    RESOURCES,
)
from src.observability.audit import AuditLogger

logger = logging.getLogger(__name__)

SEARCH_OPPORTUNITY_FIELDS = ["title", "aisummary", "Date", "opportunityID", "description"]
MATCH_TABLE_FALLBACKS = ("Matches", "matches", "User_Matches", "user_matches")
MAX_USER_MATCHES = 20


class AirtableCatalogRepository(CatalogRepository):
    def __init__(self, tables: AirtableTables):
        self._tables = tables

    async def get_opportunities(
        self,
        user_id: str,
        filters: Optional[dict[str, Any]] = None,
        limit: int = 20,
    ) -> list[Opportunity]:
        filters = filters or {}
        clauses = [field_equals("Status", "open")]
        if filters.get("type"):
            clauses.append(field_equals("Type", filters["type"]))
        if filters.get("deadline"):
            clauses.append(
                f"NOT(IS_BEFORE({{Deadline}}, {formula_literal(filters['deadline'])}))"
            )

        async def operation():
            records = await self._tables.select(
                OPPORTUNITIES,
                filter_by_formula=f"AND({', '.join(clauses)})",
                sort=[("Deadline", "asc")],
                max_records=limit,
            )
            AuditLogger.log_data_access(user_id, "opportunities", "list", "read")
            return [map_opportunity_record(r) for r in records]

        return await safe_table_operation(operation, "Opportunities", "get_opportunities") or []

    async def get_matched_opportunities(self, user_id: str) -> list[Opportunity]:
        async def operation():
            matches = await self._tables.select(
                MATCHES,
                filter_by_formula=field_equals("User_ID", user_id),
                sort=[("Match_Score", "desc")],
            )
            opportunities = []
            for match in matches:
                opportunity_id = match.get("Opportunity_ID")
                if not opportunity_id:
                    continue
                try:
                    record = await self._tables.find(OPPORTUNITIES, str(opportunity_id))
                except AirtableNotFoundError:
                    continue
                opportunities.append(map_opportunity_record(record))
            return opportunities

        return await safe_table_operation(operation, "Matches", "get_matched_opportunities") or []

    async def get_matched_resources(self, user_id: str) -> list[Resource]:
        async def operation():
            matches = await self._tables.select(
                MATCHES_RESOURCES,
                filter_by_formula=field_equals("User_ID", user_id),
                sort=[("Match_Score", "desc")],
            )
            resources = []
            for match in matches:
                resource_id = match.get("Resource_ID")
                if not resource_id:
                    continue
                try:
                    record = await self._tables.find(RESOURCES, str(resource_id))
                except AirtableNotFoundError:
                    continue
                resources.append(map_resource_record(record))
            return resources

        return await safe_table_operation(operation, "MatchesResources", "get_matched_resources") or []

    async def search_opportunities(
        self, query: str, user_id: str, limit: int = 10
    ) -> list[Opportunity]:
        # The base has no full-text index; rows come back by deadline
        logger.debug("[Catalog] Opportunity search for %s: %r", user_id, query)

        async def operation():
            records = await self._tables.select(
                OPPORTUNITIES,
                max_records=limit,
                sort=[("Date", "asc")],
                fields=SEARCH_OPPORTUNITY_FIELDS,
            )
            return [map_search_opportunity(r) for r in records]

        return await safe_table_operation(operation, "Opportunities", "search") or []

    async def search_resources(
        self, query: str, user_id: str, limit: int = 10
    ) -> list[Resource]:
        logger.debug("[Catalog] Resource search for %s: %r", user_id, query)

        async def operation():
            records = await self._tables.select(RESOURCES, max_records=limit)
            return [map_search_resource(r) for r in records]

        return await safe_table_operation(operation, "Resources", "search") or []

    async def get_user_matches(self, user_id: str) -> Optional[UserMatches]:
        candidates = []
        resolved = await self._tables.resolve(MATCHES)
        if resolved:
            candidates.append(resolved)
        candidates.extend(n for n in MATCH_TABLE_FALLBACKS if n not in candidates)

        for table_name in candidates:
            try:
                records = await self._tables.client.select(
                    table_name,
                    filter_by_formula=field_equals("user_id", user_id),
                    max_records=MAX_USER_MATCHES,
                )
            except AirtableError as e:
                logger.debug("[Catalog] %s table not accessible: %s", table_name, e)
                continue
            if records:
                matches = [map_user_match(r) for r in records]
                return UserMatches(total_matches=len(matches), matches=matches)

        return UserMatches(total_matches=0, matches=[])
