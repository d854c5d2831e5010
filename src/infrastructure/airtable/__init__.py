"""
Airtable access: REST client, logical table registry and record mappers.
"""

from src.infrastructure.airtable.client import (
    AirtableClient,
    AirtableError,
    AirtableNotFoundError,
    AirtableRecord,
    field_equals,
    formula_literal,
)
from src.infrastructure.airtable.tables import AirtableTables, safe_table_operation

__all__ = [
    "AirtableClient",
    "AirtableError",
    "AirtableNotFoundError",
    "AirtableRecord",
    "AirtableTables",
    "field_equals",
    "formula_literal",
    "safe_table_operation",
]
