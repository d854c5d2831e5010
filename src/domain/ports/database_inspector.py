"""
Database Inspector Port - Connectivity probes used by health checks and ops scripts.
Implementation: src/infrastructure/airtable/tables.py
"""

from abc import ABC, abstractmethod


class DatabaseInspector(ABC):
    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials and a base id are present."""
        ...

    @abstractmethod
    async def test_connection(self) -> dict[str, bool]:
        """Map each logical table label to whether it answered a probe."""
        ...

    @abstractmethod
    async def list_all_tables_in_base(self) -> list[str]: ...
