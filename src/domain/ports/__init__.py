"""
PORTS - Interfaces that infrastructure implements

A "port" is an abstract interface that defines WHAT the domain needs,
without specifying HOW it's done.

Subfolders:
- repositories/          -> Airtable-backed persistence interfaces
- usage_tracker.py       -> Quota / rate-limit counters (Redis or in-process)
- database_inspector.py  -> Table probes for health checks
"""

from src.domain.ports.usage_tracker import UsageTracker
from src.domain.ports.database_inspector import DatabaseInspector

__all__ = ["UsageTracker", "DatabaseInspector"]
