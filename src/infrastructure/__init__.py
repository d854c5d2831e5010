"""
Infrastructure Layer - Technical implementations of domain ports.

This layer contains:
- airtable/: REST client, table registry and record mappers
- persistence/: Airtable repository implementations
- cache/: Redis client and usage trackers (Redis / in-process)
"""
