"""
Async Airtable REST client.

Thin wrapper over https://api.airtable.com/v0/{base}/{table} using
httpx.AsyncClient. Record lists are paginated with the `offset` cursor
until exhausted or `max_records` is reached.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

from src.config.settings import Config
from src.observability.metrics import (
    MetricsErrorType,
    increment_error,
    observe_airtable_latency,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
NOT_FOUND_TYPES = {
    "NOT_FOUND",
    "TABLE_NOT_FOUND",
    "MODEL_ID_NOT_FOUND",
    "INVALID_PERMISSIONS_OR_MODEL_NOT_FOUND",
}


class AirtableError(Exception):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class AirtableNotFoundError(AirtableError):
    """Table or record does not exist (or is not visible to the token)."""


def formula_literal(value: Any) -> str:
    """Quote a value as an Airtable formula string literal."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def field_equals(field_name: str, value: Any) -> str:
    return f"{{{field_name}}} = {formula_literal(value)}"


@dataclass
class AirtableRecord:
    id: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_time: Optional[str] = None

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def first(self, *names: str, default: Any = None) -> Any:
        """Value of the first field name holding a truthy value."""
        for name in names:
            value = self.fields.get(name)
            if value:
                return value
        return default

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "AirtableRecord":
        return cls(
            id=payload["id"],
            fields=payload.get("fields") or {},
            created_time=payload.get("createdTime"),
        )


class AirtableClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.AIRTABLE_TOKEN
        self.base_id = base_id if base_id is not None else Config.AIRTABLE_BASE_ID
        self._api_url = (api_url or Config.AIRTABLE_API_URL).rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or Config.AIRTABLE_TIMEOUT, connect=5.0)
        )
        if not self.api_key:
            logger.error(
                "[Airtable] Missing AIRTABLE_PERSONAL_ACCESS_TOKEN or AIRTABLE_API_KEY"
            )
        if not self.base_id:
            logger.error("[Airtable] Missing AIRTABLE_BASE_ID")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id)

    def _table_url(self, table: str, record_id: Optional[str] = None) -> str:
        url = f"{self._api_url}/v0/{self.base_id}/{quote(table, safe='')}"
        if record_id:
            url += f"/{quote(record_id, safe='')}"
        return url

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[list[tuple[str, Any]]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        start = time.time()
        try:
            response = await self._http.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            increment_error(MetricsErrorType.AIRTABLE_FAILED)
            raise AirtableError(f"Airtable request failed: {e}") from e
        finally:
            observe_airtable_latency(method, time.time() - start)

        if response.is_success:
            return response.json()

        error_type, message = self._parse_error(response)
        if response.status_code == 404 or error_type in NOT_FOUND_TYPES:
            raise AirtableNotFoundError(message, response.status_code, error_type)
        increment_error(MetricsErrorType.AIRTABLE_FAILED)
        raise AirtableError(message, response.status_code, error_type)

    @staticmethod
    def _parse_error(response: httpx.Response) -> tuple[Optional[str], str]:
        try:
            body = response.json()
        except ValueError:
            return None, f"HTTP {response.status_code}"
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("type"), error.get("message") or error.get("type", "")
        if isinstance(error, str):
            return error, error
        return None, f"HTTP {response.status_code}"

    async def select(
        self,
        table: str,
        filter_by_formula: Optional[str] = None,
        max_records: Optional[int] = None,
        sort: Optional[Sequence[tuple[str, str]]] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> list[AirtableRecord]:
        """List records, following `offset` pages. `sort` is [(field, "asc"|"desc")]."""
        base_params: list[tuple[str, Any]] = []
        if filter_by_formula:
            base_params.append(("filterByFormula", filter_by_formula))
        if max_records:
            base_params.append(("maxRecords", max_records))
            base_params.append(("pageSize", min(max_records, PAGE_SIZE)))
        for i, (field_name, direction) in enumerate(sort or ()):
            base_params.append((f"sort[{i}][field]", field_name))
            base_params.append((f"sort[{i}][direction]", direction))
        for field_name in fields or ():
            base_params.append(("fields[]", field_name))

        records: list[AirtableRecord] = []
        offset: Optional[str] = None
        url = self._table_url(table)
        while True:
            params = list(base_params)
            if offset:
                params.append(("offset", offset))
            payload = await self._request("GET", url, params=params)
            records.extend(AirtableRecord.from_api(r) for r in payload.get("records", []))
            offset = payload.get("offset")
            if not offset or (max_records and len(records) >= max_records):
                break
        return records[:max_records] if max_records else records

    async def find(self, table: str, record_id: str) -> AirtableRecord:
        payload = await self._request("GET", self._table_url(table, record_id))
        return AirtableRecord.from_api(payload)

    async def create(self, table: str, fields: dict[str, Any]) -> AirtableRecord:
        payload = await self._request(
            "POST", self._table_url(table), json={"fields": fields, "typecast": True}
        )
        return AirtableRecord.from_api(payload)

    async def update(
        self, table: str, record_id: str, fields: dict[str, Any]
    ) -> AirtableRecord:
        payload = await self._request(
            "PATCH",
            self._table_url(table, record_id),
            json={"fields": fields, "typecast": True},
        )
        return AirtableRecord.from_api(payload)

    async def destroy(self, table: str, record_id: str) -> None:
        await self._request("DELETE", self._table_url(table, record_id))

    async def probe(self, table: str) -> bool:
        """True when the table answers a one-record select."""
        try:
            await self.select(table, max_records=1)
            return True
        except AirtableNotFoundError:
            return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
