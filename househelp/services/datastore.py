"""HTTP client for the hosted data store's REST interface.

Every call carries the service credential and is bounded by one timeout.
Timeouts and transport errors surface as ``UpstreamUnavailable``; HTTP status
handling is left to the caller so each resource can label its own failures.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import httpx

from househelp import config
from househelp.errors import ConfigurationError, UpstreamFailure, UpstreamUnavailable

QueryParams = Union[Mapping[str, str], Sequence[Tuple[str, str]]]


class DatastoreClient:
    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url or not service_key:
            raise ConfigurationError("Missing data store configuration")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_env(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "DatastoreClient":
        return cls(
            config.SUPABASE_URL,
            config.SUPABASE_SERVICE_ROLE,
            timeout=config.DATASTORE_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        label: str,
        params: Optional[QueryParams] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(f"{label} timeout") from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailable(f"{label} unavailable") from exc

    async def select(
        self,
        table: str,
        params: QueryParams,
        *,
        label: Optional[str] = None,
        count_exact: bool = False,
    ) -> httpx.Response:
        headers = {"Prefer": "count=exact"} if count_exact else None
        return await self.request(
            "GET", f"/{table}", label=label or table, params=params, headers=headers
        )

    async def insert(self, table: str, row: Mapping[str, Any], *, label: Optional[str] = None) -> httpx.Response:
        return await self.request(
            "POST",
            f"/{table}",
            label=label or table,
            json=dict(row),
            headers={"Prefer": "return=minimal"},
        )

    async def delete(self, table: str, filters: QueryParams, *, label: Optional[str] = None) -> httpx.Response:
        return await self.request("DELETE", f"/{table}", label=label or table, params=filters)

    async def rpc(self, name: str, payload: Mapping[str, Any], *, label: Optional[str] = None) -> httpx.Response:
        return await self.request("POST", f"/rpc/{name}", label=label or name, json=dict(payload))


def ensure_success(response: httpx.Response, label: str) -> httpx.Response:
    if not response.is_success:
        raise UpstreamFailure(f"{label} {response.status_code}", response.status_code)
    return response


def eq(value: Any) -> str:
    return f"eq.{value}"


def gte(value: Any) -> str:
    return f"gte.{value}"
