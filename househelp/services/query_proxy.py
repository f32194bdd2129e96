"""Read-only listing proxy shared by every collection endpoint.

A ``ListingResource`` describes one upstream collection (columns, sort key,
time window, paging, allowed filters). ``list_resource`` turns loosely typed
query parameters into a bounded upstream query and reshapes the reply into a
``ListEnvelope``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from househelp.errors import UpstreamFailure
from househelp.observability import days_ago_iso
from househelp.schemas.base import ListEnvelope, QueryWindow
from househelp.services.datastore import DatastoreClient, ensure_success, eq, gte

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MAX_FROM_DAYS = 36500


@dataclass(frozen=True)
class ListingResource:
    name: str
    table: str
    columns: Tuple[str, ...] = ("*",)
    order_column: str = "created_at"
    descending: bool = True
    time_column: Optional[str] = None
    default_from_days: Optional[int] = None
    paginated: bool = False
    fixed_limit: Optional[int] = None
    filters: Tuple[str, ...] = ()
    scope_column: Optional[str] = None

    @property
    def windowed(self) -> bool:
        return self.time_column is not None and self.default_from_days is not None

    @property
    def order(self) -> str:
        return f"{self.order_column}.{'desc' if self.descending else 'asc'}"


def parse_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def parse_from_days(value: Any, default: int) -> int:
    days = parse_int(value, default)
    if days < 0:
        return default
    # Keeps the window start inside the range datetime can represent.
    return min(days, MAX_FROM_DAYS)


def clamp_limit(value: Any, default: int = DEFAULT_LIMIT, ceiling: int = MAX_LIMIT) -> int:
    return max(1, min(parse_int(value, default), ceiling))


def clamp_offset(value: Any) -> int:
    return max(parse_int(value, 0), 0)


def parse_total(content_range: Optional[str]) -> Optional[int]:
    """``"0-19/137"`` -> 137; absent or unknown (``*``) totals give ``None``."""
    if not content_range or "/" not in content_range:
        return None
    try:
        return int(content_range.rsplit("/", 1)[1].strip())
    except ValueError:
        return None


def build_window(
    resource: ListingResource,
    params: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> QueryWindow:
    window = QueryWindow()
    if resource.windowed:
        window.from_days = parse_from_days(params.get("fromDays"), resource.default_from_days)
        window.lower_bound = days_ago_iso(window.from_days, now)
    if resource.paginated:
        window.limit = clamp_limit(params.get("limit"))
        window.offset = clamp_offset(params.get("offset"))
    elif resource.fixed_limit is not None:
        window.limit = resource.fixed_limit
    return window


def build_query(
    resource: ListingResource,
    window: QueryWindow,
    params: Mapping[str, Any],
    scope_value: Optional[str] = None,
) -> List[Tuple[str, str]]:
    query: List[Tuple[str, str]] = [
        ("select", ",".join(resource.columns)),
        ("order", resource.order),
    ]
    if resource.scope_column:
        if not scope_value:
            raise ValueError(f"{resource.name} listing requires a scope value")
        query.append((resource.scope_column, eq(scope_value)))
    for name in resource.filters:
        value = params.get(name)
        if value:
            query.append((name, eq(value)))
    if window.lower_bound is not None:
        query.append((resource.time_column, gte(window.lower_bound)))
    if window.limit is not None:
        query.append(("limit", str(window.limit)))
    if window.offset is not None:
        query.append(("offset", str(window.offset)))
    return query


async def list_resource(
    datastore: DatastoreClient,
    resource: ListingResource,
    params: Mapping[str, Any],
    *,
    scope_value: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ListEnvelope:
    window = build_window(resource, params, now)
    query = build_query(resource, window, params, scope_value)
    response = await datastore.select(
        resource.table, query, label=resource.name, count_exact=resource.paginated
    )
    ensure_success(response, resource.name)
    items = response.json()
    if not isinstance(items, list):
        raise UpstreamFailure(f"{resource.name} unexpected payload")
    total = parse_total(response.headers.get("content-range")) if resource.paginated else None
    return ListEnvelope(
        items=items,
        total=total,
        limit=window.limit,
        offset=window.offset,
        from_days=window.from_days,
        paginated=resource.paginated,
    )


async def count_rows(
    datastore: DatastoreClient,
    table: str,
    filters: Optional[List[Tuple[str, str]]] = None,
    *,
    label: Optional[str] = None,
) -> Optional[int]:
    query: List[Tuple[str, str]] = [("select", "id"), ("limit", "1")]
    query.extend(filters or [])
    response = await datastore.select(table, query, label=label or table, count_exact=True)
    ensure_success(response, label or table)
    return parse_total(response.headers.get("content-range"))
