import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from househelp.errors import UpstreamFailure
from househelp.services import listings
from househelp.services.query_proxy import (
    ListingResource,
    build_query,
    build_window,
    clamp_limit,
    clamp_offset,
    list_resource,
    parse_from_days,
    parse_total,
)

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 20), ("", 20), ("abc", 20), ("0", 1), ("-3", 1), ("1", 1), ("57", 57), ("100", 100), ("1000", 100)],
)
def test_clamp_limit(raw, expected) -> None:
    assert clamp_limit(raw) == expected


@pytest.mark.parametrize("raw, expected", [(None, 0), ("-5", 0), ("x", 0), ("40", 40)])
def test_clamp_offset(raw, expected) -> None:
    assert clamp_offset(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 30), ("abc", 30), ("-1", 30), ("0", 0), (" 7 ", 7), ("1000000", 36500)],
)
def test_parse_from_days(raw, expected) -> None:
    assert parse_from_days(raw, 30) == expected


def test_parse_total() -> None:
    assert parse_total("0-19/137") == 137
    assert parse_total("*/0") == 0
    assert parse_total("0-19/*") is None
    assert parse_total(None) is None
    assert parse_total("") is None


def test_window_for_non_numeric_from_days_uses_resource_default() -> None:
    window = build_window(listings.ADMIN_RATINGS, {"fromDays": "soon"}, NOW)
    assert window.from_days == 90
    assert window.lower_bound == "2025-12-01T12:00:00Z"
    assert window.limit is None
    assert window.offset is None


def test_window_for_paginated_resource_is_clamped() -> None:
    window = build_window(listings.ADMIN_PAYMENTS, {"limit": "1000", "offset": "-5"}, NOW)
    assert window.limit == 100
    assert window.offset == 0
    assert window.from_days == 30


def test_fixed_limit_ignores_caller_limit() -> None:
    window = build_window(listings.WORKER_NOTIFICATIONS, {"limit": "5"}, NOW)
    assert window.limit == 50
    assert window.offset is None
    assert window.from_days is None


def test_build_query_order_scope_filters_and_window() -> None:
    resource = ListingResource(
        name="reports",
        table="reports",
        columns=("id", "status"),
        time_column="created_at",
        default_from_days=30,
        filters=("status",),
        scope_column="household_id",
    )
    params = {"status": "open", "type": "system", "household_id": "H-999"}
    window = build_window(resource, params, NOW)
    query = build_query(resource, window, params, scope_value="H-1")

    assert query == [
        ("select", "id,status"),
        ("order", "created_at.desc"),
        ("household_id", "eq.H-1"),
        ("status", "eq.open"),
        ("created_at", "gte.2026-01-30T12:00:00Z"),
    ]


def test_build_query_refuses_scoped_resource_without_scope() -> None:
    window = build_window(listings.WORKER_JOBS, {}, NOW)
    with pytest.raises(ValueError):
        build_query(listings.WORKER_JOBS, window, {})


def test_list_resource_reads_total_from_content_range(datastore, fake_store) -> None:
    fake_store.tables["payments"] = [
        {"id": f"P-{i}", "created_at": (NOW - timedelta(hours=i)).isoformat(), "amount": 100}
        for i in range(25)
    ]
    envelope = asyncio.run(list_resource(datastore, listings.ADMIN_PAYMENTS, {"limit": "10"}, now=NOW))

    assert envelope.total == 25
    assert len(envelope.items) == 10
    assert envelope.items[0]["id"] == "P-0"
    request = fake_store.requests_to("payments")[0]
    assert request.headers["prefer"] == "count=exact"
    assert request.url.params["limit"] == "10"
    assert request.url.params["offset"] == "0"


def test_list_resource_total_is_null_without_header(datastore, fake_store) -> None:
    fake_store.omit_count = True
    envelope = asyncio.run(list_resource(datastore, listings.ADMIN_PAYMENTS, {}, now=NOW))
    assert envelope.total is None
    assert envelope.to_payload()["total"] is None


def test_list_resource_surfaces_upstream_status(datastore, fake_store) -> None:
    fake_store.failures["worker_ratings_reviews"] = 404
    with pytest.raises(UpstreamFailure) as excinfo:
        asyncio.run(list_resource(datastore, listings.ADMIN_RATINGS, {}, now=NOW))
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "ratings 404"


def test_envelope_keys_follow_resource_shape(datastore, fake_store) -> None:
    plain = asyncio.run(list_resource(datastore, listings.ADMIN_WORKERS, {}, now=NOW)).to_payload()
    windowed = asyncio.run(list_resource(datastore, listings.ADMIN_JOBS, {}, now=NOW)).to_payload()
    paged = asyncio.run(list_resource(datastore, listings.ADMIN_PAYMENTS, {}, now=NOW)).to_payload()

    assert set(plain) == {"ok", "items"}
    assert set(windowed) == {"ok", "items", "fromDays"}
    assert set(paged) == {"ok", "items", "fromDays", "total", "limit", "offset"}
