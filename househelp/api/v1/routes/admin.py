from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request

from househelp.api.v1.deps.auth import get_datastore, require_type
from househelp.errors import GatewayError, ok_payload
from househelp.observability import days_ago_iso, iso_utc, log_structured, now_utc
from househelp.permissions import USER_ADMIN
from househelp.schemas.base import VerifiedUser
from househelp.services import listings
from househelp.services.datastore import DatastoreClient, ensure_success, eq, gte
from househelp.services.query_proxy import ListingResource, count_rows, list_resource, parse_from_days

router = APIRouter()

require_admin = require_type(USER_ADMIN)

METRICS_DEFAULT_FROM_DAYS = 7


async def _list(request: Request, datastore: DatastoreClient, resource: ListingResource) -> Dict[str, Any]:
    envelope = await list_resource(datastore, resource, request.query_params)
    return envelope.to_payload()


@router.get("/jobs")
async def admin_jobs(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_JOBS)


@router.get("/payments")
async def admin_payments(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_PAYMENTS)


@router.get("/ratings")
async def admin_ratings(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_RATINGS)


@router.get("/households")
async def admin_households(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_HOUSEHOLDS)


@router.get("/workers")
async def admin_workers(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_WORKERS)


@router.get("/notifications")
async def admin_notifications(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_NOTIFICATIONS)


@router.get("/reports")
async def admin_reports(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    return await _list(request, datastore, listings.ADMIN_REPORTS)


def metric_queries(from_iso: str, week_ahead_iso: str) -> List[Tuple[str, str, List[Tuple[str, str]]]]:
    return [
        ("active_workers", "workers", []),
        ("active_households", "households", []),
        ("open_jobs", "jobs", [("status", eq("active"))]),
        ("pending_jobs", "jobs", [("status", eq("pending"))]),
        ("cancelled_jobs", "jobs", [("status", eq("cancelled"))]),
        ("completed_jobs_window", "jobs", [("status", eq("completed")), ("completed_at", gte(from_iso))]),
        ("workers_verifying", "worker_verification", [("status", eq("pending"))]),
        ("households_verifying", "household_verification", [("status", eq("pending"))]),
        ("suspended_accounts", "workers", [("status", eq("suspended"))]),
        ("payments_count_window", "payments", [("created_at", gte(from_iso))]),
        (
            "pending_payouts_count",
            "payments",
            [("status", eq("pending_payout")), ("created_at", gte(from_iso))],
        ),
        ("training_enrolled", "worker_training_assignments", [("status", eq("enrolled"))]),
        (
            "training_due_week",
            "worker_training_assignments",
            [("due_at", f"lte.{week_ahead_iso}"), ("status", "neq.completed")],
        ),
        ("behavior_reports_new", "reports", [("type", eq("behavior")), ("status", eq("pending"))]),
        ("system_issues_open", "reports", [("type", eq("system")), ("status", "in.(pending,open)")]),
        ("notifications_critical", "notifications", [("severity", eq("critical")), ("ack", eq("false"))]),
    ]


PAYMENT_BREAKDOWN_KEYS = {
    "platform_fee": "fees_sum_window",
    "tax": "tax_sum_window",
    "payout": "payout_sum_window",
}


async def _aggregate_row(
    datastore: DatastoreClient, select: str, from_iso: str, label: str
) -> Optional[Dict[str, Any]]:
    try:
        response = await datastore.select(
            "payments", [("select", select), ("created_at", gte(from_iso))], label=label
        )
        ensure_success(response, label)
        rows = response.json()
    except (GatewayError, ValueError) as exc:
        log_structured(logging.WARNING, "metrics_aggregate_failed", label=label, error_type=type(exc).__name__)
        return None
    if isinstance(rows, list) and rows and isinstance(rows[0], dict):
        return rows[0]
    return None


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


async def payment_sums(datastore: DatastoreClient, from_iso: str) -> Dict[str, float]:
    """Payment totals for the window; any sum the store cannot produce is left out."""
    total_row, breakdown_row = await asyncio.gather(
        _aggregate_row(datastore, "sum(amount)", from_iso, "payments sum"),
        _aggregate_row(datastore, "sum(platform_fee),sum(tax),sum(payout)", from_iso, "payments breakdown"),
    )
    sums: Dict[str, float] = {}
    if total_row is not None:
        total = _as_number(total_row.get("sum"))
        if total is not None:
            sums["payments_sum_window"] = total
    breakdown = breakdown_row.get("sum") if breakdown_row is not None else None
    if isinstance(breakdown, dict):
        for column, key in PAYMENT_BREAKDOWN_KEYS.items():
            value = _as_number(breakdown.get(column))
            if value is not None:
                sums[key] = value
    return sums


@router.get("/metrics")
async def admin_metrics(
    request: Request,
    admin: VerifiedUser = Depends(require_admin),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    from_days = parse_from_days(request.query_params.get("fromDays"), METRICS_DEFAULT_FROM_DAYS)
    now = now_utc()
    from_iso = days_ago_iso(from_days, now)
    queries = metric_queries(from_iso, days_ago_iso(-7, now))

    async def run(name: str, table: str, filters: List[Tuple[str, str]]) -> Tuple[str, Optional[int], Optional[str]]:
        try:
            return name, await count_rows(datastore, table, filters), None
        except GatewayError as exc:
            return name, None, f"{name}:{exc.message}"

    results, sums = await asyncio.gather(
        asyncio.gather(*(run(*query) for query in queries)),
        payment_sums(datastore, from_iso),
    )
    metrics: Dict[str, Any] = {}
    errors: List[str] = []
    for name, value, error in results:
        metrics[name] = value
        if error:
            errors.append(error)
    metrics.update(sums)
    payload = ok_payload(metrics=metrics, fromDays=from_days, generated_at=iso_utc(now))
    if errors:
        payload["errors"] = errors
    return payload
