from __future__ import annotations

from househelp.services.query_proxy import ListingResource

ADMIN_JOBS = ListingResource(
    name="jobs",
    table="jobs",
    columns=("id", "status", "created_at", "completed_at"),
    descending=False,
    time_column="created_at",
    default_from_days=30,
)

ADMIN_PAYMENTS = ListingResource(
    name="payments",
    table="payments",
    columns=(
        "id",
        "created_at",
        "amount",
        "platform_fee",
        "tax",
        "payout",
        "status",
        "household_id",
        "worker_id",
        "booking_id",
    ),
    time_column="created_at",
    default_from_days=30,
    paginated=True,
)

ADMIN_RATINGS = ListingResource(
    name="ratings",
    table="worker_ratings_reviews",
    columns=("id", "rating", "created_at"),
    descending=False,
    time_column="created_at",
    default_from_days=90,
)

ADMIN_HOUSEHOLDS = ListingResource(
    name="households",
    table="households",
    columns=("id", "name", "email", "status", "created_at", "verification_status"),
    filters=("status",),
)

ADMIN_WORKERS = ListingResource(
    name="workers",
    table="workers",
    columns=("id", "full_name", "email", "status", "created_at", "verification_status", "rating"),
    filters=("status",),
)

ADMIN_NOTIFICATIONS = ListingResource(
    name="notifications",
    table="notifications",
    columns=("id", "title", "message", "severity", "created_at", "household_id", "worker_id"),
    fixed_limit=100,
)

ADMIN_REPORTS = ListingResource(
    name="reports",
    table="reports",
    columns=("id", "type", "subject", "description", "status", "created_at", "household_id", "worker_id"),
    filters=("type", "status"),
)

WORKER_NOTIFICATIONS = ListingResource(
    name="notifications",
    table="notifications",
    fixed_limit=50,
    scope_column="worker_id",
)

WORKER_EARNINGS = ListingResource(
    name="earnings",
    table="payments",
    time_column="created_at",
    default_from_days=30,
    scope_column="worker_id",
)

WORKER_JOBS = ListingResource(
    name="jobs",
    table="jobs",
    columns=("id", "status", "service", "household_id", "scheduled_at", "created_at"),
    order_column="scheduled_at",
    descending=False,
    filters=("status",),
    scope_column="worker_id",
)

HOUSEHOLD_NOTIFICATIONS = ListingResource(
    name="notifications",
    table="notifications",
    fixed_limit=50,
    scope_column="household_id",
)
