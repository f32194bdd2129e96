from __future__ import annotations

import logging
from typing import Optional

from househelp.observability import iso_utc, log_structured, now_utc
from househelp.schemas.base import AuditEvent
from househelp.services.datastore import DatastoreClient

AUDIT_TABLE = "audit_logs"


def build_audit_event(
    *,
    user_id: str,
    user_type: str,
    action: str,
    entity_type: str,
    ip_address: Optional[str] = None,
) -> AuditEvent:
    return AuditEvent(
        user_id=user_id,
        user_type=user_type,
        action=action,
        entity_type=entity_type,
        ip_address=ip_address or "unknown",
        timestamp=iso_utc(now_utc()),
    )


class AuditLogger:
    """Best-effort append to the audit table; it must never fail the audited action."""

    def __init__(self, datastore: DatastoreClient, table: str = AUDIT_TABLE) -> None:
        self.datastore = datastore
        self.table = table

    async def record(self, event: AuditEvent) -> None:
        try:
            response = await self.datastore.insert(self.table, event.to_row(), label="audit")
        except Exception as exc:  # noqa: BLE001
            log_structured(
                logging.WARNING,
                "audit_write_failed",
                message=str(exc)[:200],
                action=event.action,
                entity_type=event.entity_type,
            )
            return
        if not response.is_success:
            log_structured(
                logging.WARNING,
                "audit_write_failed",
                message=f"audit {response.status_code}",
                action=event.action,
                entity_type=event.entity_type,
            )
