from __future__ import annotations

import logging

from househelp.errors import UpstreamFailure
from househelp.observability import log_structured
from househelp.security_events import safe_hash
from househelp.services.datastore import DatastoreClient, eq

SESSIONS_TABLE = "sessions"


class SessionStore:
    """Revocation side of the session table: the only write this service makes is delete."""

    def __init__(self, datastore: DatastoreClient, table: str = SESSIONS_TABLE) -> None:
        self.datastore = datastore
        self.table = table

    async def invalidate(self, token: str) -> bool:
        """Delete the session row for ``token``.

        Deleting a row that is already gone counts as success. Failures are
        logged and reported as ``False``; they are never raised.
        """
        if not token:
            return True
        try:
            response = await self.datastore.delete(
                self.table, {"token": eq(token)}, label="session delete"
            )
        except UpstreamFailure as exc:
            log_structured(
                logging.WARNING,
                "session_delete_failed",
                message=exc.message,
                session_hash=safe_hash(token),
            )
            return False
        if response.is_success or response.status_code == 404:
            return True
        log_structured(
            logging.WARNING,
            "session_delete_failed",
            message=f"session delete {response.status_code}",
            session_hash=safe_hash(token),
        )
        return False
