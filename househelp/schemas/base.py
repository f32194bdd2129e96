from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

UserType = Literal["household", "worker", "admin"]
USER_TYPES = ("household", "worker", "admin")


class CallerIdentity(BaseModel):
    """What a request claims about its caller, before anything is verified."""

    model_config = ConfigDict(frozen=True)

    user_id: str = ""
    user_type: str = ""
    token: str = ""

    @property
    def present(self) -> bool:
        return bool(self.user_id and self.token)


class VerifiedUser(BaseModel):
    id: str
    type: UserType
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class AuditEvent(BaseModel):
    user_id: str
    user_type: str
    action: str
    entity_type: str
    ip_address: str = "unknown"
    timestamp: str

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump(exclude={"timestamp"})
        row["created_at"] = self.timestamp
        return row


class QueryWindow(BaseModel):
    from_days: Optional[int] = Field(default=None, ge=0)
    lower_bound: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


class ListEnvelope(BaseModel):
    ok: bool = True
    items: List[Dict[str, Any]]
    total: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    from_days: Optional[int] = None
    paginated: bool = False

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": self.ok, "items": self.items}
        if self.paginated:
            payload.update(total=self.total, limit=self.limit, offset=self.offset)
        if self.from_days is not None:
            payload["fromDays"] = self.from_days
        return payload
