"""Inquiry correlation and dispatch result models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactedSupplier(BaseModel):
    """A supplier an inquiry was addressed to."""

    model_config = ConfigDict(frozen=True)

    contact: Optional[str] = None
    name: str


class Inquiry(BaseModel):
    """Correlation record linking a buyer's request to the suppliers it went to."""

    model_config = ConfigDict(frozen=True)

    inquiry_id: str
    buyer: str
    product_name: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[float] = None
    suppliers: tuple[ContactedSupplier, ...] = ()
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def contacts(self) -> list[str]:
        """Contact addresses of suppliers that can actually be messaged."""
        return [s.contact for s in self.suppliers if s.contact]


class ReplyStatus(str, Enum):
    DELIVERED = "delivered"
    INQUIRY_NOT_FOUND = "inquiry_not_found"
    NOT_A_PARTY = "not_a_party"
    NOT_A_REPLY = "not_a_reply"
    DELIVERY_FAILED = "delivery_failed"


class RouteResult(BaseModel):
    """Outcome of routing a supplier reply back to a buyer."""

    status: ReplyStatus
    inquiry_id: Optional[str] = None
    buyer: Optional[str] = None
    supplier: Optional[ContactedSupplier] = None


class DispatchResult(BaseModel):
    """Aggregate outcome of fanning an inquiry out to its suppliers."""

    inquiry_id: str
    targeted: int = 0
    failed: int = 0
    failed_contacts: list[str] = Field(default_factory=list)

    @property
    def delivered(self) -> int:
        return self.targeted - self.failed
