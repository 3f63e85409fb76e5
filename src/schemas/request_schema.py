"""Buyer request and supplier candidate models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.config import settings

# Catalog metadata keys as stored in the vector index
META_PRODUCT_NAME = "Product Name"
META_CATEGORY = "Product Category"
META_MIN_ORDER_QUANTITY = "Minimum Order Quantity"
META_PINCODE = "PIN Code"
META_SELLER_NAME = "Seller Name"
META_SELLER_CONTACT = "Seller POC Contact Number"


class Proximity(str, Enum):
    SAME = "same"
    PAN = "pan"


class SearchRequest(BaseModel):
    """Structured product request accumulated across intake turns."""

    product_name: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    pincode: Optional[str] = Field(
        default=None, pattern=rf"^[0-9]{{{settings.matching.pincode_length}}}$"
    )
    proximity: Optional[Proximity] = None


class Candidate(BaseModel):
    """One supplier match returned by a search."""

    contact: Optional[str] = None
    name: str = "Unknown supplier"
    score: float = 0.0
    pincode: Optional[str] = None
    category: Optional[str] = None
    min_order_quantity: Optional[float] = None
    product_name: Optional[str] = None

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any], score: float = 0.0) -> "Candidate":
        """Build a candidate from raw index metadata."""
        contact = metadata.get(META_SELLER_CONTACT)
        pincode = metadata.get(META_PINCODE)
        try:
            moq = float(metadata[META_MIN_ORDER_QUANTITY])
        except (KeyError, TypeError, ValueError):
            moq = None
        return cls(
            contact=str(contact).strip() or None if contact else None,
            name=str(metadata.get(META_SELLER_NAME) or "Unknown supplier"),
            score=score,
            pincode=str(pincode).strip() if pincode is not None else None,
            category=metadata.get(META_CATEGORY),
            min_order_quantity=moq,
            product_name=metadata.get(META_PRODUCT_NAME),
        )
