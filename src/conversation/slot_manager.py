"""
Slot manager for the buyer's product request.

Each intake step fills exactly one slot: Collect -> Validate -> Store, or
Skip. A slot that fails validation stays unresolved so the engine can
re-prompt the same step without losing anything already collected.

Usage:
    manager = SlotManager()
    ok, msg = manager.set_slot("quantity", "500")
    manager.skip_slot("pincode")
    request = manager.to_request()
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from src.config import settings
from src.schemas.request_schema import Proximity, SearchRequest

logger = logging.getLogger(__name__)

SKIP_KEYWORD = "skip"


class SlotStatus(str, Enum):
    """Lifecycle status of a slot value."""

    EMPTY = "empty"
    INVALID = "invalid"
    VALIDATED = "validated"
    SKIPPED = "skipped"


def is_skip(value: str) -> bool:
    return value.strip().lower() == SKIP_KEYWORD


def _validate_text(value: str) -> bool:
    return bool(value.strip())


_LEADING_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_quantity(value: str) -> Optional[float]:
    """Read the number a quantity answer starts with, ignoring trailing units.

    Examples:
        >>> parse_quantity("500 kg")
        500.0
        >>> parse_quantity("kg 500") is None
        True
    """
    match = _LEADING_NUMBER.match(value.strip())
    if match is None:
        return None
    quantity = float(match.group(0))
    if not math.isfinite(quantity):
        return None
    return quantity


def _validate_quantity(value: str) -> bool:
    """Accept any answer starting with a non-negative finite number."""
    quantity = parse_quantity(value)
    return quantity is not None and quantity >= 0


def _validate_pincode(value: str) -> bool:
    length = settings.matching.pincode_length
    return re.fullmatch(rf"[0-9]{{{length}}}", value.strip()) is not None


def _validate_proximity(value: str) -> bool:
    return value.strip().lower() in {p.value for p in Proximity}


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single request field to collect."""

    name: str
    display_name: str
    validator: Optional[Callable[[str], bool]] = None
    skippable: bool = True


@dataclass
class SlotValue:
    """Current state and history of a collected slot."""

    raw_value: Optional[str] = None
    normalized_value: Any = None
    status: SlotStatus = SlotStatus.EMPTY
    attempts: int = 0
    rejected_values: list[str] = field(default_factory=list)


class SlotManager:
    """
    Collects the request draft one slot at a time.

    Values are normalized on the way in, so ``to_request`` can hand the
    matcher a ready-to-use SearchRequest.
    """

    SLOT_DEFINITIONS: list[SlotDefinition] = [
        SlotDefinition(
            name="product_name",
            display_name="product name",
            validator=_validate_text,
        ),
        SlotDefinition(
            name="category",
            display_name="product category",
            validator=_validate_text,
        ),
        SlotDefinition(
            name="quantity",
            display_name="quantity",
            validator=_validate_quantity,
        ),
        SlotDefinition(
            name="pincode",
            display_name="PIN code",
            validator=_validate_pincode,
        ),
        SlotDefinition(
            name="proximity",
            display_name="proximity preference",
            validator=_validate_proximity,
            skippable=False,
        ),
    ]

    def __init__(self) -> None:
        self.slots: dict[str, SlotValue] = {
            defn.name: SlotValue() for defn in self.SLOT_DEFINITIONS
        }

    def _get_definition(self, name: str) -> SlotDefinition:
        for defn in self.SLOT_DEFINITIONS:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown slot: {name}")

    def _normalize(self, name: str, value: str) -> Any:
        """Apply slot-specific normalization rules."""
        value = value.strip()
        if name == "quantity":
            return parse_quantity(value)
        if name == "proximity":
            return Proximity(value.lower())
        return value

    def set_slot(self, name: str, raw_value: str) -> tuple[bool, str]:
        """
        Set a slot value with validation.

        Returns:
            (success, message) - success=True if validation passed.
        """
        defn = self._get_definition(name)
        slot = self.slots[name]
        slot.raw_value = raw_value
        slot.attempts += 1

        if defn.validator and not defn.validator(raw_value):
            slot.status = SlotStatus.INVALID
            slot.rejected_values.append(raw_value)
            logger.debug("Slot '%s' validation failed: '%s'", name, raw_value)
            return False, f"The {defn.display_name} '{raw_value}' doesn't look right."

        slot.normalized_value = self._normalize(name, raw_value)
        slot.status = SlotStatus.VALIDATED
        logger.debug("Slot '%s' set to '%s'", name, slot.normalized_value)
        return True, f"Got {defn.display_name}: {slot.normalized_value}"

    def skip_slot(self, name: str) -> None:
        """Resolve a slot as intentionally left empty."""
        defn = self._get_definition(name)
        if not defn.skippable:
            raise ValueError(f"Slot '{name}' cannot be skipped")
        slot = self.slots[name]
        slot.attempts += 1
        slot.raw_value = None
        slot.normalized_value = None
        slot.status = SlotStatus.SKIPPED

    def fill_or_skip(self, name: str, raw_value: str) -> tuple[bool, str]:
        """Skip the slot on the skip keyword, otherwise validate and set it."""
        if is_skip(raw_value) and self._get_definition(name).skippable:
            self.skip_slot(name)
            return True, f"Skipped {self._get_definition(name).display_name}"
        return self.set_slot(name, raw_value)

    def reset(self) -> None:
        """Discard the draft so a new search can start."""
        self.slots = {defn.name: SlotValue() for defn in self.SLOT_DEFINITIONS}

    def to_dict(self) -> dict[str, Any]:
        """Export filled slot values as a flat dict."""
        return {
            d.name: self.slots[d.name].normalized_value
            for d in self.SLOT_DEFINITIONS
            if self.slots[d.name].status == SlotStatus.VALIDATED
        }

    def to_request(self) -> SearchRequest:
        """Build the search request from the filled slots."""
        return SearchRequest(**self.to_dict())

    def get_stats(self) -> dict[str, Any]:
        """Get slot collection statistics for logging."""
        return {
            "total_attempts": sum(s.attempts for s in self.slots.values()),
            "rejected": sum(len(s.rejected_values) for s in self.slots.values()),
            "filled": sum(1 for s in self.slots.values() if s.status == SlotStatus.VALIDATED),
            "skipped": sum(1 for s in self.slots.values() if s.status == SlotStatus.SKIPPED),
        }
