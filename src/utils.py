"""Shared utilities used across the intake bot."""

import re
from typing import Optional

from src.config import settings


def normalize_address(value: str) -> str:
    """Strip the transport prefix and surrounding whitespace from a sender address.

    Examples:
        >>> normalize_address("whatsapp:+919812345678")
        '+919812345678'
        >>> normalize_address(" +919812345678 ")
        '+919812345678'
    """
    value = value.strip()
    prefix = settings.messaging.address_prefix
    if prefix and value.lower().startswith(prefix.lower()):
        return value[len(prefix):].strip()
    return value


def to_transport_address(value: str) -> str:
    """Add the transport prefix to a bare contact number if it is missing."""
    value = value.strip()
    prefix = settings.messaging.address_prefix
    if not prefix or value.lower().startswith(prefix.lower()):
        return value
    return f"{prefix}{value}"


_REFERENCE_PATTERN = re.compile(re.escape(settings.inquiry.reference_marker) + r"(\d+)")


def extract_inquiry_reference(text: str) -> Optional[str]:
    """Return the first inquiry ID embedded as ``#<digits>`` in text, if any.

    Examples:
        >>> extract_inquiry_reference("Quote for #1712345678901234: Rs 40/kg")
        '1712345678901234'
        >>> extract_inquiry_reference("hello") is None
        True
    """
    match = _REFERENCE_PATTERN.search(text)
    return match.group(1) if match else None


def format_reference(inquiry_id: str) -> str:
    """Render an inquiry ID the way suppliers must quote it back."""
    return f"{settings.inquiry.reference_marker}{inquiry_id}"
