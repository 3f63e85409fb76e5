"""
Centralized buyer- and supplier-facing message text.

Every fixed reply the bot sends lives here so wording can change without
touching the engine. The service name is injected from configuration.
"""

from typing import Optional

from src.config import settings
from src.schemas.inquiry_schema import ContactedSupplier, Inquiry
from src.schemas.request_schema import SearchRequest
from src.utils import format_reference

_name = settings.service_name
_pin_digits = settings.matching.pincode_length

EXIT_HINT = "You can send 'no' or 'stop' at any time to exit."

PRODUCT_NAME_PROMPT = (
    "Enter part of the Product Name (e.g., 'Sodium', or send 'skip' to skip):"
)

WELCOME = (
    f"Welcome to the {_name}! Connect with suppliers across India.\n\n"
    f"{EXIT_HINT}\n\n"
    f"{PRODUCT_NAME_PROMPT}"
)

RESTART = f"Let's start a new search.\n\n{PRODUCT_NAME_PROMPT}"

CATEGORY_PROMPT = (
    "Enter the Product Category (e.g., 'Industrial Chemicals', or send 'skip' to skip):"
)

QUANTITY_PROMPT = "How much do you need (in units, e.g., 500, or send 'skip' to skip):"

QUANTITY_RETRY = "Please enter a valid non-negative number for quantity, or send 'skip' to skip."

PINCODE_PROMPT = (
    f"Enter your {_pin_digits}-digit PIN code (e.g., 390013, or send 'skip' to skip):"
)

PINCODE_RETRY = f"Please enter a valid {_pin_digits}-digit PIN code, or send 'skip' to skip."

PROXIMITY_PROMPT = (
    "Do you want suppliers from the same state (same) or anywhere in India (pan)? "
    "Send 'same' or 'pan':"
)

PROXIMITY_RETRY = "Please send 'same' for same state or 'pan' for pan-India."

TEXT_RETRY = "Please send a short text, or 'skip' to skip."

INPUT_TOO_LONG = "That message is too long. Please keep it short."

SEARCH_AGAIN_SUFFIX = "\n\nDo you want to search again? Send 'yes' to start a new search."

TERMINATED = "Search terminated. Goodbye! Send 'hello' to start a new search."

FAREWELL = f"Thank you for using the {_name}! Goodbye! Send 'hello' to start a new search."

GENERIC_ERROR = "Sorry, something went wrong. Please send 'hello' to start again."

NO_SUPPLIERS_FOUND = "No suppliers found matching your criteria."

NO_CONTACTABLE_SUPPLIERS = "No suppliers with contact numbers found."

# Acknowledgements sent back to a supplier whose message carried a reference
REPLY_FORWARDED = "Your quotation has been forwarded to the buyer."
REPLY_INQUIRY_NOT_FOUND = "Inquiry not found."
REPLY_NOT_A_PARTY = "Supplier not found for this inquiry."
REPLY_DELIVERY_FAILED = "We could not forward your quotation right now. Please try again later."


def _or_unspecified(value: Optional[object]) -> str:
    if value is None or value == "":
        return "Not specified"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_supplier_inquiry(inquiry_id: str, request: SearchRequest) -> str:
    """Message sent to each matched supplier asking for a quotation."""
    return (
        f"Please provide your quotation for inquiry {format_reference(inquiry_id)}:\n"
        f"Product: {_or_unspecified(request.product_name)}\n"
        f"Category: {_or_unspecified(request.category)}\n"
        f"Quantity: {_or_unspecified(request.quantity)}\n"
        "Send your quotation via WhatsApp only, including the inquiry number."
    )


def build_inquiry_sent(inquiry_id: str, supplier_count: int) -> str:
    """Buyer-facing summary after the fan-out settles."""
    noun = "supplier" if supplier_count == 1 else "suppliers"
    return (
        f"We have sent your inquiry {format_reference(inquiry_id)} to {supplier_count} {noun}. "
        "You will receive their responses within 24 hours."
    )


def build_quotation_forward(inquiry: Inquiry, supplier: ContactedSupplier, reply_text: str) -> str:
    """Message relaying a supplier's reply to the buyer."""
    product = inquiry.product_name or "the product"
    contact = supplier.contact or "no contact"
    return f"Quotation for {product} from {supplier.name} ({contact}): {reply_text}"
