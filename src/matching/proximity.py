"""
Postal-code proximity policies.

"same" keeps suppliers whose PIN code shares the buyer's region prefix
(the first two digits identify the postal circle, which roughly maps to a
state). "pan" keeps everyone and orders by absolute numeric PIN difference.
Numeric difference is a cheap stand-in for distance, not a geographic one.
"""

import math
import re
from typing import Optional

from src.config import settings
from src.schemas.request_schema import Candidate

_ASCII_DIGITS = re.compile(r"[0-9]+")


def pincode_distance(candidate_pincode: Optional[str], buyer_pincode: str) -> float:
    """Absolute numeric difference between two PIN codes.

    A missing or non-numeric candidate PIN code gets ``math.inf`` so it
    sorts after every parsable one instead of being dropped. Only ASCII
    digits count, since ``str.isdigit`` also accepts superscripts that
    ``int()`` rejects.
    """
    if not candidate_pincode or not _ASCII_DIGITS.fullmatch(candidate_pincode.strip()):
        return math.inf
    return float(abs(int(candidate_pincode.strip()) - int(buyer_pincode)))


def same_region(candidates: list[Candidate], buyer_pincode: str) -> list[Candidate]:
    """Keep candidates in the buyer's region, preserving index order."""
    prefix = buyer_pincode[:settings.matching.region_prefix_length]
    return [c for c in candidates if c.pincode and c.pincode.startswith(prefix)]


def nearest_first(candidates: list[Candidate], buyer_pincode: str) -> list[Candidate]:
    """Stable sort by non-decreasing PIN code distance from the buyer."""
    return sorted(candidates, key=lambda c: pincode_distance(c.pincode, buyer_pincode))
