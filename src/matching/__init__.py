from src.matching.matcher import SearchError, SupplierMatcher, build_filter
from src.matching.proximity import nearest_first, pincode_distance, same_region

__all__ = [
    "SupplierMatcher",
    "SearchError",
    "build_filter",
    "nearest_first",
    "pincode_distance",
    "same_region",
]
