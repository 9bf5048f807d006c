"""
Typical price ranges (in rupees) used by the expense price-sanity check.

ITEM_PRICE_RANGES is an ordered tuple: descriptions are matched by
case-insensitive substring and the FIRST matching keyword wins. Multi-word
phrases are listed before single words so "vada pav" is never shadowed by a
shorter keyword; after that, overlapping keywords resolve by list position
(e.g. "chai" before "tea", "meal" before "lunch").
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min < 0 or self.min > self.max:
            raise ValueError(f"invalid price range {self.min}-{self.max}")

    def label(self) -> str:
        return f"{self.min:g}-{self.max:g}"


ITEM_PRICE_RANGES: Tuple[Tuple[str, PriceRange], ...] = (
    # Multi-word phrases first
    ("vada pav", PriceRange(20, 50)),
    ("water bill", PriceRange(100, 1000)),
    # Food
    ("chai", PriceRange(10, 30)),
    ("tea", PriceRange(10, 30)),
    ("coffee", PriceRange(50, 200)),
    ("snack", PriceRange(20, 80)),
    ("samosa", PriceRange(20, 80)),
    ("burger", PriceRange(80, 300)),
    ("pizza", PriceRange(150, 600)),
    ("meal", PriceRange(100, 500)),
    ("lunch", PriceRange(100, 500)),
    ("dinner", PriceRange(100, 500)),
    ("thali", PriceRange(100, 300)),
    ("biryani", PriceRange(150, 400)),
    ("groceries", PriceRange(200, 3000)),
    ("vegetables", PriceRange(50, 1000)),
    ("fruits", PriceRange(50, 1000)),
    ("sweets", PriceRange(50, 300)),
    ("dessert", PriceRange(50, 300)),
    # Transport
    ("auto", PriceRange(30, 200)),
    ("rickshaw", PriceRange(30, 200)),
    ("cab", PriceRange(100, 800)),
    ("uber", PriceRange(100, 800)),
    ("ola", PriceRange(100, 800)),
    ("bus", PriceRange(10, 100)),
    ("metro", PriceRange(10, 60)),
    ("train", PriceRange(10, 100)),
    ("petrol", PriceRange(200, 3000)),
    ("fuel", PriceRange(200, 3000)),
    # Shopping
    ("clothes", PriceRange(300, 3000)),
    ("shirt", PriceRange(300, 2000)),
    ("pants", PriceRange(500, 3000)),
    ("shoes", PriceRange(500, 5000)),
    ("footwear", PriceRange(300, 5000)),
    ("phone", PriceRange(8000, 50000)),
    ("mobile", PriceRange(8000, 50000)),
    ("laptop", PriceRange(25000, 100000)),
    ("computer", PriceRange(25000, 100000)),
    # Entertainment
    ("movie", PriceRange(150, 500)),
    ("cinema", PriceRange(150, 500)),
    ("subscription", PriceRange(100, 700)),
    ("netflix", PriceRange(100, 700)),
    ("spotify", PriceRange(100, 200)),
    # Utilities, health
    ("rent", PriceRange(5000, 30000)),
    ("electricity", PriceRange(200, 3000)),
    ("internet", PriceRange(200, 1000)),
    ("wifi", PriceRange(200, 1000)),
    ("recharge", PriceRange(100, 1000)),
    ("gym", PriceRange(500, 3000)),
    ("fitness", PriceRange(500, 3000)),
    ("medicine", PriceRange(50, 2000)),
    ("pharmacy", PriceRange(50, 2000)),
    ("doctor", PriceRange(200, 2000)),
)

# Broad per-category ranges, used when no item keyword matches
CATEGORY_PRICE_RANGES: Dict[str, PriceRange] = {
    "food": PriceRange(20, 3000),
    "transport": PriceRange(10, 3000),
    "shopping": PriceRange(100, 50000),
    "entertainment": PriceRange(100, 2000),
    "utilities": PriceRange(100, 30000),
    "other": PriceRange(50, 50000),
}

DEFAULT_PRICE_RANGE = PriceRange(50, 50000)


def match_item(description: Optional[str]) -> Optional[Tuple[str, PriceRange]]:
    """Return the first (keyword, range) whose keyword occurs in description."""
    desc = (description or "").lower()
    if not desc.strip():
        return None
    for keyword, price_range in ITEM_PRICE_RANGES:
        if keyword in desc:
            return keyword, price_range
    return None


def lookup_price_range(description: Optional[str], category: str) -> Tuple[str, PriceRange]:
    """Resolve the most specific known range: item keyword, else category."""
    hit = match_item(description)
    if hit is not None:
        return hit
    return category, CATEGORY_PRICE_RANGES.get(category, DEFAULT_PRICE_RANGE)


__all__ = [
    "PriceRange",
    "ITEM_PRICE_RANGES",
    "CATEGORY_PRICE_RANGES",
    "DEFAULT_PRICE_RANGE",
    "match_item",
    "lookup_price_range",
]
