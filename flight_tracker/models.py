"""Data models used throughout the project."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


@dataclass(slots=True, frozen=True)
class TripQuery:
    origin: str
    destination: str
    outbound_date: date
    return_date: Optional[date] = None
    adults: int = 1
    currency: str = "INR"
    max_results: int = 50


@dataclass(slots=True, frozen=True)
class Leg:
    departure_at: datetime
    arrival_at: Optional[datetime]
    duration_minutes: Optional[int]
    stops: int = 0

    @property
    def departure_hour(self) -> int:
        # airport-local wall clock, as printed by the provider
        return self.departure_at.hour


@dataclass(slots=True)
class Offer:
    id: str
    source: str
    airline: str
    airline_code: str
    price: int
    outbound: Leg
    inbound: Optional[Leg] = None
    refundable_price: Optional[int] = None
    refundable: Optional[bool] = None
    deep_link: Optional[str] = None

    @property
    def total_duration_minutes(self) -> Optional[int]:
        out = self.outbound.duration_minutes
        if self.inbound is None:
            return out
        back = self.inbound.duration_minutes
        if out is None or back is None:
            return None
        return out + back

    @property
    def legs(self) -> Tuple[Leg, ...]:
        if self.inbound is None:
            return (self.outbound,)
        return (self.outbound, self.inbound)


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    """Per-run filtering rules. ``None`` disables a dimension."""

    max_budget: Optional[int] = None
    excluded_airlines: FrozenSet[str] = frozenset()
    earliest_outbound_hour: Optional[int] = None
    return_window_start: Optional[int] = None
    return_window_end: Optional[int] = None
    max_stops: Optional[int] = None
    date_window: Optional[Tuple[date, date]] = None

    @classmethod
    def budget_only(
        cls, max_budget: Optional[int], excluded_airlines=()
    ) -> "FilterCriteria":
        """Profile without time-window or stop constraints."""
        return cls(
            max_budget=max_budget,
            excluded_airlines=frozenset(excluded_airlines),
        )


class Category(str, Enum):
    FASTEST = "fastest"
    CHEAPEST = "cheapest"
    BEST_ONE_STOP = "bestOneStop"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    Category.FASTEST: "Fastest Flight",
    Category.CHEAPEST: "Cheapest Flight",
    Category.BEST_ONE_STOP: "Best 1-Stop",
}


@dataclass(slots=True)
class Categorization:
    fastest: Offer
    cheapest: Offer
    best_one_stop: Optional[Offer] = None

    def get(self, category: Category) -> Optional[Offer]:
        if category is Category.FASTEST:
            return self.fastest
        if category is Category.CHEAPEST:
            return self.cheapest
        return self.best_one_stop

    def prices(self) -> Dict[Category, Optional[int]]:
        result: Dict[Category, Optional[int]] = {}
        for cat in Category:
            off = self.get(cat)
            result[cat] = off.price if off is not None else None
        return result


@dataclass(slots=True)
class PriceHistoryEntry:
    date: date
    fastest: int
    cheapest: int
    best_one_stop: Optional[int] = None

    def baseline(self, category: Category) -> Optional[int]:
        if category is Category.FASTEST:
            return self.fastest
        if category is Category.CHEAPEST:
            return self.cheapest
        return self.best_one_stop

    def set_baseline(self, category: Category, price: Optional[int]) -> None:
        if category is Category.FASTEST:
            self.fastest = price
        elif category is Category.CHEAPEST:
            self.cheapest = price
        else:
            self.best_one_stop = price


@dataclass(slots=True)
class PriceHistory:
    daily: List[PriceHistoryEntry] = field(default_factory=list)
    last_checked: Optional[datetime] = None

    def find(self, day: date) -> Optional[PriceHistoryEntry]:
        for entry in self.daily:
            if entry.date == day:
                return entry
        return None

    def previous(self, day: date) -> Optional[PriceHistoryEntry]:
        """Return the latest entry strictly before ``day``."""
        earlier = [e for e in self.daily if e.date < day]
        return max(earlier, key=lambda e: e.date) if earlier else None


class AlertKind(str, Enum):
    SUMMARY = "summary"
    PRICE_DROP = "price_drop"


@dataclass(slots=True)
class AlertEvent:
    kind: AlertKind
    category: Optional[Category] = None
    offer: Optional[Offer] = None
    old_price: Optional[int] = None
    new_price: Optional[int] = None
    categories: Optional[Categorization] = None
    previous: Optional[PriceHistoryEntry] = None

    @property
    def drop(self) -> int:
        if self.old_price is None or self.new_price is None:
            return 0
        return self.old_price - self.new_price
