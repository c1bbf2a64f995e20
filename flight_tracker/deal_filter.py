from __future__ import annotations

from typing import Callable, Iterable, List

from .models import FilterCriteria, Offer


# ────────────────────────────────────────────────────────────────
# 1.  Reguły filtrowania (niezależne predykaty)
# ────────────────────────────────────────────────────────────────


def passes_budget(offer: Offer, criteria: FilterCriteria) -> bool:
    """Cena musi być dodatnia i nie większa niż budżet."""
    if offer.price <= 0:
        return False
    return criteria.max_budget is None or offer.price <= criteria.max_budget


def passes_airline(offer: Offer, criteria: FilterCriteria) -> bool:
    return offer.airline_code not in criteria.excluded_airlines


def passes_outbound_time(offer: Offer, criteria: FilterCriteria) -> bool:
    if criteria.earliest_outbound_hour is None:
        return True
    return offer.outbound.departure_hour >= criteria.earliest_outbound_hour


def passes_return_time(offer: Offer, criteria: FilterCriteria) -> bool:
    """Powrót musi wylatywać w oknie ``[start, end)``.

    Oferty one-way (bez nogi powrotnej) przechodzą zawsze.
    """
    if offer.inbound is None:
        return True
    hour = offer.inbound.departure_hour
    if criteria.return_window_start is not None and hour < criteria.return_window_start:
        return False
    if criteria.return_window_end is not None and hour >= criteria.return_window_end:
        return False
    return True


def passes_stops(offer: Offer, criteria: FilterCriteria) -> bool:
    if criteria.max_stops is None:
        return True
    return all(leg.stops <= criteria.max_stops for leg in offer.legs)


def passes_date_window(offer: Offer, criteria: FilterCriteria) -> bool:
    if criteria.date_window is None:
        return True
    start, end = criteria.date_window
    return start <= offer.outbound.departure_at.date() <= end


RULES: List[Callable[[Offer, FilterCriteria], bool]] = [
    passes_budget,
    passes_airline,
    passes_outbound_time,
    passes_return_time,
    passes_stops,
    passes_date_window,
]


# ────────────────────────────────────────────────────────────────
# 2.  Filtr używany przez daily_runner.py
# ────────────────────────────────────────────────────────────────


def is_acceptable(offer: Offer, criteria: FilterCriteria) -> bool:
    return all(rule(offer, criteria) for rule in RULES)


def filter_offers(
    offers: Iterable[Offer], criteria: FilterCriteria
) -> List[Offer]:
    """Zwróć oferty spełniające wszystkie reguły, w kolejności wejściowej."""
    return [off for off in offers if is_acceptable(off, criteria)]


def sort_by_price(offers: Iterable[Offer]) -> List[Offer]:
    return sorted(offers, key=lambda off: off.price)


__all__ = [
    "passes_budget",
    "passes_airline",
    "passes_outbound_time",
    "passes_return_time",
    "passes_stops",
    "passes_date_window",
    "RULES",
    "is_acceptable",
    "filter_offers",
    "sort_by_price",
]
