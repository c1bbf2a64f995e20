"""
alert_engine – decyzja: podsumowanie dzienne albo alert spadku ceny.

Tryb podsumowania: jedno zdarzenie ``summary`` i bezwarunkowy reset
baseline na bieżące ceny.
Tryb kontrolny (dla każdej kategorii obecnej w obu zbiorach):
  current <= baseline - threshold  ->  alert + baseline = current
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from .models import (
    AlertEvent,
    AlertKind,
    Categorization,
    Category,
    PriceHistoryEntry,
)

logger = logging.getLogger(__name__)


def is_daily_summary_time(now: datetime, summary_hour: int) -> bool:
    """``True`` during the configured summary hour of ``now``'s clock."""
    return now.hour == summary_hour


def reset_baseline(entry: PriceHistoryEntry, categories: Categorization) -> None:
    for category, price in categories.prices().items():
        entry.set_baseline(category, price)


def detect_drops(
    categories: Categorization,
    entry: PriceHistoryEntry,
    drop_threshold: int,
) -> List[AlertEvent]:
    """Compare current picks with the baseline and ratchet it downwards."""
    alerts: List[AlertEvent] = []
    for category in Category:
        offer = categories.get(category)
        baseline = entry.baseline(category)
        if offer is None or baseline is None:
            continue
        if offer.price <= baseline - drop_threshold:
            alerts.append(
                AlertEvent(
                    kind=AlertKind.PRICE_DROP,
                    category=category,
                    offer=offer,
                    old_price=baseline,
                    new_price=offer.price,
                )
            )
            entry.set_baseline(category, offer.price)
            logger.info(
                "%s dropped %s -> %s", category.label, baseline, offer.price
            )
    return alerts


def decide(
    categories: Categorization,
    entry: PriceHistoryEntry,
    *,
    daily_summary: bool,
    drop_threshold: int,
    previous: Optional[PriceHistoryEntry] = None,
) -> List[AlertEvent]:
    """Return the alerts for this run, updating ``entry`` in place."""
    if daily_summary:
        reset_baseline(entry, categories)
        return [
            AlertEvent(
                kind=AlertKind.SUMMARY,
                categories=categories,
                previous=previous,
            )
        ]
    return detect_drops(categories, entry, drop_threshold)


__all__ = ["decide", "detect_drops", "reset_baseline", "is_daily_summary_time"]
