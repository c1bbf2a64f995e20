from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .models import Categorization, Offer

logger = logging.getLogger(__name__)


def _duration_key(offer: Offer) -> float:
    minutes = offer.total_duration_minutes
    return float("inf") if minutes is None else minutes


def pick_fastest(offers: Sequence[Offer]) -> Offer:
    """Shortest total duration, preferring non-stop outbound legs."""
    direct = [off for off in offers if off.outbound.stops == 0]
    # min() keeps the first of equal keys
    return min(direct or offers, key=_duration_key)


def pick_cheapest(offers: Sequence[Offer]) -> Offer:
    return min(offers, key=lambda off: off.price)


def pick_best_one_stop(offers: Sequence[Offer]) -> Optional[Offer]:
    one_stop: List[Offer] = [
        off for off in offers if any(leg.stops == 1 for leg in off.legs)
    ]
    if not one_stop:
        return None
    return min(one_stop, key=lambda off: off.price)


def categorize(offers: Sequence[Offer]) -> Optional[Categorization]:
    """Return fastest/cheapest/best one-stop picks, or ``None`` for no data."""
    if not offers:
        return None
    result = Categorization(
        fastest=pick_fastest(offers),
        cheapest=pick_cheapest(offers),
        best_one_stop=pick_best_one_stop(offers),
    )
    logger.info("Fastest: %s %s", result.fastest.airline, result.fastest.price)
    logger.info("Cheapest: %s %s", result.cheapest.airline, result.cheapest.price)
    if result.best_one_stop:
        logger.info(
            "Best 1-Stop: %s %s",
            result.best_one_stop.airline,
            result.best_one_stop.price,
        )
    return result


__all__ = ["categorize", "pick_fastest", "pick_cheapest", "pick_best_one_stop"]
