"""Provider adapter interface, shared parsing helpers and the adapter registry."""

from __future__ import annotations

import datetime as dt
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Type

from .errors import ParseError
from .models import Offer, TripQuery

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?)?$"
)

AIRLINE_NAMES = {
    "6E": "IndiGo",
    "UK": "Vistara",
    "SG": "SpiceJet",
    "AI": "Air India",
    "I5": "Air India Express",
    "AK": "AirAsia",
    "G8": "Go First",
}


def airline_name(code: str, carriers: Optional[Dict[str, str]] = None) -> str:
    """Display name for ``code``; unknown codes pass through unchanged."""
    if carriers and carriers.get(code):
        return str(carriers[code])
    return AIRLINE_NAMES.get(code, code)


def parse_stops(value: Any) -> int:
    stops = int(value or 0)
    if stops < 0:
        raise ValueError(f"negative stop count {value!r}")
    return stops


def round_price(value: Any) -> int:
    """Round a provider price to whole currency units, half away from zero."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"bad price {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"bad price {value!r}")
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def refundable_estimate(value: Any, markup: Optional[float]) -> Optional[int]:
    if markup is None:
        return None
    return round_price(Decimal(str(value)) * (1 + Decimal(str(markup))))


def parse_datetime(value: Any) -> dt.datetime:
    """Parse provider timestamps like ``2024-11-14T18:30:00`` or ``...Z``."""
    if not value or not isinstance(value, str):
        raise ValueError(f"missing timestamp: {value!r}")
    return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_iso_duration(value: Any) -> Optional[int]:
    """Parse durations like ``PT6H30M`` or ``P1DT2H`` into minutes."""
    if not value or not isinstance(value, str):
        return None
    m = _DURATION_RE.match(value)
    if not m:
        return None
    days = int(m.group("days") or 0)
    hours = int(m.group("hours") or 0)
    minutes = int(m.group("minutes") or 0)
    return days * 1440 + hours * 60 + minutes


@dataclass(slots=True)
class FetchResult:
    """Outcome of one provider search; failures carry ``error`` and no offers."""

    source: str
    offers: List[Offer] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProviderAdapter(ABC):
    """Fetch raw JSON from a provider and normalize it into offers."""

    source: str = ""

    @classmethod
    @abstractmethod
    def from_settings(cls, settings) -> "ProviderAdapter":
        """Build the adapter from application settings."""

    @abstractmethod
    def fetch(self, query: TripQuery) -> Dict[str, Any]:
        """Return the raw payload; raise ``ProviderFetchError`` on failure."""

    @abstractmethod
    def parse_item(self, item: Dict[str, Any], index: int) -> Offer:
        """Map one raw record; may raise on malformed input."""

    def parse(self, raw: Any) -> List[Offer]:
        """Translate a raw payload into offers without ever raising."""
        if not isinstance(raw, dict):
            return []
        items = raw.get("data")
        if not isinstance(items, list):
            return []

        offers: List[Offer] = []
        for idx, item in enumerate(items):
            try:
                offer = self.parse_item(item, idx)
            except (
                ParseError,
                KeyError,
                IndexError,
                TypeError,
                ValueError,
                AttributeError,
                OverflowError,
            ) as exc:
                logger.debug("%s: dropping record %s: %s", self.source, idx, exc)
                continue
            if offer.price < 0:
                logger.debug("%s: dropping record %s: negative price", self.source, idx)
                continue
            offers.append(offer)
        if len(offers) < len(items):
            logger.info(
                "%s: parsed %d of %d records",
                self.source,
                len(offers),
                len(items),
            )
        return offers

    def search(self, query: TripQuery) -> List[Offer]:
        return self.parse(self.fetch(query))


PROVIDERS: Dict[str, Type[ProviderAdapter]] = {}


def register(name: str) -> Callable[[Type[ProviderAdapter]], Type[ProviderAdapter]]:
    def deco(cls: Type[ProviderAdapter]) -> Type[ProviderAdapter]:
        cls.source = name
        PROVIDERS[name] = cls
        return cls

    return deco


def get_adapter(name: str) -> Type[ProviderAdapter]:
    try:
        return PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown provider {name!r}; available: {', '.join(sorted(PROVIDERS))}"
        ) from None


def build_adapters(settings) -> List[ProviderAdapter]:
    """Instantiate every provider listed in ``settings.providers``."""
    # adapters register themselves on import
    from . import amadeus_fetcher, aviasales_fetcher  # noqa: F401

    return [get_adapter(name).from_settings(settings) for name in settings.providers]


__all__ = [
    "FetchResult",
    "ProviderAdapter",
    "PROVIDERS",
    "register",
    "get_adapter",
    "build_adapters",
    "round_price",
    "refundable_estimate",
    "parse_datetime",
    "parse_iso_duration",
]
