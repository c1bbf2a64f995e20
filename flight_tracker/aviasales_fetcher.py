from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, Optional

import requests

from .errors import AviasalesFetcherError, ParseError
from .models import Leg, Offer, TripQuery
from .providers import (
    ProviderAdapter,
    airline_name,
    parse_datetime,
    parse_stops,
    refundable_estimate,
    register,
    round_price,
)

logger = logging.getLogger(__name__)


def _minutes(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    minutes = int(value)
    if minutes < 0:
        raise ValueError(f"negative duration {value!r}")
    return minutes


def _leg(departure: dt.datetime, minutes: Optional[int], stops: Any) -> Leg:
    arrival = departure + dt.timedelta(minutes=minutes) if minutes is not None else None
    return Leg(
        departure_at=departure,
        arrival_at=arrival,
        duration_minutes=minutes,
        stops=parse_stops(stops),
    )


@register("aviasales")
class AviasalesFetcher(ProviderAdapter):
    """
    Klient Flight Data API v3 (ścieżka */aviasales/v3*).
    """

    def __init__(
        self,
        token: str | None = None,
        marker: str | int | None = None,
        base_url: str = "https://api.travelpayouts.com/aviasales/v3",
        domain: str = "https://www.aviasales.com",
        *,
        timeout: float = 20.0,
        refundable_markup: float | None = None,
    ) -> None:
        self.token = token or ""
        self.marker = marker or ""
        self.base_url = base_url.rstrip("/")
        self.domain = domain.rstrip("/")
        self.timeout = timeout
        self.refundable_markup = refundable_markup

    @classmethod
    def from_settings(cls, settings) -> "AviasalesFetcher":
        return cls(
            settings.tp_token,
            settings.tp_marker,
            timeout=settings.fetch_timeout_s,
            refundable_markup=settings.refundable_markup,
        )

    # ──────────────────────────────────────────────────────────

    def fetch(self, query: TripQuery) -> Dict[str, Any]:
        """Return the raw ``prices_for_dates`` payload for ``query``."""
        if not self.token:
            raise AviasalesFetcherError("TP_TOKEN is not set")

        one_way = query.return_date is None
        url = (
            f"{self.base_url}/prices_for_dates?"
            f"origin={query.origin}&destination={query.destination}"
            f"&currency={query.currency.lower()}"
            f"&departure_at={query.outbound_date.isoformat()}"
            f"&token={self.token}"
        )
        if not one_way:
            url += f"&return_at={query.return_date.isoformat()}"
        url += f"&limit={query.max_results}&one_way={'true' if one_way else 'false'}"
        url += "&sorting=price&unique=false"
        if self.marker:
            url += f"&marker={self.marker}"

        try:
            resp = requests.get(
                url, timeout=self.timeout, headers={"Accept-Encoding": "gzip"}
            )
        except requests.RequestException as exc:
            raise AviasalesFetcherError(f"request failed: {exc}") from exc

        if resp.status_code != 200:
            raise AviasalesFetcherError(
                f"HTTP {resp.status_code} – {resp.text[:120]}"
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise AviasalesFetcherError("response is not JSON") from exc
        if not isinstance(data, dict):
            raise AviasalesFetcherError(f"unexpected payload type {type(data).__name__}")
        if not data.get("success"):
            raise AviasalesFetcherError(f"API error: {data.get('error')}")
        return data

    def parse_item(self, item: Dict[str, Any], index: int) -> Offer:
        """Mapuje rekord JSON na obiekt Offer."""
        code = str(item.get("airline") or "").strip().upper()
        if not code:
            raise ParseError("missing airline")

        depart = parse_datetime(item.get("departure_at"))
        ret_raw = item.get("return_at")

        out_minutes = _minutes(item.get("duration_to"))
        if out_minutes is None and not ret_raw:
            out_minutes = _minutes(item.get("duration"))
        outbound = _leg(depart, out_minutes, item.get("transfers"))

        inbound = None
        if ret_raw:
            inbound = _leg(
                parse_datetime(ret_raw),
                _minutes(item.get("duration_back")),
                item.get("return_transfers"),
            )

        flight_no = item.get("flight_number") or ""
        return Offer(
            id=f"{self.source}-{index}-{code}{flight_no}",
            source=self.source,
            airline=airline_name(code),
            airline_code=code,
            price=round_price(item["price"]),
            outbound=outbound,
            inbound=inbound,
            refundable_price=refundable_estimate(
                item["price"], self.refundable_markup
            ),
            deep_link=f"{self.domain}{item['link']}" if item.get("link") else None,
        )


__all__ = ["AviasalesFetcher", "AviasalesFetcherError"]
