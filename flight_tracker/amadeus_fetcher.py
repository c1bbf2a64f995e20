from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .errors import AmadeusFetchError, ParseError
from .models import Leg, Offer, TripQuery
from .providers import (
    ProviderAdapter,
    airline_name,
    parse_datetime,
    parse_iso_duration,
    refundable_estimate,
    register,
    round_price,
)

logger = logging.getLogger(__name__)


class AmadeusClient:
    """
    Minimal Amadeus REST client with OAuth2 client-credentials token caching.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        env: str = "test",
        timeout: float = 20.0,
    ) -> None:
        self.client_id = (client_id or "").strip()
        self.client_secret = (client_secret or "").strip()
        self.timeout = timeout
        self.base_url = (
            "https://api.amadeus.com"
            if env.strip().lower() == "production"
            else "https://test.api.amadeus.com"
        )
        self._access_token: Optional[str] = None
        self._token_expiry_epoch: float = 0.0

    def _token_is_valid(self) -> bool:
        # Refresh 60 seconds early
        return bool(self._access_token) and time.time() < self._token_expiry_epoch - 60

    def _fetch_token(self) -> None:
        if not self.client_id or not self.client_secret:
            raise AmadeusFetchError(
                "Missing Amadeus credentials. Set AMADEUS_API_KEY and AMADEUS_API_SECRET."
            )
        try:
            resp = requests.post(
                f"{self.base_url}/v1/security/oauth2/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AmadeusFetchError(f"token request failed: {exc}") from exc

        if resp.status_code != 200:
            raise AmadeusFetchError(
                f"token request failed: HTTP {resp.status_code} – {resp.text[:120]}"
            )
        try:
            payload = resp.json()
            token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 1799))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise AmadeusFetchError("token response without access_token") from exc
        self._access_token = token
        self._token_expiry_epoch = time.time() + expires_in

    def get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self._token_is_valid():
            self._fetch_token()
        try:
            resp = requests.get(
                f"{self.base_url}{path}",
                params=params,
                headers={"Authorization": f"Bearer {self._access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AmadeusFetchError(f"request failed: {exc}") from exc

        if resp.status_code != 200:
            raise AmadeusFetchError(f"HTTP {resp.status_code} – {resp.text[:120]}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise AmadeusFetchError("response is not JSON") from exc
        if not isinstance(data, dict):
            raise AmadeusFetchError(f"unexpected payload type {type(data).__name__}")
        return data


def _leg(itinerary: Dict[str, Any]) -> Leg:
    segments: List[Dict[str, Any]] = itinerary["segments"]
    if not segments:
        raise ParseError("itinerary without segments")
    arrival_raw = segments[-1].get("arrival", {}).get("at")
    return Leg(
        departure_at=parse_datetime(segments[0]["departure"]["at"]),
        arrival_at=parse_datetime(arrival_raw) if arrival_raw else None,
        duration_minutes=parse_iso_duration(itinerary.get("duration")),
        stops=len(segments) - 1,
    )


def _refundable_flag(offer: Dict[str, Any]) -> Optional[bool]:
    options = offer.get("pricingOptions") or {}
    flag = options.get("refundableFare")
    return flag if isinstance(flag, bool) else None


@register("amadeus")
class AmadeusFetcher(ProviderAdapter):
    """
    Live provider (Amadeus Self-Service Flight Offers Search).
    """

    def __init__(
        self,
        client: AmadeusClient,
        *,
        refundable_markup: float | None = None,
    ) -> None:
        self.client = client
        self.refundable_markup = refundable_markup
        self._carriers: Dict[str, str] = {}

    @classmethod
    def from_settings(cls, settings) -> "AmadeusFetcher":
        client = AmadeusClient(
            settings.amadeus_api_key,
            settings.amadeus_api_secret,
            env=settings.amadeus_env,
            timeout=settings.fetch_timeout_s,
        )
        return cls(client, refundable_markup=settings.refundable_markup)

    def fetch(self, query: TripQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "originLocationCode": query.origin,
            "destinationLocationCode": query.destination,
            "departureDate": query.outbound_date.isoformat(),
            "adults": max(1, int(query.adults)),
            "currencyCode": query.currency.upper(),
            "max": query.max_results,
        }
        if query.return_date:
            params["returnDate"] = query.return_date.isoformat()
        return self.client.get("/v2/shopping/flight-offers", params)

    def parse(self, raw: Any) -> List[Offer]:
        carriers: Dict[str, str] = {}
        if isinstance(raw, dict):
            dictionaries = raw.get("dictionaries") or {}
            if isinstance(dictionaries, dict):
                carriers = dictionaries.get("carriers") or {}
        self._carriers = carriers if isinstance(carriers, dict) else {}
        return super().parse(raw)

    def parse_item(self, item: Dict[str, Any], index: int) -> Offer:
        itineraries = item["itineraries"]
        outbound = _leg(itineraries[0])
        inbound = _leg(itineraries[1]) if len(itineraries) > 1 else None

        code = str(itineraries[0]["segments"][0]["carrierCode"])
        price = item.get("price") or {}
        total = price.get("grandTotal") or price["total"]

        return Offer(
            id=f"{self.source}-{item.get('id', index)}",
            source=self.source,
            airline=airline_name(code, self._carriers),
            airline_code=code,
            price=round_price(total),
            outbound=outbound,
            inbound=inbound,
            refundable_price=refundable_estimate(total, self.refundable_markup),
            refundable=_refundable_flag(item),
        )


__all__ = ["AmadeusClient", "AmadeusFetcher", "AmadeusFetchError"]
