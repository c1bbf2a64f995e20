from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .models import AlertEvent, Category, Leg, Offer, PriceHistoryEntry


@dataclass(slots=True, frozen=True)
class Notification:
    subject: str
    text: str
    html: str


def fmt_price(amount: Optional[int], currency: str) -> str:
    if amount is None:
        return "n/a"
    return f"{currency} {amount:,}"


def fmt_duration(minutes: Optional[int]) -> str:
    if minutes is None:
        return "?"
    return f"{minutes // 60}h {minutes % 60}m"


def fmt_stops(stops: int) -> str:
    if stops == 0:
        return "Non-stop"
    return f"{stops} stop" if stops == 1 else f"{stops} stops"


def fmt_leg(leg: Leg) -> str:
    dep = leg.departure_at.strftime("%d %b %H:%M")
    arr = leg.arrival_at.strftime("%d %b %H:%M") if leg.arrival_at else "?"
    return (
        f"{dep} to {arr} "
        f"({fmt_duration(leg.duration_minutes)}, {fmt_stops(leg.stops)})"
    )


def _offer_lines(offer: Offer, currency: str) -> List[str]:
    lines = [
        f"{offer.airline} {offer.airline_code} [{offer.source}]",
        f"Outbound: {fmt_leg(offer.outbound)}",
    ]
    if offer.inbound is not None:
        lines.append(f"Return: {fmt_leg(offer.inbound)}")
    if offer.refundable is not None:
        kind = "Refundable" if offer.refundable else "Non-Refundable"
        lines.append(f"{kind}: {fmt_price(offer.price, currency)}")
    else:
        lines.append(f"Non-Refundable: {fmt_price(offer.price, currency)}")
    if offer.refundable_price is not None:
        extra = offer.refundable_price - offer.price
        lines.append(
            f"Refundable (Est.): {fmt_price(offer.refundable_price, currency)}"
            f" - {fmt_price(extra, currency)} more"
        )
    if offer.deep_link:
        lines.append(offer.deep_link)
    return lines


def _change(current: Optional[int], before: Optional[int], currency: str) -> str:
    if current is None or before is None:
        return ""
    diff = current - before
    if diff == 0:
        return " (unchanged vs yesterday)"
    sign = "+" if diff > 0 else "-"
    return f" ({sign}{fmt_price(abs(diff), currency)} vs yesterday)"


def compose_daily_summary(
    event: AlertEvent,
    *,
    route_label: str,
    outbound_date: date,
    currency: str,
    drop_threshold: int,
) -> Notification:
    """Build the daily summary email for a ``summary`` event."""
    categories = event.categories
    previous: Optional[PriceHistoryEntry] = event.previous
    subject = f"Daily Flight Update - {route_label} ({outbound_date:%d %b})"

    text: List[str] = [f"Daily Flight Update | {route_label} | {outbound_date:%d %b %Y}", ""]
    rows: List[str] = [
        f"<h2>Daily Flight Update – {html.escape(route_label)}</h2><table border=1>",
        "<tr><th>Category</th><th>Airline</th><th>Price</th><th>Alert below</th></tr>",
    ]
    for category in Category:
        offer = categories.get(category)
        if offer is None:
            continue
        before = previous.baseline(category) if previous else None
        text.append(f"== {category.label} ==")
        text.extend(_offer_lines(offer, currency))
        text.append(
            f"Alert below: {fmt_price(offer.price - drop_threshold, currency)}"
            f"{_change(offer.price, before, currency)}"
        )
        text.append("")
        rows.append(
            f"<tr><td>{category.label}</td>"
            f"<td>{html.escape(offer.airline)} {html.escape(offer.airline_code)}</td>"
            f"<td>{fmt_price(offer.price, currency)}</td>"
            f"<td>{fmt_price(offer.price - drop_threshold, currency)}</td></tr>"
        )
    rows.append("</table>")
    text.append(f"Alert threshold: {fmt_price(drop_threshold, currency)} drop")
    return Notification(subject=subject, text="\n".join(text), html="".join(rows))


def compose_price_drop(
    event: AlertEvent, *, route_label: str, currency: str
) -> Notification:
    """Build the alert email for one ``price_drop`` event."""
    label = event.category.label
    subject = f"PRICE DROP: {label} Down {fmt_price(event.drop, currency)}"
    text = [
        f"PRICE DROP ALERT – {label.upper()} | {route_label}",
        f"Down {fmt_price(event.drop, currency)}",
        f"Previous Low: {fmt_price(event.old_price, currency)}",
        f"Current Price: {fmt_price(event.new_price, currency)}",
        "",
        *_offer_lines(event.offer, currency),
    ]
    body_html = (
        f"<h2>PRICE DROP – {html.escape(label)}</h2>"
        f"<p><s>{fmt_price(event.old_price, currency)}</s> → "
        f"<b>{fmt_price(event.new_price, currency)}</b></p>"
        f"<p>{html.escape(event.offer.airline)} {html.escape(event.offer.airline_code)}"
        f" – {html.escape(fmt_leg(event.offer.outbound))}</p>"
    )
    if event.offer.deep_link:
        link = html.escape(event.offer.deep_link)
        body_html += f"<p><a href='{link}'>Book</a></p>"
    return Notification(subject=subject, text="\n".join(text), html=body_html)


__all__ = [
    "Notification",
    "compose_daily_summary",
    "compose_price_drop",
    "fmt_price",
    "fmt_duration",
]
