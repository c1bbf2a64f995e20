from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from .alert_engine import decide, is_daily_summary_time
from .categorizer import categorize
from .config import Settings
from .daily_report import compose_daily_summary, compose_price_drop
from .deal_filter import filter_offers, sort_by_price
from .errors import ProviderFetchError
from .history import (
    get_or_create_today_entry,
    load_history,
    prune_history,
    save_history,
)
from .models import AlertEvent, AlertKind, Categorization, Offer, TripQuery
from .notifier import EmailNotifier
from .providers import FetchResult, ProviderAdapter, build_adapters

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(level=level.upper(), handlers=handlers, format=LOG_FORMAT)


# ────────────────────────────────────────────────────────────────
# Helper
# ────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class RunResult:
    daily_summary: bool
    fetched: List[FetchResult] = field(default_factory=list)
    offers: List[Offer] = field(default_factory=list)
    categories: Optional[Categorization] = None
    alerts: List[AlertEvent] = field(default_factory=list)
    notified: int = 0
    saved: bool = False


def _search(adapter: ProviderAdapter, query: TripQuery) -> FetchResult:
    try:
        return FetchResult(adapter.source, adapter.search(query))
    except ProviderFetchError as exc:
        return FetchResult(adapter.source, error=str(exc))
    except Exception as exc:
        logger.debug("%s: unexpected error", adapter.source, exc_info=True)
        return FetchResult(adapter.source, error=f"{type(exc).__name__}: {exc}")


def fetch_all(
    adapters: Sequence[ProviderAdapter], query: TripQuery
) -> List[FetchResult]:
    """Query every provider in parallel; results keep the adapters' order."""
    if not adapters:
        return []
    with ThreadPoolExecutor(max_workers=len(adapters)) as pool:
        futures = [pool.submit(_search, adapter, query) for adapter in adapters]
        return [fut.result() for fut in futures]


def collect_offers(
    settings: Settings, adapters: Optional[Sequence[ProviderAdapter]] = None
) -> tuple[List[FetchResult], List[Offer]]:
    """Fetch from all providers and return the results plus filtered offers."""
    if adapters is None:
        adapters = build_adapters(settings)

    results = fetch_all(adapters, settings.trip_query())
    raw: List[Offer] = []
    for res in results:
        if res.ok:
            logger.info("%s: %d offers", res.source, len(res.offers))
        else:
            logger.warning("Failed to fetch %s: %s", res.source, res.error)
        raw.extend(res.offers)

    offers = filter_offers(raw, settings.filter_criteria())
    logger.info("Found %d flights matching criteria (of %d)", len(offers), len(raw))
    return results, offers


# ────────────────────────────────────────────────────────────────
# Główna logika
# ────────────────────────────────────────────────────────────────


def run_once(
    settings: Settings,
    *,
    daily_summary: Optional[bool] = None,
    now: Optional[datetime] = None,
    adapters: Optional[Sequence[ProviderAdapter]] = None,
    notifier: Optional[EmailNotifier] = None,
) -> RunResult:
    tz = ZoneInfo(settings.timezone)
    now = (now or datetime.now(timezone.utc)).astimezone(tz)
    if daily_summary is None:
        daily_summary = is_daily_summary_time(now, settings.summary_hour)
    notifier = notifier or EmailNotifier.from_settings(settings)
    today = now.date()

    logger.info(
        "Flight check %s for %s (%s)",
        settings.route_label,
        today,
        "daily summary" if daily_summary else "routine check",
    )

    result = RunResult(daily_summary=daily_summary)
    result.fetched, filtered = collect_offers(settings, adapters)
    result.offers = sort_by_price(filtered)

    categories = categorize(filtered)
    if categories is None:
        logger.info("No flights found")
        return result
    result.categories = categories

    history = load_history(settings.price_history_file)
    entry = get_or_create_today_entry(history, today, categories)
    result.alerts = decide(
        categories,
        entry,
        daily_summary=daily_summary,
        drop_threshold=settings.price_drop_threshold,
        previous=history.previous(today),
    )

    for alert in result.alerts:
        if alert.kind is AlertKind.SUMMARY:
            note = compose_daily_summary(
                alert,
                route_label=settings.route_label,
                outbound_date=settings.outbound_date,
                currency=settings.currency,
                drop_threshold=settings.price_drop_threshold,
            )
        else:
            note = compose_price_drop(
                alert, route_label=settings.route_label, currency=settings.currency
            )
        if notifier.notify(note.subject, note.text, note.html):
            result.notified += 1

    if not daily_summary:
        if result.alerts:
            logger.info("%d price drop(s) detected", len(result.alerts))
        else:
            logger.info("No significant price drops")

    history.last_checked = now.astimezone(timezone.utc)
    removed = prune_history(history, today, settings.history_retention_days)
    if removed:
        logger.info("Pruned %d old history entries", removed)
    result.saved = save_history(history, settings.price_history_file)
    logger.info("Flight check complete")
    return result


__all__ = [
    "RunResult",
    "configure_logging",
    "fetch_all",
    "collect_offers",
    "run_once",
]
