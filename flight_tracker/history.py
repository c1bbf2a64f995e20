from __future__ import annotations

import json
import logging
import os
import tempfile
import datetime as dt
from datetime import date, datetime, timedelta
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import StorageError
from .models import Categorization, Category, PriceHistory, PriceHistoryEntry

logger = logging.getLogger(__name__)


class _DailyRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: dt.date
    fastest: int
    cheapest: int
    best_one_stop: Optional[int] = Field(None, alias="bestOneStop")


class _HistoryFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_checked: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("lastCheckedInstant", "lastCheck"),
    )
    daily: List[_DailyRecord] = Field(default_factory=list)


def _read(path: str) -> PriceHistory:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
        parsed = _HistoryFile.model_validate(raw)
    except (OSError, ValueError, ValidationError) as exc:
        # json.JSONDecodeError is a ValueError
        raise StorageError(f"cannot read price history {path}: {exc}") from exc

    entries = [
        PriceHistoryEntry(
            date=rec.date,
            fastest=rec.fastest,
            cheapest=rec.cheapest,
            best_one_stop=rec.best_one_stop,
        )
        for rec in parsed.daily
    ]
    entries.sort(key=lambda e: e.date)
    return PriceHistory(daily=entries, last_checked=parsed.last_checked)


def load_history(path: str) -> PriceHistory:
    """Load the ledger; missing or corrupt files yield an empty history."""
    if not os.path.exists(path):
        logger.info("No price history at %s, starting fresh", path)
        return PriceHistory()
    try:
        return _read(path)
    except StorageError as exc:
        logger.warning("%s – resetting history", exc)
        return PriceHistory()


def to_json(history: PriceHistory) -> str:
    doc = {
        "lastCheckedInstant": (
            history.last_checked.isoformat() if history.last_checked else None
        ),
        "daily": [
            {
                "date": e.date.isoformat(),
                "fastest": e.fastest,
                "cheapest": e.cheapest,
                "bestOneStop": e.best_one_stop,
            }
            for e in history.daily
        ],
    }
    return json.dumps(doc, indent=2)


def save_history(history: PriceHistory, path: str) -> bool:
    """Atomically replace ``path`` with ``history``; return ``False`` on failure."""
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        payload = to_json(history)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=".price-history-",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(payload)
            tmp.write("\n")
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Error saving price history to %s: %s", path, exc)
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        return False
    logger.info("Saved price history (%d days) to %s", len(history.daily), path)
    return True


def get_or_create_today_entry(
    history: PriceHistory, today: date, categories: Categorization
) -> PriceHistoryEntry:
    """Return today's entry, seeding the baseline from ``categories`` if absent."""
    entry = history.find(today)
    if entry is not None:
        return entry

    prices = categories.prices()
    entry = PriceHistoryEntry(
        date=today,
        fastest=prices[Category.FASTEST],
        cheapest=prices[Category.CHEAPEST],
        best_one_stop=prices[Category.BEST_ONE_STOP],
    )
    history.daily.append(entry)
    history.daily.sort(key=lambda e: e.date)
    logger.info("New baseline for %s: %s", today, prices)
    return entry


def prune_history(history: PriceHistory, today: date, keep_days: int) -> int:
    """Drop entries older than ``keep_days`` before ``today``; return how many."""
    if keep_days <= 0:
        return 0
    cutoff = today - timedelta(days=keep_days)
    kept = [e for e in history.daily if e.date >= cutoff]
    removed = len(history.daily) - len(kept)
    history.daily = kept
    return removed


__all__ = [
    "load_history",
    "save_history",
    "to_json",
    "get_or_create_today_entry",
    "prune_history",
]
