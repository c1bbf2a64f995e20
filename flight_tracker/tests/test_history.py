import json
from datetime import date, datetime, timezone

from flight_tracker.history import (
    get_or_create_today_entry,
    load_history,
    prune_history,
    save_history,
)
from flight_tracker.models import Categorization, PriceHistory, PriceHistoryEntry


def test_missing_file_gives_empty_history(tmp_path):
    history = load_history(str(tmp_path / "nope.json"))
    assert history.daily == []
    assert history.last_checked is None


def test_corrupt_file_is_logged_and_reset(tmp_path, caplog):
    path = tmp_path / "price-history.json"
    path.write_text("{not json", encoding="utf-8")
    history = load_history(str(path))
    assert history.daily == []
    assert any("resetting history" in r.getMessage() for r in caplog.records)


def test_wrong_shape_is_reset(tmp_path):
    path = tmp_path / "price-history.json"
    path.write_text(json.dumps({"daily": [{"date": "2024-11-10"}]}), encoding="utf-8")
    assert load_history(str(path)).daily == []


def test_reads_legacy_last_check_key(tmp_path):
    path = tmp_path / "price-history.json"
    path.write_text(
        json.dumps(
            {
                "daily": [
                    {"date": "2024-11-10", "fastest": 6100, "cheapest": 4500, "bestOneStop": None}
                ],
                "lastCheck": "2024-11-10T08:30:00.000Z",
            }
        ),
        encoding="utf-8",
    )
    history = load_history(str(path))
    assert history.last_checked == datetime(2024, 11, 10, 8, 30, tzinfo=timezone.utc)
    assert history.daily[0].cheapest == 4500
    assert history.daily[0].best_one_stop is None


def test_save_load_is_idempotent(tmp_path):
    path = str(tmp_path / "price-history.json")
    history = PriceHistory(
        daily=[
            PriceHistoryEntry(date(2024, 11, 9), 6000, 4800, 5000),
            PriceHistoryEntry(date(2024, 11, 10), 6100, 4500, None),
        ],
        last_checked=datetime(2024, 11, 10, 9, 0, tzinfo=timezone.utc),
    )
    assert save_history(history, path)
    first = (tmp_path / "price-history.json").read_text(encoding="utf-8")

    save_history(load_history(path), path)
    second = (tmp_path / "price-history.json").read_text(encoding="utf-8")
    save_history(load_history(path), path)
    third = (tmp_path / "price-history.json").read_text(encoding="utf-8")

    assert first == second == third
    doc = json.loads(first)
    assert doc["lastCheckedInstant"] == "2024-11-10T09:00:00+00:00"
    assert doc["daily"][1] == {
        "date": "2024-11-10",
        "fastest": 6100,
        "cheapest": 4500,
        "bestOneStop": None,
    }


def test_save_failure_is_not_fatal(tmp_path, caplog):
    path = str(tmp_path / "missing-dir" / "price-history.json")
    assert save_history(PriceHistory(), path) is False
    assert any("Error saving price history" in r.getMessage() for r in caplog.records)


def test_get_or_create_today_entry(make_offer):
    fast, cheap = make_offer(6100), make_offer(4500, ret_stops=1)
    cats = Categorization(fastest=fast, cheapest=cheap, best_one_stop=cheap)
    history = PriceHistory(daily=[PriceHistoryEntry(date(2024, 11, 9), 1, 2, 3)])

    entry = get_or_create_today_entry(history, date(2024, 11, 10), cats)
    assert (entry.fastest, entry.cheapest, entry.best_one_stop) == (6100, 4500, 4500)
    assert history.daily[-1] is entry

    again = get_or_create_today_entry(history, date(2024, 11, 10), cats)
    assert again is entry
    assert len(history.daily) == 2
    assert history.previous(date(2024, 11, 10)).date == date(2024, 11, 9)


def test_prune_history():
    history = PriceHistory(
        daily=[
            PriceHistoryEntry(date(2024, 10, 1), 1, 1),
            PriceHistoryEntry(date(2024, 11, 1), 1, 1),
            PriceHistoryEntry(date(2024, 11, 10), 1, 1),
        ]
    )
    assert prune_history(history, date(2024, 11, 10), 30) == 1
    assert [e.date for e in history.daily] == [date(2024, 11, 1), date(2024, 11, 10)]
    assert prune_history(history, date(2024, 11, 10), 0) == 0
