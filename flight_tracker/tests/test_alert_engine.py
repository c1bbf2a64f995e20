from datetime import date, datetime

from flight_tracker.alert_engine import decide, is_daily_summary_time
from flight_tracker.categorizer import categorize
from flight_tracker.models import AlertKind, Category, Categorization, PriceHistoryEntry


def _entry(fastest=10000, cheapest=10000, one_stop=None):
    return PriceHistoryEntry(
        date=date(2024, 11, 10),
        fastest=fastest,
        cheapest=cheapest,
        best_one_stop=one_stop,
    )


def _categories(make_offer, price):
    offer = make_offer(price)
    return Categorization(fastest=offer, cheapest=offer, best_one_stop=None)


def test_drop_at_threshold_alerts_and_ratchets(make_offer):
    entry = _entry()
    alerts = decide(
        _categories(make_offer, 9700), entry, daily_summary=False, drop_threshold=300
    )
    assert [(a.category, a.old_price, a.new_price) for a in alerts] == [
        (Category.FASTEST, 10000, 9700),
        (Category.CHEAPEST, 10000, 9700),
    ]
    assert all(a.kind is AlertKind.PRICE_DROP for a in alerts)
    assert alerts[0].drop == 300
    assert entry.fastest == 9700
    assert entry.cheapest == 9700


def test_small_drop_leaves_baseline(make_offer):
    entry = _entry()
    alerts = decide(
        _categories(make_offer, 9750), entry, daily_summary=False, drop_threshold=300
    )
    assert alerts == []
    assert entry.cheapest == 10000


def test_baseline_never_rises_in_routine_mode(make_offer):
    entry = _entry(fastest=8000, cheapest=8000)
    decide(_categories(make_offer, 9000), entry, daily_summary=False, drop_threshold=300)
    assert (entry.fastest, entry.cheapest) == (8000, 8000)


def test_summary_resets_baseline_even_upwards(make_offer):
    entry = _entry(fastest=8000, cheapest=8000, one_stop=7000)
    previous = _entry(fastest=1, cheapest=2)
    cats = _categories(make_offer, 9000)
    alerts = decide(
        cats, entry, daily_summary=True, drop_threshold=300, previous=previous
    )
    assert len(alerts) == 1
    assert alerts[0].kind is AlertKind.SUMMARY
    assert alerts[0].categories is cats
    assert alerts[0].previous is previous
    assert (entry.fastest, entry.cheapest, entry.best_one_stop) == (9000, 9000, None)


def test_one_stop_only_compared_when_both_present(make_offer):
    offers = [make_offer(6000), make_offer(5000, ret_stops=1)]
    cats = categorize(offers)

    entry = _entry(fastest=6000, cheapest=5000, one_stop=None)
    assert decide(cats, entry, daily_summary=False, drop_threshold=300) == []
    assert entry.best_one_stop is None

    entry = _entry(fastest=6000, cheapest=5000, one_stop=5600)
    alerts = decide(cats, entry, daily_summary=False, drop_threshold=300)
    assert [a.category for a in alerts] == [Category.BEST_ONE_STOP]
    assert entry.best_one_stop == 5000


def test_is_daily_summary_time():
    assert is_daily_summary_time(datetime(2024, 11, 10, 10, 59), 10)
    assert not is_daily_summary_time(datetime(2024, 11, 10, 11, 0), 10)
