from datetime import date

from flight_tracker.deal_filter import (
    RULES,
    filter_offers,
    passes_budget,
    passes_date_window,
    passes_return_time,
    sort_by_price,
)
from flight_tracker.models import FilterCriteria

CRITERIA = FilterCriteria(
    max_budget=10000,
    excluded_airlines=frozenset({"I5", "AK"}),
    earliest_outbound_hour=18,
    return_window_start=12,
    return_window_end=17,
    max_stops=1,
)


def test_non_positive_price_is_never_kept(make_offer):
    offers = [make_offer(0), make_offer(-5), make_offer(100)]
    kept = filter_offers(offers, FilterCriteria())
    assert [o.price for o in kept] == [100]
    assert not passes_budget(make_offer(0), FilterCriteria(max_budget=None))


def test_budget_is_inclusive(make_offer):
    assert passes_budget(make_offer(10000), CRITERIA)
    assert not passes_budget(make_offer(10001), CRITERIA)


def test_each_rule_rejects(make_offer):
    good = make_offer(5000)
    assert filter_offers([good], CRITERIA) == [good]

    rejected = [
        make_offer(12000),
        make_offer(5000, code="I5"),
        make_offer(5000, dep_hour=17),
        make_offer(5000, ret_hour=11),
        make_offer(5000, ret_hour=17),
        make_offer(5000, out_stops=2),
        make_offer(5000, ret_stops=2),
    ]
    assert filter_offers(rejected, CRITERIA) == []


def test_window_boundaries(make_offer):
    assert filter_offers([make_offer(5000, dep_hour=18)], CRITERIA)
    assert filter_offers([make_offer(5000, ret_hour=12)], CRITERIA)
    assert filter_offers([make_offer(5000, ret_hour=16)], CRITERIA)


def test_one_way_offer_skips_return_rules(make_offer):
    offer = make_offer(5000, one_way=True)
    assert passes_return_time(offer, CRITERIA)
    assert filter_offers([offer], CRITERIA) == [offer]


def test_budget_only_profile_ignores_schedule(make_offer):
    criteria = FilterCriteria.budget_only(6000, ["AK"])
    offers = [
        make_offer(5000, dep_hour=6, ret_hour=22, out_stops=3),
        make_offer(5000, code="AK"),
        make_offer(7000),
    ]
    assert filter_offers(offers, criteria) == offers[:1]


def test_date_window(make_offer):
    offer = make_offer(5000)
    inside = FilterCriteria(date_window=(date(2024, 11, 13), date(2024, 11, 14)))
    outside = FilterCriteria(date_window=(date(2024, 11, 15), date(2024, 11, 20)))
    assert passes_date_window(offer, inside)
    assert not passes_date_window(offer, outside)


def test_output_is_subset_and_satisfies_all_rules(make_offer):
    offers = [
        make_offer(p, code=c, dep_hour=h, ret_stops=s)
        for p, c, h, s in [
            (4000, "6E", 19, 0),
            (0, "UK", 20, 1),
            (9000, "AK", 21, 0),
            (8000, "SG", 9, 0),
            (7000, "AI", 22, 1),
            (11000, "UK", 19, 0),
        ]
    ]
    kept = filter_offers(offers, CRITERIA)
    assert [o.price for o in kept] == [4000, 7000]
    for off in kept:
        assert off in offers
        assert all(rule(off, CRITERIA) for rule in RULES)


def test_sort_by_price_is_stable(make_offer):
    a, b, c = make_offer(500), make_offer(300), make_offer(500)
    assert sort_by_price([a, b, c]) == [b, a, c]
