from datetime import date, datetime, timedelta
from itertools import count

import pytest

from flight_tracker.config import Settings
from flight_tracker.models import Leg, Offer

_ids = count(1)


def _leg(day: date, hour: int, minutes, stops: int) -> Leg:
    dep = datetime(day.year, day.month, day.day, hour, 0)
    return Leg(
        departure_at=dep,
        arrival_at=dep + timedelta(minutes=minutes) if minutes is not None else None,
        duration_minutes=minutes,
        stops=stops,
    )


@pytest.fixture
def make_offer():
    def factory(
        price: int,
        *,
        code: str = "6E",
        out_stops: int = 0,
        ret_stops: int = 0,
        out_minutes=150,
        ret_minutes=150,
        dep_hour: int = 19,
        ret_hour: int = 13,
        one_way: bool = False,
        source: str = "test",
    ) -> Offer:
        inbound = None
        if not one_way:
            inbound = _leg(date(2024, 11, 18), ret_hour, ret_minutes, ret_stops)
        return Offer(
            id=f"{source}-{next(_ids)}",
            source=source,
            airline=code,
            airline_code=code,
            price=price,
            outbound=_leg(date(2024, 11, 14), dep_hour, out_minutes, out_stops),
            inbound=inbound,
        )

    return factory


@pytest.fixture
def settings(tmp_path):
    return Settings(
        origin="DEL",
        destination="GOI",
        outbound_date=date(2024, 11, 14),
        return_date=date(2024, 11, 18),
        max_budget=10000,
        excluded_airlines=["I5", "AK"],
        earliest_outbound_hour=18,
        return_window_start=12,
        return_window_end=17,
        max_stops=1,
        price_drop_threshold=300,
        refundable_markup=0.15,
        providers=["amadeus", "aviasales"],
        price_history_file=str(tmp_path / "price-history.json"),
        history_retention_days=30,
        email_user="",
        email_password="",
        log_file=None,
    )
