from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Annotated, List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models import FilterCriteria, TripQuery

load_dotenv()


def _split_codes(v):
    if isinstance(v, str):
        return [a.strip().upper() for a in v.split(",") if a.strip()]
    return v


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    # ── Itinerary ────────────────────────────────────────────────
    origin: str = Field(..., alias="ORIGIN")
    destination: str = Field(..., alias="DESTINATION")
    outbound_date: date = Field(..., alias="OUTBOUND_DATE")
    return_date: Optional[date] = Field(None, alias="RETURN_DATE")
    adults: int = Field(1, alias="ADULTS")
    currency: str = Field("INR", alias="CURRENCY")
    max_results: int = Field(50, alias="MAX_RESULTS")

    # ── Filters ──────────────────────────────────────────────────
    max_budget: Optional[int] = Field(None, alias="MAX_BUDGET")
    earliest_outbound_hour: Optional[int] = Field(
        18, alias="EARLIEST_OUTBOUND_HOUR"
    )
    return_window_start: Optional[int] = Field(12, alias="RETURN_WINDOW_START")
    return_window_end: Optional[int] = Field(17, alias="RETURN_WINDOW_END")
    max_stops: Optional[int] = Field(1, alias="MAX_STOPS")
    excluded_airlines: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["I5", "AK"], alias="EXCLUDED_AIRLINES"
    )
    date_window_start: Optional[date] = Field(None, alias="DATE_WINDOW_START")
    date_window_end: Optional[date] = Field(None, alias="DATE_WINDOW_END")

    # ── Alerts ───────────────────────────────────────────────────
    price_drop_threshold: int = Field(300, alias="PRICE_DROP_THRESHOLD")
    refundable_markup: Optional[float] = Field(0.15, alias="REFUNDABLE_MARKUP")
    summary_hour: int = Field(10, alias="SUMMARY_HOUR")
    timezone: str = Field("Asia/Kolkata", alias="TIMEZONE")

    # ── Providers ────────────────────────────────────────────────
    providers: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["amadeus", "aviasales"], alias="PROVIDERS"
    )
    fetch_timeout_s: float = Field(20.0, alias="FETCH_TIMEOUT_S")
    amadeus_api_key: str = Field("", alias="AMADEUS_API_KEY")
    amadeus_api_secret: str = Field("", alias="AMADEUS_API_SECRET")
    amadeus_env: str = Field("test", alias="AMADEUS_ENV")
    tp_token: str = Field("", alias="TP_TOKEN")
    tp_marker: str = Field("", alias="TP_MARKER")

    # ── Email ────────────────────────────────────────────────────
    email_user: str = Field("", alias="EMAIL_USER")
    email_password: str = Field("", alias="EMAIL_PASSWORD")
    recipient_email: str = Field("", alias="RECIPIENT_EMAIL")
    smtp_host: str = Field("smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(465, alias="SMTP_PORT")
    smtp_starttls: bool = Field(False, alias="SMTP_STARTTLS")

    # ── Storage / logging ────────────────────────────────────────
    price_history_file: str = Field(
        "price-history.json", alias="PRICE_HISTORY_FILE"
    )
    history_retention_days: int = Field(30, alias="HISTORY_RETENTION_DAYS")
    log_file: Optional[str] = Field("flight_tracker.log", alias="LOG_FILE")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("origin", "destination")
    @classmethod
    def _iata_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("airport code must be a 3-letter IATA code")
        return v

    @field_validator(
        "max_budget",
        "earliest_outbound_hour",
        "return_window_start",
        "return_window_end",
        "max_stops",
        "refundable_markup",
        "return_date",
        "date_window_start",
        "date_window_end",
        "log_file",
        mode="before",
    )
    @classmethod
    def _empty_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(
        "earliest_outbound_hour",
        "return_window_start",
        "return_window_end",
        "summary_hour",
    )
    @classmethod
    def _valid_hour(cls, v: Optional[int]) -> Optional[int]:
        # 24 is allowed so a window can run until midnight
        if v is not None and not 0 <= v <= 24:
            raise ValueError("hour must be between 0 and 24")
        return v

    @field_validator("price_drop_threshold")
    @classmethod
    def _threshold_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("PRICE_DROP_THRESHOLD must be greater than 0")
        return v

    @field_validator("max_stops", "max_budget")
    @classmethod
    def _non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("excluded_airlines", mode="before")
    @classmethod
    def _split_airlines(cls, v):
        return _split_codes(v)

    @field_validator("providers", mode="before")
    @classmethod
    def _split_providers(cls, v):
        if isinstance(v, str):
            return [p.strip().lower() for p in v.split(",") if p.strip()]
        return v

    @model_validator(mode="after")
    def _check_dates(self) -> "Settings":
        if self.return_date and self.return_date < self.outbound_date:
            raise ValueError("RETURN_DATE must not be before OUTBOUND_DATE")
        if (self.date_window_start is None) != (self.date_window_end is None):
            raise ValueError(
                "DATE_WINDOW_START and DATE_WINDOW_END must be set together"
            )
        return self

    # ──────────────────────────────────────────────────────────

    def trip_query(self) -> TripQuery:
        return TripQuery(
            origin=self.origin,
            destination=self.destination,
            outbound_date=self.outbound_date,
            return_date=self.return_date,
            adults=self.adults,
            currency=self.currency,
            max_results=self.max_results,
        )

    def filter_criteria(self) -> FilterCriteria:
        window = None
        if self.date_window_start and self.date_window_end:
            window = (self.date_window_start, self.date_window_end)
        return FilterCriteria(
            max_budget=self.max_budget,
            excluded_airlines=frozenset(self.excluded_airlines),
            earliest_outbound_hour=self.earliest_outbound_hour,
            return_window_start=self.return_window_start,
            return_window_end=self.return_window_end,
            max_stops=self.max_stops,
            date_window=window,
        )

    @property
    def route_label(self) -> str:
        return f"{self.origin} to {self.destination}"


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
