from __future__ import annotations


class FlightTrackerError(RuntimeError):
    """Base class for errors raised by the tracker."""


class ProviderFetchError(FlightTrackerError):
    """Network, HTTP or auth failure while talking to a flight provider."""


class AmadeusFetchError(ProviderFetchError):
    """Error talking to the Amadeus Self-Service API."""


class AviasalesFetcherError(ProviderFetchError):
    """Error talking to the Travelpayouts API."""


class ParseError(FlightTrackerError):
    """A single provider record could not be normalized."""


class StorageError(FlightTrackerError):
    """Price history file is unreadable or corrupt."""


class NotificationError(FlightTrackerError):
    """Email could not be delivered."""


__all__ = [
    "FlightTrackerError",
    "ProviderFetchError",
    "AmadeusFetchError",
    "AviasalesFetcherError",
    "ParseError",
    "StorageError",
    "NotificationError",
]
