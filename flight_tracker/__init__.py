"""Watch flight prices for one itinerary and email on price drops."""

__version__ = "0.1.0"
