from __future__ import annotations

import logging
from typing import Optional

import click
from pydantic import ValidationError

from .config import Settings, get_settings
from .daily_report import fmt_duration, fmt_price
from .daily_runner import collect_offers, configure_logging, run_once
from .deal_filter import sort_by_price
from .history import load_history

logger = logging.getLogger(__name__)

MODES = {"auto": None, "summary": True, "check": False}


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration:\n{exc}") from exc


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """Command line interface."""
    settings = _load_settings()
    configure_logging(log_level or settings.log_level, settings.log_file)
    ctx.obj = settings


@cli.command()
@click.option(
    "--mode",
    type=click.Choice(sorted(MODES)),
    default="auto",
    show_default=True,
    help="summary = daily email + baseline reset, check = price-drop check, "
    "auto = summary during SUMMARY_HOUR",
)
@click.pass_obj
def run(settings: Settings, mode: str) -> None:
    """Fetch offers, detect price drops and send emails."""
    try:
        result = run_once(settings, daily_summary=MODES[mode])
    except Exception:
        logger.exception("flight check failed")
        raise SystemExit(1)
    click.echo(
        f"{len(result.offers)} offers, {len(result.alerts)} alert(s), "
        f"{result.notified} email(s) sent"
    )


@cli.command()
@click.pass_obj
def fetch(settings: Settings) -> None:
    """Fetch offers only and print them, cheapest first."""
    results, offers = collect_offers(settings)
    for res in results:
        if not res.ok:
            click.echo(f"! {res.source}: {res.error}", err=True)
    if not offers:
        click.echo("No offers found")
        return
    for off in sort_by_price(offers):
        stops = "/".join(str(leg.stops) for leg in off.legs)
        click.echo(
            f"{fmt_price(off.price, settings.currency):>12}  "
            f"{off.airline} ({off.airline_code})  "
            f"dep {off.outbound.departure_at:%d %b %H:%M}  "
            f"{fmt_duration(off.total_duration_minutes)}  stops {stops}  "
            f"[{off.source}]"
        )


@cli.command()
@click.pass_obj
def history(settings: Settings) -> None:
    """Print the stored daily baselines."""
    hist = load_history(settings.price_history_file)
    if not hist.daily:
        click.echo("No price history")
        return
    click.echo(f"Last check: {hist.last_checked.isoformat() if hist.last_checked else '-'}")
    for entry in hist.daily:
        click.echo(
            f"{entry.date.isoformat()}  "
            f"fastest {fmt_price(entry.fastest, settings.currency)}  "
            f"cheapest {fmt_price(entry.cheapest, settings.currency)}  "
            f"1-stop {fmt_price(entry.best_one_stop, settings.currency)}"
        )


if __name__ == "__main__":
    cli()
