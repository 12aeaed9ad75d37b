"""CLI entry point for metrika.

Usage:
    metrika reports                                   # List available reports
    metrika report visits-views-users                 # Last 30 days (report default)
    metrika report top-pages-views --days 7 --param max_results=5
    metrika report geo-area --start 2024-06-01 --end 2024-06-15 --adapt
    metrika report sources-summary --env prod --output-dir ./data
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import date, datetime
from typing import Any

import click

from metrika.client import MetrikaClient
from metrika.config import AppConfig, load_config
from metrika.models import ReportResult
from metrika.output import write_report
from metrika.reports import REPORT_REGISTRY

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("metrika")


def _parse_params(values: tuple[str, ...]) -> dict[str, int]:
    """Parse repeated ``name=value`` options into integer parameters."""
    params: dict[str, int] = {}
    for item in values:
        name, sep, raw = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got '{item}'", param_hint="--param")
        try:
            params[name.strip().replace("-", "_")] = int(raw)
        except ValueError:
            raise click.BadParameter(
                f"value for '{name}' must be an integer, got '{raw}'", param_hint="--param",
            ) from None
    return params


async def _run_report(
    config: AppConfig,
    key: str,
    days: int | None,
    start: date | None,
    end: date | None,
    params: dict[str, Any],
    adapt: bool,
) -> ReportResult:
    async with MetrikaClient.from_config(config) as client:
        if start is not None and end is not None:
            result = await client.report_for_period(key, start, end, **params)
        else:
            result = await client.report(key, days, **params)
    return result.adapt() if adapt else result


@click.group()
def main() -> None:
    """metrika: Yandex Metrika report client with response caching."""


@main.command("reports")
def list_reports() -> None:
    """List registered reports and their defaults."""
    for key, definition in sorted(REPORT_REGISTRY.items()):
        extras = ", ".join(f"{k}={v}" for k, v in sorted(definition.defaults.items()))
        line = f"{key:<28} days={definition.default_days}"
        if extras:
            line += f", {extras}"
        click.echo(f"{line}  {definition.description}")


@main.command()
@click.argument("key", type=click.Choice(sorted(REPORT_REGISTRY.keys())))
@click.option("--days", type=int, default=None, help="Days to look back (default: per report).")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Period start, YYYY-MM-DD.")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Period end, YYYY-MM-DD.")
@click.option("--param", "raw_params", multiple=True, help="Report parameter as name=value, repeatable.")
@click.option("--adapt/--raw", default=False, help="Reshape the payload with the report's adapter.")
@click.option(
    "--env",
    type=click.Choice(["dev", "staging", "prod"], case_sensitive=False),
    default=None,
    help="Environment (default: dev or METRIKA_ENV).",
)
@click.option(
    "--output-dir",
    type=click.Path(),
    default=None,
    help="Write an enveloped JSON file here instead of printing.",
)
def report(
    key: str,
    days: int | None,
    start: datetime | None,
    end: datetime | None,
    raw_params: tuple[str, ...],
    adapt: bool,
    env: str | None,
    output_dir: str | None,
) -> None:
    """Run a single report."""
    if (start is None) != (end is None):
        raise click.UsageError("--start and --end must be given together")
    if start is not None and days is not None:
        raise click.UsageError("--days cannot be combined with --start/--end")

    params = _parse_params(raw_params)

    try:
        config = load_config(env)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Config error: %s", exc)
        sys.exit(1)

    logger.info("metrika starting [env=%s, counter=%s, report=%s]", config.env, config.counter_id, key)

    result = asyncio.run(_run_report(
        config,
        key,
        days,
        start.date() if start else None,
        end.date() if end else None,
        params,
        adapt,
    ))

    if output_dir is not None:
        out_path = write_report(result, config.counter_id, output_dir)
        logger.info("  -> wrote %s", out_path)
    else:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2, default=str))

    if not result.ok:
        logger.error("  FAILED: %s - %s", key, result.error or "no data")
        sys.exit(1)

    logger.info("Finished: %s (%s)", key, "cache" if result.from_cache else "api")


if __name__ == "__main__":
    main()
