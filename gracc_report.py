#!/usr/bin/env python3
"""
Report OSG batch jobs and CPU hours from GRACC over a time range.
"""

from datetime import datetime, timedelta, timezone

import pandas as pd
import typer

from config import load_report_config
from date_utils import iso_string_to_date, to_iso_string
from gracc_query import get_client, gracc_query

app = typer.Typer()


def print_summary(result: dict) -> None:
    typer.echo("\n" + "=" * 80)
    typer.echo("GRACC JOB SUMMARY")
    typer.echo("=" * 80)
    typer.echo(f"Range: {result['startTime']} to {result['endTime']}")
    typer.echo(f"Query took: {result['took']} ms")
    typer.echo(f"Total jobs: {result['sumJobs']:,.0f}")
    typer.echo(f"Total CPU hours: {result['sumCpuHours']:,.2f}")
    typer.echo(f"Buckets: {len(result['dataPoints'])}")

    if result["dataPoints"]:
        df = pd.DataFrame(result["dataPoints"], columns=["timestamp", "nJobs", "cpuHours"])
        typer.echo("\n" + df.to_string(index=False))


@app.command()
def main(
    start: str | None = typer.Option(None, "--start", help="Start time (ISO-8601), overrides --days"),
    end: str | None = typer.Option(None, "--end", help="End time (ISO-8601), defaults to now"),
    days: int | None = typer.Option(None, "--days", "-d", help="Number of days to look back (default: 30)"),
    interval: str | None = typer.Option(None, "--interval", "-i", help="Histogram bucket width (default: 1d)"),
    offset: int | None = typer.Option(None, "--offset", help="Shift buckets back by this many seconds"),
    response_output: str | None = typer.Option(None, "--response-output", help="Raw response JSON file"),
    data_output: str | None = typer.Option(None, "--data-output", help="Summary JSON file"),
    no_output: bool = typer.Option(False, "--no-output", help="Don't write any JSON files"),
    config_file: str = typer.Option("gracc_report.yaml", "--config", "-c", help="YAML config file"),
    endpoint: str | None = typer.Option(None, "--endpoint", help="GRACC endpoint URL"),
    index: str | None = typer.Option(None, "--index", help="Index to search"),
):
    """
    Query GRACC for batch jobs and CPU hours, bucketed over time.

    Examples:
        # Last 30 days in daily buckets (default)
        python gracc_report.py

        # Last week in 6 hour buckets
        python gracc_report.py --days 7 --interval 6h

        # Specific time range
        python gracc_report.py --start 2024-02-10T00:00:00Z --end 2024-03-11T00:00:00Z
    """
    config = load_report_config(config_file)

    if end:
        try:
            end_time = iso_string_to_date(end)
        except ValueError:
            typer.echo(f"Error: Invalid end time '{end}'. Use ISO-8601, e.g. 2024-03-11T19:22:28+00:00", err=True)
            raise typer.Exit(1) from ValueError
    else:
        end_time = datetime.now(timezone.utc)

    if start:
        try:
            start_time = iso_string_to_date(start)
        except ValueError:
            typer.echo(f"Error: Invalid start time '{start}'. Use ISO-8601, e.g. 2024-02-10T19:22:28+00:00", err=True)
            raise typer.Exit(1) from ValueError
    else:
        lookback = days if days is not None else config["lookback_days"]
        start_time = end_time - timedelta(days=lookback)

    if start_time >= end_time:
        typer.echo("Error: Start time must be before end time", err=True)
        raise typer.Exit(1)

    if no_output:
        response_file = data_file = None
    else:
        response_file = response_output or config["response_output"]
        data_file = data_output or config["data_output"]

    typer.echo(f"Querying GRACC from {to_iso_string(start_time)} to {to_iso_string(end_time)}")

    client = get_client(endpoint or config["endpoint"], config["request_timeout"])
    result = gracc_query(
        start_time,
        end_time,
        interval or config["interval"],
        offset if offset is not None else config["offset"],
        client=client,
        index=index or config["index"],
        response_output=response_file,
        data_output=data_file,
    )

    if result is None:
        typer.echo("Error: GRACC query failed, no report written", err=True)
        raise typer.Exit(1)

    print_summary(result)


if __name__ == "__main__":
    app()
