from __future__ import annotations

import datetime
from typing import Annotated

import typer

from covpolicy.cli._shared import (
    ColorOption,
    ConfigOption,
    NoColorOption,
    OutputOption,
    exit_on_error,
    get_config,
    history_store,
    resolve_use_color,
    stdout_color_allowed,
    write_output,
)
from covpolicy.cli.exit_codes import EXIT_OK
from covpolicy.core.trends import TrendAnalysisService
from covpolicy.render.text import render_events, render_history_analysis, render_trend


def trend_cmd(
    config: ConfigOption = None,
    since: Annotated[
        int,
        typer.Option("--since", help="Only analyse entries from the last N days.", min=1),
    ] = 30,
    window: Annotated[
        int,
        typer.Option("--window", help="Number of recent entries used for the forecast (0 = all).", min=0),
    ] = 10,
    output: OutputOption = None,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Show how coverage moved between the last two entries and forecast the next one."""
    with exit_on_error():
        cfg = get_config(config)
        history = history_store(cfg).load()

    service = TrendAnalysisService()
    current = history.latest_entry()
    previous = history.entry_before(current.timestamp) if current else None
    trend = service.analyze_trend(previous, current)
    cutoff = datetime.datetime.now(datetime.UTC) - datetime.timedelta(days=since)
    analysis = service.analyze_history(history, cutoff)
    forecast = service.predict_next_coverage(history, window) if history else None

    use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=stdout_color_allowed(output))
    parts = [
        render_trend(trend, color=use_color),
        render_history_analysis(analysis, forecast, color=use_color),
        render_events(trend.events, color=use_color),
    ]
    write_output("\n\n".join(p for p in parts if p), output)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("trend")(trend_cmd)


__all__ = ["register"]
