"""CLI for the ``spending_insights`` package.

A thin Typer shell over :mod:`spending_insights.api` for inspecting a
transaction export from the terminal. Input is a JSON file holding either a
list of raw transactions or an object with a ``transactions`` list and
optional ``budgets`` and ``goals`` lists. Environment variables (log level,
thresholds) are loaded from a local ``.env`` with ``python-dotenv`` first.

Command handlers (``cmd_*``) return a process exit code so they can be
called directly; the Typer commands wrap them.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .formatting import format_currency, format_percentage, truncate
from .logging_setup import configure_logging
from .models import InsightsReport, TimeWindow

# ---- Input loading -----------------------------------------------------------


def _load_payload(json_path: Path) -> tuple[list[Any], list[Any], list[Any]]:
    """Return ``(transactions, budgets, goals)`` from a JSON export."""

    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return data, [], []
    if isinstance(data, dict) and isinstance(data.get("transactions"), list):
        budgets = data.get("budgets") or []
        goals = data.get("goals") or []
        if not isinstance(budgets, list) or not isinstance(goals, list):
            raise ValueError("'budgets' and 'goals' must be lists when present")
        return data["transactions"], budgets, goals
    raise ValueError("expected a list of transactions or an object with a 'transactions' list")


def _run_report(json_path: Path, window: str, as_of: str | None) -> InsightsReport | None:
    """Load input and build the report, printing errors to stderr."""

    # Deferred import keeps `--help` fast
    from pydantic import ValidationError

    from .api import build_insights
    from .time_windows import parse_timestamp

    try:
        resolved_window = TimeWindow(window)
    except ValueError:
        allowed = ", ".join(w.value for w in TimeWindow)
        print(f"Error: unknown window {window!r} (expected one of: {allowed})", file=sys.stderr)
        return None

    now = None
    if as_of is not None:
        now = parse_timestamp(as_of)
        if now is None:
            print(f"Error: invalid --as-of date: {as_of!r}", file=sys.stderr)
            return None

    try:
        transactions, budgets, goals = _load_payload(json_path)
    except FileNotFoundError:
        print(f"Error: File not found: {json_path}", file=sys.stderr)
        return None
    except PermissionError:
        print(f"Error: Permission denied: {json_path}", file=sys.stderr)
        return None
    except json.JSONDecodeError as e:
        print(f"Error: Failed to parse JSON: {e}", file=sys.stderr)
        return None
    except ValueError as e:
        print(f"Error: Unexpected input shape in '{json_path}': {e}", file=sys.stderr)
        return None

    try:
        return build_insights(transactions, resolved_window, budgets=budgets, goals=goals, now=now)
    except ValidationError as e:
        print(f"Error: invalid budget, goal or settings data: {e}", file=sys.stderr)
        return None


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


# ---- Command handlers ----------------------------------------------------------


def cmd_enrich(json_path: Path, *, window: str = "all", as_of: str | None = None, as_json: bool = False) -> int:
    report = _run_report(json_path, window, as_of)
    if report is None:
        return 1
    if as_json:
        _emit_json([asdict(tx) for tx in report.transactions])
        return 0
    for tx in report.transactions:
        typer.echo(
            "\t".join(
                [
                    tx.id or "",
                    tx.date or "",
                    format_currency(tx.amount, tx.currency),
                    tx.merchant,
                    f"{tx.category_icon} {tx.category}",
                    truncate(tx.description, 40),
                ]
            )
        )
    return 0


def cmd_categories(json_path: Path, *, window: str = "all", as_of: str | None = None, as_json: bool = False) -> int:
    report = _run_report(json_path, window, as_of)
    if report is None:
        return 1
    if as_json:
        _emit_json([asdict(c) for c in report.categories])
        return 0
    if not report.categories:
        typer.echo("No expenses in this window.")
        return 0
    cur = report.currency
    for c in report.categories:
        line = (
            f"{c.icon} {c.category}: {format_currency(c.amount, cur)} "
            f"({format_percentage(c.percentage)}, {c.count} tx, "
            f"suggested {format_currency(c.suggested_budget, cur)})"
        )
        if c.limit is not None:
            line += f" limit {format_currency(c.limit, cur)}"
        typer.echo(line)
    return 0


def cmd_recurring(json_path: Path, *, window: str = "all", as_of: str | None = None, as_json: bool = False) -> int:
    report = _run_report(json_path, window, as_of)
    if report is None:
        return 1
    if as_json:
        _emit_json([asdict(r) for r in report.recurring])
        return 0
    if not report.recurring:
        typer.echo("No recurring expenses detected.")
        return 0
    for r in report.recurring:
        typer.echo(
            f"{r.category_icon} {r.merchant}: {format_currency(r.amount, report.currency)}/month "
            f"over {r.frequency} months, next {r.next_date[:10]}"
        )
    return 0


def cmd_summary(json_path: Path, *, window: str = "all", as_of: str | None = None, as_json: bool = False) -> int:
    report = _run_report(json_path, window, as_of)
    if report is None:
        return 1
    if as_json:
        _emit_json({"window": report.window.value, "currency": report.currency, **asdict(report.overview)})
        return 0
    o = report.overview
    cur = report.currency
    typer.echo(f"Window: {report.window.value}")
    typer.echo(f"Income: {format_currency(o.total_income, cur)}")
    typer.echo(f"Expenses: {format_currency(o.total_spent, cur)}")
    typer.echo(f"Net: {format_currency(o.net_balance, cur)}")
    typer.echo(f"Recurring per month: {format_currency(o.recurring_expenses_total, cur)}")
    typer.echo(f"Budget usage: {format_percentage(o.budget_usage)} ({o.categories_over_budget} over budget)")
    typer.echo(f"Goals progress: {format_percentage(o.goals_progress)}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Enrich bank transactions and report spending insights from a JSON export. "
        "Loads settings from a local .env before running."
    ),
)

# Shared required option for every command. Typer reads it from the
# ``Annotated`` metadata below.
JSON_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--json-path",
    help="Path to a JSON file with transactions (and optional budgets/goals)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
    readable=True,
)
WINDOW_HELP = "Time window: thisMonth, lastMonth, last3Months, thisYear or all."
AS_OF_HELP = "Reference date (ISO) for relative windows; defaults to now."


@app.command("enrich")
def enrich_cmd(
    json_path: Annotated[Path, JSON_PATH_OPTION],
    *,
    window: str = typer.Option("all", "--window", help=WINDOW_HELP),
    as_of: str | None = typer.Option(None, "--as-of", help=AS_OF_HELP),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """List enriched transactions (merchant and category per row)."""

    raise typer.Exit(cmd_enrich(json_path, window=window, as_of=as_of, as_json=as_json))


@app.command("categories")
def categories_cmd(
    json_path: Annotated[Path, JSON_PATH_OPTION],
    *,
    window: str = typer.Option("all", "--window", help=WINDOW_HELP),
    as_of: str | None = typer.Option(None, "--as-of", help=AS_OF_HELP),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Show spending by category with suggested budgets."""

    raise typer.Exit(cmd_categories(json_path, window=window, as_of=as_of, as_json=as_json))


@app.command("recurring")
def recurring_cmd(
    json_path: Annotated[Path, JSON_PATH_OPTION],
    *,
    window: str = typer.Option("all", "--window", help=WINDOW_HELP),
    as_of: str | None = typer.Option(None, "--as-of", help=AS_OF_HELP),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Show merchants with stable month-to-month charges."""

    raise typer.Exit(cmd_recurring(json_path, window=window, as_of=as_of, as_json=as_json))


@app.command("summary")
def summary_cmd(
    json_path: Annotated[Path, JSON_PATH_OPTION],
    *,
    window: str = typer.Option("all", "--window", help=WINDOW_HELP),
    as_of: str | None = typer.Option(None, "--as-of", help=AS_OF_HELP),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Show income, expenses, net and budget/goal progress."""

    raise typer.Exit(cmd_summary(json_path, window=window, as_of=as_of, as_json=as_json))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to SPENDING_INSIGHTS_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    variables that are already set) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
