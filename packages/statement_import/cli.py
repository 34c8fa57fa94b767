"""CLI for the ``statement_import`` package.

Environment variables (``DATABASE_URL``, ``STATEMENT_IMPORT_LOG_LEVEL``,
``STATEMENT_IMPORT_THRESHOLD_CENTS``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in
``statement_import.pipeline`` and the storage helpers in
``statement_import.persistence``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .categories import CategoryDirectory, load_default_categories
from .logging_setup import configure_logging
from .models import ExistingTransaction, ImportState
from .money import format_cents

_THRESHOLD_ENV = "STATEMENT_IMPORT_THRESHOLD_CENTS"


# ---- Small module-level helpers used by CLI commands -------------------------


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _resolve_threshold(threshold_cents: int | None) -> int:
    """Return the CLI value, else ``STATEMENT_IMPORT_THRESHOLD_CENTS``, else 0."""

    if threshold_cents is not None:
        return threshold_cents
    raw = os.getenv(_THRESHOLD_ENV)
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        raise _fail(f"{_THRESHOLD_ENV} must be an integer, got {raw!r}") from None


def _read_csv(csv_path: Path) -> str:
    try:
        return csv_path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise _fail(f"File not found: {csv_path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {csv_path}") from None
    except UnicodeDecodeError as e:
        raise _fail(f"'{csv_path}' is not UTF-8 text: {e}") from None


def _load_reference_data(
    database_url: str | None,
) -> tuple[list[ExistingTransaction], CategoryDirectory]:
    """History and categories from the database, or bundled defaults without one."""

    if not database_url:
        return [], load_default_categories()

    # Local imports keep CLI startup fast when no database is involved
    from .db.client import session_scope
    from .persistence import load_category_directory, load_history

    with session_scope(database_url=database_url) as session:
        history = load_history(session)
        categories = load_category_directory(session)
    if not categories:
        raise _fail("no categories in the database; run `statement-import seed-categories`")
    return history, categories


def _print_summary(state: ImportState) -> None:
    s = state.summary
    typer.echo(
        f"Rows: {s.total_rows}  selected: {s.selected_rows}  "
        f"duplicates skipped: {s.duplicates_skipped}"
    )
    typer.echo(
        f"Income: {format_cents(s.total_income_cents)}  "
        f"expenses: {format_cents(-s.total_expense_cents)}"
    )
    if s.date_from is not None and s.date_to is not None:
        typer.echo(f"Period: {s.date_from.isoformat()} .. {s.date_to.isoformat()}")
    for g in state.groups:
        typer.echo(f"  {g.label}\t{g.row_count}\t{format_cents(g.total_cents)}")


def _print_errors(state: ImportState) -> None:
    for e in state.errors:
        where = f"line {e.line_number}" if e.line_number else "file"
        typer.echo(f"{e.severity}: {where}: {e.message}", err=True)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank statement CSV exports: dedupe, categorize and group rows, "
        "then build (and optionally persist) the import payload. "
        "Loads DATABASE_URL from a local .env before running."
    ),
)

# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to the bank CSV export to import",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
    readable=True,
)


@app.command("import-statement")
def import_statement_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    threshold_cents: int | None = typer.Option(
        None,
        min=0,
        help=f"Exclude merchant groups below this absolute total (env {_THRESHOLD_ENV}).",
    ),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    persist: bool = typer.Option(
        False, help="Write the payload transactions to the database."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the import payload as JSON instead of the summary."
    ),
) -> None:
    """Process a CSV export and build its import payload."""

    from .db.client import session_scope
    from .persistence import create_transactions
    from .pipeline import generate_payload, process_statement

    threshold = _resolve_threshold(threshold_cents)
    db_url = database_url or os.getenv("DATABASE_URL")
    if persist and not db_url:
        raise _fail("--persist requires --database-url or DATABASE_URL")

    content = _read_csv(csv_path)
    try:
        history, categories = _load_reference_data(db_url)
    except typer.Exit:
        raise
    except Exception as e:
        raise _fail(f"failed to load history/categories: {e}") from e

    state = process_statement(content, history)
    _print_errors(state)
    if state.fatal:
        raise _fail(f"could not import '{csv_path}'")

    payload = generate_payload(state.groups, state.rows, (), categories, threshold_cents=threshold)

    if as_json:
        typer.echo(payload.model_dump_json(indent=2))
    else:
        _print_summary(state)
        typer.echo(
            f"Payload: {len(payload.transactions)} transactions (import {payload.import_id})"
        )

    if persist:
        try:
            with session_scope(database_url=db_url) as session:
                created = create_transactions(session, payload)
        except Exception as e:
            raise _fail(f"persistence failed: {e}") from e
        if not as_json:
            typer.echo(f"Persisted {created} transactions")


@app.command("merchant-key")
def merchant_key_cmd(
    descriptions: list[str] = typer.Argument(
        ..., help="Raw transaction descriptions, one per argument."
    ),
) -> None:
    """Print the merchant key and resolving stage for each description."""

    from .merchant import default_extractor

    extractor = default_extractor()
    for d in descriptions:
        result = extractor.extract_with_trace(d)
        typer.echo(f"{d}\t{result.key}\t{result.stage}")


@app.command("seed-categories")
def seed_categories_cmd(
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create the schema and load the bundled category directory."""

    from .db.client import create_schema, session_scope
    from .persistence import seed_categories

    try:
        create_schema(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            count = seed_categories(session, load_default_categories().values())
    except Exception as e:
        raise _fail(f"seeding failed: {e}") from e
    typer.echo(f"Seeded {count} categories")


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
