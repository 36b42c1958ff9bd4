"""
QueryPilot CLI

Command-line interface for turning natural-language requests into
validated, paginated SQL.

Usage:
    querypilot compile plan.txt            # Compile a saved AI response offline
    querypilot schema company              # Show the schema context for a table
    querypilot ask company "in China"      # Single request
    querypilot chat company                # Interactive REPL with pagination
"""

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from querypilot import __version__
from querypilot.config import get_settings
from querypilot.connectors.factory import create_connector_from_settings
from querypilot.models.errors import PlanExecutionError, QueryPlanError
from querypilot.pipeline.session import PlanSession
from querypilot.planner.compiler import compile_count, compile_plan
from querypilot.planner.coordinator import PlanOutcome, is_read_only, summarize_plan
from querypilot.planner.parser import parse_plan
from querypilot.schema.resolver import SchemaResolver

console = Console()

EXIT_COMMANDS = {"exit", "quit", "q", ":q"}


def configure_cli_logging(verbose: bool) -> None:
    if verbose:
        get_settings().logging.configure()
        return
    logging.disable(logging.CRITICAL)
    for logger_name in ("querypilot", "httpx", "openai", "anthropic", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def _print_sql(sql: str, title: str = "SQL") -> None:
    console.print(Panel(escape(sql), title=title, border_style="cyan", highlight=True))


def _cell(value) -> str:
    return "" if value is None else str(value)


def _print_result(outcome: PlanOutcome) -> None:
    result = outcome.result
    if result is None:
        return

    table = Table(show_header=True, header_style="bold cyan")
    for column in result.columns:
        table.add_column(escape(column))
    for row in result.rows:
        table.add_row(*(escape(_cell(row.get(c))) for c in result.columns))
    console.print(table)

    if outcome.page_info is not None:
        console.print(f"[dim]{outcome.page_info.status()}[/dim]")


def print_outcome(outcome: PlanOutcome) -> None:
    """Render a coordinator outcome."""
    if outcome.kind == "need_other_tables":
        console.print(f"[yellow]{escape(outcome.summary)}[/yellow]")
        return

    console.print(f"[bold green]{escape(outcome.summary)}[/bold green]")
    if outcome.sql:
        _print_sql(outcome.sql)

    if outcome.kind == "review_required":
        console.print(
            f"[yellow]{outcome.plan.action.upper()} plan was not executed. "
            "Review the SQL above and run it yourself if it is correct.[/yellow]"
        )
        return

    _print_result(outcome)


def _print_error(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if isinstance(error, PlanExecutionError):
        _print_sql(error.sql, title="Failed SQL")


@click.group()
@click.version_option(version=__version__, prog_name="QueryPilot")
@click.option("-v", "--verbose", is_flag=True, help="Emit application logs.")
def cli(verbose: bool):
    """QueryPilot - natural-language query plans compiled to PostgreSQL."""
    configure_cli_logging(verbose)


@cli.command("compile")
@click.argument("plan_file", type=click.File("r"))
def compile_command(plan_file):
    """Compile an AI response containing a JSON plan (use - for stdin)."""
    try:
        plan = parse_plan(plan_file.read())
        console.print(f"[bold green]{escape(summarize_plan(plan))}[/bold green]")
        if plan.need_other_tables:
            return

        _print_sql(compile_plan(plan))
        if is_read_only(plan):
            _print_sql(compile_count(plan), title="Count SQL")
        else:
            console.print(f"[yellow]{plan.action.upper()} plan: review before running.[/yellow]")
    except QueryPlanError as e:
        _print_error(e)
        sys.exit(1)


@cli.command()
@click.argument("table")
def schema(table: str):
    """Show the schema context sent to the model for TABLE."""

    async def run_schema():
        settings = get_settings()
        async with create_connector_from_settings(settings.database) as connector:
            text = await SchemaResolver(connector).schema_context(
                table, settings.planner.include_related_schemas
            )
        console.print(text, markup=False, highlight=False)

    try:
        asyncio.run(run_schema())
    except Exception as e:
        _print_error(e)
        sys.exit(1)


@cli.command()
@click.argument("table")
@click.argument("question")
def ask(table: str, question: str):
    """Ask a single question about TABLE and exit."""

    async def run_query():
        session = PlanSession.from_settings(get_settings())
        async with session:
            with console.status("[cyan]Planning query...[/cyan]", spinner="dots"):
                outcome = await session.ask(table, question)
            print_outcome(outcome)

    try:
        asyncio.run(run_query())
    except Exception as e:
        _print_error(e)
        sys.exit(1)


@cli.command()
@click.argument("table")
def chat(table: str):
    """Interactive REPL about TABLE. Supports "next page" and "previous page"."""
    console.print(
        Panel.fit(
            f"[bold green]QueryPilot[/bold green] on [bold]{table}[/bold]\n"
            "Ask questions in natural language, say 'next page' or 'previous page' "
            "to paginate. Type 'exit' or 'quit' to leave.",
            border_style="green",
        )
    )

    async def run_chat():
        session = PlanSession.from_settings(get_settings())
        async with session:
            while True:
                try:
                    question = console.input("[bold cyan]You:[/bold cyan] ").strip()
                except (EOFError, KeyboardInterrupt):
                    console.print("\n[yellow]Goodbye![/yellow]")
                    break

                if not question:
                    continue
                if question.lower() in EXIT_COMMANDS:
                    console.print("[yellow]Goodbye![/yellow]")
                    break

                try:
                    with console.status("[cyan]Processing...[/cyan]", spinner="dots"):
                        outcome = await session.ask(table, question)
                    print_outcome(outcome)
                except Exception as e:
                    _print_error(e)

    try:
        asyncio.run(run_chat())
    except Exception as e:
        console.print(f"[red]Failed to start session: {escape(str(e))}[/red]")
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
