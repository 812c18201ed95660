"""Command-line interface for Crossvote."""

import sys

import click
from rich.console import Console
from rich.table import Table

from crossvote.config import get_settings
from crossvote.database.repositories import DecisionRepository
from crossvote.exceptions import ConfigurationError, CrossvoteError
from crossvote.trading.coordinator import VotingCoordinator, build_performance_review
from crossvote.trading.ledger import DecisionLedger
from crossvote.trading.models import Decision
from crossvote.utils.helpers import format_percentage, format_timestamp
from crossvote.utils.logger import setup_logger

console = Console()

ACTION_STYLES = {"rebalance": "green", "hold": "yellow", "reject": "red"}


def _open_ledger() -> DecisionLedger:
    settings = get_settings()
    return DecisionLedger(
        capacity=settings.ledger_capacity,
        store=DecisionRepository(),
        performance_window=settings.performance_window,
    )


def _print_decision(decision: Decision) -> None:
    style = ACTION_STYLES.get(decision.action, "white")
    console.print(f"\n[bold {style}]Decision: {decision.action.upper()}[/bold {style}]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Confidence", format_percentage(decision.confidence))
    table.add_row("Consensus", format_percentage(decision.consensus))
    table.add_row("Overall Risk", format_percentage(decision.overall_risk))
    table.add_row("Timestamp", format_timestamp(decision.timestamp))
    if decision.next_eligible_time is not None:
        table.add_row("Next Eligible", format_timestamp(decision.next_eligible_time))
    console.print(table)

    console.print("\n[bold cyan]Reasoning[/bold cyan]")
    for line in decision.reasoning:
        console.print(f"  • {line}")

    plan = decision.execution_plan
    if plan is not None:
        title = "Execution Plan (dry run)" if plan.dry_run else "Execution Plan"
        console.print(f"\n[bold cyan]{title}[/bold cyan]")
        plan_table = Table(show_header=True, header_style="bold magenta")
        plan_table.add_column("#", style="cyan")
        plan_table.add_column("Action", style="white")
        plan_table.add_column("Description", style="white")
        plan_table.add_column("Est. Time", style="yellow")
        plan_table.add_column("Est. Gas", style="yellow")

        for step in plan.steps:
            plan_table.add_row(
                str(step.id),
                step.action,
                step.description,
                f"{step.estimated_seconds}s",
                f"{step.estimated_gas_units:,}",
            )
        plan_table.add_row("", "[bold]Total[/bold]", "", f"{plan.total_time}s", f"{plan.total_gas:,}")
        console.print(plan_table)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """Crossvote - consensus-governed rebalancing decisions."""
    setup_logger(log_level="DEBUG" if verbose else None)


@cli.command("evaluate")
@click.option(
    "--inputs",
    "inputs_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON snapshot with strategy, signal and risk inputs",
)
@click.option("--request", "request_text", default="", help="Free-form request text")
def evaluate(inputs_path: str, request_text: str):
    """Run one decision cycle against a snapshot of collaborator inputs."""
    from crossvote.sources.static import load_snapshot

    try:
        sources = load_snapshot(inputs_path)
        coordinator = VotingCoordinator(ledger=_open_ledger(), **sources)

        console.print("[bold]Running consensus voting...[/bold]")
        decision = coordinator.evaluate(request_text)
        _print_decision(decision)

    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error: {str(e)}[/red]")
        sys.exit(2)
    except (CrossvoteError, ValueError) as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)


@cli.command("history")
@click.option("--limit", type=int, default=20, help="Number of decisions to show")
def history(limit: int):
    """Show recorded decisions, most recent last."""
    try:
        records = _open_ledger().history(limit)
    except CrossvoteError as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)

    if not records:
        console.print("[dim]No decisions recorded yet[/dim]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Timestamp", style="white")
    table.add_column("Action", style="white")
    table.add_column("Confidence", style="white")
    table.add_column("Consensus", style="white")
    table.add_column("Risk", style="white")
    table.add_column("Outcome", style="white")

    for record in records:
        style = ACTION_STYLES.get(record.action, "white")
        if record.outcome is None:
            outcome = "pending"
        else:
            outcome = "success" if record.outcome.succeeded else "failure"
        table.add_row(
            record.id,
            format_timestamp(record.timestamp),
            f"[{style}]{record.action}[/{style}]",
            format_percentage(record.confidence),
            format_percentage(record.consensus),
            format_percentage(record.overall_risk),
            outcome,
        )

    console.print(table)


@cli.command("status")
def status():
    """Show ledger status and the latest decision."""
    try:
        ledger = _open_ledger()
        latest = ledger.history(1)
        counts = DecisionRepository().count_by_action()
    except CrossvoteError as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Recorded Decisions", str(len(ledger)))
    table.add_row("Rebalances", str(counts.get("rebalance", 0)))
    table.add_row("Holds", str(counts.get("hold", 0)))
    table.add_row("Success Rate", format_percentage(ledger.success_rate()))
    if latest:
        table.add_row("Last Decision", f"{latest[-1].action} at {format_timestamp(latest[-1].timestamp)}")
    else:
        table.add_row("Last Decision", "N/A")

    console.print(table)


@cli.command("review")
def review():
    """Show a performance review of the decision history."""
    try:
        result = build_performance_review(_open_ledger())
    except CrossvoteError as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)

    console.print("\n[bold cyan]Performance Review[/bold cyan]")
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Total Decisions", str(result.total_decisions))
    table.add_row("Rebalance Decisions", str(result.rebalance_decisions))
    table.add_row("Hold Decisions", str(result.hold_decisions))
    table.add_row("Success Rate", format_percentage(result.success_rate))
    table.add_row("Recent Avg Return", f"{result.recent_avg_return * 100:.2f}%")
    table.add_row("Sample Size", str(result.recent_sample_size))
    table.add_row("Avg Confidence", format_percentage(result.avg_confidence))
    console.print(table)

    if result.improvements:
        console.print("\n[bold cyan]Suggestions[/bold cyan]")
        for suggestion in result.improvements:
            console.print(f"  • {suggestion}")
    else:
        console.print("\n[green]✓[/green] Performance is within acceptable parameters")


if __name__ == "__main__":
    cli()
