"""Budget progress, planned entry and income planning reports."""

import click

from celeiro.cli.error_handling import handle_domain_error
from celeiro.domain.budget_progress import BudgetProgressService
from celeiro.domain.errors import DomainError
from celeiro.domain.income_planning import IncomePlanningService
from celeiro.domain.planned_entry import PlannedEntryService
from celeiro.system import System
from celeiro.utils.month_parser import parse_month


def _format_amount(amount) -> str:
    return f"{amount:>12,.2f}"


@click.command("budget-progress")
@click.argument("budget_id", type=int)
@click.option("--organization-id", type=int, required=True, help="Organization owning the budget")
@click.pass_context
def budget_progress(ctx, budget_id: int, organization_id: int):
    """Show spending against a budget and the end-of-month projection."""
    service = BudgetProgressService(ctx.obj["db"], System())

    try:
        progress = service.calculate_budget_progress(organization_id, budget_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(
        f"\nBudget {progress.budget_id} ({progress.budget_type.value}) - "
        f"day {progress.current_day}/{progress.days_in_month} ({progress.progress_percentage}%)"
    )
    click.echo("-" * 60)
    click.echo(f"Total budget:       {_format_amount(progress.total_budget)}")
    click.echo(f"Expected by today:  {_format_amount(progress.expected_at_current_day)}")
    click.echo(f"Actual spent:       {_format_amount(progress.actual_spent)}")
    click.echo(f"Variance:           {_format_amount(progress.variance)}")
    click.echo(f"Projected month end:{_format_amount(progress.projection_end_of_month)}")
    click.echo(f"Status: {progress.status.value}")

    if progress.categories:
        click.echo("\nCategories:")
        for row in progress.categories:
            click.echo(
                f"  {row.category_name or row.category_id!s:20s} | planned {_format_amount(row.planned_amount)}"
                f" | spent {_format_amount(row.actual_spent)} | {row.status.value}"
            )


@click.command("planned-status")
@click.option("--organization-id", type=int, required=True, help="Organization to report on")
@click.option(
    "--month",
    "month_text",
    default="this month",
    show_default=True,
    help='Month to report: "this month", "last month", "2024-03", "March 2024"',
)
@click.pass_context
def planned_status(ctx, organization_id: int, month_text: str):
    """List planned entries with their status for a month."""
    system = System()
    try:
        month, year = parse_month(month_text, today=system.clock.now().date())
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    service = PlannedEntryService(ctx.obj["db"], system)
    try:
        entries = service.get_planned_entries_for_month(organization_id, month, year)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not entries:
        click.echo(f"No planned entries for {year:04d}-{month:02d}.")
        return

    click.echo(f"\nPlanned entries for {year:04d}-{month:02d}:")
    click.echo("-" * 60)
    for item in entries:
        click.echo(
            f"ID: {item.entry.id:3d} | {item.entry.description:24s} |"
            f"{_format_amount(item.entry.amount)} | {item.status.value}"
        )


@click.command("generate-instances")
@click.argument("entry_id", type=int)
@click.option("--user-id", type=int, required=True, help="User generating the instance")
@click.option("--organization-id", type=int, required=True, help="Organization owning the entry")
@click.option(
    "--month",
    "month_text",
    default="this month",
    show_default=True,
    help='Month of the instance: "this month", "next month", "2024-03"',
)
@click.pass_context
def generate_instances(ctx, entry_id: int, user_id: int, organization_id: int, month_text: str):
    """Generate the monthly instance of a recurrent planned entry."""
    system = System()
    try:
        month, year = parse_month(month_text, today=system.clock.now().date())
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    service = PlannedEntryService(ctx.obj["db"], system)
    try:
        instances = service.generate_monthly_instances(user_id, organization_id, entry_id, month, year)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    for instance in instances:
        click.echo(
            f"Generated instance {instance.id} of entry {entry_id} for {year:04d}-{month:02d}"
        )


@click.command("income-planning")
@click.option("--organization-id", type=int, required=True, help="Organization to report on")
@click.option(
    "--month",
    "month_text",
    default="this month",
    show_default=True,
    help='Month to report: "this month", "last month", "2024-03", "March 2024"',
)
@click.pass_context
def income_planning(ctx, organization_id: int, month_text: str):
    """Show how much of a month's income the budgets leave unplanned."""
    try:
        month, year = parse_month(month_text, today=System().clock.now().date())
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    service = IncomePlanningService(ctx.obj["db"])
    try:
        report = service.get_income_planning(organization_id, month, year)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nIncome planning for {year:04d}-{month:02d}:")
    click.echo("-" * 60)
    click.echo(f"Total income:  {_format_amount(report.total_income)}")
    click.echo(f"Total planned: {_format_amount(report.total_planned)}")
    click.echo(f"Unallocated:   {_format_amount(report.unallocated)} ({report.unallocated_percent}%)")
    click.echo(f"Status: {report.status.value} - {report.message}")


def register_commands(cli):
    """Register budget report commands with main CLI."""
    cli.add_command(budget_progress)
    cli.add_command(planned_status)
    cli.add_command(generate_instances)
    cli.add_command(income_planning)
