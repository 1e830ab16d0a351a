"""CLI Runner for Production Runner.

Usage:
    production-runner schedule one-liner scenes.json --start-date 2026-11-02 --name "Night Shift"
    production-runner schedule dood scenes.json --start-date 2026-11-02 --name "Night Shift" -o dood.csv
    production-runner budget template short-film
    production-runner budget add --name "Gaffer" --category "Below the Line" --days 10 --unit-cost 650
    production-runner budget summary
    production-runner callsheet send callsheet.json recipients.json --document call_sheet.pdf
    production-runner weather --address "Griffith Observatory, Los Angeles" --date 2026-11-02
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from production_runner import __version__

console = Console()

STATUS_STYLES = {
    "sent": "green",
    "delivered": "green",
    "viewed": "green",
    "confirmed": "bold green",
    "failed": "red",
    "pending": "yellow",
    "sending": "yellow",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose)],
        force=True,
    )


def _parse_date(value):
    return value.date() if value is not None else None


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Production Runner.

    Scheduling, budgeting, and call sheet delivery for film and TV productions.
    """
    _configure_logging(verbose)


# ============================================================================
# Schedule Commands
# ============================================================================


@cli.group()
def schedule():
    """One-liner and Day Out of Days commands."""
    pass


def _build_schedule(scenes_path: str, start_date, name: str):
    from production_runner.models import load_scenes
    from production_runner.services.one_liner_builder import OneLinerBuilder

    scenes = load_scenes(scenes_path)
    return OneLinerBuilder().build(scenes, start_date.date(), name)


@schedule.command("one-liner")
@click.argument("scenes", type=click.Path(exists=True, dir_okay=False))
@click.option("--start-date", "-s", required=True, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="First shoot day (YYYY-MM-DD)")
@click.option("--name", "-n", required=True, help="Production name")
@click.option("--format", "-f", "output_format", default="md",
              type=click.Choice(["md", "html", "csv", "pdf"]))
@click.option("--output", "-o", default=None, help="Output file path")
def one_liner(scenes: str, start_date, name: str, output_format: str, output: Optional[str]):
    """Build a one-liner schedule from a stripboard JSON file."""
    from production_runner.services.schedule_renderer import ScheduleRenderer

    if output_format == "pdf" and not output:
        console.print("[red]Error:[/red] --output is required for PDF output")
        sys.exit(1)

    try:
        one_liner_schedule = _build_schedule(scenes, start_date, name)
        content = ScheduleRenderer().render_one_liner(
            one_liner_schedule, output_format, output_path=output
        )
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if output:
        console.print(f"[green]One-liner saved to:[/green] {output}")
        console.print(
            f"  {len(one_liner_schedule.days)} days, {one_liner_schedule.total_scenes} scenes, "
            f"{one_liner_schedule.total_pages} pages"
        )
    else:
        click.echo(content)


@schedule.command("dood")
@click.argument("scenes", type=click.Path(exists=True, dir_okay=False))
@click.option("--start-date", "-s", required=True, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="First shoot day (YYYY-MM-DD)")
@click.option("--name", "-n", required=True, help="Production name")
@click.option("--cast", "cast_file", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON object mapping cast ID to name or [name, role]")
@click.option("--format", "-f", "output_format", default="csv",
              type=click.Choice(["csv", "html", "pdf"]))
@click.option("--output", "-o", default=None, help="Output file path")
def dood(scenes: str, start_date, name: str, cast_file: Optional[str],
         output_format: str, output: Optional[str]):
    """Build a Day Out of Days report from a stripboard JSON file."""
    from production_runner.services.dood_builder import DOODReportBuilder
    from production_runner.services.schedule_renderer import ScheduleRenderer

    if output_format == "pdf" and not output:
        console.print("[red]Error:[/red] --output is required for PDF output")
        sys.exit(1)

    try:
        directory = {}
        if cast_file:
            raw = json.loads(Path(cast_file).read_text())
            directory = {
                str(k): tuple(v) if isinstance(v, list) else str(v) for k, v in raw.items()
            }
        one_liner_schedule = _build_schedule(scenes, start_date, name)
        report = DOODReportBuilder(directory).build(one_liner_schedule)
        content = ScheduleRenderer().render_dood(report, output_format, output_path=output)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if output:
        console.print(f"[green]DOOD saved to:[/green] {output}")
        console.print(
            f"  {len(report.cast_members)} cast, {len(report.shoot_days)} days, "
            f"{report.total_work_days} work days"
        )
    else:
        click.echo(content, nl=False)


# ============================================================================
# Budget Commands
# ============================================================================


@cli.group()
def budget():
    """Budget ledger commands."""
    pass


def _get_ledger():
    from production_runner.config import get_settings
    from production_runner.services.budget_ledger import BudgetLedger

    return BudgetLedger(get_settings().get_ledger_path())


@budget.command("add")
@click.option("--name", "-n", required=True, help="Line item name")
@click.option("--category", "-c", required=True, help="Category name")
@click.option("--subcategory", default="", help="Subcategory")
@click.option("--section", default=None, help="Section (free-text grouping)")
@click.option("--account", "-a", default="", help="Account code (NN-NN)")
@click.option("--quantity", "-q", default=1.0, type=float)
@click.option("--days", "-d", default=1.0, type=float)
@click.option("--unit-cost", "-u", default=0.0, type=float)
@click.option("--total-budget", default=None, type=float, help="Explicit total override")
@click.option("--notes", default="", help="Notes")
@click.option("--ignore-total", is_flag=True, help="Exclude from totals")
def add_line_item(name: str, category: str, subcategory: str, section: Optional[str],
                  account: str, quantity: float, days: float, unit_cost: float,
                  total_budget: Optional[float], notes: str, ignore_total: bool):
    """Add a line item to the budget."""
    from production_runner.models import BudgetLineItem
    from production_runner.services import budget_calculator

    try:
        ledger = _get_ledger()
        item = ledger.add_line_item(BudgetLineItem(
            name=name,
            category=category,
            subcategory=subcategory,
            section=section,
            account=account,
            quantity=quantity,
            days=days,
            unit_cost=unit_cost,
            total_budget=total_budget,
            notes=notes,
            ignore_total=ignore_total,
        ))
        ledger.save()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Added line item:[/green] {item.id}")
    console.print(f"  {item.name} ({item.category}): ${budget_calculator.item_total(item):,.2f}")


@budget.command("list")
def list_line_items():
    """List all budget line items."""
    from production_runner.services import budget_calculator

    try:
        ledger = _get_ledger()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not ledger.items:
        console.print("No line items found.")
        return

    table = Table(title="Budget Line Items")
    table.add_column("ID", style="cyan")
    table.add_column("Acct")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Section")
    table.add_column("Qty", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Total", justify="right")

    for item in budget_calculator.top_level_items(ledger.items):
        rows = [(item, "")] + [(child, "  └ ") for child in ledger.children_of(item.id)]
        for row_item, prefix in rows:
            total = budget_calculator.group_total(row_item, ledger.items)
            total_text = f"${total:,.2f}"
            if row_item.ignore_total:
                total_text = f"[dim]{total_text} (ignored)[/dim]"
            table.add_row(
                row_item.id,
                row_item.account or "-",
                f"{prefix}{row_item.name}",
                row_item.category,
                row_item.section or "-",
                f"{row_item.quantity:g}",
                f"{row_item.days:g}",
                f"${row_item.unit_cost:,.2f}",
                total_text,
            )

    console.print(table)


@budget.command("summary")
def budget_summary():
    """Show totals by category and section."""
    from production_runner.services import budget_calculator

    try:
        ledger = _get_ledger()
        summaries = budget_calculator.category_summary(ledger.items, ledger.categories)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    grand_total = ledger.grand_total()

    table = Table(title="Budget Summary")
    table.add_column("Category")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Share", justify="right")

    for summary in summaries:
        share = summary.total / grand_total * 100 if grand_total else 0.0
        table.add_row(
            f"[{summary.color_hex}]■[/{summary.color_hex}] {summary.category}",
            str(summary.item_count),
            f"${summary.total:,.2f}",
            f"{share:.1f}%",
        )
    console.print(table)

    sections = ledger.totals_by_section()
    if sections:
        section_table = Table(title="By Section")
        section_table.add_column("Section")
        section_table.add_column("Total", justify="right")
        for section, total in sections.items():
            section_table.add_row(section, f"${total:,.2f}")
        console.print(section_table)

    console.print(f"[bold]Grand total:[/bold] ${grand_total:,.2f}")


@budget.command("remove")
@click.argument("item_id")
def remove_line_item(item_id: str):
    """Remove a line item and any children."""
    try:
        ledger = _get_ledger()
        removed = ledger.delete_line_item(item_id)
        ledger.save()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Removed {len(removed)} line item(s)[/green]")


@budget.command("clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def clear_budget(yes: bool):
    """Remove every line item."""
    if not yes:
        click.confirm("Remove all budget line items?", abort=True)

    try:
        ledger = _get_ledger()
        count = ledger.clear_all()
        ledger.save()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Cleared {count} line item(s)[/green]")


@budget.command("add-cast")
@click.argument("parent_id")
@click.option("--name", "-n", required=True, help="Cast member name")
@click.option("--day-rate", "-r", required=True, type=float, help="Day rate")
@click.option("--days", "-d", required=True, type=float, help="Shoot days")
@click.option("--contact-id", default=None, help="Linked contact ID")
def add_cast_member(parent_id: str, name: str, day_rate: float, days: float,
                    contact_id: Optional[str]):
    """Attach a cast member to a cast line item."""
    try:
        ledger = _get_ledger()
        child = ledger.add_cast_member(parent_id, name, day_rate, days, contact_id=contact_id)
        ledger.save()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Added cast member:[/green] {child.id}")
    console.print(f"  {child.name}: {days:g} days at ${day_rate:,.2f}")


@budget.command("template")
@click.argument("template", type=click.Choice(["short-film"]))
@click.option("--append", is_flag=True, help="Keep existing line items and categories")
def load_template(template: str, append: bool):
    """Load a starter budget template."""
    try:
        ledger = _get_ledger()
        count = ledger.load_template(template, replace=not append)
        ledger.save()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Imported {count} line items from {template} template[/green]")


# ============================================================================
# Call Sheet Commands
# ============================================================================


@cli.group()
def callsheet():
    """Call sheet delivery commands."""
    pass


class ConsoleDeliveryCallbacks:
    """Prints one line per recipient as a delivery progresses."""

    def on_recipient_start(self, recipient) -> None:
        pass

    def on_recipient_complete(self, recipient, progress: float) -> None:
        style = STATUS_STYLES.get(recipient.status, "white")
        console.print(
            f"  [{progress:>4.0%}] {recipient.name} ({recipient.method}): "
            f"[{style}]{recipient.status}[/{style}]"
        )

    def on_delivery_complete(self, delivery) -> None:
        pass


def _get_delivery_service():
    from production_runner.config import get_settings
    from production_runner.services.delivery_service import CallSheetDeliveryService
    from production_runner.services.email_transport import SMTPEmailTransport
    from production_runner.services.sms_transport import TwilioSMSTransport

    settings = get_settings()
    sms = TwilioSMSTransport() if settings.twilio_configured else None
    email = SMTPEmailTransport() if settings.smtp_configured else None
    return CallSheetDeliveryService(sms, email, ConsoleDeliveryCallbacks())


def _load_recipients(path: str, method: str):
    from production_runner.models import Contact, DeliveryRecipient
    from production_runner.services.delivery_service import build_recipients

    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        cast = [Contact.model_validate(c) for c in data.get("cast", [])]
        crew = [Contact.model_validate(c) for c in data.get("crew", [])]
        return build_recipients(cast, crew, method)
    return [DeliveryRecipient.model_validate(r) for r in data]


def _print_delivery(delivery) -> None:
    table = Table(title=f"Delivery {delivery.id}")
    table.add_column("Recipient")
    table.add_column("Method")
    table.add_column("Contact")
    table.add_column("Status")
    table.add_column("Detail")

    for r in delivery.recipients:
        style = STATUS_STYLES.get(r.status, "white")
        table.add_row(
            r.name,
            r.method,
            r.contact_info,
            f"[{style}]{r.status}[/{style}]",
            r.failure_reason or "-",
        )

    console.print(table)
    console.print(f"[bold]{delivery.status_summary}[/bold]")


@callsheet.command("send")
@click.argument("callsheet_json", type=click.Path(exists=True, dir_okay=False))
@click.argument("recipients_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--document", "-d", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Call sheet document to attach")
@click.option("--media-url", default=None, help="Public URL of the document for SMS")
@click.option("--method", default="email", type=click.Choice(["email", "sms"]),
              help="Delivery method for contacts without one")
def send_callsheet(callsheet_json: str, recipients_json: str, document: str,
                   media_url: Optional[str], method: str):
    """Send a call sheet to a list of recipients."""
    from production_runner.config import get_settings
    from production_runner.models import CallSheet
    from production_runner.services.delivery_service import save_delivery_history

    try:
        call_sheet = CallSheet.load_from_file(callsheet_json)
        recipients = _load_recipients(recipients_json, method)
        service = _get_delivery_service()

        console.print(f"Sending [bold]{call_sheet.title}[/bold] to {len(recipients)} recipient(s)")
        delivery = service.send_call_sheet(
            call_sheet,
            Path(document).read_bytes(),
            recipients,
            media_url=media_url,
            filename=Path(document).name,
        )
        save_delivery_history(delivery, get_settings().get_delivery_dir())
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    _print_delivery(delivery)


@callsheet.command("resend")
@click.argument("delivery_id")
@click.option("--callsheet", "callsheet_json", required=True,
              type=click.Path(exists=True, dir_okay=False), help="Call sheet JSON")
@click.option("--document", "-d", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Call sheet document to attach")
@click.option("--media-url", default=None, help="Public URL of the document for SMS")
def resend_callsheet(delivery_id: str, callsheet_json: str, document: str,
                     media_url: Optional[str]):
    """Retry the failed recipients of a previous delivery."""
    from production_runner.config import get_settings
    from production_runner.models import CallSheet
    from production_runner.services.delivery_service import (
        load_delivery_history,
        save_delivery_history,
    )

    delivery_dir = get_settings().get_delivery_dir()
    delivery = load_delivery_history(delivery_id, delivery_dir)
    if delivery is None:
        console.print(f"[red]Delivery not found:[/red] {delivery_id}")
        sys.exit(1)

    try:
        call_sheet = CallSheet.load_from_file(callsheet_json)
        service = _get_delivery_service()
        updated = service.resend_failed(
            delivery,
            call_sheet,
            Path(document).read_bytes(),
            media_url=media_url,
            filename=Path(document).name,
        )
        save_delivery_history(updated, delivery_dir)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    _print_delivery(updated)


@callsheet.command("status")
@click.argument("delivery_id")
@click.option("--refresh", is_flag=True, help="Poll the SMS provider for receipts")
def delivery_status(delivery_id: str, refresh: bool):
    """Show the status of a delivery."""
    from production_runner.config import get_settings
    from production_runner.services.delivery_service import (
        load_delivery_history,
        save_delivery_history,
    )

    delivery_dir = get_settings().get_delivery_dir()
    delivery = load_delivery_history(delivery_id, delivery_dir)
    if delivery is None:
        console.print(f"[red]Delivery not found:[/red] {delivery_id}")
        sys.exit(1)

    if refresh:
        try:
            delivery = _get_delivery_service().refresh_delivery_status(delivery)
            save_delivery_history(delivery, delivery_dir)
        except Exception as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    _print_delivery(delivery)


# ============================================================================
# Weather Command
# ============================================================================


@cli.command("weather")
@click.option("--address", "-a", default=None, help="Location address")
@click.option("--lat", type=float, default=None, help="Latitude")
@click.option("--lon", type=float, default=None, help="Longitude")
@click.option("--date", "-d", "shoot_date", required=True,
              type=click.DateTime(formats=["%Y-%m-%d"]), help="Shoot date (YYYY-MM-DD)")
def weather(address: Optional[str], lat: Optional[float], lon: Optional[float], shoot_date):
    """Show the forecast for a shoot day."""
    from production_runner.services.weather_service import OpenMeteoWeatherService

    if address is None and (lat is None or lon is None):
        console.print("[red]Error:[/red] Provide --address or both --lat and --lon")
        sys.exit(1)

    service = OpenMeteoWeatherService()
    if address is not None:
        lookup = service.fetch_weather_for_address(address, _parse_date(shoot_date))
    else:
        lookup = service.fetch_weather(lat, lon, _parse_date(shoot_date))

    if not lookup.ok:
        console.print(f"[red]Error:[/red] {lookup.error}")
        sys.exit(1)

    result = lookup.result
    table = Table(title=f"Weather for {_parse_date(shoot_date).isoformat()}")
    table.add_column("", style="cyan")
    table.add_column("")
    table.add_row("Conditions", result.conditions)
    table.add_row("High / Low", f"{result.high} / {result.low}")
    table.add_row("Humidity", result.humidity)
    table.add_row("Wind", result.wind_speed)
    table.add_row("Sunrise", result.sunrise or "-")
    table.add_row("Sunset", result.sunset or "-")
    console.print(table)


if __name__ == "__main__":
    cli()
