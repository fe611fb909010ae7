"""Command line viewer for the audit log files."""

import json
from datetime import date, datetime, timezone
from typing import Iterable, Optional

import click

from erp_bridge.config import settings
from erp_bridge.services.audit_log import (
    ENTRY_TYPES,
    INCOMING_WEBHOOK,
    OUTGOING_SOAP,
    SOAP_RESPONSE,
    AuditLogEntry,
    count_by_type,
    count_responses,
    filter_entries,
    follow_audit_entries,
    read_audit_entries,
)
from erp_bridge.utils.exceptions import AuditLogException


def _parse_day(value: Optional[str]) -> date:
    if not value:
        return datetime.now(timezone.utc).date()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}'. Expected YYYY-MM-DD.")


def _echo_entries(title: str, entries: Iterable[AuditLogEntry]) -> None:
    click.echo(f"== {title}")
    shown = 0
    for entry in entries:
        click.echo(json.dumps(entry.model_dump(exclude_none=True), indent=2))
        shown += 1
    if not shown:
        click.echo("(no entries)")


def _follow(log_dir: str, log_day: date, interval: float) -> None:
    click.echo(f"== Live log tail ({log_day}), press Ctrl+C to stop")
    try:
        for entry in follow_audit_entries(log_dir, log_day, poll_interval=interval):
            click.echo(f"[{entry.type}] {entry.model_dump_json(exclude_none=True)}")
    except KeyboardInterrupt:
        click.echo("Stopped following logs.")


@click.command("view-logs")
@click.option("--log-dir", default=None, help="Audit log directory (default: LOG_DIR).")
@click.option("-d", "--date", "day", default=None, help="Day to show, YYYY-MM-DD (default: today, UTC).")
@click.option("-r", "--requests", "request_id", default=None, help="Show all logs for a request ID.")
@click.option("-w", "--webhooks", is_flag=True, help="Show incoming webhooks.")
@click.option("-s", "--soap", is_flag=True, help="Show outgoing SOAP requests and their responses.")
@click.option("-e", "--errors", is_flag=True, help="Show only failed SOAP responses.")
@click.option("-c", "--count", is_flag=True, help="Show count of entries by type.")
@click.option("-t", "--tail", is_flag=True, help="Follow the day's log files (live view).")
@click.option("--interval", default=1.0, show_default=True, help="Polling interval for --tail, in seconds.")
def view_logs(
    log_dir: Optional[str],
    day: Optional[str],
    request_id: Optional[str],
    webhooks: bool,
    soap: bool,
    errors: bool,
    count: bool,
    tail: bool,
    interval: float,
) -> None:
    """Inspect the audit log of the Shopify ERP middleware."""
    log_dir = log_dir or settings.log_dir
    log_day = _parse_day(day)

    try:
        if tail:
            _follow(log_dir, log_day, interval)
        elif request_id:
            entries = filter_entries(read_audit_entries(log_dir, log_day), request_id=request_id)
            _echo_entries(f"All logs for Request ID: {request_id} (Date: {log_day})", entries)
        elif webhooks:
            _echo_entries(
                f"Incoming webhooks ({log_day})",
                read_audit_entries(log_dir, log_day, [INCOMING_WEBHOOK]),
            )
        elif soap:
            _echo_entries(
                f"Outgoing SOAP requests ({log_day})",
                read_audit_entries(log_dir, log_day, [OUTGOING_SOAP]),
            )
            _echo_entries(
                f"SOAP responses ({log_day})",
                read_audit_entries(log_dir, log_day, [SOAP_RESPONSE]),
            )
        elif errors:
            entries = read_audit_entries(log_dir, log_day, [SOAP_RESPONSE])
            _echo_entries(f"Error responses ({log_day})", filter_entries(entries, errors_only=True))
        else:
            # --count, also the default view
            entries = read_audit_entries(log_dir, log_day)
            counts = count_by_type(entries)
            click.echo(f"== Request counts ({log_day})")
            for entry_type in ENTRY_TYPES:
                click.echo(f"{entry_type}: {counts[entry_type]}")
            responses = count_responses(entries)
            click.echo(f"Successful: {responses['successful']}")
            click.echo(f"Errors: {responses['errors']}")
    except AuditLogException as exc:
        raise click.ClickException(exc.message)


if __name__ == "__main__":
    view_logs()
