"""
CLI interface for x402 Receipts.

Provides command-line access to the receipt store for audits and dashboards.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from x402_receipts.config.loader import DEFAULT_RECENT_LIMIT, load_receipts_config
from x402_receipts.core.amounts import AmountParseError
from x402_receipts.storage.repository import ReceiptRepository

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

FileOption = typer.Option(None, "--file", "-f", help="Receipts JSON file to read")
ConfigOption = typer.Option(None, "--config", "-c", help="YAML configuration file")
JsonOption = typer.Option(False, "--json", help="Print raw JSON instead of a table")


def _open_repository(file: Optional[str], config_path: Optional[str]):
    """Build the repository and listing size from CLI options.

    An explicit ``--file`` wins over the configured storage path.
    """
    recent_limit = DEFAULT_RECENT_LIMIT
    if config_path:
        config = load_receipts_config(config_path)
        repository = ReceiptRepository.from_config(config)
        recent_limit = config.display.recent_limit
        if file:
            repository = ReceiptRepository(file, atomic_writes=config.storage.atomic_writes)
    else:
        repository = ReceiptRepository(file)
    return repository, recent_limit


def _format_timestamp(timestamp_ms: int) -> str:
    """Format epoch milliseconds as a UTC timestamp.

    Values outside the datetime range are shown as the raw integer.
    """
    try:
        moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return str(timestamp_ms)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def _print_json(data) -> None:
    # Plain print so rich does not wrap or highlight the payload
    print(json.dumps(data, indent=2))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """x402 Receipts CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        console.print("x402 Receipts - Use --help to see available commands")


@app.command()
def status(file: Optional[str] = FileOption, config: Optional[str] = ConfigOption):
    """Check that the receipts file can be loaded."""
    try:
        repository, _ = _open_repository(file, config)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    result = repository.load_result()
    console.print(f"Receipts file: {repository.path}")
    if not result.ok:
        console.print(f"[red]Error loading receipts:[/] {result.error}")
        sys.exit(EXIT_CODE_FAIL)

    if not repository.path.exists():
        console.print("[yellow]No receipts recorded yet[/]")
    else:
        console.print(
            f"[green]✓[/] {len(result.store.payments)} payments, "
            f"{len(result.store.refunds)} refunds"
        )
    sys.exit(EXIT_CODE_PASS)


@app.command()
def stats(
    file: Optional[str] = FileOption,
    config: Optional[str] = ConfigOption,
    as_json: bool = JsonOption
):
    """Show receipt totals."""
    try:
        repository, _ = _open_repository(file, config)
        result = repository.stats()
    except AmountParseError as e:
        console.print(f"[red]Corrupt amount in receipts:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        _print_json(result.to_dict())
        sys.exit(EXIT_CODE_PASS)

    console.print("\n[bold]Receipt Statistics[/bold]")
    console.print("-" * 40)
    console.print(f"Payments: {result.total_payments}")
    console.print(f"Refunds: {result.total_refunds}")
    console.print(f"Total paid: {result.total_paid}")
    console.print(f"Total refunded: {result.total_refunded}")
    console.print(f"Last updated: {_format_timestamp(result.last_updated)}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def payments(
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Number of payments to list"),
    file: Optional[str] = FileOption,
    config: Optional[str] = ConfigOption,
    as_json: bool = JsonOption
):
    """List the most recent payments."""
    try:
        repository, recent_limit = _open_repository(file, config)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    found = repository.recent_payments(count if count is not None else recent_limit)

    if as_json:
        _print_json([p.to_dict() for p in found])
        sys.exit(EXIT_CODE_PASS)

    if not found:
        console.print("[dim]No payments recorded.[/]")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title="Recent Payments")
    table.add_column("Time")
    table.add_column("Tx Hash")
    table.add_column("Payer")
    table.add_column("Amount", justify="right")
    table.add_column("Resource")
    for p in found:
        table.add_row(
            _format_timestamp(p.timestamp),
            p.tx_hash,
            p.payer,
            f"{p.amount} {p.currency}",
            p.resource,
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def refunds(
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Number of refunds to list"),
    file: Optional[str] = FileOption,
    config: Optional[str] = ConfigOption,
    as_json: bool = JsonOption
):
    """List the most recent refunds."""
    try:
        repository, recent_limit = _open_repository(file, config)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    found = repository.recent_refunds(count if count is not None else recent_limit)

    if as_json:
        _print_json([r.to_dict() for r in found])
        sys.exit(EXIT_CODE_PASS)

    if not found:
        console.print("[dim]No refunds recorded.[/]")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title="Recent Refunds")
    table.add_column("Time")
    table.add_column("Original Tx")
    table.add_column("Refund", justify="right")
    table.add_column("Percent", justify="right")
    table.add_column("Breach")
    table.add_column("Reason")
    for r in found:
        table.add_row(
            _format_timestamp(r.timestamp),
            r.original_tx_hash,
            r.refund_amount,
            f"{r.refund_percent}%",
            r.breach_type,
            r.reason,
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def show(
    tx_hash: str = typer.Argument(..., help="Transaction hash of the payment"),
    file: Optional[str] = FileOption,
    config: Optional[str] = ConfigOption,
    as_json: bool = JsonOption
):
    """Show a single payment by transaction hash."""
    try:
        repository, _ = _open_repository(file, config)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    payment = repository.payment_by_tx_hash(tx_hash)
    if payment is None:
        console.print(f"[yellow]No payment found for {tx_hash}[/]")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        _print_json(payment.to_dict())
        sys.exit(EXIT_CODE_PASS)

    console.print(f"\n[bold]Payment[/bold] {payment.tx_hash}")
    console.print("-" * 40)
    console.print(f"Time: {_format_timestamp(payment.timestamp)}")
    console.print(f"Payer: {payment.payer}")
    console.print(f"Recipient: {payment.recipient}")
    console.print(f"Amount: {payment.amount} {payment.currency}")
    console.print(f"Resource: {payment.resource}")
    console.print(f"Chain: {payment.chain_id}")
    console.print(f"Explorer: {payment.explorer_url}")
    console.print(f"Facilitator: {payment.facilitator_url}")
    console.print(f"Schema: {payment.schema_version}")
    if payment.metadata:
        console.print(f"Metadata: {escape(json.dumps(payment.metadata))}")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
