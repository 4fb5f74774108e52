"""OFX import command."""

from pathlib import Path

import click

from celeiro.cli.error_handling import handle_domain_error
from celeiro.domain.errors import DomainError
from celeiro.domain.ofx_import import TransactionImportService


@click.command("import-ofx")
@click.argument("ofx_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--account-id", type=int, required=True, help="Target account ID")
@click.option("--user-id", type=int, required=True, help="Importing user ID")
@click.option("--organization-id", type=int, required=True, help="Organization owning the account")
@click.option("--skip-post-process", is_flag=True, help="Do not run classification rules or auto-match")
@click.pass_context
def import_ofx(
    ctx,
    ofx_file: str,
    account_id: int,
    user_id: int,
    organization_id: int,
    skip_post_process: bool,
):
    """Import transactions from an OFX statement.

    Transactions whose FITID already exists in the account are skipped.
    """
    service = TransactionImportService(ctx.obj["db"])
    data = Path(ofx_file).read_bytes()

    try:
        result = service.import_ofx(
            user_id=user_id,
            organization_id=organization_id,
            account_id=account_id,
            data=data,
            post_process=not skip_post_process,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result.imported_count} transactions")
    click.echo(f"  Skipped: {result.duplicate_count} duplicates")
    if not skip_post_process:
        click.echo(f"  Classified: {result.classified_count}")
        click.echo(f"  Auto-matched: {result.auto_matched_count}")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_ofx)
