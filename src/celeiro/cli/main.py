"""Main CLI entry point."""

import click

from celeiro.config import Settings, get_settings
from celeiro.database.factories import create_database
from celeiro.logger import configure_logging

# Import and register all commands at module level
from celeiro.cli.commands import budget, db, import_cmd, serve, users


@click.group()
@click.option(
    "--database-url",
    help="Database URL (overrides DATABASE_URL environment variable)",
    envvar="DATABASE_URL",
)
@click.pass_context
def cli(ctx, database_url: str | None):
    """Celeiro - personal finance backend.

    Run the HTTP API, manage the schema, register users and import OFX
    statements.
    """
    ctx.ensure_object(dict)
    settings = Settings(DATABASE_URL=database_url) if database_url else get_settings()
    ctx.obj["settings"] = settings

    # serve builds its own database from the final settings
    if ctx.invoked_subcommand is not None and ctx.invoked_subcommand != "serve":
        configure_logging(settings)
        ctx.obj["db"] = create_database(settings)


# Register all commands
serve.register_commands(cli)
db.register_commands(cli)
users.register_commands(cli)
import_cmd.register_commands(cli)
budget.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
