"""Database schema command."""

import click


@click.command("init-db")
@click.pass_context
def init_db(ctx):
    """Create tables and seed role permissions and system categories.

    Safe to run repeatedly; existing data is left alone.
    """
    db = ctx.obj["db"]
    db.initialize_schema()
    click.echo(f"Database initialized: {ctx.obj['settings'].DATABASE_URL}")


def register_commands(cli):
    """Register database commands with main CLI."""
    cli.add_command(init_db)
