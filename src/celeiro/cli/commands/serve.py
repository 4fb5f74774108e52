"""HTTP server command."""

import click
import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from celeiro.config import Settings
from celeiro.database.factories import create_database
from celeiro.domain.errors import DomainError
from celeiro.logger import configure_logging, get_logger
from celeiro.web.app import create_app

logger = get_logger(__name__)


@click.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind")
@click.option("--port", type=int, help="Port to listen on (PORT)")
@click.option("--environment", help="development or production (ENVIRONMENT)")
@click.option("--redis-host", help="Redis host; empty uses the in-memory store (REDIS_HOST)")
@click.option("--redis-port", type=int, help="Redis port (REDIS_PORT)")
@click.option(
    "--mailer-type",
    type=click.Choice(["mock", "local", "smtp2go", "resend"]),
    help="Mail transport (MAILER_TYPE)",
)
@click.option("--frontend-url", help="Base URL used in e-mailed links (FRONTEND_URL)")
@click.option("--log-level", help="Log level (LOG_LEVEL)")
@click.option("--shutdown-timeout", type=int, help="Graceful shutdown timeout in seconds")
@click.pass_context
def serve(
    ctx,
    host: str,
    port: int | None,
    environment: str | None,
    redis_host: str | None,
    redis_port: int | None,
    mailer_type: str | None,
    frontend_url: str | None,
    log_level: str | None,
    shutdown_timeout: int | None,
):
    """Run the HTTP API.

    Flags override the matching environment variables. Exits with status 1
    when the database cannot be reached.
    """
    base = ctx.obj["settings"]
    flags = {
        "PORT": port,
        "ENVIRONMENT": environment,
        "REDIS_HOST": redis_host,
        "REDIS_PORT": redis_port,
        "MAILER_TYPE": mailer_type,
        "FRONTEND_URL": frontend_url,
        "LOG_LEVEL": log_level,
        "SHUTDOWN_TIMEOUT_SECONDS": shutdown_timeout,
    }
    overrides = {key: value for key, value in flags.items() if value is not None}
    settings = Settings(**{**base.model_dump(), **overrides})
    configure_logging(settings)

    try:
        db = create_database(settings)
        db.ping()
    except (DomainError, SQLAlchemyError) as e:
        click.echo(f"Error: database unavailable: {e}", err=True)
        ctx.exit(1)

    logger.info(
        "starting server",
        service=settings.SERVICE_NAME,
        instance=settings.SERVICE_INSTANCE_ID,
        version=settings.SERVICE_VERSION,
        environment=settings.ENVIRONMENT,
        port=settings.PORT,
        otel_enabled=settings.OTEL_ENABLED,
        otel_endpoint=settings.OTEL_ENDPOINT,
    )
    app = create_app(settings, db=db)
    try:
        uvicorn.run(
            app,
            host=host,
            port=settings.PORT,
            log_config=None,
            timeout_graceful_shutdown=settings.SHUTDOWN_TIMEOUT_SECONDS,
        )
    finally:
        db.disconnect()
        app.state.services.store.close()
        logger.info("server stopped")


def register_commands(cli):
    """Register serve command with main CLI."""
    cli.add_command(serve)
