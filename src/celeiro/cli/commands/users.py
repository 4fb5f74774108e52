"""User management commands."""

import click

from celeiro.cli.error_handling import handle_domain_error
from celeiro.domain.entities import Role
from celeiro.domain.errors import DomainError
from celeiro.domain.users import UserService


@click.command("register-user")
@click.option("--name", required=True, help="Full name")
@click.option("--email", required=True, help="E-mail address used to sign in")
@click.option("--organization", "organization_name", help="Name of a new organization to create")
@click.option("--organization-id", type=int, help="Existing organization to join")
@click.option(
    "--role",
    default=Role.REGULAR_MANAGER.value,
    show_default=True,
    help="One of: " + ", ".join(role.value for role in Role),
)
@click.option("--phone", help="Phone number")
@click.pass_context
def register_user(
    ctx,
    name: str,
    email: str,
    organization_name: str | None,
    organization_id: int | None,
    role: str,
    phone: str | None,
):
    """Register a user in an organization.

    Either creates a new organization (--organization) or joins an
    existing one (--organization-id).

    Examples:
        celeiro register-user --name "Ana" --email ana@example.com --organization "Casa"
        celeiro register-user --name "Bia" --email bia@example.com --organization-id 1 --role regular_user
    """
    service = UserService(ctx.obj["db"])

    try:
        user = service.register_user(
            name=name,
            email=email,
            organization_name=organization_name,
            role=role,
            phone=phone,
            organization_id=organization_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Registered user '{user.name}' <{user.email}> (ID: {user.id})")
    click.echo(f"Default organization ID: {user.default_organization_id}")


@click.command("list-users")
@click.option("--organization-id", type=int, help="Only members of this organization")
@click.pass_context
def list_users(ctx, organization_id: int | None):
    """List registered users."""
    service = UserService(ctx.obj["db"])
    users = service.list_users(organization_id)
    if not users:
        click.echo("No users found.")
        return

    click.echo("\nUsers:")
    click.echo("-" * 60)
    for user in users:
        click.echo(f"ID: {user.id:3d} | {user.name:20s} | {user.email}")


def register_commands(cli):
    """Register user commands with main CLI."""
    cli.add_command(register_user)
    cli.add_command(list_users)
