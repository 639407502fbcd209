import uuid

import click
from flask.cli import with_appcontext

from ipam_sync.extensions import db
from ipam_sync.models import ApiConnection, Tenant, User


@click.command("create-user")
@click.option("--email", required=True, help="User email")
@click.option("--name", default="", help="Display name")
@click.option("--tenant", "tenant_name", default="default", help="Tenant to create or join")
@with_appcontext
def create_user_command(email, name, tenant_name):
    """Create a user and make the tenant its current tenant."""
    existing = User.query.filter_by(email=email).first()
    if existing:
        click.echo(f"User '{email}' already exists")
        return

    tenant = Tenant.query.filter_by(name=tenant_name).first()
    if not tenant:
        tenant = Tenant(name=tenant_name)
        db.session.add(tenant)
        db.session.flush()
        click.echo(f"Created tenant '{tenant_name}'")

    user = User(email=email, name=name or email, current_tenant_id=tenant.id, is_active=True)
    db.session.add(user)
    db.session.commit()

    click.echo(f"Created user '{email}' in tenant '{tenant_name}' ({user.id})")


@click.command("issue-token")
@click.argument("email")
@with_appcontext
def issue_token_command(email):
    """Print a Bearer token for a user."""
    from ipam_sync.auth import issue_token

    user = User.query.filter_by(email=email, is_active=True).first()
    if not user:
        raise click.ClickException(f"No active user '{email}'")

    click.echo(issue_token(user))


@click.command("sync")
@click.argument("connection_id")
@click.option("--target", type=click.Choice(["devices", "libraries", "contacts"]),
              default=None, help="Override the connection's sync target")
@with_appcontext
def sync_command(connection_id, target):
    """Run one sync now, as the system account."""
    from ipam_sync.core.errors import SyncError
    from ipam_sync.services.sync_service import SyncService, resolve_connection, system_context

    try:
        connection = ApiConnection.query.filter_by(id=uuid.UUID(connection_id), is_active=True).first()
    except ValueError:
        raise click.BadParameter(f"'{connection_id}' is not a UUID", param_hint="CONNECTION_ID")
    if not connection:
        raise click.ClickException(f"Connection {connection_id} not found")

    entity_type = target or connection.sync_target or "libraries"
    try:
        context = system_context(connection)
        connection = resolve_connection(connection.id, context.tenant_id)
        outcome = SyncService().run(entity_type, connection, context)
    except SyncError as e:
        raise click.ClickException(f"Sync failed: {e.message}")

    click.echo(outcome.message)
    for warning in outcome.warnings:
        click.echo(f"  warning: {warning}")
