# Overview: Flask CLI command groups for bootstrap, users and scheduled jobs.

# backend/orderdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create tables (dev) and seed the admin from ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_ROLE.
# - python -m flask db upgrade
#   Apply Alembic migrations (production path).
#
# Users:
# - python -m flask users create --email staff@example.com --password "Password123!" --role staff
# - python -m flask users list
# - python -m flask users deactivate --email staff@example.com
#
# Jobs (for cron):
# - python -m flask jobs run
#   Run the start3d check once and record the run.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import VALID_ROLES
from .services.auth_service import create_user, deactivate_user, seed_admin
from .services.concurrency import ensure_allocation_lock
from .services import job_service
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Idempotent local bootstrap: create missing tables, the allocation lock
    row and the admin account.
    """
    click.echo("START Initializing orderdesk...")
    db.create_all()
    ensure_allocation_lock()
    click.echo("PASS Tables ready")

    cfg = current_app.config
    try:
        user, created = seed_admin(cfg["ADMIN_EMAIL"], cfg["ADMIN_PASSWORD"], cfg["ADMIN_ROLE"])
    except ValidationError as e:
        click.echo(f"FAIL Could not seed admin: {e}")
        raise SystemExit(1)
    if created:
        click.echo(f"PASS Created {user.role} user: {user.email}")
    else:
        click.echo(f"WARN  User '{user.email}' already exists, skipping...")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), default='staff', show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, password, role):
    """Create a user."""
    try:
        user = create_user(email, password, role)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users_cli():
    """List users with role and active status."""
    for user in db.session.query(User).order_by(User.id).all():
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:>4}  {user.email:<40} {user.role:<8} {status}")


@users_group.command('deactivate')
@click.option('--email', required=True, help='Email address')
@with_appcontext
def deactivate_user_cli(email):
    """Disable a user and revoke their sessions."""
    try:
        user, revoked = deactivate_user(email)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Deactivated {user.email} ({revoked} sessions revoked)")


@click.group('jobs')
def jobs_group():
    """Background job commands."""


@jobs_group.command('run')
@with_appcontext
def run_jobs_cli():
    """Run all jobs once (schedule via cron)."""
    run = job_service.run_jobs()
    payload = run.to_dict()["payload"] or {}
    click.echo(
        f"PASS {run.type}: due_updated={payload.get('start3d_due_updated', 0)} "
        f"flagged={payload.get('start3d_flagged', 0)}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(jobs_group)
