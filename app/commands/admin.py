"""
CLI Commands for shop staff accounts.

    flask admin create-admin staff@lunara.shop --password '...' --role super_admin
"""

import click
from flask.cli import with_appcontext
from ..extensions import db
from ..models.admin import AdminUser


@click.group('admin')
def admin_cli():
    """Admin account commands."""
    pass


@admin_cli.command('create-admin')
@click.argument('email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(['admin', 'super_admin']), default='admin')
@with_appcontext
def create_admin(email, password, role):
    """Create an admin account, or reset the password of an existing one."""
    email = email.strip().lower()
    if len(password) < 8:
        raise click.BadParameter('Password must be at least 8 characters', param_hint='--password')

    admin = AdminUser.query.filter_by(email=email).first()
    if admin:
        click.echo(f"Updating existing admin {email}")
    else:
        admin = AdminUser(email=email)
        db.session.add(admin)

    admin.role = role
    admin.set_password(password)
    db.session.commit()

    click.echo(f"Admin {email} ready (role: {role})")


def init_app(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(admin_cli)
