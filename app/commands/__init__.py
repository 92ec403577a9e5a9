"""
CLI Commands for LUNARA.

Usage:
    flask points reconcile [--fix]     # Check cached balances against the ledger
    flask points tiers                 # Show the tier table

    flask catalog import FILE          # Upsert products from JSON

    flask admin create-admin EMAIL     # Create a shop staff account
"""
from .points import init_app as init_points_commands
from .catalog import init_app as init_catalog_commands
from .admin import init_app as init_admin_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_points_commands(app)
    init_catalog_commands(app)
    init_admin_commands(app)
