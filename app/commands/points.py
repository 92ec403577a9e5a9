"""
CLI Commands for the points ledger.

# Nightly consistency check (cached balances vs ledger)
0 3 * * * cd /app && flask points reconcile

# Repair drifted caches
flask points reconcile --fix
"""

import click
from flask.cli import with_appcontext
from ..services.loyalty import get_points_config
from ..services.points_service import PointsService


@click.group('points')
def points_cli():
    """Points ledger commands."""
    pass


@points_cli.command('reconcile')
@click.option('--fix', is_flag=True, help='Rewrite drifted balances and tiers from the ledger')
@with_appcontext
def reconcile(fix):
    """
    Verify that every cached balance equals the sum of its ledger entries.

    Exits with status 1 when drift is found and --fix is not given.
    """
    result = PointsService().reconcile_all(fix=fix)

    click.echo(f"Checked: {result['checked']} accounts")
    click.echo(f"Drifted: {len(result['drifted'])}")

    for report in result['drifted'][:20]:
        click.echo(
            f"  {report['email']}: cached {report['cached_balance']} ({report['cached_tier']}), "
            f"ledger {report['ledger_balance']} ({report['expected_tier']})"
        )

    if fix:
        click.echo(f"Fixed: {result['fixed']}")
    elif result['drifted']:
        raise SystemExit(1)


@points_cli.command('tiers')
@with_appcontext
def show_tiers():
    """Print the configured tier table."""
    config = get_points_config()

    click.echo(f"{'Tier':<10} {'From':>8} {'To':>8} {'Multiplier':>11}")
    for tier in config.tiers:
        upper = str(tier.max_points) if tier.max_points is not None else '-'
        click.echo(f"{tier.name:<10} {tier.min_points:>8} {upper:>8} {tier.bonus_multiplier:>11}")


def init_app(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(points_cli)
