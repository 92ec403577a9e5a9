"""
CLI Commands for the product catalog.

    flask catalog import products.json
"""

import json
import re
import click
from flask.cli import with_appcontext
from ..extensions import db
from ..models.product import Product


def _slugify(value: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', value.lower()).strip('-')


def _price_cents(item: dict) -> int:
    """Catalog files carry either priceCents or a decimal price."""
    if item.get('priceCents') is not None:
        return int(item['priceCents'])
    return int(round(float(item['price']) * 100))


@click.group('catalog')
def catalog_cli():
    """Product catalog commands."""
    pass


@catalog_cli.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--deactivate-missing', is_flag=True, help='Deactivate products not in the file')
@with_appcontext
def import_catalog(path, deactivate_missing):
    """
    Upsert products from a JSON file (a list, or {"products": [...]}).

    Products are matched by slug (derived from the name when missing).
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    items = data.get('products', []) if isinstance(data, dict) else data
    created = updated = 0
    seen = set()

    for item in items:
        slug = item.get('slug') or _slugify(item['name'])
        seen.add(slug)

        product = Product.query.filter_by(slug=slug).first()
        if product:
            updated += 1
        else:
            product = Product(slug=slug)
            if item.get('id') is not None:
                product.id = int(item['id'])
            db.session.add(product)
            created += 1

        product.name = item['name']
        product.description = item.get('description')
        product.long_description = item.get('longDescription')
        product.price = _price_cents(item)
        product.category = item.get('category')
        product.images_json = json.dumps(item.get('images', []))
        product.variants_json = json.dumps(item.get('variants', []))
        product.quality_score_json = json.dumps(item['qualityScore']) if item.get('qualityScore') else None
        product.tags_json = json.dumps(item.get('tags', []))
        product.stock = int(item.get('stock', 0))
        product.active = bool(item.get('active', True))

    deactivated = 0
    if deactivate_missing:
        for product in Product.query.filter(Product.active.is_(True)).all():
            if product.slug not in seen:
                product.active = False
                deactivated += 1

    db.session.commit()

    click.echo(f"Created: {created}")
    click.echo(f"Updated: {updated}")
    if deactivate_missing:
        click.echo(f"Deactivated: {deactivated}")


def init_app(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(catalog_cli)
