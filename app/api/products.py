"""
Product catalog API.
"""
from flask import Blueprint, request, jsonify

from ..models import Product
from ..utils.exceptions import NotFoundError

products_bp = Blueprint('products', __name__)


@products_bp.route('', methods=['GET'])
def list_products():
    """Active products, optionally filtered by ?category=."""
    query = Product.query.filter_by(active=True)

    category = request.args.get('category')
    if category:
        query = query.filter_by(category=category)

    products = query.order_by(Product.id).all()
    return jsonify({'products': [p.to_dict() for p in products]})


@products_bp.route('/<slug>', methods=['GET'])
def get_product(slug):
    product = Product.query.filter_by(slug=slug, active=True).first()
    if not product:
        raise NotFoundError('Product', slug)
    return jsonify({'product': product.to_dict()})
