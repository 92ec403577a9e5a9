"""
Product catalog model.
"""
import json
from datetime import datetime
from ..extensions import db


class Product(db.Model):
    """Catalog product. Prices are minor units and authoritative for checkout."""
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    long_description = db.Column(db.Text)
    price = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(100))

    images_json = db.Column(db.Text)
    variants_json = db.Column(db.Text)
    quality_score_json = db.Column(db.Text)
    tags_json = db.Column(db.Text)

    stock = db.Column(db.Integer, default=0)
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index('idx_products_category', 'category'),
        db.Index('idx_products_active', 'active'),
    )

    def __repr__(self):
        return f'<Product {self.slug}>'

    @staticmethod
    def _load(value, default):
        return json.loads(value) if value else default

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'longDescription': self.long_description,
            'price': self.price / 100,
            'priceCents': self.price,
            'category': self.category,
            'images': self._load(self.images_json, []),
            'variants': self._load(self.variants_json, []),
            'qualityScore': self._load(self.quality_score_json, None),
            'tags': self._load(self.tags_json, []),
            'stock': self.stock,
        }
