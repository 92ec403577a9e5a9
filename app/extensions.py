"""
Flask extensions shared across the LUNARA backend.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Relational store (users, ledger, orders, catalog)
db = SQLAlchemy()

# Alembic migrations
migrate = Migrate()
