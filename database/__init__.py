"""
Database package for Noir Reservations.

This package provides modular database operations:
- connection: Database connection management (get_db, close_db, init_db)
- schema: Table creation and indexes
- seed: Initial seed data
"""

from database.connection import get_db, close_db, init_db
from database.schema import drop_tables, create_tables, create_indexes
from database.seed import seed_database, seed_tables

__all__ = [
    # Connection
    'get_db',
    'close_db',
    'init_db',
    # Schema
    'drop_tables',
    'create_tables',
    'create_indexes',
    # Seed
    'seed_database',
    'seed_tables',
]
