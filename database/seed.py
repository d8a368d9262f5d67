"""
Database seed data.
Initial data population for fresh database installations.
"""

import json


# (table_number, seats)
DEFAULT_TABLES = [
    ('1', 2), ('2', 2), ('3', 4), ('4', 4), ('5', 4), ('6', 6),
    ('7', 2), ('8', 2), ('9', 4), ('10', 4), ('11', 6), ('12', 8),
]

# (day_of_week with 0=Sunday, time ranges)
DEFAULT_BASE_HOURS = [
    (4, [{'start': '16:00', 'end': '23:00'}]),
    (5, [{'start': '18:00', 'end': '23:00'}]),
    (6, [{'start': '18:00', 'end': '23:00'}]),
]


def seed_tables(db):
    """Insert the default floor plan, skipping table numbers that already exist."""
    inserted = 0
    for table_number, seats in DEFAULT_TABLES:
        cursor = db.execute('''
            INSERT OR IGNORE INTO venue_tables (table_number, seats)
            VALUES (?, ?)
        ''', (table_number, seats))
        inserted += cursor.rowcount
    return inserted


def seed_database(db, app_config=None):
    """Insert initial seed data."""
    app_config = app_config or {}

    # 1. Settings row
    db.execute('''
        INSERT INTO settings (id, timezone, hold_fee_enabled, hold_fee_amount)
        VALUES (1, ?, ?, ?)
    ''', (
        app_config.get('TIMEZONE', 'America/Chicago'),
        1 if app_config.get('HOLD_FEE_ENABLED', True) else 0,
        app_config.get('HOLD_FEE_AMOUNT', 25.0)
    ))

    # 2. Tables
    seed_tables(db)

    # 3. Base hours
    for day_of_week, time_ranges in DEFAULT_BASE_HOURS:
        db.execute('''
            INSERT INTO venue_hours (type, day_of_week, time_ranges)
            VALUES ('base', ?, ?)
        ''', (day_of_week, json.dumps(time_ranges)))
