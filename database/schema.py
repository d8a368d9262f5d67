"""
Database schema definitions.
Table creation, indexes, and structure management.

Instants are stored as ISO-8601 UTC text (YYYY-MM-DDTHH:MM:SSZ) and calendar
dates as YYYY-MM-DD text, so no sqlite type converters are involved.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'messages',
        'reservations',
        'members',
        'private_events',
        'venue_hours',
        'venue_tables',
        'settings'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Venue settings (single row)
    db.execute('''
        CREATE TABLE settings (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            business_name TEXT DEFAULT '',
            timezone TEXT NOT NULL DEFAULT 'America/Chicago',
            booking_start_date TEXT,
            booking_end_date TEXT,
            hold_fee_enabled INTEGER DEFAULT 1,
            hold_fee_amount REAL DEFAULT 25.0,
            admin_notification_phone TEXT,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 2. Calendar resources
    db.execute('''
        CREATE TABLE venue_tables (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            table_number TEXT UNIQUE NOT NULL,
            seats INTEGER NOT NULL CHECK (seats > 0),
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 3. Availability rules
    db.execute('''
        CREATE TABLE venue_hours (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            type TEXT NOT NULL CHECK(type IN ('base','exceptional_open','exceptional_closure')),
            day_of_week INTEGER CHECK (day_of_week BETWEEN 0 AND 6),
            date TEXT,
            time_ranges TEXT DEFAULT '[]',
            label TEXT,
            reason TEXT,
            full_day INTEGER DEFAULT 0,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE private_events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            event_type TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            full_day INTEGER DEFAULT 0,
            max_guests INTEGER DEFAULT 0,
            total_attendees_maximum INTEGER DEFAULT 0,
            deposit_required REAL DEFAULT 0,
            event_description TEXT,
            rsvp_enabled INTEGER DEFAULT 0,
            rsvp_url TEXT UNIQUE,
            require_time_selection INTEGER DEFAULT 0,
            status TEXT CHECK(status IN ('active','cancelled','completed')) DEFAULT 'active',
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 4. Guests
    db.execute('''
        CREATE TABLE members (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            member_id TEXT UNIQUE NOT NULL,
            first_name TEXT,
            last_name TEXT,
            phone TEXT,
            email TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT,
            last_name TEXT,
            phone TEXT,
            email TEXT,
            member_id TEXT,
            membership_type TEXT CHECK(membership_type IN ('member','non-member')) DEFAULT 'non-member',
            party_size INTEGER NOT NULL CHECK (party_size > 0),
            event_type TEXT,
            notes TEXT,
            table_id INTEGER REFERENCES venue_tables(id) ON DELETE SET NULL,
            private_event_id INTEGER REFERENCES private_events(id) ON DELETE CASCADE,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            status TEXT CHECK(status IN ('confirmed','cancelled','completed','no_show')) DEFAULT 'confirmed',
            checked_in INTEGER DEFAULT 0,
            source TEXT CHECK(source IN ('manual','website','member')) DEFAULT 'website',
            payment_method_id TEXT,
            hold_amount REAL,
            hold_status TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 5. Outbound messaging log
    db.execute('''
        CREATE TABLE messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER REFERENCES reservations(id) ON DELETE SET NULL,
            member_id TEXT,
            phone TEXT NOT NULL,
            content TEXT NOT NULL,
            direction TEXT DEFAULT 'outbound',
            status TEXT CHECK(status IN ('sent','failed')) NOT NULL,
            error_message TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create database indexes for performance."""
    indexes = [
        'CREATE INDEX idx_venue_hours_type ON venue_hours(type)',
        'CREATE INDEX idx_venue_hours_date ON venue_hours(date)',
        'CREATE INDEX idx_private_events_window ON private_events(start_time, end_time)',
        'CREATE INDEX idx_private_events_status ON private_events(status)',
        'CREATE INDEX idx_reservations_start ON reservations(start_time)',
        'CREATE INDEX idx_reservations_table ON reservations(table_id)',
        'CREATE INDEX idx_reservations_private_event ON reservations(private_event_id)',
        'CREATE INDEX idx_members_phone ON members(phone)',
        'CREATE INDEX idx_messages_reservation ON messages(reservation_id)',
    ]

    for index_sql in indexes:
        db.execute(index_sql)
