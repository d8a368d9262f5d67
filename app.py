"""
Noir - Speakeasy Reservation Service
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import change_feed, sms

# Import database functions
from database import close_db, init_db, get_db, seed_tables

from utils.api_response import api_error
from utils.messages import get_message


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    change_feed.init_app(app)
    sms.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    from blueprints.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')


def register_error_handlers(app):
    """Register JSON error handlers."""

    @app.errorhandler(400)
    def bad_request_error(error):
        return api_error(get_message('bad_request'), 400)

    @app.errorhandler(404)
    def not_found_error(error):
        return api_error(get_message('not_found'), 404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return api_error(get_message('method_not_allowed'), 405)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        return api_error(get_message('internal_error'), 500)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('seed-tables')
    def seed_tables_command():
        """Insert the default venue tables that are missing."""
        with app.app_context():
            added = seed_tables(get_db())
            get_db().commit()
        click.echo(f'{added} table(s) added.')

    @app.cli.command('create-member')
    @click.argument('member_id')
    @click.argument('first_name')
    @click.argument('last_name')
    @click.argument('phone')
    @click.option('--email', default=None, help='Member email address')
    def create_member_command(member_id, first_name, last_name, phone, email):
        """Register a member so their bookings skip the hold fee."""
        from models.member import create_member

        with app.app_context():
            try:
                new_id = create_member(member_id, first_name, last_name, phone, email=email)
                click.echo(f'Member created successfully! ID: {new_id}')
            except ValueError as e:
                click.echo(f'Error creating member: {str(e)}', err=True)


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/noir.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info('Noir startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True, threaded=True)
