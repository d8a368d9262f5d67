"""
JSON API blueprint.
Split into smaller modules by entity; each exposes register_routes(bp).
"""

from flask import Blueprint, current_app

from utils.api_response import api_success

# Create the API blueprint
api_bp = Blueprint('api', __name__)

# Import and register routes from submodules
from blueprints.api import availability
from blueprints.api import messages
from blueprints.api import private_events
from blueprints.api import reservations
from blueprints.api import settings
from blueprints.api import tables
from blueprints.api import venue_hours

availability.register_routes(api_bp)
messages.register_routes(api_bp)
private_events.register_routes(api_bp)
reservations.register_routes(api_bp)
settings.register_routes(api_bp)
tables.register_routes(api_bp)
venue_hours.register_routes(api_bp)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON with status, app name and version
    """
    return api_success(data={
        'status': 'ok',
        'app': current_app.config.get('APP_NAME'),
        'version': current_app.config.get('APP_VERSION'),
    })
