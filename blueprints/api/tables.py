"""
Venue table API routes.
"""

from flask import request

from blueprints.api.forms import TableForm, json_formdata
from models.table import create_table, delete_table, get_all_tables, get_table_by_id, update_table
from utils.api_response import api_error, api_success, form_errors
from utils.messages import get_message


def register_routes(bp):
    """Register table routes on the blueprint."""

    @bp.route('/tables', methods=['GET'])
    def list_tables():
        """List tables; ?all=1 includes inactive ones."""
        active_only = request.args.get('all', '').lower() not in ('1', 'true')
        return api_success(data=get_all_tables(active_only=active_only))

    @bp.route('/tables', methods=['POST'])
    def add_table():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = TableForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        try:
            table_id = create_table(form.table_number.data, form.seats.data)
        except ValueError as e:
            return api_error(str(e), 409)
        return api_success(data=get_table_by_id(table_id), message=get_message('table_created'), status=201)

    @bp.route('/tables/<int:table_id>', methods=['PATCH'])
    def edit_table(table_id):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)
        if not get_table_by_id(table_id):
            return api_error(get_message('table_not_found'), 404)

        try:
            update_table(table_id, **data)
        except (TypeError, ValueError) as e:
            return api_error(str(e), 400)
        return api_success(data=get_table_by_id(table_id), message=get_message('table_updated'))

    @bp.route('/tables/<int:table_id>', methods=['DELETE'])
    def remove_table(table_id):
        if not delete_table(table_id):
            return api_error(get_message('table_not_found'), 404)
        return api_success(message=get_message('table_deleted'))
