"""
Venue settings API routes.
"""

from flask import current_app, request

from blueprints.api.forms import HoldFeeConfigForm, json_formdata
from models.settings import get_hold_fee_config, get_settings, update_settings
from utils.api_response import api_error, api_success, form_errors
from utils.messages import get_message


def register_routes(bp):
    """Register settings routes on the blueprint."""

    @bp.route('/settings', methods=['GET'])
    def settings_detail():
        return api_success(data=get_settings() or {})

    @bp.route('/settings', methods=['PUT'])
    def settings_update():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)
        try:
            settings = update_settings(**data)
        except ValueError as e:
            return api_error(str(e), 400)
        current_app.logger.info('Settings updated: %s', ', '.join(sorted(data)))
        return api_success(data=settings, message=get_message('settings_updated'))

    @bp.route('/settings/hold-fee-config', methods=['GET'])
    def hold_fee_config():
        return api_success(data=get_hold_fee_config())

    @bp.route('/settings/hold-fee-config', methods=['PUT'])
    def hold_fee_config_update():
        """Set {hold_fee_enabled, hold_fee_amount}; an omitted switch keeps its value."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = HoldFeeConfigForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        fields = {'hold_fee_amount': form.hold_fee_amount.data}
        if 'hold_fee_enabled' in data:
            fields['hold_fee_enabled'] = form.hold_fee_enabled.data
        update_settings(**fields)
        return api_success(data=get_hold_fee_config(), message=get_message('settings_updated'))
