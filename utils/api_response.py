"""
Standardized API response helpers.

Provides consistent JSON response format across all API endpoints:

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "Human readable message"}
    Conflict: {"success": false, "error": "...", "alternative_times": {...}}

Usage:
    from utils.api_response import api_success, api_error

    return api_success(data={'id': 1}, message='Reservation created', status=201)
    return api_error('Time slot not available', status=409, alternative_times=alts)
"""

from flask import jsonify
from typing import Any


def api_success(
    data: Any = None,
    message: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a standardized success JSON response.

    Args:
        data: Optional payload to include as 'data' key (dict or list).
        message: Optional success message.
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields to include in the response
            (e.g. ``slots`` for the availability endpoint).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, **extra_fields: Any) -> tuple:
    """
    Build a standardized error JSON response.

    Args:
        error: Error message.
        status: HTTP status code (default 400).
        **extra_fields: Additional top-level fields (e.g. errors, alternative_times).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def form_errors(form) -> dict:
    """Flatten a WTForms error mapping to ``{field: first message}``."""
    return {field: messages[0] for field, messages in form.errors.items() if messages}
