"""Helpers shared by the account controllers."""

from flask import current_app, request
from flask_login import current_user

from ..utils.pagination import page_args


def account_user():
    """The signed-in User object behind the current_user proxy."""
    return current_user._get_current_object()


def request_data():
    """The JSON object sent by AJAX callers, or the submitted form."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form


def listing_args():
    return page_args(int(current_app.config.get('ITEMS_PER_PAGE', 10)))


def first_form_error(form, default='Please check the form and try again.'):
    for field_name, errors in form.errors.items():
        if errors:
            label = getattr(getattr(form, field_name, None), 'label', None)
            prefix = f'{label.text}: ' if label is not None else ''
            return f'{prefix}{errors[0]}'
    return default
