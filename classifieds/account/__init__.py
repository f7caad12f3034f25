"""
Account area blueprint.

Routes come from ``route_table.ROUTES``; the blueprint is mounted at
``/<ACCOUNT_BASE_PATH>`` by the application factory.
"""

from flask import Blueprint

account = Blueprint('account', __name__)

from .route_table import (  # noqa: E402
    ACCOUNT_GUARDS, PROTECTED, PUBLIC, ROUTES, AccountRoute, iter_routes, register_account_routes
)

register_account_routes(account)

__all__ = [
    'account',
    'AccountRoute',
    'ACCOUNT_GUARDS',
    'PROTECTED',
    'PUBLIC',
    'ROUTES',
    'iter_routes',
    'register_account_routes',
]
