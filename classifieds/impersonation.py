"""
Admin impersonation.

An admin can sign in as a regular user to see the account area as they do.
The admin's id is kept in the session while impersonating; account routes
that change credentials or data carry the ``impersonate.protect`` guard.
"""

import logging
from typing import Optional

from flask import Blueprint, session, url_for
from flask_login import current_user, login_required, login_user

from .auth import admin_required, TWO_FACTOR_SESSION_KEY
from .debug_system import debug_auth
from .domain.models import User
from .notifications import respond
from .services import AccountError, user_service

logger = logging.getLogger(__name__)

SESSION_KEY = 'impersonator_id'

impersonate = Blueprint('impersonate', __name__, url_prefix='/impersonate')


def impersonator_id() -> Optional[int]:
    value = session.get(SESSION_KEY)
    return int(value) if value is not None else None


def is_impersonating() -> bool:
    return impersonator_id() is not None


def start_impersonation(admin: User, target: User) -> User:
    if not admin.is_admin:
        raise AccountError('Only administrators can impersonate users.')
    if is_impersonating():
        raise AccountError('Leave the current impersonation first.')
    if admin.id == target.id:
        raise AccountError('You cannot impersonate yourself.')
    if target.is_admin:
        raise AccountError('Administrators cannot be impersonated.')

    login_user(target)
    session[SESSION_KEY] = admin.id
    session[TWO_FACTOR_SESSION_KEY] = True
    logger.info(f"Admin {admin.id} started impersonating user {target.id}")
    debug_auth(f"Impersonation started: {admin.id} -> {target.id}")
    return target


def leave_impersonation() -> User:
    admin_id = session.pop(SESSION_KEY, None)
    if admin_id is None:
        raise AccountError('You are not impersonating anyone.')
    admin = user_service.get_user_by_id(admin_id)
    if admin is None:
        raise AccountError('The original account no longer exists.')
    login_user(admin)
    session[TWO_FACTOR_SESSION_KEY] = True
    logger.info(f"Admin {admin.id} left impersonation")
    return admin


@impersonate.route('/<int:user_id>', methods=['POST'])
@login_required
@admin_required
def start(user_id):
    target = user_service.get_user_by_id(user_id)
    if target is None:
        return respond('User not found.', 'error', status=404)
    try:
        start_impersonation(current_user, target)
    except AccountError as e:
        return respond(str(e), 'error', status=400)
    return respond(f'You are now signed in as {target.name}.', 'info',
                   redirect_to=url_for('account.overview'))


@impersonate.route('/leave')
@login_required
def leave():
    try:
        admin = leave_impersonation()
    except AccountError as e:
        return respond(str(e), 'error', status=400)
    return respond(f'Welcome back, {admin.name}.', 'info', redirect_to=url_for('account.overview'))


def register_template_helpers(app) -> None:
    @app.context_processor
    def inject_impersonation():
        return {'is_impersonating': is_impersonating()}
