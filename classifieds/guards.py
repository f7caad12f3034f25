"""
Route guards.

A guard is a function called before a view. It returns ``None`` to let the
request continue or a response to reject it. Guards run in the order a route
declares them; the first rejection wins and the view only runs when every
guard lets the request through.
"""

import logging
from functools import wraps
from typing import Callable, Dict, Iterable, Optional

from flask import after_this_request, current_app, jsonify, redirect, request, session, url_for
from flask_login import current_user, logout_user

from .debug_system import debug_log
from .auth import TWO_FACTOR_SESSION_KEY
from .impersonation import is_impersonating
from .notifications import notify, wants_json

logger = logging.getLogger(__name__)

Guard = Callable[[], Optional[object]]

GUARDS: Dict[str, Guard] = {}


def register_guard(name: str, func: Guard) -> Guard:
    GUARDS[name] = func
    return func


def guard(name: str):
    """Decorator form of register_guard."""
    def decorator(func: Guard) -> Guard:
        return register_guard(name, func)
    return decorator


def _reject(name: str, reason: str):
    logger.info(f"Guard '{name}' rejected {request.method} {request.path}: {reason}")
    debug_log(f"Guard '{name}' rejected: {reason}", "GUARD")


@guard('auth')
def require_login():
    if current_user.is_authenticated:
        return None
    _reject('auth', 'not signed in')
    return current_app.login_manager.unauthorized()


@guard('two_factor')
def require_two_factor():
    if not getattr(current_user, 'two_factor_enabled', False) or session.get(TWO_FACTOR_SESSION_KEY):
        return None
    _reject('two_factor', 'two-factor challenge pending')
    if wants_json():
        return jsonify({'success': False, 'message': 'Two-factor verification required.'}), 401
    return redirect(url_for('auth.two_factor', next=request.full_path))


@guard('banned.user')
def reject_banned():
    if not getattr(current_user, 'is_banned', False):
        return None
    _reject('banned.user', f'user {current_user.id} is banned')
    logout_user()
    session.clear()
    message = 'This account has been banned.'
    if wants_json():
        return jsonify({'success': False, 'message': message}), 403
    notify(message, 'error')
    return redirect(url_for('auth.login'))


@guard('no.http.cache')
def no_http_cache():
    headers = current_app.config.get('NO_CACHE_HEADERS', {})

    @after_this_request
    def add_no_cache_headers(response):
        for header, value in headers.items():
            response.headers[header] = value
        return response

    return None


def _safe_referrer() -> Optional[str]:
    referrer = request.referrer
    if referrer and referrer.startswith(request.host_url) and referrer != request.url:
        return referrer
    return None


@guard('impersonate.protect')
def protect_from_impersonation():
    if not is_impersonating():
        return None
    _reject('impersonate.protect', 'impersonation session active')
    message = 'This action is disabled while you are impersonating a user.'
    if wants_json():
        return jsonify({'success': False, 'message': message}), 403
    notify(message, 'warning')
    return redirect(_safe_referrer() or url_for('account.overview'))


def guarded(view: Callable, guard_names: Iterable[str]) -> Callable:
    """Wrap a view with a chain of registered guards."""
    names = tuple(guard_names)
    unknown = [name for name in names if name not in GUARDS]
    if unknown:
        raise ValueError(f"Unknown guard(s): {', '.join(unknown)}")

    @wraps(view)
    def wrapper(*args, **kwargs):
        for name in names:
            rejection = GUARDS[name]()
            if rejection is not None:
                return rejection
        return view(*args, **kwargs)

    wrapper.guards = names  # type: ignore[attr-defined]
    return wrapper
