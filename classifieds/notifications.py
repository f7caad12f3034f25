"""
User-facing notifications.

Pages report outcomes through flashed messages rendered as alerts by the
base template; AJAX callers get the same message as JSON.
"""

from typing import Any, Optional

from flask import flash, jsonify, redirect, request, url_for

CATEGORIES = ('success', 'info', 'warning', 'error')


def wants_json() -> bool:
    """True for AJAX/JSON clients."""
    if request.headers.get('X-Requested-With') == 'XMLHttpRequest':
        return True
    if request.is_json:
        return True
    best = request.accept_mimetypes.best_match(['application/json', 'text/html'])
    return best == 'application/json' and request.accept_mimetypes[best] > request.accept_mimetypes['text/html']


def notify(message: str, category: str = 'info') -> None:
    if category not in CATEGORIES:
        category = 'info'
    flash(message, category)


def respond(message: str, category: str = 'success', redirect_to: Optional[str] = None,
            status: int = 200, **payload: Any):
    """
    JSON for AJAX requests, flash + redirect otherwise.

    ``redirect_to`` defaults to the referrer, then the account overview.
    """
    if wants_json():
        body = {'success': category in ('success', 'info'), 'message': message}
        body.update(payload)
        return jsonify(body), status
    notify(message, category)
    return redirect(redirect_to or request.referrer or url_for('account.overview'))
