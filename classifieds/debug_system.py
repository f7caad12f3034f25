"""
Category-tagged debug logging.

Off unless ``DEBUG_MODE`` is set (``CLASSIFIEDS_DEBUG`` in the environment).
The AUTH category also needs ``DEBUG_AUTH`` since it traces sign-in,
two-factor and impersonation steps.
"""

import logging
from functools import wraps
from typing import Any, Dict, Optional

from flask import current_app, has_app_context, has_request_context, request
from flask_login import current_user

_CATEGORY_FLAGS = {'AUTH': 'DEBUG_AUTH'}


class DebugManager:
    """Decides whether a debug category is on and writes its messages."""

    def __init__(self):
        self.logger = logging.getLogger('classifieds.debug')
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(
                '[DEBUG %(asctime)s] %(name)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S'))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.DEBUG)

    def is_enabled(self, category: str = "GENERAL") -> bool:
        if not has_app_context():
            return False
        config = current_app.config
        if not config.get('DEBUG_MODE'):
            return False
        flag = _CATEGORY_FLAGS.get(category)
        return bool(config.get(flag)) if flag else True

    def log_debug(self, message: str, category: str = "GENERAL", extra_data: Optional[Dict[str, Any]] = None):
        if not self.is_enabled(category):
            return

        user_id = 'anonymous'
        request_info = ''
        if has_request_context():
            if current_user and current_user.is_authenticated:
                user_id = str(getattr(current_user, 'id', 'anonymous'))
            request_info = f" {request.method} {request.path}"

        self.logger.debug(f"[{category}] {message} | user={user_id}{request_info} | Extra: {extra_data or {}}")


debug_manager = None


def get_debug_manager() -> DebugManager:
    global debug_manager
    if debug_manager is None:
        debug_manager = DebugManager()
    return debug_manager


def debug_log(message: str, category: str = "GENERAL", extra_data: Optional[Dict[str, Any]] = None):
    get_debug_manager().log_debug(message, category, extra_data)


def debug_auth(message: str, extra_data: Optional[Dict[str, Any]] = None):
    """Trace login, two-factor and impersonation flows."""
    debug_log(message, "AUTH", extra_data)


def debug_route(category: str = "ROUTE"):
    """Decorator logging view entry with its URL arguments."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            debug_log(f"-> {func.__name__}", category, kwargs or None)
            return func(*args, **kwargs)
        return wrapper
    return decorator
