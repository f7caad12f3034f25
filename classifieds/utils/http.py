"""HTTP helpers: method override for HTML forms and form id parsing."""

import logging
from typing import List
from urllib.parse import parse_qs

logger = logging.getLogger(__name__)

OVERRIDABLE_METHODS = ('PUT', 'PATCH', 'DELETE')


class MethodOverrideMiddleware:
    """
    Let POSTed HTML forms reach PUT/PATCH/DELETE routes.

    The override comes from the ``_method`` query-string parameter or the
    ``X-HTTP-Method-Override`` header, and only applies to POST requests.
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        if environ.get('REQUEST_METHOD', '').upper() == 'POST':
            method = environ.get('HTTP_X_HTTP_METHOD_OVERRIDE', '')
            if not method:
                query = parse_qs(environ.get('QUERY_STRING', ''))
                method = (query.get('_method') or [''])[0]
            method = method.upper()
            if method in OVERRIDABLE_METHODS:
                environ['REQUEST_METHOD'] = method
                logger.debug(f"Method override POST -> {method} for {environ.get('PATH_INFO')}")
        return self.app(environ, start_response)


def parse_ids(values) -> List[int]:
    """Keep the positive integer ids from a list of form values, in order, without duplicates."""
    ids: List[int] = []
    for value in values:
        value = str(value).strip()
        if value.isdigit() and int(value) > 0 and int(value) not in ids:
            ids.append(int(value))
    return ids


def selected_ids(form) -> List[int]:
    """Ids posted as an ``entries`` list or a single ``entry`` field."""
    values = form.getlist('entries') or form.getlist('entries[]')
    if not values and form.get('entry'):
        values = [form.get('entry')]
    return parse_ids(values)
