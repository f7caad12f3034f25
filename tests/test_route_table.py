"""Tests for the account route table and its guard wiring."""
import pytest
from flask import Blueprint, Flask

from classifieds.account import ACCOUNT_GUARDS, PROTECTED, PUBLIC, ROUTES, register_account_routes
from classifieds.account.route_table import AccountRoute
from classifieds.guards import GUARDS, guarded


def _rules(app):
    return {rule.endpoint: rule for rule in app.url_map.iter_rules()}


def test_every_route_is_registered_under_account_prefix(app):
    """Each declared route exists with its methods under /account."""
    rules = _rules(app)
    for route in ROUTES:
        rule = rules[f'account.{route.endpoint}']
        assert rule.rule == '/account' + route.rule
        for method in route.methods:
            assert method in rule.methods


def test_endpoints_are_unique():
    endpoints = [route.endpoint for route in ROUTES]
    assert len(endpoints) == len(set(endpoints))


def test_guard_groups():
    """Mutating routes add impersonation protection; contact author is public."""
    by_endpoint = {route.endpoint: route for route in ROUTES}
    assert ACCOUNT_GUARDS == ('auth', 'two_factor', 'banned.user', 'no.http.cache')
    assert PROTECTED[-1] == 'impersonate.protect'
    for endpoint in ('profile_update', 'security_password', 'closing_post', 'linked_accounts_disconnect'):
        assert by_endpoint[endpoint].guards == PROTECTED
    assert by_endpoint['overview'].guards == ACCOUNT_GUARDS
    assert by_endpoint['messages_contact_author'].guards == PUBLIC == ()


def test_registered_views_carry_their_guards(app):
    view = app.view_functions['account.profile_update']
    assert view.guards == PROTECTED


def test_transactions_routes_share_a_view_with_defaults(app):
    rules = _rules(app)
    assert rules['account.transactions_promotion'].defaults == {'payable_type': 'promotion'}
    assert rules['account.transactions_subscription'].defaults == {'payable_type': 'subscription'}


def test_routes_with_and_without_defaults_register_on_a_fresh_app():
    """A route without defaults registers and serves next to one that has them."""
    blueprint = Blueprint('fresh', __name__)
    routes = (
        AccountRoute('/plain', 'plain', lambda: 'plain', guards=PUBLIC),
        AccountRoute('/scoped', 'scoped', lambda scope: scope, guards=PUBLIC, defaults={'scope': 'list'}),
    )
    register_account_routes(blueprint, routes=routes)
    app = Flask(__name__)
    app.register_blueprint(blueprint, url_prefix='/account')
    client = app.test_client()
    assert client.get('/account/plain').get_data(as_text=True) == 'plain'
    assert client.get('/account/scoped').get_data(as_text=True) == 'list'


def test_duplicate_endpoint_is_rejected():
    blueprint = Blueprint('dup', __name__)
    route = AccountRoute('/a', 'same', lambda: 'a')
    with pytest.raises(ValueError):
        register_account_routes(blueprint, routes=(route, AccountRoute('/b', 'same', lambda: 'b')))


def test_unknown_guard_is_rejected():
    assert 'no.such.guard' not in GUARDS
    with pytest.raises(ValueError):
        guarded(lambda: 'x', ('auth', 'no.such.guard'))


def test_non_numeric_id_is_not_found(client, logged_in):
    assert client.get('/account/messages/abc').status_code == 404
    assert client.get('/account/posts/list/x1/offline').status_code == 404
    assert client.get('/account/saved-searches/abc').status_code == 404


def test_unknown_method_is_rejected(client, logged_in):
    assert client.delete('/account/overview').status_code == 405


def test_put_via_method_override(client, logged_in, app):
    """HTML forms POST with ?_method=PUT and reach the PUT route."""
    response = client.post('/account/profile?_method=PUT', data={
        'name': 'Renamed', 'email': logged_in.email, 'gender_id': '',
    })
    assert response.status_code == 302
    from classifieds.services import user_service
    with app.app_context():
        assert user_service.get_user_by_id(logged_in.id).name == 'Renamed'


def test_plain_post_does_not_reach_put_route(client, logged_in):
    response = client.post('/account/profile', data={'name': 'X', 'email': logged_in.email})
    assert response.status_code == 405
