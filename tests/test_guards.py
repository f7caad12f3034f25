"""Tests for the guard chain in front of account routes."""
import re

from classifieds.services import messaging_service, user_service

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


def test_anonymous_is_redirected_to_login(client):
    response = client.get('/account/overview')
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']
    assert 'next=' in response.headers['Location']


def test_anonymous_ajax_gets_401(client):
    response = client.get('/account/overview', headers=AJAX)
    assert response.status_code == 401
    assert response.get_json()['success'] is False


def test_signed_in_overview_sends_no_cache_headers(client, logged_in):
    response = client.get('/account/overview')
    assert response.status_code == 200
    assert 'no-store' in response.headers['Cache-Control']
    assert response.headers['Pragma'] == 'no-cache'


def test_no_cache_headers_are_not_added_outside_account_area(client, app):
    response = client.get('/auth/login')
    assert response.status_code == 200
    assert 'no-store' not in response.headers.get('Cache-Control', '')


def test_banned_user_is_signed_out(client, logged_in, app):
    with app.app_context():
        user_service.set_banned(user_service.get_user_by_id(logged_in.id), True)

    response = client.get('/account/overview')
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']

    # The session is gone, so the next request is anonymous
    response = client.get('/account/overview', headers=AJAX)
    assert response.status_code == 401


def test_banned_user_ajax_gets_403(client, logged_in, app):
    with app.app_context():
        user_service.set_banned(user_service.get_user_by_id(logged_in.id), True)
    response = client.get('/account/overview', headers=AJAX)
    assert response.status_code == 403


def _last_code(app):
    message = app.extensions['mail_outbox'][-1]
    return re.search(r'verification code is (\d{6})', message.get_content()).group(1)


def test_two_factor_challenge_blocks_account_until_verified(client, make_user, login, app):
    user = make_user(two_factor_enabled=True)
    response = login(user)
    assert response.status_code == 302
    assert '/auth/two-factor' in response.headers['Location']

    response = client.get('/account/overview')
    assert response.status_code == 302
    assert '/auth/two-factor' in response.headers['Location']

    response = client.post('/auth/two-factor', data={'code': '000000' if _last_code(app) != '000000' else '111111'})
    assert response.status_code == 200
    assert client.get('/account/overview').status_code == 302

    response = client.post('/auth/two-factor', data={'code': _last_code(app)})
    assert response.status_code == 302
    assert client.get('/account/overview').status_code == 200


def test_public_contact_route_needs_no_login(client, make_user, make_post, app):
    author = make_user()
    post = make_post(author, title='Road bike')
    response = client.post(f'/account/messages/posts/{post.id}', data={
        'name': 'Guest', 'email': 'guest@example.com', 'body': 'Is it still available?',
    })
    assert response.status_code == 302
    with app.app_context():
        assert messaging_service.count_unread(author.id) == 1


def test_public_contact_route_unknown_post_is_404(client):
    response = client.post('/account/messages/posts/999', data={
        'name': 'Guest', 'email': 'guest@example.com', 'body': 'Hello',
    })
    assert response.status_code == 404


class TestImpersonation:
    def _start(self, client, make_user, login):
        admin = make_user(is_admin=True)
        target = make_user(name='Target')
        login(admin)
        response = client.post(f'/impersonate/{target.id}')
        assert response.status_code == 302
        return admin, target

    def test_read_only_pages_stay_available(self, client, make_user, login):
        self._start(client, make_user, login)
        response = client.get('/account/overview')
        assert response.status_code == 200
        assert b'Leave impersonation' in response.data

    def test_protected_routes_are_blocked(self, client, make_user, login, app):
        _admin, target = self._start(client, make_user, login)
        response = client.put('/account/profile', headers=AJAX,
                              data={'name': 'Hijacked', 'email': target.email})
        assert response.status_code == 403
        response = client.post('/account/closing', data={'close_account': 'yes'})
        assert response.status_code == 302
        with app.app_context():
            user = user_service.get_user_by_id(target.id)
        assert user is not None
        assert user.name == 'Target'

    def test_leaving_restores_the_admin(self, client, make_user, login):
        admin, _target = self._start(client, make_user, login)
        assert client.get('/impersonate/leave').status_code == 302
        response = client.get('/account/overview')
        assert admin.name.encode() in response.data
        assert b'Leave impersonation' not in response.data

    def test_regular_user_cannot_impersonate(self, client, make_user, login):
        user = make_user()
        other = make_user()
        login(user)
        assert client.post(f'/impersonate/{other.id}').status_code == 403
