"""Tests for sign in, sign out and the password policy."""
import pytest

from classifieds.domain.models import User
from classifieds.services import AccountError, user_service

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


def test_login_page_renders(client):
    response = client.get('/auth/login')
    assert response.status_code == 200
    assert b'Sign in' in response.data


def test_wrong_password(client, user, login):
    response = login(user, password='Nope12345!')
    assert response.status_code == 200
    assert b'Invalid email or password' in response.data
    assert client.get('/account/overview').status_code == 302


def test_login_by_phone(client, make_user, app):
    user = make_user(phone='+33600000001')
    response = client.post('/auth/login', data={
        'auth_field': 'phone', 'phone': '+33600000001', 'password': 'Sunflower42!'})
    assert response.status_code == 302
    with app.app_context():
        assert user_service.get_user_by_id(user.id).last_login_at is not None


def test_login_redirects_to_next(client, user):
    response = client.post('/auth/login?next=/account/messages', data={
        'auth_field': 'email', 'email': user.email, 'password': 'Sunflower42!'})
    assert response.headers['Location'].endswith('/account/messages')


def test_login_ignores_offsite_next(client, user):
    response = client.post('/auth/login?next=//evil.example.com/', data={
        'auth_field': 'email', 'email': user.email, 'password': 'Sunflower42!'})
    assert response.headers['Location'].endswith('/account/overview')


def test_banned_user_cannot_sign_in(client, make_user, login, app):
    user = make_user()
    with app.app_context():
        user_service.set_banned(user, True)
    response = login(user)
    assert response.status_code == 302
    assert client.get('/account/overview').status_code == 302


def test_logout(client, logged_in):
    assert client.get('/auth/logout').status_code == 302
    assert client.get('/account/overview', headers=AJAX).status_code == 401


def test_home_redirects(client, logged_in):
    assert client.get('/').headers['Location'].endswith('/account/overview')


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_duplicate_email_is_refused(app, user):
    with app.app_context():
        with pytest.raises(AccountError):
            user_service.create_user(name='Copy', email=user.email.upper(), password='Sunflower42!')


@pytest.mark.parametrize('password,strong', [
    ('Sunflower42!', True),
    ('abcdefgh', False),
    ('12345678', False),
    ('short1', False),
    ('password123', False),
])
def test_password_strength(password, strong):
    assert User.is_password_strong(password) is strong


def test_create_user_cli(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['create-user', '--name', 'Admin', '--email', 'admin@example.com',
                                 '--password', 'Sunflower42!', '--admin'])
    assert result.exit_code == 0
    with app.app_context():
        user = user_service.get_user_by_auth_field('email', 'admin@example.com')
    assert user.is_admin


def test_auth_debug_needs_both_flags(app):
    from classifieds.debug_system import get_debug_manager
    manager = get_debug_manager()
    with app.app_context():
        app.config.update(DEBUG_MODE=False, DEBUG_AUTH=True)
        assert not manager.is_enabled('AUTH')
        app.config.update(DEBUG_MODE=True, DEBUG_AUTH=False)
        assert manager.is_enabled('GUARD')
        assert not manager.is_enabled('AUTH')
