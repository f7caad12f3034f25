"""Tests for profile, security, preferences, linked accounts and closing."""
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from classifieds.services import AccountError, user_service

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


def _reload(app, user):
    with app.app_context():
        return user_service.get_user_by_id(user.id)


def _png_bytes(size=(640, 480)):
    buffer = BytesIO()
    Image.new('RGB', size, (200, 30, 30)).save(buffer, format='PNG')
    buffer.seek(0)
    return buffer


def test_profile_page_renders(client, logged_in):
    response = client.get('/account/profile')
    assert response.status_code == 200
    assert logged_in.email.encode() in response.data


def test_update_details(client, logged_in, app):
    response = client.put('/account/profile', headers=AJAX, data={
        'name': 'Jamie Doe', 'email': 'jamie@example.com', 'username': 'jamie',
        'phone': '+33 6 00 00 00 00', 'gender_id': '2', 'about': 'Selling old gear.',
    })
    assert response.status_code == 200
    assert response.get_json()['success'] is True
    user = _reload(app, logged_in)
    assert user.name == 'Jamie Doe'
    assert user.email == 'jamie@example.com'
    assert user.gender_id == 2


def test_update_details_rejects_taken_email(client, logged_in, make_user):
    other = make_user()
    response = client.put('/account/profile', headers=AJAX, data={
        'name': 'Someone', 'email': other.email, 'gender_id': '',
    })
    assert response.status_code == 400
    assert 'different email' in response.get_json()['message']


def test_photo_upload_and_delete(client, logged_in, app):
    response = client.put('/account/profile/photo', headers=AJAX, content_type='multipart/form-data',
                          data={'photo': (_png_bytes(), 'me.png')})
    assert response.status_code == 200
    assert response.get_json()['photo_url'].startswith('/storage/avatars/')

    user = _reload(app, logged_in)
    stored = Path(app.config['DOCUMENT_ROOT']) / 'storage' / 'app' / 'public' / user.photo_path
    assert stored.exists()
    with Image.open(stored) as img:
        assert img.size == (400, 400)

    assert client.get(f'/storage/{user.photo_path}').status_code == 200

    response = client.put('/account/profile/photo/delete', headers=AJAX)
    assert response.status_code == 200
    assert _reload(app, logged_in).photo_path is None
    assert not stored.exists()


def test_photo_upload_rejects_non_images(client, logged_in):
    response = client.put('/account/profile/photo', headers=AJAX, content_type='multipart/form-data',
                          data={'photo': (BytesIO(b'not an image'), 'notes.txt')})
    assert response.status_code == 400


def test_photo_upload_rejects_truncated_image(client, logged_in, app):
    """A PNG cut short after its header is refused without storing anything."""
    truncated = BytesIO(_png_bytes().getvalue()[:60])
    response = client.put('/account/profile/photo', headers=AJAX, content_type='multipart/form-data',
                          data={'photo': (truncated, 'me.png')})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'The uploaded file is not a valid image.'
    assert _reload(app, logged_in).photo_path is None
    avatars = Path(app.config['DOCUMENT_ROOT']) / 'storage' / 'app' / 'public' / 'avatars'
    assert not avatars.exists() or not any(avatars.iterdir())


def test_change_password(client, logged_in, app):
    response = client.put('/account/security/password', headers=AJAX, data={
        'current_password': 'wrong-password1', 'new_password': 'Bluebird2024!', 'new_password2': 'Bluebird2024!',
    })
    assert response.status_code == 400

    response = client.put('/account/security/password', headers=AJAX, data={
        'current_password': 'Sunflower42!', 'new_password': 'Bluebird2024!', 'new_password2': 'Bluebird2024!',
    })
    assert response.status_code == 200
    assert _reload(app, logged_in).check_password('Bluebird2024!')


def test_weak_password_is_refused(client, logged_in):
    response = client.put('/account/security/password', headers=AJAX, data={
        'current_password': 'Sunflower42!', 'new_password': 'short', 'new_password2': 'short',
    })
    assert response.status_code == 400


def test_enable_two_factor_keeps_session_verified(client, logged_in, app):
    response = client.put('/account/security/two-factor', headers=AJAX, data={'two_factor_enabled': 'y'})
    assert response.status_code == 200
    assert _reload(app, logged_in).two_factor_enabled is True
    assert client.get('/account/security').status_code == 200


def test_preferences(client, logged_in, app):
    assert client.get('/account/preferences').status_code == 200
    response = client.put('/account/preferences', headers=AJAX, data={
        'language_code': 'fr', 'timezone': 'Europe/Paris', 'accept_marketing_offers': 'y',
    })
    assert response.status_code == 200
    user = _reload(app, logged_in)
    assert (user.language_code, user.timezone, user.accept_marketing_offers) == ('fr', 'Europe/Paris', True)


def test_save_theme_preference(client, logged_in, app):
    response = client.post('/account/save-theme-preference', json={'theme': 'dark'})
    assert response.get_json() == {'success': True, 'theme': 'dark'}
    assert _reload(app, logged_in).theme == 'dark'

    response = client.post('/account/save-theme-preference', json={'theme': 'neon'})
    assert response.status_code == 400


def test_save_theme_preference_ignores_non_object_json(client, logged_in, app):
    response = client.post('/account/save-theme-preference', json=['dark'])
    assert response.status_code == 400
    assert _reload(app, logged_in).theme != 'dark'


class TestLinkedAccounts:
    def test_page_lists_providers(self, client, logged_in):
        response = client.get('/account/linked-accounts')
        assert response.status_code == 200
        assert b'Google' in response.data

    def test_unknown_provider_is_404(self, client, logged_in):
        assert client.get('/account/linked-accounts/myspace/disconnect').status_code == 404

    def test_disconnect(self, client, logged_in, app):
        with app.app_context():
            user_service.link_account(logged_in, 'google', 'g-123')
        response = client.get('/account/linked-accounts/google/disconnect', headers=AJAX)
        assert response.status_code == 200
        with app.app_context():
            assert user_service.list_linked_accounts(logged_in) == []

    def test_disconnect_not_linked(self, client, logged_in):
        response = client.get('/account/linked-accounts/google/disconnect', headers=AJAX)
        assert response.status_code == 400

    def test_last_login_method_is_kept(self, app, make_user):
        user = make_user(password=None)
        with app.app_context():
            user_service.link_account(user, 'facebook', 'fb-1')
            with pytest.raises(AccountError):
                user_service.disconnect_account(user, 'facebook')


def test_closing_no_keeps_account(client, logged_in, app):
    response = client.post('/account/closing', data={'close_account': 'no'})
    assert response.status_code == 302
    assert _reload(app, logged_in) is not None


def test_closing_yes_deletes_account(client, logged_in, make_post, app):
    make_post(logged_in)
    response = client.post('/account/closing', data={'close_account': 'yes'})
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']
    assert _reload(app, logged_in) is None
    assert client.get('/account/overview').status_code == 302


def test_closing_removes_photo_and_sender_details(client, logged_in, make_user, make_post, app):
    """Closing deletes the stored avatar; sent messages keep their text but lose the sender."""
    client.put('/account/profile/photo', headers=AJAX, content_type='multipart/form-data',
               data={'photo': (_png_bytes(), 'me.png')})
    stored = Path(app.config['DOCUMENT_ROOT']) / 'storage' / 'app' / 'public' / _reload(app, logged_in).photo_path
    assert stored.is_file()

    post = make_post(make_user(name='Author'))
    response = client.post('/account/messages', headers=AJAX, data={'post_id': str(post.id), 'body': 'Still for sale?'})
    thread_id = response.get_json()['thread_id']

    assert client.post('/account/closing', data={'close_account': 'yes'}).status_code == 302
    assert not stored.exists()

    from classifieds.services import messaging_service
    from classifieds.services.user_service import CLOSED_ACCOUNT_NAME
    with app.app_context():
        message = messaging_service.thread_repo.list_messages(thread_id)[0]
    assert message.body == 'Still for sale?'
    assert (message.user_id, message.sender_name, message.sender_email) == (None, CLOSED_ACCOUNT_NAME, None)
