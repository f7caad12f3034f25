"""Tests for message threads between users and post authors."""
import pytest

from classifieds.services import AccountError, NotFoundError, messaging_service

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


@pytest.fixture
def author(make_user):
    return make_user(name='Author')


@pytest.fixture
def post(author, make_post):
    return make_post(author, title='Camping tent')


def _unread(client):
    return client.post('/account/messages/check-new', headers=AJAX).get_json()['count']


def test_signed_in_user_contacts_author(client, logged_in, post, author, app):
    response = client.post('/account/messages', data={'post_id': str(post.id), 'body': 'Still for sale?'})
    assert response.status_code == 302
    assert '/account/messages/' in response.headers['Location']

    with app.app_context():
        assert messaging_service.count_unread(author.id) == 1
        assert messaging_service.count_unread(logged_in.id) == 0

    outbox = app.extensions['mail_outbox']
    assert outbox[-1]['To'] == author.email
    assert 'Camping tent' in outbox[-1]['Subject']


def test_contact_returns_thread_id_for_ajax(client, logged_in, post):
    response = client.post('/account/messages', headers=AJAX, data={'post_id': str(post.id), 'body': 'Hi'})
    assert response.status_code == 201
    assert response.get_json()['thread_id'] > 0


def test_cannot_contact_yourself(client, author, post, login):
    login(author)
    response = client.post('/account/messages', headers=AJAX, data={'post_id': str(post.id), 'body': 'Me'})
    assert response.status_code == 400


def test_guest_must_give_name_and_email(client, post):
    response = client.post(f'/account/messages/posts/{post.id}', headers=AJAX, data={'body': 'Hello'})
    assert response.status_code == 400


def test_contact_requires_online_post(app, author, post, make_post):
    pending = make_post(author, reviewed=False)
    with app.app_context():
        with pytest.raises(NotFoundError):
            messaging_service.contact_author(pending.id, 'Hello', name='G', email='g@example.com')
        with pytest.raises(AccountError):
            messaging_service.contact_author(post.id, '   ', name='G', email='g@example.com')


def test_reading_and_replying(client, logged_in, post, author, login, app):
    response = client.post('/account/messages', headers=AJAX, data={'post_id': str(post.id), 'body': 'Hi'})
    thread_id = response.get_json()['thread_id']
    client.get('/auth/logout')

    login(author)
    assert _unread(client) == 1
    response = client.get(f'/account/messages/{thread_id}')
    assert response.status_code == 200
    assert b'Hi' in response.data
    assert _unread(client) == 0

    response = client.put(f'/account/messages/{thread_id}', data={'body': 'Yes, it is.'})
    assert response.status_code == 302
    with app.app_context():
        assert messaging_service.count_unread(logged_in.id) == 1
        thread = messaging_service.get_user_thread(logged_in.id, thread_id, with_messages=True)
    assert [m.body for m in thread.messages] == ['Hi', 'Yes, it is.']


def test_outsider_cannot_read_thread(client, logged_in, post, make_user, login, app):
    with app.app_context():
        thread = messaging_service.contact_author(post.id, 'Private', name='G', email='g@example.com')
    assert client.get(f'/account/messages/{thread.id}').status_code == 404
    assert client.get(f'/account/messages/{thread.id}/delete').status_code == 404


def test_actions_and_filters(client, author, post, login, app):
    with app.app_context():
        first = messaging_service.contact_author(post.id, 'One', name='G', email='g@example.com')
        second = messaging_service.contact_author(post.id, 'Two', name='H', email='h@example.com')
    login(author)
    assert _unread(client) == 2

    response = client.post('/account/messages/actions', headers=AJAX,
                           data={'type': 'markAsImportant', 'entries': [str(first.id)]})
    assert response.get_json()['changed'] == 1
    important = client.get('/account/messages?filter=important').data.decode()
    assert f'/account/messages/{first.id}"' in important
    assert f'/account/messages/{second.id}"' not in important

    response = client.get(f'/account/messages/{second.id}/actions?type=markAsRead', headers=AJAX)
    assert response.get_json()['changed'] == 1
    assert _unread(client) == 1

    response = client.post('/account/messages/actions', headers=AJAX, data={'type': 'markAllAsRead'})
    assert response.status_code == 200
    assert _unread(client) == 0

    response = client.post('/account/messages/actions', headers=AJAX,
                           data={'type': 'explode', 'entries': [str(first.id)]})
    assert response.status_code == 400


def test_delete_is_per_participant(client, logged_in, post, author, login, app):
    response = client.post('/account/messages', headers=AJAX, data={'post_id': str(post.id), 'body': 'Hi'})
    thread_id = response.get_json()['thread_id']

    response = client.get(f'/account/messages/{thread_id}/delete')
    assert response.status_code == 200
    response = client.post('/account/messages/delete', headers=AJAX, data={'entry': str(thread_id)})
    assert response.get_json()['deleted'] == 1
    assert client.get(f'/account/messages/{thread_id}').status_code == 404

    with app.app_context():
        assert messaging_service.get_user_thread(author.id, thread_id).id == thread_id
        # A reply from the author brings the thread back
        messaging_service.reply(author, thread_id, 'Still here')
        assert messaging_service.get_user_thread(logged_in.id, thread_id).id == thread_id
