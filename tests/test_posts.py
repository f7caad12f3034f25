"""Tests for the account's own listings."""
from classifieds.domain.models import PostStatus
from classifieds.services import post_service, saved_post_service

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


def _status(app, post):
    with app.app_context():
        return post_service.get_post(post.id).status


def test_listing_pages_split_by_status(client, logged_in, make_post):
    make_post(logged_in, title='Online sofa')
    make_post(logged_in, title='Pending lamp', reviewed=False)

    online = client.get('/account/posts/list')
    assert b'Online sofa' in online.data
    assert b'Pending lamp' not in online.data

    pending = client.get('/account/posts/pending-approval')
    assert b'Pending lamp' in pending.data
    assert client.get('/account/posts/archived').status_code == 200


def test_take_offline_and_repost(client, logged_in, make_post, app):
    post = make_post(logged_in)
    assert client.get(f'/account/posts/list/{post.id}/offline').status_code == 302
    assert _status(app, post) is PostStatus.ARCHIVED

    # Already offline: not in the online scope any more
    assert client.get(f'/account/posts/list/{post.id}/offline').status_code == 404

    assert client.get(f'/account/posts/archived/{post.id}/repost').status_code == 302
    assert _status(app, post) is PostStatus.ONLINE


def test_cannot_touch_someone_elses_post(client, logged_in, make_user, make_post):
    post = make_post(make_user())
    assert client.get(f'/account/posts/list/{post.id}/offline').status_code == 404
    assert client.get(f'/account/posts/list/{post.id}/delete').status_code == 404


def test_get_delete_only_confirms(client, logged_in, make_post, app):
    post = make_post(logged_in, title='Old chair')
    response = client.get(f'/account/posts/list/{post.id}/delete')
    assert response.status_code == 200
    assert b'Old chair' in response.data
    with app.app_context():
        assert post_service.get_post(post.id) is not None

    response = client.post('/account/posts/list/delete', data={'entry': str(post.id)})
    assert response.status_code == 302
    with app.app_context():
        assert post_service.get_post(post.id) is None


def test_bulk_delete_skips_other_scopes(client, logged_in, make_post, app):
    online = make_post(logged_in, title='A')
    pending = make_post(logged_in, title='B', reviewed=False)
    response = client.post('/account/posts/list/delete', headers=AJAX,
                           data={'entries': [str(online.id), str(pending.id)]})
    assert response.get_json()['deleted'] == 1
    with app.app_context():
        assert post_service.get_post(pending.id) is not None


def test_delete_without_selection(client, logged_in):
    response = client.post('/account/posts/archived/delete', headers=AJAX, data={})
    assert response.status_code == 400


def test_deleting_a_post_removes_saved_entries(client, logged_in, make_user, make_post, app):
    other = make_user()
    post = make_post(logged_in)
    with app.app_context():
        saved_post_service.toggle(other.id, post.id)
        assert saved_post_service.count_saved(other.id) == 1
    client.post('/account/posts/list/delete', data={'entry': str(post.id)})
    with app.app_context():
        assert saved_post_service.count_saved(other.id) == 0


def test_listing_is_paginated(client, logged_in, make_post, app):
    app.config['ITEMS_PER_PAGE'] = 2
    for n in range(3):
        make_post(logged_in, title=f'Item {n}')
    with app.app_context():
        page = post_service.list_posts(logged_in.id, PostStatus.ONLINE, page=2, per_page=2)
    assert page.total == 3
    assert page.pages == 2
    assert len(page.items) == 1
    assert client.get('/account/posts/list?page=2').status_code == 200
