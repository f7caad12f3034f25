"""Tests for saved posts and saved searches."""
from classifieds.services import saved_search_service
from classifieds.services.saved_service import normalize_search_query, parse_search_query

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


def test_parse_search_query_keeps_known_keys():
    assert parse_search_query('q=bike&l=Paris&sort=price&c=') == {'q': 'bike', 'l': 'Paris'}


def test_normalize_search_query_is_order_independent():
    assert normalize_search_query('l=Paris&q=bike') == normalize_search_query('q=bike&l=Paris')
    assert normalize_search_query('sort=price') == ''


def test_toggle_saved_post(client, logged_in, make_user, make_post):
    post = make_post(make_user())
    response = client.post('/account/saved-posts/toggle', headers=AJAX, data={'post_id': str(post.id)})
    assert response.get_json()['saved'] is True
    assert post.title.encode() in client.get('/account/saved-posts').data

    response = client.post('/account/saved-posts/toggle', headers=AJAX, data={'post_id': str(post.id)})
    assert response.get_json()['saved'] is False


def test_toggle_with_non_object_json_body(client, logged_in):
    response = client.post('/account/saved-posts/toggle', headers=AJAX, json=[1])
    assert response.status_code == 400
    assert response.get_json()['message'] == 'No post selected.'


def test_toggle_requires_online_post(client, logged_in, make_user, make_post):
    post = make_post(make_user(), reviewed=False)
    response = client.post('/account/saved-posts/toggle', headers=AJAX, data={'post_id': str(post.id)})
    assert response.status_code == 404


def test_saved_post_confirm_and_delete(client, logged_in, make_user, make_post):
    post = make_post(make_user(), title='Vintage radio')
    client.post('/account/saved-posts/toggle', headers=AJAX, data={'post_id': str(post.id)})
    saved_page = client.get('/account/saved-posts').data.decode()
    saved_id = saved_page.split('name="entries" value="')[1].split('"')[0]

    response = client.get(f'/account/saved-posts/{saved_id}/delete')
    assert b'Vintage radio' in response.data

    response = client.post('/account/saved-posts/delete', headers=AJAX, data={'entries': [saved_id]})
    assert response.get_json()['deleted'] == 1


def test_store_saved_search(client, logged_in, make_user, make_post, app):
    seller = make_user()
    make_post(seller, title='Red bike', city='Paris')
    make_post(seller, title='Blue bike', city='Lyon')

    response = client.post('/account/saved-searches/store', headers=AJAX, data={'query': 'q=bike&l=paris'})
    body = response.get_json()
    assert body['success'] is True
    assert body['result_count'] == 1

    # Same search in a different order is not stored twice
    response = client.post('/account/saved-searches/store?l=paris&q=bike', headers=AJAX)
    assert response.get_json()['search_id'] == body['search_id']
    with app.app_context():
        assert saved_search_service.count_searches(logged_in.id) == 1

    response = client.get(f"/account/saved-searches/{body['search_id']}")
    assert b'Red bike' in response.data
    assert b'Blue bike' not in response.data


def test_empty_search_is_refused(client, logged_in):
    response = client.post('/account/saved-searches/store', headers=AJAX, data={'query': 'sort=new'})
    assert response.status_code == 400


def test_other_users_search_is_not_found(client, logged_in, make_user, app):
    other = make_user()
    with app.app_context():
        search, _created = saved_search_service.store(other.id, 'q=lamp')
    assert client.get(f'/account/saved-searches/{search.id}').status_code == 404
    response = client.post('/account/saved-searches/delete', headers=AJAX, data={'entry': str(search.id)})
    assert response.status_code == 404
