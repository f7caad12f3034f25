"""Shared fixtures: a fresh Kuzu database and document root per test."""
import os
import tempfile

# config.py reads these at import time
os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('CLASSIFIEDS_DATA_DIR', tempfile.mkdtemp(prefix='classifieds-test-'))

import pytest

from classifieds import create_app
from classifieds.services import post_service, user_service

PASSWORD = 'Sunflower42!'


@pytest.fixture
def app(tmp_path):
    document_root = tmp_path / 'site'
    (document_root / 'storage' / 'app' / 'public').mkdir(parents=True)
    app = create_app({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'SESSION_TYPE': None,
        'MAIL_SUPPRESS_SEND': True,
        'KUZU_DB_PATH': str(tmp_path / 'db' / 'classifieds.kuzu'),
        'DOCUMENT_ROOT': str(document_root),
    })
    yield app
    app.extensions['kuzu_manager'].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def factory(**overrides):
        counter['n'] += 1
        data = {
            'name': f"User {counter['n']}",
            'email': f"user{counter['n']}@example.com",
            'password': PASSWORD,
        }
        data.update(overrides)
        with app.app_context():
            return user_service.create_user(**data)
    return factory


@pytest.fixture
def make_post(app):
    def factory(user, title='Mountain bike', **kwargs):
        with app.app_context():
            return post_service.create_post(user.id, title, **kwargs)
    return factory


@pytest.fixture
def login(client):
    def do_login(user, password=PASSWORD):
        return client.post('/auth/login', data={
            'auth_field': 'email',
            'email': user.email,
            'password': password,
        })
    return do_login


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def logged_in(client, user, login):
    response = login(user)
    assert response.status_code == 302
    return user
