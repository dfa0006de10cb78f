import pytest

from ithub.app import create_app, db
from ithub.app.models import User
from ithub.config import TestConfig

@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture
def app_ctx(app):
    """For tests that talk to the change tracker directly, without requests."""
    with app.app_context():
        yield app

@pytest.fixture
def client(app):
    return app.test_client()

def _create_user(app, username, role='user', name=None, password='password'):
    with app.app_context():
        user = User(username=username, name=name or username.title(), role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id

@pytest.fixture
def admin_user(app):
    return _create_user(app, 'admin', role='admin', name='Administrator')

@pytest.fixture
def auth_client(client, admin_user):
    response = client.post('/api/auth/login', json={'username': 'admin', 'password': 'password'})
    assert response.status_code == 200
    return client

@pytest.fixture
def make_user(app):
    def make(username, role='user', name=None, password='password'):
        return _create_user(app, username, role=role, name=name, password=password)
    return make
