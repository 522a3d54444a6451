import pytest

from jotter import create_app
from jotter.extensions import sessions
from jotter.services.user_service import UserService

PASSWORD = 'secret123'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'DATA_DIR': str(tmp_path / 'data'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
    })
    yield app
    sessions.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """直接通过服务层创建用户 (不经过注册接口)"""
    def _make_user(username, role='member', password=PASSWORD):
        with app.app_context():
            return UserService.create_user(username, password, role)
    return _make_user


@pytest.fixture
def login(app):
    """返回一个已登录的独立测试客户端"""
    def _login(username, password=PASSWORD):
        c = app.test_client()
        response = c.post('/login', data={'username': username, 'password': password})
        assert response.status_code == 302, response.data
        return c
    return _login


@pytest.fixture
def admin_client(make_user, login):
    make_user('root', role='admin')
    return login('root')
