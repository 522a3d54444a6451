import io
import os
from types import SimpleNamespace

import pytest

from jotter import create_app
from jotter.exceptions import PermissionDenied
from jotter.extensions import sessions, store
from jotter.services.user_service import UserService


def find_user(client, username):
    return next(u for u in client.get('/api/admin/users').get_json() if u['username'] == username)


def test_list_users_hides_secrets(admin_client, make_user):
    make_user('mary')

    users = admin_client.get('/api/admin/users').get_json()

    assert sorted(u['username'] for u in users) == ['mary', 'root']
    assert all(set(u) == {'id', 'username', 'role', 'createdAt'} for u in users)


def test_create_user(admin_client, login):
    response = admin_client.post('/api/admin/users', json={'username': 'carl', 'password': 'pw', 'role': 'consultant'})

    assert response.status_code == 201
    assert response.get_json()['role'] == 'consultant'
    login('carl', 'pw')


def test_create_user_defaults_and_validation(admin_client, login):
    created = admin_client.post('/api/admin/users', json={'username': 'plain'}).get_json()
    assert created['role'] == 'user'
    # 未设置密码的普通用户可以空密码登录
    login('plain', '')

    assert admin_client.post('/api/admin/users', json={'username': 'plain'}).status_code == 409
    assert admin_client.post('/api/admin/users', json={'username': ' '}).status_code == 400
    assert admin_client.post('/api/admin/users', json={'username': 'x', 'role': 'god'}).status_code == 400
    assert admin_client.post('/api/admin/users', json={'username': 'boss', 'role': 'admin'}).status_code == 400
    assert admin_client.post('/api/admin/users', json={'username': 'y', 'password': 123}).status_code == 400


def test_reset_password(admin_client, make_user, login, app):
    mary = make_user('mary')

    response = admin_client.put(f"/api/admin/users/{mary['id']}/password", json={'password': 'newpass'})

    assert response.status_code == 200
    assert app.test_client().post('/login', data={'username': 'mary', 'password': 'secret123'}).status_code == 401
    login('mary', 'newpass')
    assert admin_client.put('/api/admin/users/user_0_none0/password', json={'password': 'x'}).status_code == 404


def test_reset_admin_password_cannot_be_empty(admin_client):
    root = find_user(admin_client, 'root')

    response = admin_client.put(f"/api/admin/users/{root['id']}/password", json={'password': ''})

    assert response.status_code == 400


def test_change_role_revokes_sessions(admin_client, make_user, login):
    mary = make_user('mary')
    mary_client = login('mary')
    assert mary_client.get('/api/notes').status_code == 200

    response = admin_client.put(f"/api/admin/users/{mary['id']}/role", json={'role': 'consultant'})

    assert response.status_code == 200
    assert response.get_json()['role'] == 'consultant'
    assert mary_client.get('/api/notes').status_code == 401
    assert admin_client.put(f"/api/admin/users/{mary['id']}/role", json={'role': 'boss'}).status_code == 400


def test_cannot_demote_last_admin(admin_client, make_user):
    root = find_user(admin_client, 'root')

    response = admin_client.put(f"/api/admin/users/{root['id']}/role", json={'role': 'member'})

    assert response.status_code == 403
    assert store.find_user_by_id(root['id'])['role'] == 'admin'

    # 有第二个管理员后可以降级
    make_user('second', role='admin')
    assert admin_client.put(f"/api/admin/users/{root['id']}/role", json={'role': 'member'}).status_code == 200


def test_cannot_delete_self(admin_client):
    root = find_user(admin_client, 'root')

    assert admin_client.delete(f"/api/admin/users/{root['id']}").status_code == 403
    assert store.find_user_by_id(root['id']) is not None


def test_cannot_delete_last_admin(app, make_user):
    root = make_user('root', role='admin')
    acting = SimpleNamespace(user_id='user_other')

    with app.app_context():
        with pytest.raises(PermissionDenied):
            UserService.delete_user(root['id'], acting)
    assert store.find_user_by_id(root['id']) is not None


def test_delete_user_cascades(admin_client, make_user, login):
    carl = make_user('carl', role='consultant')
    carl_client = login('carl')
    article = carl_client.post('/api/articles', data={
        'title': 'T', 'content': 'c', 'status': 'published',
        'attachment': (io.BytesIO(b'data'), 'f.txt'),
    }, content_type='multipart/form-data').get_json()
    carl_client.post('/api/notes', json={'title': 'n', 'content': 'c'})
    admin_client.post(f"/api/articles/{article['id']}/comments", json={'content': 'on carl article'})
    upload_dir = store.user_upload_dir(carl['id'])
    assert os.path.isdir(upload_dir)

    response = admin_client.delete(f"/api/admin/users/{carl['id']}")

    assert response.status_code == 200
    assert store.find_user_by_id(carl['id']) is None
    assert store.get_articles() == []
    assert store.get_notes() == []
    assert store.comments.count() == 0
    assert not os.path.exists(upload_dir)
    assert carl_client.get('/api/notes').status_code == 401
    assert admin_client.delete(f"/api/admin/users/{carl['id']}").status_code == 404


def test_admin_api_requires_admin(make_user, login, client):
    make_user('root', role='admin')
    make_user('mary')

    assert client.get('/api/admin/users').status_code == 401
    assert login('mary').get('/api/admin/users').status_code == 403
    assert login('mary').get('/admin/users').status_code == 403


def test_admin_pages(admin_client, make_user):
    make_user('mary')

    assert admin_client.get('/admin').status_code == 302
    page = admin_client.get('/admin/users')
    assert page.status_code == 200
    assert 'mary' in page.get_data(as_text=True)


def test_stats(tmp_path):
    app = create_app('testing', {
        'DATA_DIR': str(tmp_path / 'data'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'TRAFFIC_LOG_ENABLED': True,
    })
    with app.app_context():
        UserService.create_user('root', 'pw', 'admin')
    c = app.test_client()
    c.get('/', headers={'Referer': 'https://example.com/some/page'})
    c.get('/')
    c.get('/static/style.css')
    c.post('/login', data={'username': 'root', 'password': 'pw'})

    stats = c.get('/api/admin/stats').get_json()
    sessions.clear()

    # 统计请求本身在响应之后才写入日志
    assert stats['totalViews'] == 3
    assert stats['totalViewsLog'] == 3
    assert stats['uniqueVisitors'] == 1
    assert stats['byPage'] == {'/': 2, '/login': 1}
    assert stats['byReferrer'] == {'(direct)': 2, 'example.com': 1}
    assert sum(stats['byDate'].values()) == 3
