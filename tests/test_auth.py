from jotter.extensions import sessions, store

PASSWORD = 'secret123'


def register(client, username, password=PASSWORD, **extra):
    return client.post('/api/users/register', json={'username': username, 'password': password, **extra})


def session_of(client):
    cookie = client.get_cookie('sessionId')
    return sessions.authenticate(cookie.value) if cookie else None


def test_first_registered_user_becomes_admin(client, app):
    """
    [Integration] 第一个注册的用户是管理员，之后的用户使用默认角色
    """
    first = register(client, 'alice')
    second = register(client, 'bob')

    assert first.status_code == 201
    assert first.get_json()['role'] == 'admin'
    assert second.get_json()['role'] == app.config['DEFAULT_USER_ROLE'] == 'member'
    assert 'hashedPassword' not in first.get_json()
    assert 'salt' not in first.get_json()


def test_register_validation(client):
    assert register(client, 'alice').status_code == 201
    assert register(client, 'alice').status_code == 409
    assert register(client, '   ').status_code == 400
    assert register(client, 'carol', password='').status_code == 400
    assert register(client, 'dave', confirmPassword='different').status_code == 400


def test_api_register_applies_username_rules(client):
    for bad in ('a', 'x' * 33, 'bad name', 'semi;colon', '<script>'):
        response = register(client, bad)
        assert response.status_code == 400, bad
    assert store.get_users() == []

    assert register(client, '张三.dev-1').status_code == 201


def test_register_rejects_invalid_json(client):
    response = client.post('/api/users/register', data='{oops', content_type='application/json')

    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_login_sets_cookie_and_session_role(client):
    """
    [Integration] 注册 -> 登录，会话中的角色与存储的角色一致
    """
    register(client, 'alice')
    register(client, 'bob')

    response = client.post('/login', data={'username': 'bob', 'password': PASSWORD})

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')
    set_cookie = next(c for c in response.headers.getlist('Set-Cookie') if c.startswith('sessionId='))
    assert 'sessionId=' in set_cookie
    assert 'HttpOnly' in set_cookie
    assert 'SameSite=Lax' in set_cookie
    assert 'Max-Age=86400' in set_cookie
    session = session_of(client)
    assert session.username == 'bob'
    assert session.role == store.find_user_by_username('bob')['role']


def test_login_failures(client):
    register(client, 'alice')

    assert client.post('/login', data={'username': 'alice', 'password': 'wrong'}).status_code == 401
    assert client.post('/login', data={'username': 'nobody', 'password': 'x'}).status_code == 401
    assert client.post('/login', data={'username': '', 'password': 'x'}).status_code == 400
    assert client.get_cookie('sessionId') is None


def test_member_with_empty_password_can_login(make_user, login):
    make_user('guest', role='user', password='')

    guest = login('guest', password='')
    assert guest.get('/api/notes').status_code == 200


def test_admin_cannot_login_with_empty_password(make_user, client):
    make_user('root', role='admin')

    assert client.post('/login', data={'username': 'root', 'password': ''}).status_code == 401


def test_logout_clears_session(make_user, login):
    make_user('mary')
    mary = login('mary')
    token = mary.get_cookie('sessionId').value

    response = mary.post('/logout')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')
    assert sessions.authenticate(token) is None
    assert mary.get('/api/notes').status_code == 401


def test_register_page_flow(client):
    response = client.post('/register', data={
        'username': 'alice', 'password': PASSWORD, 'confirm_password': PASSWORD,
    })
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')
    assert store.find_user_by_username('alice')['role'] == 'admin'

    mismatch = client.post('/register', data={
        'username': 'bob', 'password': PASSWORD, 'confirm_password': 'other',
    })
    assert mismatch.status_code == 400
    assert store.find_user_by_username('bob') is None


def test_logged_in_user_is_redirected_from_login_page(make_user, login):
    make_user('mary')
    mary = login('mary')

    assert mary.get('/login').status_code == 302
