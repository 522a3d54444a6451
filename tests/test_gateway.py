import pytest

from jotter.gateway import DEFAULT_RULE, match_access_rule


@pytest.mark.parametrize('method, path', [
    ('GET', '/'),
    ('GET', '/login'),
    ('POST', '/login'),
    ('POST', '/logout'),
    ('POST', '/register'),
    ('POST', '/api/users/register'),
    ('GET', '/api/articles'),
    ('GET', '/api/articles/article_1_abcde'),
    ('POST', '/api/articles/article_1_abcde/comments'),
    ('GET', '/articles/article_1_abcde'),
    ('GET', '/static/style.css'),
])
def test_public_rules(method, path):
    assert match_access_rule(method, path).public


@pytest.mark.parametrize('method, path', [
    ('POST', '/api/articles'),
    ('PUT', '/api/articles/article_1_abcde'),
    ('GET', '/articles/new'),
    ('GET', '/articles/article_1_abcde/edit'),
    ('GET', '/api/notes'),
    ('GET', '/uploads/u1/a.txt'),
    ('DELETE', '/api/comments/comment_1_abcde'),
    ('GET', '/logout'),
])
def test_authenticated_rules(method, path):
    matched = match_access_rule(method, path)
    assert not matched.public
    assert matched.role is None


@pytest.mark.parametrize('path', ['/admin', '/admin/users', '/api/admin/users', '/api/admin/users/u1/role'])
def test_admin_rules(path):
    assert match_access_rule('GET', path).role == 'admin'


def test_unmatched_path_requires_login():
    assert match_access_rule('GET', '/nowhere') is DEFAULT_RULE


def test_anonymous_api_request_gets_401_json(client):
    response = client.get('/api/notes')

    assert response.status_code == 401
    assert response.get_json()['success'] is False


def test_anonymous_page_request_redirects_to_login(client):
    response = client.get('/notes')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')


def test_non_admin_cannot_reach_admin_api(make_user, login):
    make_user('root', role='admin')
    make_user('mary', role='member')
    mary = login('mary')

    assert mary.get('/api/admin/users').status_code == 403
    assert mary.get('/admin/users').status_code == 403


def test_unknown_route_is_404_after_login(make_user, login):
    make_user('mary', role='member')
    mary = login('mary')

    response = mary.get('/api/nothing-here')
    assert response.status_code == 404
    assert response.get_json()['code'] == 404


def test_public_pages_render_for_anonymous(client):
    assert client.get('/').status_code == 200
    assert client.get('/login').status_code == 200
    assert client.get('/register').status_code == 200
