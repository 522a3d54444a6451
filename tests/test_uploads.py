import io
import os

import pytest

from jotter.extensions import store


@pytest.fixture
def note_file(make_user, login):
    make_user('mary')
    mary = login('mary')
    note = mary.post('/api/notes', data={
        'title': 'n', 'content': 'c', 'attachment': (io.BytesIO(b'note bytes'), 'plan.txt'),
    }, content_type='multipart/form-data').get_json()
    return mary, '/uploads/' + note['attachment']['path']


def test_owner_downloads_note_attachment(note_file):
    mary, url = note_file

    response = mary.get(url)

    assert response.status_code == 200
    assert response.data == b'note bytes'
    assert 'plan.txt' in response.headers['Content-Disposition']


def test_other_user_cannot_download_note_attachment(note_file, make_user, login, admin_client):
    _, url = note_file
    make_user('mike')

    assert login('mike').get(url).status_code == 403
    assert admin_client.get(url).status_code == 200


def test_download_requires_login(note_file, client):
    _, url = note_file

    response = client.get(url)

    assert response.status_code == 302
    assert '/login' in response.headers['Location']


def test_article_attachment_follows_article_visibility(make_user, login):
    make_user('carl', role='consultant')
    make_user('mary')
    carl = login('carl')
    article = carl.post('/api/articles', data={
        'title': 'a', 'content': 'c', 'status': 'published',
        'attachment': (io.BytesIO(b'pub'), 'pub.txt'),
    }, content_type='multipart/form-data').get_json()
    draft = carl.post('/api/articles', data={
        'title': 'd', 'content': 'c', 'status': 'draft',
        'attachment': (io.BytesIO(b'draft'), 'draft.txt'),
    }, content_type='multipart/form-data').get_json()
    mary = login('mary')

    assert mary.get('/uploads/' + article['attachment']['path']).status_code == 200
    assert mary.get('/uploads/' + draft['attachment']['path']).status_code == 403
    assert carl.get('/uploads/' + draft['attachment']['path']).status_code == 200


def test_path_traversal_is_forbidden(admin_client, tmp_path):
    secret = tmp_path / 'data' / 'users.json'
    assert secret.exists()

    response = admin_client.get('/uploads/..%2Fdata/users.json')

    assert response.status_code == 403


def test_missing_file_is_404(note_file, admin_client):
    mary, url = note_file
    os.remove(store.attachment_path(url[len('/uploads/'):]))

    assert mary.get(url).status_code == 404
    assert admin_client.get('/uploads/nobody/nothing.txt').status_code == 404
