from jotter.extensions import store
from jotter.services.settings_service import SettingsService


def test_init_admin_creates_admin_once(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['init-admin', '--username', 'boss', '--password', 'pw'])

    assert result.exit_code == 0
    assert store.find_user_by_username('boss')['role'] == 'admin'

    again = runner.invoke(args=['init-admin', '--username', 'other', '--password', 'pw'])
    assert again.exit_code == 0
    assert store.find_user_by_username('other') is None


def test_init_admin_rejects_empty_password(app):
    result = app.test_cli_runner().invoke(args=['init-admin', '--password', ' '])

    assert result.exit_code != 0
    assert store.get_users() == []


def test_settings_command(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['settings', '--articles-per-page', '3'])

    assert result.exit_code == 0
    assert 'articlesPerPage' in result.output
    with app.app_context():
        assert SettingsService.articles_per_page() == 3

    bad = runner.invoke(args=['settings', '--articles-per-page', '0'])
    assert bad.exit_code != 0


def test_status_command(app, make_user):
    make_user('root', role='admin')

    result = app.test_cli_runner().invoke(args=['status'])

    assert result.exit_code == 0
    assert '用户 (Users): \t1' in result.output


def test_forge_command(app):
    result = app.test_cli_runner().invoke(args=['forge', '--users', '3', '--articles', '4', '--notes', '2'])

    assert result.exit_code == 0
    assert store.users.count() == 3
    assert store.articles.count() == 4
    assert store.notes.count() == 2


def test_settings_cache_uses_short_timeout(app, monkeypatch):
    app.config['SETTINGS_CACHE_TIMEOUT'] = 7
    calls = []
    monkeypatch.setattr('jotter.services.settings_service.cache.set',
                        lambda key, value, timeout=None: calls.append((key, timeout)))

    with app.app_context():
        SettingsService.get_settings()

    assert calls == [('site_settings', 7)]
