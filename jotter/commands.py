import random

import click
from flask.cli import with_appcontext

from jotter.exceptions import JotterException
from jotter.extensions import store
from jotter.models import ADMIN_ROLE, STATUS_DRAFT, STATUS_PUBLISHED
from jotter.services.settings_service import SettingsService
from jotter.services.user_service import UserService
from jotter.utils.fake_gen import fake


@click.command('status')
@with_appcontext
def status():
    """
    [验证指令] 查看当前数据文件中的数据统计。
    """
    click.echo(click.style('📊 Jotter 数据状态:', fg='cyan', bold=True))
    click.echo(f" - 数据目录: \t{store.data_dir}")
    click.echo(f" - 上传目录: \t{store.upload_folder}")
    click.echo(f" - 用户 (Users): \t{store.users.count()}")
    click.echo(f" - 记事 (Notes): \t{store.notes.count()}")
    click.echo(f" - 文章 (Articles): \t{store.articles.count()}")
    click.echo(f" - 评论 (Comments): \t{store.comments.count()}")
    click.echo(f" - 每页文章数: \t{SettingsService.get_settings()['articlesPerPage']}")

    if UserService.admin_count() > 0:
        click.echo(click.style('✔ 数据文件正常，已存在管理员。', fg='green'))
    else:
        click.echo(click.style('⚠ 尚无管理员，请注册第一个用户或运行 flask init-admin。', fg='yellow'))


@click.command('init-admin')
@click.option('--username', default='admin', help='管理员用户名 (默认 admin)')
@click.password_option(help='管理员密码')
@with_appcontext
def init_admin(username, password):
    """
    创建管理员账号 (仅在没有任何管理员时执行)
    """
    if UserService.admin_count() > 0:
        click.echo(click.style('⚠ 已存在管理员，跳过创建。', fg='yellow'))
        return
    try:
        user = UserService.create_user(username, password, ADMIN_ROLE)
    except JotterException as e:
        raise click.ClickException(e.message)
    click.echo(click.style(f"✔ 管理员 {user['username']} 创建完成！", fg='green', bold=True))


@click.command('settings')
@click.option('--articles-per-page', type=int, default=None, help='首页每页显示的文章数')
@with_appcontext
def settings(articles_per_page):
    """
    查看或修改站点设置
    运行中的服务最多在 SETTINGS_CACHE_TIMEOUT 秒 (默认 30) 后读到新设置。
    """
    changes = {}
    if articles_per_page is not None:
        if articles_per_page < 1:
            raise click.BadParameter('必须是正整数', param_hint='--articles-per-page')
        changes['articlesPerPage'] = articles_per_page

    current = SettingsService.update_settings(changes) if changes else SettingsService.get_settings()
    for key, value in current.items():
        click.echo(f" - {key}: \t{value}")
    if changes:
        click.echo(click.style('✔ 设置已保存。', fg='green'))


@click.command('forge')
@click.option('--users', default=5, help='生成的用户数量')
@click.option('--articles', default=20, help='生成的文章数量')
@click.option('--notes', default=10, help='生成的记事数量')
@with_appcontext
def forge(users, articles, notes):
    """
    [演示数据] 生成用户、记事、文章和评论。
    新用户密码均为 password；已有数据不会被清除。
    """
    click.echo(click.style('⚡ 正在生成演示数据...', fg='cyan', bold=True))

    created = []
    for _ in range(users):
        role = random.choice(['consultant', 'member', 'user'])
        username = fake.unique.user_name()
        try:
            created.append(UserService.create_user(username, 'password', role))
        except JotterException as e:
            click.echo(click.style(f'  跳过用户 {username}: {e.message}', fg='yellow'))
    if not created:
        click.echo(click.style('✘ 没有可用的用户，终止。', fg='red'))
        return
    click.echo(f'  → 已创建 {len(created)} 个用户')

    authors = [u for u in created if u['role'] == 'consultant'] or created
    article_ids = []
    for _ in range(articles):
        article = store.save_article({
            'userId': random.choice(authors)['id'],
            'title': fake.article_title(),
            'content': fake.html_paragraphs(random.randint(2, 5)),
            'category': fake.article_category(),
            'status': random.choice([STATUS_PUBLISHED, STATUS_PUBLISHED, STATUS_DRAFT]),
            'attachment': None,
        })
        if article['status'] == STATUS_PUBLISHED:
            article_ids.append(article['id'])
    click.echo(f'  → 已创建 {articles} 篇文章')

    for _ in range(notes):
        store.save_note({
            'userId': random.choice(created)['id'],
            'title': fake.sentence(nb_words=4),
            'content': fake.html_paragraphs(1),
            'attachment': None,
        })
    click.echo(f'  → 已创建 {notes} 条记事')

    comment_count = 0
    for article_id in article_ids:
        for _ in range(random.randint(0, 4)):
            author = random.choice(created + [None])
            store.save_comment({
                'articleId': article_id,
                'userId': author['id'] if author else None,
                'content': fake.sentence(),
            })
            comment_count += 1
    click.echo(f'  → 已创建 {comment_count} 条评论')

    click.echo(click.style('✔ 演示数据生成完成！', fg='green', bold=True))
