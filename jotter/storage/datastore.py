"""
DataStore: 用户 / 记事 / 文章 / 评论 / 站点设置的统一存取入口
以 Flask 扩展方式初始化 (store.init_app(app))，负责级联删除
"""
import json
import logging
import os
import shutil

from jotter.exceptions import StorageError
from .json_store import JsonCollection

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    'articlesPerPage': 10,
}


def normalize_settings(settings):
    """合并默认值并校正 articlesPerPage 为正整数"""
    merged = {**DEFAULT_SETTINGS, **(settings or {})}
    try:
        per_page = int(merged.get('articlesPerPage'))
    except (TypeError, ValueError):
        per_page = DEFAULT_SETTINGS['articlesPerPage']
    if per_page < 1:
        per_page = DEFAULT_SETTINGS['articlesPerPage']
    merged['articlesPerPage'] = per_page
    return merged


class DataStore:

    def __init__(self, app=None):
        self.data_dir = None
        self.upload_folder = None
        self.users = None
        self.notes = None
        self.articles = None
        self.comments = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.configure(app.config['DATA_DIR'], app.config['UPLOAD_FOLDER'])
        app.extensions['jotter.store'] = self

    def configure(self, data_dir, upload_folder):
        self.data_dir = data_dir
        self.upload_folder = upload_folder
        os.makedirs(data_dir, exist_ok=True)
        os.makedirs(upload_folder, exist_ok=True)
        self.users = JsonCollection(os.path.join(data_dir, 'users.json'), 'user')
        self.notes = JsonCollection(os.path.join(data_dir, 'notes.json'), 'note')
        self.articles = JsonCollection(os.path.join(data_dir, 'articles.json'), 'article')
        self.comments = JsonCollection(os.path.join(data_dir, 'comments.json'), 'comment',
                                       track_updates=False)

    @property
    def settings_path(self):
        return os.path.join(self.data_dir, 'settings.json')

    # ========== 附件文件 ==========
    def user_upload_dir(self, user_id):
        return os.path.join(self.upload_folder, user_id)

    def attachment_path(self, relative_path):
        """
        将存储相对路径转换为绝对路径
        越出上传根目录的路径返回 None
        """
        root = os.path.realpath(self.upload_folder)
        full = os.path.realpath(os.path.join(root, *relative_path.split('/')))
        if full != root and not full.startswith(root + os.sep):
            return None
        return full

    def remove_attachment(self, attachment):
        """删除附件物理文件，失败只记录日志"""
        if not attachment or not attachment.get('path'):
            return False
        full_path = self.attachment_path(attachment['path'])
        if not full_path or not os.path.exists(full_path):
            return False
        try:
            os.remove(full_path)
            return True
        except OSError as e:
            logger.error('删除附件 %s 失败: %s', full_path, e)
            return False

    # ========== 用户 ==========
    def get_users(self):
        return self.users.all()

    def find_user_by_id(self, user_id):
        return self.users.find(user_id)

    def find_user_by_username(self, username):
        for user in self.users.all():
            if user.get('username') == username:
                return user
        return None

    def save_user(self, record):
        """保存用户；用户名与其他用户冲突时返回 None"""
        username = record.get('username')
        if username is not None:
            conflict = self.find_user_by_username(username)
            if conflict and conflict.get('id') != record.get('id'):
                logger.error('保存用户错误：用户名 "%s" 已被用户 %s 使用', username, conflict['id'])
                return None
        return self.users.save(record)

    def delete_user(self, user_id):
        """删除用户并级联删除其记事、文章、附件、评论和上传目录"""
        if not self.users.delete(user_id):
            return False

        for note in self.notes.filter(lambda n: n.get('userId') == user_id):
            self.remove_attachment(note.get('attachment'))
        self.notes.remove_where(lambda n: n.get('userId') == user_id)

        article_ids = set()
        for article in self.articles.filter(lambda a: a.get('userId') == user_id):
            self.remove_attachment(article.get('attachment'))
            article_ids.add(article['id'])
        self.articles.remove_where(lambda a: a.get('userId') == user_id)

        removed = self.comments.remove_where(
            lambda c: c.get('articleId') in article_ids or c.get('userId') == user_id
        )
        if removed:
            logger.info('已删除用户 %s 相关的 %d 条评论', user_id, removed)

        upload_dir = self.user_upload_dir(user_id)
        if os.path.isdir(upload_dir):
            try:
                shutil.rmtree(upload_dir)
            except OSError as e:
                logger.error('删除用户 %s 的上传目录 %s 失败: %s', user_id, upload_dir, e)
        return True

    # ========== 记事 ==========
    def get_notes(self):
        return self.notes.all()

    def find_note_by_id(self, note_id):
        return self.notes.find(note_id)

    def save_note(self, record):
        return self.notes.save(record)

    def delete_note(self, note_id):
        note = self.notes.find(note_id)
        if not note:
            return False
        self.remove_attachment(note.get('attachment'))
        return self.notes.delete(note_id)

    # ========== 文章 ==========
    def get_articles(self):
        return self.articles.all()

    def find_article_by_id(self, article_id):
        return self.articles.find(article_id)

    def save_article(self, record):
        data = dict(record)
        if not data.get('id'):
            data.setdefault('isPinned', False)
        elif data.get('isPinned') is None:
            # 未显式提供时保留原置顶状态
            data.pop('isPinned', None)
        return self.articles.save(data)

    def delete_article(self, article_id):
        article = self.articles.find(article_id)
        if not article:
            return False
        self.remove_attachment(article.get('attachment'))
        removed = self.comments.remove_where(lambda c: c.get('articleId') == article_id)
        if removed:
            logger.info('已删除文章 %s 的 %d 条评论', article_id, removed)
        return self.articles.delete(article_id)

    # ========== 评论 ==========
    def get_comments(self, article_id):
        comments = self.comments.filter(lambda c: c.get('articleId') == article_id)
        return sorted(comments, key=lambda c: c.get('createdAt') or '')

    def find_comment_by_id(self, comment_id):
        return self.comments.find(comment_id)

    def save_comment(self, record):
        return self.comments.save(record)

    def delete_comment(self, comment_id):
        return self.comments.delete(comment_id)

    # ========== 站点设置 ==========
    def get_settings(self):
        path = self.settings_path
        if not os.path.exists(path):
            self._write_settings(DEFAULT_SETTINGS)
            return dict(DEFAULT_SETTINGS)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
            stored = json.loads(content) if content.strip() else {}
        except (OSError, ValueError) as e:
            logger.error('读取设置文件 %s 失败: %s', path, e)
            stored = {}
        if not isinstance(stored, dict):
            stored = {}
        return normalize_settings(stored)

    def save_settings(self, changes):
        settings = normalize_settings({**self.get_settings(), **(changes or {})})
        self._write_settings(settings)
        return settings

    def _write_settings(self, settings):
        try:
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(settings, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error('写入设置文件失败: %s', e)
            raise StorageError('写入设置文件失败') from e
