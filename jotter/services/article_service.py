"""文章服务 - 列表/搜索/分页、详情、发布与编辑"""
import math

from jotter.exceptions import NotFound, PermissionDenied, StorageError, ValidationError
from jotter.extensions import store
from jotter.models import (
    ARTICLE_STATUSES, DEFAULT_CATEGORY, STATUS_DRAFT, STATUS_PUBLISHED, UNKNOWN_DISPLAY_NAME,
    article_category
)
from jotter.services.settings_service import SettingsService
from jotter.utils.audit import log_action
from jotter.utils.file_helper import has_upload, save_attachment, update_attachment
from jotter.utils.permissions import (
    can_create_article, can_modify_article, can_view_article, is_admin
)
from jotter.utils.security import strip_tags


def _owner_names():
    return {u['id']: u.get('username') for u in store.get_users()}


def _category(body):
    """分类按原样保存；空白视为未填写"""
    category = body.raw('category')
    return category if category and category.strip() else None


def _matches(article, term):
    """标题、去标签后的正文、分类 任一包含关键字 (不区分大小写)"""
    return (
        term in str(article.get('title') or '').lower()
        or term in strip_tags(article.get('content')).lower()
        or term in str(article.get('category') or '').lower()
    )


class ArticleService:
    """文章服务"""

    @staticmethod
    def visible_articles(user):
        """
        按角色过滤可见文章
        admin: 全部; consultant: 自己的全部 + 他人已发布; 其他: 仅已发布
        """
        articles = store.get_articles()
        if is_admin(user):
            return articles
        if user.role == 'consultant':
            return [
                a for a in articles
                if a.get('userId') == user.user_id or a.get('status') == STATUS_PUBLISHED
            ]
        return [a for a in articles if a.get('status') == STATUS_PUBLISHED]

    @staticmethod
    def list_articles(user, search=None, category=None, page=1):
        articles = ArticleService.visible_articles(user)

        # 分类列表基于角色可见的文章，在搜索之前提取
        categories = sorted({article_category(a) for a in articles})

        if category and category != 'all':
            articles = [a for a in articles if article_category(a) == category]

        term = (search or '').strip().lower()
        if term:
            articles = [a for a in articles if _matches(a, term)]

        per_page = SettingsService.articles_per_page()
        page = max(page or 1, 1)
        total = len(articles)
        start = (page - 1) * per_page

        articles.sort(key=lambda a: a.get('updatedAt') or '', reverse=True)
        owners = _owner_names()
        items = [
            {**a, 'ownerUsername': owners.get(a.get('userId'), UNKNOWN_DISPLAY_NAME)}
            for a in articles[start:start + per_page]
        ]
        return {
            'articles': items,
            'totalPages': math.ceil(total / per_page),
            'currentPage': page,
            'totalArticles': total,
            'categories': categories,
        }

    @staticmethod
    def get_article(user, article_id):
        article = store.find_article_by_id(article_id)
        if not article:
            raise NotFound('找不到指定的文章。')
        if not can_view_article(user, article):
            raise PermissionDenied('此文章尚未发布，您无权查看。')
        return article

    @staticmethod
    def get_article_for_edit(user, article_id):
        article = store.find_article_by_id(article_id)
        if not article:
            raise NotFound('找不到指定的文章。')
        if not can_modify_article(user, article):
            raise PermissionDenied('您只能编辑自己的文章。')
        return article

    @staticmethod
    def owner_username(article):
        owner = store.find_user_by_id(article.get('userId'))
        return owner['username'] if owner else UNKNOWN_DISPLAY_NAME

    @staticmethod
    def _validate(body, status_required):
        title = body.text('title')
        if not title or body.raw('content') is None:
            raise ValidationError('标题和内容不能为空。')
        status = body.text('status')
        if status_required:
            status = status or STATUS_DRAFT
        if status and status not in ARTICLE_STATUSES:
            raise ValidationError('无效的状态值。')
        return title, status

    @staticmethod
    def create_article(user, body):
        if not can_create_article(user):
            raise PermissionDenied('您没有权限发表文章。')
        title, status = ArticleService._validate(body, status_required=True)
        uploaded = body.files.get('attachment')

        data = {
            'userId': user.user_id,
            'title': title,
            'content': body.raw('content'),
            'category': _category(body) or DEFAULT_CATEGORY,
            'status': status,
            'attachment': save_attachment(uploaded, user.user_id) if has_upload(uploaded) else None,
        }
        if 'isPinned' in body.form:
            data['isPinned'] = body.flag('isPinned')
        article = store.save_article(data)
        log_action('articles', 'create', {'id': article['id'], 'title': title, 'status': status})
        return article

    @staticmethod
    def update_article(user, article_id, body):
        existing = store.find_article_by_id(article_id)
        if not existing:
            raise NotFound('找不到要更新的文章。')
        if not can_modify_article(user, existing):
            raise PermissionDenied('您无权修改此文章。')
        title, status = ArticleService._validate(body, status_required=False)

        attachment = update_attachment(
            existing.get('attachment'),
            body.files.get('attachment'),
            body.flag('removeAttachment'),
            existing['userId'],
        )
        article = store.save_article({
            'id': article_id,
            'title': title,
            'content': body.raw('content'),
            'category': _category(body) or existing.get('category') or DEFAULT_CATEGORY,
            'status': status or existing.get('status') or STATUS_DRAFT,
            'isPinned': body.flag('isPinned') if 'isPinned' in body.form else None,
            'attachment': attachment,
        })
        if article is None:
            raise StorageError('更新文章失败。')
        log_action('articles', 'update', {'id': article_id})
        return article

    @staticmethod
    def delete_article(user, article_id):
        article = store.find_article_by_id(article_id)
        if not article:
            raise NotFound('找不到要删除的文章。')
        if not can_modify_article(user, article):
            raise PermissionDenied('您无权删除此文章。')
        # 附件与评论一并删除
        if not store.delete_article(article_id):
            raise StorageError('删除文章失败。')
        log_action('articles', 'delete', {'id': article_id})
        return article
