"""
权限控制工具
角色 x 所有权 判定函数，以及视图装饰器
"""
from functools import wraps

from flask import current_app
from flask_login import current_user

from jotter.exceptions import AuthenticationError, PermissionDenied
from jotter.models import ADMIN_ROLE, is_published

# 可以发布文章的角色
ARTICLE_AUTHOR_ROLES = ('admin', 'consultant')


def admin_required(f):
    """
    管理员权限装饰器
    未登录抛出 401，非管理员抛出 403
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationError('请先登录')
        if not is_admin():
            raise PermissionDenied('需要管理员权限')
        return f(*args, **kwargs)
    return decorated_function


def is_admin(user=None):
    """检查用户 (默认当前用户) 是否是管理员"""
    user = user if user is not None else current_user
    return bool(user.is_authenticated and user.role == ADMIN_ROLE)


def is_owner(user, record):
    return bool(user.is_authenticated and record.get('userId') == user.user_id)


# ---------- 文章 ----------
def can_view_article(user, article):
    """已发布文章所有人可见；草稿仅作者和管理员可见"""
    return is_published(article) or is_admin(user) or is_owner(user, article)


def can_create_article(user):
    return user.is_authenticated and user.role in ARTICLE_AUTHOR_ROLES


def can_modify_article(user, article):
    if is_admin(user):
        return True
    return user.role == 'consultant' and is_owner(user, article)


# ---------- 记事 ----------
def can_access_note(user, note):
    return is_admin(user) or is_owner(user, note)


# ---------- 评论 ----------
def can_comment(user):
    if user.is_authenticated:
        return True
    return bool(current_app.config.get('ALLOW_ANONYMOUS_COMMENTS'))


def can_delete_comment(user, comment):
    if is_admin(user):
        return True
    # 匿名评论 (userId 为空) 只有管理员能删除
    return bool(comment.get('userId')) and is_owner(user, comment)
