"""评论服务"""
from jotter.exceptions import AuthenticationError, NotFound, PermissionDenied, StorageError, ValidationError
from jotter.extensions import store
from jotter.models import ANONYMOUS_DISPLAY_NAME, UNKNOWN_DISPLAY_NAME, is_published
from jotter.utils.audit import log_action
from jotter.utils.permissions import can_comment, can_delete_comment, can_view_article


class CommentService:
    """评论服务"""

    @staticmethod
    def _present(comment, user, usernames):
        """附加显示用户名与 canDelete 标记"""
        author_id = comment.get('userId')
        if not author_id:
            username = ANONYMOUS_DISPLAY_NAME
        else:
            username = usernames.get(author_id, UNKNOWN_DISPLAY_NAME)
        return {**comment, 'username': username, 'canDelete': can_delete_comment(user, comment)}

    @staticmethod
    def list_comments(user, article_id):
        article = store.find_article_by_id(article_id)
        if not article:
            raise NotFound('找不到关联的文章。')
        if not can_view_article(user, article):
            raise PermissionDenied('无法加载未发布文章的评论。')

        usernames = {u['id']: u.get('username') for u in store.get_users()}
        return [CommentService._present(c, user, usernames) for c in store.get_comments(article_id)]

    @staticmethod
    def create_comment(user, article_id, body):
        if not can_comment(user):
            raise AuthenticationError('您必须登录才能发表评论。')
        content = body.text('content')
        if not content:
            raise ValidationError('评论内容不能为空。')

        article = store.find_article_by_id(article_id)
        if not article:
            raise NotFound('找不到关联的文章。')
        if not is_published(article):
            raise PermissionDenied('无法评论未发布的文章。')

        comment = store.save_comment({
            'articleId': article_id,
            'userId': user.user_id if user.is_authenticated else None,
            'content': content,
        })
        log_action('comments', 'create', {'id': comment['id'], 'articleId': article_id})
        usernames = {user.user_id: user.username} if user.is_authenticated else {}
        return CommentService._present(comment, user, usernames)

    @staticmethod
    def delete_comment(user, comment_id):
        comment = store.find_comment_by_id(comment_id)
        if not comment:
            raise NotFound('找不到要删除的评论。')
        if not can_delete_comment(user, comment):
            raise PermissionDenied('您无权删除此评论。')
        if not store.delete_comment(comment_id):
            raise StorageError('删除评论失败。')
        log_action('comments', 'delete', {'id': comment_id})
        return comment
