import os

from flask import send_file
from flask_login import current_user, login_required

from jotter.blueprints.uploads import uploads_bp
from jotter.exceptions import NotFound, PermissionDenied
from jotter.extensions import store
from jotter.utils.permissions import can_access_note, can_view_article, is_admin


def _find_owner_record(relative_path):
    """按附件路径找到所属的记事或文章"""
    for note in store.get_notes():
        if (note.get('attachment') or {}).get('path') == relative_path:
            return 'note', note
    for article in store.get_articles():
        if (article.get('attachment') or {}).get('path') == relative_path:
            return 'article', article
    return None, None


def _can_download(kind, record):
    if is_admin(current_user):
        return True
    if kind == 'note':
        return can_access_note(current_user, record)
    if kind == 'article':
        return can_view_article(current_user, record)
    return False


@uploads_bp.route('/uploads/<user_id>/<path:filename>')
@login_required
def download(user_id, filename):
    """下载附件：记事附件仅作者与管理员，文章附件对可查看该文章的用户开放"""
    relative_path = f"{user_id}/{filename}"
    full_path = store.attachment_path(relative_path)
    if full_path is None:
        raise PermissionDenied('禁止访问此文件路径！')

    kind, record = _find_owner_record(relative_path)
    if not _can_download(kind, record):
        raise PermissionDenied('您无权访问此附件。')
    if not os.path.isfile(full_path):
        raise NotFound('请求的附件不存在。')

    attachment = record['attachment'] if record else {}
    return send_file(
        full_path,
        mimetype=attachment.get('mimeType'),
        download_name=attachment.get('originalName') or os.path.basename(full_path),
    )
