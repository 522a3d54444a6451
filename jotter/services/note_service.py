"""记事服务 - 私人记事的增删改查"""
from jotter.exceptions import NotFound, PermissionDenied, StorageError
from jotter.extensions import store
from jotter.models import UNKNOWN_DISPLAY_NAME
from jotter.utils.audit import log_action
from jotter.utils.file_helper import has_upload, save_attachment, update_attachment
from jotter.utils.permissions import can_access_note, is_admin


def _by_updated_desc(records):
    return sorted(records, key=lambda r: r.get('updatedAt') or '', reverse=True)


class NoteService:
    """记事服务"""

    @staticmethod
    def list_notes(user):
        """管理员看到所有记事 (附带 ownerUsername)，其他用户只看到自己的"""
        if is_admin(user):
            usernames = {u['id']: u.get('username') for u in store.get_users()}
            notes = [
                {**note, 'ownerUsername': usernames.get(note.get('userId'), UNKNOWN_DISPLAY_NAME)}
                for note in store.get_notes()
            ]
        else:
            notes = [n for n in store.get_notes() if n.get('userId') == user.user_id]
        return _by_updated_desc(notes)

    @staticmethod
    def get_note(user, note_id):
        note = store.find_note_by_id(note_id)
        if not note:
            raise NotFound('找不到指定的记事。')
        if not can_access_note(user, note):
            raise PermissionDenied('您无权查看此记事。')
        return note

    @staticmethod
    def create_note(user, body):
        title, content = body.require('title', 'content')
        uploaded = body.files.get('attachment')

        data = {
            'userId': user.user_id,
            'title': title,
            'content': body.raw('content'),
            'attachment': save_attachment(uploaded, user.user_id) if has_upload(uploaded) else None,
        }
        note = store.save_note(data)
        log_action('notes', 'create', {'id': note['id'], 'title': title})
        return note

    @staticmethod
    def update_note(user, note_id, body):
        existing = store.find_note_by_id(note_id)
        if not existing:
            raise NotFound('找不到要更新的记事。')
        if not can_access_note(user, existing):
            raise PermissionDenied('您无权修改此记事。')
        title, _ = body.require('title', 'content')

        # userId 不可变，附件写入原作者的目录
        attachment = update_attachment(
            existing.get('attachment'),
            body.files.get('attachment'),
            body.flag('removeAttachment'),
            existing['userId'],
        )
        note = store.save_note({
            'id': note_id,
            'title': title,
            'content': body.raw('content'),
            'attachment': attachment,
        })
        if note is None:
            raise StorageError('更新记事失败。')
        log_action('notes', 'update', {'id': note_id})
        return note

    @staticmethod
    def delete_note(user, note_id):
        note = store.find_note_by_id(note_id)
        if not note:
            raise NotFound('找不到要删除的记事。')
        if not can_access_note(user, note):
            raise PermissionDenied('您无权删除此记事。')
        if not store.delete_note(note_id):
            raise StorageError('删除记事失败。')
        log_action('notes', 'delete', {'id': note_id})
        return note
