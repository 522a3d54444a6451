"""用户服务 - 注册、登录、管理员的账号管理"""
from flask import current_app

from jotter.exceptions import (
    AuthenticationError, ConflictError, NotFound, PermissionDenied, StorageError, ValidationError
)
from jotter.extensions import sessions, store
from jotter.models import ADMIN_ROLE, ROLES, public_user
from jotter.utils.audit import log_action
from jotter.utils.security import apply_password, verify_password
from jotter.utils.validators import username_error


def _password_text(password):
    """JSON 请求体中的密码必须是字符串 (缺省视为空)"""
    if password is None:
        return ''
    if not isinstance(password, str):
        raise ValidationError('密码必须是字符串。')
    return password


class UserService:
    """用户服务"""

    @staticmethod
    def admin_count():
        return sum(1 for u in store.get_users() if u.get('role') == ADMIN_ROLE)

    @staticmethod
    def _get_or_404(user_id):
        user = store.find_user_by_id(user_id)
        if not user:
            raise NotFound('找不到该用户。')
        return user

    @staticmethod
    def _persist(record):
        saved = store.save_user(record)
        if saved is None:
            if record.get('id'):
                raise StorageError('保存用户失败。')
            raise ConflictError('用户名已存在。')
        return saved

    # ============== 注册 / 登录 ==============

    @staticmethod
    def register(username, password, confirm_password=None):
        """
        自助注册
        第一个注册的用户成为管理员，其余用户使用 DEFAULT_USER_ROLE
        """
        username = (username or '').strip()
        password = _password_text(password)
        if not username or not password:
            raise ValidationError('用户名和密码不能为空。')
        message = username_error(username)
        if message:
            raise ValidationError(message)
        if confirm_password is not None and confirm_password != password:
            raise ValidationError('两次输入的密码不一致。')
        if store.find_user_by_username(username):
            raise ConflictError('用户名已存在。')

        role = ADMIN_ROLE if not store.get_users() else current_app.config['DEFAULT_USER_ROLE']
        user = UserService._persist(apply_password({'username': username, 'role': role}, password))
        log_action('auth', 'register', {'username': username, 'role': role})
        return public_user(user)

    @staticmethod
    def authenticate(username, password):
        """校验凭证，成功返回用户记录，失败返回 None"""
        user = store.find_user_by_username((username or '').strip())
        if not user:
            return None
        # 管理员不允许空密码登录
        if user.get('role') == ADMIN_ROLE and not password:
            return None
        if not verify_password(user, password):
            return None
        return user

    @staticmethod
    def login(username, password):
        """
        登录并签发会话
        返回: (token, user)
        """
        if not (username or '').strip():
            raise ValidationError('用户名不能为空。')
        user = UserService.authenticate(username, password)
        if user is None:
            log_action('auth', 'login_failed', {'username': username})
            raise AuthenticationError('用户名或密码错误。')
        token = sessions.login(user)
        log_action('auth', 'login_success', {'username': user['username']})
        return token, user

    # ============== 管理员功能 ==============

    @staticmethod
    def list_users():
        return [public_user(u) for u in store.get_users()]

    @staticmethod
    def create_user(username, password=None, role='user'):
        username = (username or '').strip()
        if not username:
            raise ValidationError('用户名不能为空。')
        password = _password_text(password)
        role = role or 'user'
        if role not in ROLES:
            raise ValidationError(f'无效的角色: {role}')
        if role == ADMIN_ROLE and not (password or '').strip():
            raise ValidationError('管理员的密码不能为空。')
        if store.find_user_by_username(username):
            raise ConflictError('用户名已存在。')

        user = UserService._persist(apply_password({'username': username, 'role': role}, password or ''))
        log_action('admin', 'create_user', {'username': username, 'role': role})
        return public_user(user)

    @staticmethod
    def reset_password(user_id, password):
        user = UserService._get_or_404(user_id)
        password = _password_text(password)
        if user.get('role') == ADMIN_ROLE and not (password or '').strip():
            raise ValidationError('管理员的密码不能为空。')

        UserService._persist(apply_password({'id': user_id}, password or ''))
        log_action('admin', 'reset_password', {'username': user['username']})
        return public_user(user)

    @staticmethod
    def change_role(user_id, role):
        """修改角色；不能把最后一个管理员降级。修改后该用户需重新登录"""
        if role not in ROLES:
            raise ValidationError(f'无效的角色: {role}')
        user = UserService._get_or_404(user_id)
        if user.get('role') == ADMIN_ROLE and role != ADMIN_ROLE and UserService.admin_count() <= 1:
            raise PermissionDenied('不能降级最后一个管理员。')

        saved = UserService._persist({'id': user_id, 'role': role})
        sessions.revoke_user(user_id)
        log_action('admin', 'change_role', {'username': user['username'], 'role': role})
        return public_user(saved)

    @staticmethod
    def delete_user(user_id, acting_user):
        if user_id == acting_user.user_id:
            raise PermissionDenied('管理员不能删除自己的账号。')
        user = UserService._get_or_404(user_id)
        if user.get('role') == ADMIN_ROLE and UserService.admin_count() <= 1:
            raise PermissionDenied('不能删除最后一个管理员。')

        if not store.delete_user(user_id):
            raise StorageError('删除用户失败。')
        revoked = sessions.revoke_user(user_id)
        log_action('admin', 'delete_user', {'username': user['username'], 'revoked_sessions': revoked})
        return user
