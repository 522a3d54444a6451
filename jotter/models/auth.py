from dataclasses import dataclass

from flask_login import UserMixin, AnonymousUserMixin

# 可持久化的角色；anonymous 只是未登录时的逻辑身份
ROLES = ('admin', 'consultant', 'member', 'user')
ADMIN_ROLE = 'admin'
ANONYMOUS_ROLE = 'anonymous'

ANONYMOUS_DISPLAY_NAME = '匿名用户'
UNKNOWN_DISPLAY_NAME = '未知用户'


@dataclass(eq=False)
class Session(UserMixin):
    """已登录会话，同时作为 Flask-Login 的 current_user"""
    token: str
    user_id: str
    username: str
    role: str
    expires_at: int  # 毫秒时间戳

    @property
    def id(self):
        return self.user_id

    def get_id(self):
        return self.user_id

    @property
    def is_admin(self):
        return self.role == ADMIN_ROLE

    def is_expired(self, now_ms):
        return self.expires_at <= now_ms

    def to_dict(self):
        return {
            'userId': self.user_id,
            'username': self.username,
            'role': self.role,
            'expiresAt': self.expires_at,
        }

    def __repr__(self):
        return f'<Session {self.username} ({self.role})>'


class AnonymousUser(AnonymousUserMixin):
    """未登录访客"""
    id = None
    user_id = None
    token = None
    username = '访客'
    role = ANONYMOUS_ROLE
    is_admin = False


def public_user(record):
    """去掉 salt / hashedPassword 后的用户信息"""
    if not record:
        return None
    return {
        'id': record.get('id'),
        'username': record.get('username'),
        'role': record.get('role'),
        'createdAt': record.get('createdAt'),
    }
