"""
会话管理
令牌 -> 会话 的内存映射，进程重启后全部失效
"""
import atexit
import logging
import secrets
import time
from datetime import timedelta
from threading import RLock

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jotter.models.auth import Session

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME = timedelta(hours=24)
DEFAULT_SWEEP_INTERVAL = timedelta(hours=1)


def _now_ms():
    return int(time.time() * 1000)


class SessionManager:
    """
    会话管理器 (Flask 扩展)
    生命周期: init_app 时创建 -> 定时清理过期会话 -> shutdown 停止调度器
    """

    def __init__(self, app=None, clock=None):
        self._sessions = {}
        self._lock = RLock()
        self._clock = clock or _now_ms
        self._scheduler = None
        self.lifetime = DEFAULT_LIFETIME
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.lifetime = app.config.get('SESSION_LIFETIME', DEFAULT_LIFETIME)
        app.extensions['jotter.sessions'] = self
        # 每个应用实例从空会话表开始
        self.clear()
        if app.config.get('SESSION_SWEEP_ENABLED', True):
            self.start(app.config.get('SESSION_SWEEP_INTERVAL', DEFAULT_SWEEP_INTERVAL))

    @property
    def lifetime_ms(self):
        return int(self.lifetime.total_seconds() * 1000)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    # ---------- 会话操作 ----------
    def login(self, user):
        """为用户记录签发新会话，返回令牌"""
        token = secrets.token_hex(32)
        session = Session(
            token=token,
            user_id=user['id'],
            username=user['username'],
            role=user['role'],
            expires_at=self._clock() + self.lifetime_ms,
        )
        with self._lock:
            self._sessions[token] = session
        logger.info('用户 %s 登录成功', user['username'])
        return token

    def authenticate(self, token):
        """返回有效会话；过期会话被删除并视为不存在"""
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.is_expired(self._clock()):
                del self._sessions[token]
                logger.info('用户 %s 的会话已过期', session.username)
                return None
            return session

    def logout(self, token):
        with self._lock:
            session = self._sessions.pop(token, None) if token else None
        if session:
            logger.info('用户 %s 已登出', session.username)
        return session is not None

    def revoke_user(self, user_id):
        """删除某用户的所有会话 (用户被删除时调用)"""
        with self._lock:
            tokens = [t for t, s in self._sessions.items() if s.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
        return len(tokens)

    def sweep(self):
        """清理所有过期会话，返回清理数量"""
        now = self._clock()
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.info('已清理 %d 个过期会话', len(expired))
        return len(expired)

    def clear(self):
        with self._lock:
            self._sessions.clear()

    # ---------- 定时清理 ----------
    def start(self, interval=DEFAULT_SWEEP_INTERVAL):
        if self._scheduler is not None:
            return
        self._scheduler = BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            self.sweep,
            IntervalTrigger(seconds=int(interval.total_seconds())),
            id='session_sweep',
            name='Sweep expired sessions',
            replace_existing=True,
        )
        self._scheduler.start()
        atexit.register(self.shutdown)
        logger.debug('会话清理任务已启动 (间隔 %s)', interval)

    def shutdown(self):
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
