from flask import current_app, jsonify, redirect, request, url_for
from flask_login import LoginManager
from flask_caching import Cache
from flask_wtf.csrf import CSRFProtect

from jotter.models import AnonymousUser
from jotter.services.session_service import SessionManager
from jotter.services.traffic_service import TrafficLog
from jotter.storage import DataStore

# 初始化扩展对象 (暂不绑定 app)
cache = Cache()
login_manager = LoginManager()
csrf = CSRFProtect()
store = DataStore()
sessions = SessionManager()
traffic = TrafficLog()

# 配置 LoginManager
login_manager.login_view = 'auth.login'  # 未登录跳转视图
login_manager.login_message = '请先登录。'
login_manager.login_message_category = 'warning'
login_manager.anonymous_user = AnonymousUser
# 身份来自 sessionId Cookie，不使用 Flask session 做会话保护
login_manager.session_protection = None


@login_manager.request_loader
def load_session(req):
    """Flask-Login 请求加载回调：sessionId Cookie -> Session"""
    token = req.cookies.get(current_app.config['SESSION_TOKEN_COOKIE'])
    return sessions.authenticate(token)


@login_manager.unauthorized_handler
def unauthorized():
    if request.path.startswith('/api/'):
        return jsonify({'message': '未授权：请先登录。', 'code': 401, 'success': False}), 401
    return redirect(url_for('auth.login'))
