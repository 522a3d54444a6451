"""
请求网关
在进入蓝图视图之前，按 ACCESS_RULES 声明表做身份与角色检查
顺序: 静态资源放行 -> 登录检查 (401 / 跳转登录页) -> 角色检查 (403) -> Flask 路由匹配 (404)
"""
import re
from dataclasses import dataclass, field

from flask import jsonify, redirect, render_template, request, url_for
from flask_login import current_user

from jotter.models import ADMIN_ROLE

ALL_METHODS = frozenset({'GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'})


@dataclass(frozen=True)
class AccessRule:
    """
    methods: 适用的 HTTP 方法
    pattern: 路径模式，<id> 匹配单个路径段
    prefix: 为真时按前缀匹配
    public: 匿名访问是否允许
    role: 需要的角色 (None 表示任意已登录角色)
    """
    methods: frozenset
    pattern: str
    public: bool = False
    role: str = None
    prefix: bool = False
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        body = re.escape(self.pattern).replace(re.escape('<id>'), '[^/]+')
        object.__setattr__(self, 'regex', re.compile('^' + body + ('' if self.prefix else '$')))

    def matches(self, method, path):
        return method in self.methods and self.regex.match(path) is not None


def rule(methods, pattern, public=False, role=None, prefix=False):
    if isinstance(methods, str):
        methods = methods.split('|')
    methods = set(methods)
    # HEAD 跟随 GET
    if 'GET' in methods:
        methods.add('HEAD')
    return AccessRule(frozenset(methods), pattern, public, role, prefix)


# 按顺序匹配，第一条命中的规则生效
ACCESS_RULES = (
    rule('GET', '/static/', public=True, prefix=True),
    rule('GET', '/', public=True),
    rule('GET|POST', '/login', public=True),
    rule('POST', '/logout', public=True),
    rule('GET|POST', '/register', public=True),
    rule('POST', '/api/users/register', public=True),
    rule('GET', '/api/articles', public=True),
    rule('GET', '/api/articles/<id>', public=True),
    rule('GET|POST', '/api/articles/<id>/comments', public=True),
    # 新建页面需要登录，需排在 /articles/<id> 之前
    rule('GET', '/articles/new'),
    rule('GET', '/articles/<id>', public=True),
    rule(ALL_METHODS, '/admin', role=ADMIN_ROLE),
    rule(ALL_METHODS, '/admin/', role=ADMIN_ROLE, prefix=True),
    rule(ALL_METHODS, '/api/admin/', role=ADMIN_ROLE, prefix=True),
)

# 未命中任何规则: 需要登录，任意角色
DEFAULT_RULE = rule(ALL_METHODS, '/', prefix=True)


def match_access_rule(method, path):
    for access_rule in ACCESS_RULES:
        if access_rule.matches(method, path):
            return access_rule
    return DEFAULT_RULE


def is_api_path(path):
    return path == '/api' or path.startswith('/api/')


def enforce_access():
    """before_request 钩子；返回 None 表示放行"""
    access_rule = match_access_rule(request.method, request.path)
    if access_rule.public:
        return None

    if not current_user.is_authenticated:
        if is_api_path(request.path):
            return jsonify({'message': '未授权：请先登录。', 'code': 401, 'success': False}), 401
        return redirect(url_for('auth.login'))

    if access_rule.role and current_user.role != access_rule.role:
        if is_api_path(request.path):
            return jsonify({'message': '禁止访问：权限不足。', 'code': 403, 'success': False}), 403
        return render_forbidden()
    return None


def render_forbidden():
    return render_template('errors/403.html'), 403


def init_app(app):
    app.before_request(enforce_access)
