"""
审计日志工具模块
重要操作写入 jotter.audit 日志 (不落库)
"""
import json
import logging

from flask import request, has_request_context
from flask_login import current_user

logger = logging.getLogger('jotter.audit')


def log_action(module, action, details=None):
    """
    记录审计日志
    :param module: 模块名称 (如 'auth', 'articles', 'admin')
    :param action: 操作名称 (如 'login', 'create', 'delete_user')
    :param details: 详细信息 (dict)
    """
    actor = '-'
    ip_address = '-'
    if has_request_context():
        ip_address = request.remote_addr or '-'
        if current_user.is_authenticated:
            actor = current_user.username
    logger.info('[%s] %s user=%s ip=%s %s', module, action, actor, ip_address,
                json.dumps(details, ensure_ascii=False) if details else '')
