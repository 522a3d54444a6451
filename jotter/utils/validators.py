"""
表单验证器
"""
import re

from wtforms.validators import ValidationError

USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 32
# 字母、数字、下划线、连字符、点和中文
USERNAME_PATTERN = re.compile(r'^[\w.\-\u4e00-\u9fa5]+$')


def username_error(username):
    """返回用户名不合法的原因，合法时返回 None (注册页面与注册 API 共用)"""
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return f'用户名长度必须在 {USERNAME_MIN_LENGTH} 到 {USERNAME_MAX_LENGTH} 个字符之间'
    if not USERNAME_PATTERN.match(username):
        return '用户名只能包含字母、数字、下划线、连字符、点和中文'
    return None


def validate_username(form, field):
    """验证用户名格式"""
    if field.data:
        message = username_error(field.data)
        if message:
            raise ValidationError(message)
