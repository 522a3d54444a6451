"""
安全工具函数
"""
import re
from werkzeug.security import gen_salt, generate_password_hash, check_password_hash

HASH_METHOD = 'pbkdf2:sha512:100000'
SALT_LENGTH = 16


def generate_salt():
    return gen_salt(SALT_LENGTH)


def hash_password(password, salt):
    """
    对 salt + 密码做哈希
    空密码存储为空字符串 (允许普通用户无密码登录)
    """
    if not password:
        return ''
    return generate_password_hash(salt + password, method=HASH_METHOD)


def verify_password(user, password):
    """
    校验密码
    存储哈希为空时，仅空/缺省密码可以通过
    """
    stored = user.get('hashedPassword') or ''
    provided = password or ''
    if not stored:
        return provided == ''
    if not provided:
        return False
    return check_password_hash(stored, (user.get('salt') or '') + provided)


def apply_password(record, password):
    """为用户记录生成新的 salt 与哈希 (原地修改并返回)"""
    record['salt'] = generate_salt()
    record['hashedPassword'] = hash_password(password, record['salt'])
    return record


def strip_tags(html):
    """去除 HTML 标签 (用于全文搜索)"""
    if not html:
        return ''
    return re.sub(r'<[^>]+>', '', str(html))
