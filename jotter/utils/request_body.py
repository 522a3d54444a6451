"""
请求体解析
按 Content-Type 分派: urlencoded / JSON / multipart，结果缓存在 g 上
"""
from dataclasses import dataclass, field

from flask import g, request as current_request

from jotter.exceptions import ValidationError
from .multipart import parse_multipart

BODY_METHODS = ('POST', 'PUT', 'PATCH')


@dataclass
class RequestBody:
    form: dict = field(default_factory=dict)
    files: dict = field(default_factory=dict)

    def get(self, key, default=None):
        return self.form.get(key, default)

    def raw(self, key):
        """取字符串字段原值 (不去空白)；缺失为 None，非字符串抛出 ValidationError"""
        value = self.form.get(key)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'字段 {key} 必须是字符串')
        return value

    def text(self, key):
        """取字符串字段并去掉首尾空白，缺失时为空串"""
        return (self.raw(key) or '').strip()

    def require(self, *names):
        """必填字段去空白后返回 (按传入顺序)，任一缺失或空白则抛出 ValidationError"""
        values = [self.text(name) for name in names]
        missing = [name for name, value in zip(names, values) if not value]
        if missing:
            raise ValidationError(f"缺少必填字段: {', '.join(missing)}")
        return values

    def flag(self, key):
        """解析布尔字段 (true/on/1)"""
        value = self.form.get(key)
        if isinstance(value, bool):
            return value
        return str(value).lower() in ('true', 'on', '1') if value is not None else False


def parse_request_body(req=None):
    req = req if req is not None else current_request
    if req.method not in BODY_METHODS:
        return RequestBody()

    mimetype = req.mimetype
    if mimetype == 'application/x-www-form-urlencoded':
        return RequestBody(form=req.form.to_dict())

    if req.is_json:
        raw = req.get_data(cache=True)
        if not raw.strip():
            return RequestBody()
        data = req.get_json(silent=True)
        if data is None:
            raise ValidationError('请求体不是有效的 JSON')
        if not isinstance(data, dict):
            raise ValidationError('请求体必须是 JSON 对象')
        return RequestBody(form=data)

    if mimetype == 'multipart/form-data':
        parsed = parse_multipart(req.get_data(cache=True, parse_form_data=False),
                                 req.headers.get('Content-Type', ''))
        return RequestBody(form=parsed.fields, files=parsed.files)

    return RequestBody()


def get_body():
    """当前请求的请求体 (同一请求只解析一次)"""
    if '_jotter_body' not in g:
        g._jotter_body = parse_request_body()
    return g._jotter_body
