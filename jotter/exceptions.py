class JotterException(Exception):
    """Jotter 系统基础异常类"""
    def __init__(self, message, code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['code'] = self.code
        rv['success'] = False
        return rv

class ValidationError(JotterException):
    """请求参数错误 (缺失/空白字段, 非法枚举值)"""
    def __init__(self, message="Invalid data", payload=None):
        super().__init__(message, code=400, payload=payload)

class AuthenticationError(JotterException):
    """未登录或会话已过期"""
    def __init__(self, message="Authentication required", payload=None):
        super().__init__(message, code=401, payload=payload)

class PermissionDenied(JotterException):
    """权限不足"""
    def __init__(self, message="Access denied", payload=None):
        super().__init__(message, code=403, payload=payload)

class NotFound(JotterException):
    """目标记录不存在"""
    def __init__(self, message="Not found", payload=None):
        super().__init__(message, code=404, payload=payload)

class ConflictError(JotterException):
    """数据冲突 (如用户名重复)"""
    def __init__(self, message="Conflict", payload=None):
        super().__init__(message, code=409, payload=payload)

class StorageError(JotterException):
    """文件系统读写失败"""
    def __init__(self, message="Storage failure", payload=None):
        super().__init__(message, code=500, payload=payload)
