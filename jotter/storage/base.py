"""
存储抽象层
控制器只依赖 Repository 接口 (all / find / save / delete)，
默认实现为 JSON 文件集合，可在不改动服务层的前提下替换为数据库实现。
"""
import random
import string
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

ID_ALPHABET = string.digits + string.ascii_lowercase


def utcnow_iso():
    """当前 UTC 时间 (ISO 8601, 毫秒精度, Z 结尾)"""
    return format_timestamp(datetime.now(timezone.utc))


def format_timestamp(moment):
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value):
    """解析 ISO 时间字符串，无法解析时返回 None"""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (TypeError, ValueError):
        return None


def next_timestamp(previous=None):
    """
    生成新的时间戳，保证严格晚于 previous
    (同一毫秒内连续保存时顺延 1ms)
    """
    now = datetime.now(timezone.utc)
    # 按存储精度 (毫秒) 截断后再比较
    now = now.replace(microsecond=now.microsecond // 1000 * 1000)
    last = parse_timestamp(previous)
    if last is not None and now <= last:
        now = last + timedelta(milliseconds=1)
    return format_timestamp(now)


def generate_id(prefix):
    """<prefix>_<毫秒时间戳>_<5位随机base36>"""
    suffix = ''.join(random.choices(ID_ALPHABET, k=5))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class Repository(ABC):
    """实体仓储接口"""

    @abstractmethod
    def all(self):
        """返回全部记录 (有序列表)"""

    @abstractmethod
    def find(self, record_id):
        """按 id 查找，不存在返回 None"""

    @abstractmethod
    def save(self, record):
        """新建或合并更新，更新目标不存在时返回 None"""

    @abstractmethod
    def delete(self, record_id):
        """删除记录，返回是否删除成功"""
