import json
import logging
import os

from jotter.exceptions import StorageError
from .base import Repository, generate_id, next_timestamp

logger = logging.getLogger(__name__)


class JsonCollection(Repository):
    """
    单个 JSON 数组文件承载的实体集合
    每次操作都完整读取并重写整个文件 (无锁, 后写覆盖先写)
    """

    def __init__(self, path, id_prefix, track_updates=True):
        self.path = path
        self.id_prefix = id_prefix
        # 评论只记录 createdAt
        self.track_updates = track_updates

    def __repr__(self):
        return f'<JsonCollection {os.path.basename(self.path)}>'

    # ---------- 文件读写 ----------
    def _read(self):
        if not os.path.exists(self.path):
            self._write([])
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            logger.error('读取 JSON 文件 %s 失败: %s', self.path, e)
            return []
        if not content.strip():
            return []
        try:
            data = json.loads(content)
        except ValueError as e:
            # 损坏文件保持原样，直到下一次写入
            logger.error('JSON 文件 %s 已损坏，按空集合处理: %s', self.path, e)
            return []
        if not isinstance(data, list):
            logger.error('JSON 文件 %s 不是数组，按空集合处理', self.path)
            return []
        return data

    def _write(self, records):
        try:
            folder = os.path.dirname(self.path)
            if folder and not os.path.exists(folder):
                os.makedirs(folder)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error('写入 JSON 文件 %s 失败: %s', self.path, e)
            raise StorageError(f'写入数据文件失败: {os.path.basename(self.path)}') from e

    # ---------- Repository 接口 ----------
    def all(self):
        return self._read()

    def find(self, record_id):
        if not record_id:
            return None
        for record in self._read():
            if record.get('id') == record_id:
                return record
        return None

    def filter(self, predicate):
        return [r for r in self._read() if predicate(r)]

    def save(self, record):
        records = self._read()
        data = dict(record)

        if not data.get('id'):
            existing_ids = {r.get('id') for r in records}
            new_id = generate_id(self.id_prefix)
            while new_id in existing_ids:
                new_id = generate_id(self.id_prefix)
            data['id'] = new_id
            data['createdAt'] = next_timestamp()
            if self.track_updates:
                data['updatedAt'] = data['createdAt']
            records.append(data)
            self._write(records)
            return data

        for index, existing in enumerate(records):
            if existing.get('id') == data['id']:
                merged = {**existing, **data}
                # createdAt 不可被覆盖
                if 'createdAt' in existing:
                    merged['createdAt'] = existing['createdAt']
                if self.track_updates:
                    merged['updatedAt'] = next_timestamp(existing.get('updatedAt'))
                records[index] = merged
                self._write(records)
                return merged

        logger.warning('%r: 更新目标 %s 不存在', self, data['id'])
        return None

    def delete(self, record_id):
        records = self._read()
        remaining = [r for r in records if r.get('id') != record_id]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        return True

    def remove_where(self, predicate):
        """批量删除满足条件的记录，返回删除数量"""
        records = self._read()
        remaining = [r for r in records if not predicate(r)]
        removed = len(records) - len(remaining)
        if removed:
            self._write(remaining)
        return removed

    def count(self):
        return len(self._read())
