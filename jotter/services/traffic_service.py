"""
访问流量日志
每个非静态请求追加一行 JSON 到 traffic.log.jsonl，管理员可查看汇总统计
"""
import json
import logging
import os
from collections import Counter
from threading import Lock
from urllib.parse import urlsplit

from jotter.exceptions import StorageError
from jotter.storage.base import utcnow_iso

logger = logging.getLogger(__name__)

TOP_LIMIT = 15
DIRECT_REFERRER = '(direct)'
UNKNOWN_DATE = '未知日期'


class TrafficLog:

    def __init__(self, app=None):
        self.path = None
        self.enabled = False
        self.total_views = 0
        self._lock = Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.path = os.path.join(app.config['DATA_DIR'], 'traffic.log.jsonl')
        self.enabled = app.config.get('TRAFFIC_LOG_ENABLED', True)
        self.total_views = self._count_lines()
        app.extensions['jotter.traffic'] = self
        if self.enabled:
            logger.debug('流量统计已初始化：总访问量 %d', self.total_views)

    def _count_lines(self):
        if not self.path or not os.path.exists(self.path):
            return 0
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return sum(1 for line in f if line.strip())
        except OSError as e:
            logger.error('初始化流量统计失败: %s', e)
            return 0

    def record(self, req):
        """追加一条访问记录；写入失败只记录日志"""
        if not self.enabled:
            return
        entry = {
            'timestamp': utcnow_iso(),
            'ip': req.headers.get('X-Forwarded-For') or req.remote_addr,
            'method': req.method,
            'pathname': req.path,
            'userAgent': req.headers.get('User-Agent', ''),
            'referrer': req.headers.get('Referer', ''),
        }
        try:
            with self._lock:
                with open(self.path, 'a', encoding='utf-8') as f:
                    f.write(json.dumps(entry, ensure_ascii=False) + '\n')
                self.total_views += 1
        except OSError as e:
            logger.error('写入流量日志失败: %s', e)

    def entries(self):
        if not self.path or not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                lines = [line for line in f if line.strip()]
        except OSError as e:
            logger.error('读取流量日志失败: %s', e)
            raise StorageError('读取日志文件失败') from e
        result = []
        for line in lines:
            try:
                result.append(json.loads(line))
            except ValueError:
                # 忽略损坏的行
                continue
        return result

    def detailed_stats(self, limit=TOP_LIMIT):
        """
        汇总统计
        返回: totalViews, totalViewsLog, uniqueVisitors, byPage, byDate, byReferrer
        byPage / byReferrer 按访问量降序取前 limit 个，byDate 按日期降序
        """
        entries = self.entries()
        by_page = Counter()
        by_date = Counter()
        by_referrer = Counter()
        visitors = set()

        for entry in entries:
            if not isinstance(entry, dict):
                continue
            if entry.get('ip'):
                visitors.add(entry['ip'])
            by_page[entry.get('pathname') or '/'] += 1
            timestamp = entry.get('timestamp')
            by_date[timestamp[:10] if timestamp else UNKNOWN_DATE] += 1
            by_referrer[_referrer_host(entry.get('referrer'))] += 1

        return {
            'totalViews': self.total_views,
            'totalViewsLog': len(entries),
            'uniqueVisitors': len(visitors),
            'byPage': dict(by_page.most_common(limit)),
            'byDate': dict(sorted(by_date.items(), reverse=True)[:limit]),
            'byReferrer': dict(by_referrer.most_common(limit)),
        }


def _referrer_host(referrer):
    """来源只保留域名；空来源记为 (direct)"""
    if not referrer:
        return DIRECT_REFERRER
    if referrer.startswith('http'):
        host = urlsplit(referrer).hostname
        if host:
            return host
    return referrer
