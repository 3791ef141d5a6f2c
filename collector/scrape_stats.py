# -*- coding: utf-8 -*-
"""
Exporter 自身抓取统计

功能：
- 统计上游调用错误次数（按错误类型）
- 记录每次抓取耗时
- 记录最近一次抓取是否成功
"""

import time
import threading
from typing import Dict, List, Optional

from prometheus_client import Counter, Gauge, Histogram
from prometheus_client.metrics_core import Metric

from collector.interfaces import MetricsCollector

NAMESPACE = 'digital_ocean'
SUBSYSTEM = 'account'

ERROR_TYPES = ('timeout', 'upstream')


class ScrapeStatsCollector(MetricsCollector):
    """
    抓取统计收集器

    由 AccountCollector 在每个抓取周期结束时调用 record()，
    自身作为独立的 Collector 注册到 registry
    """

    def __init__(self):
        self.scrape_errors_total = Counter(
            'scrape_errors_total',
            'Total number of failed account API calls',
            ['error_type'],
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=None
        )
        # 预先初始化所有错误类型，保证首次抓取就能看到 0
        for error_type in ERROR_TYPES:
            self.scrape_errors_total.labels(error_type=error_type)

        self.scrape_duration_seconds = Histogram(
            'scrape_duration_seconds',
            'Duration of account collection in seconds',
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            buckets=[0.1, 0.5, 1.0, 3.0, 5.0, 10.0],
            registry=None
        )

        self.last_scrape_success = Gauge(
            'last_scrape_success',
            'if 1 the last account API call succeeded',
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=None
        )

        self._lock = threading.Lock()
        self._scrape_count = 0
        self._error_count = 0
        self._last_scrape_time: Optional[float] = None
        self._last_error_type: Optional[str] = None

    def record(self, duration: float, error_type: Optional[str] = None):
        """
        记录一次抓取结果

        Args:
            duration: 抓取耗时（秒）
            error_type: 错误类型（'timeout' / 'upstream'），成功时为 None
        """
        self.scrape_duration_seconds.observe(duration)

        if error_type:
            self.scrape_errors_total.labels(error_type=error_type).inc()
            self.last_scrape_success.set(0)
        else:
            self.last_scrape_success.set(1)

        with self._lock:
            self._scrape_count += 1
            if error_type:
                self._error_count += 1
            self._last_scrape_time = time.time()
            self._last_error_type = error_type

    def describe(self) -> List[Metric]:
        metrics = []
        for instrument in (self.scrape_errors_total, self.scrape_duration_seconds, self.last_scrape_success):
            metrics.extend(instrument.describe())
        return metrics

    def collect(self) -> List[Metric]:
        metrics = []
        for instrument in (self.scrape_errors_total, self.scrape_duration_seconds, self.last_scrape_success):
            metrics.extend(instrument.collect())
        return metrics

    def get_status(self) -> Dict:
        """
        获取抓取统计状态

        Returns:
            状态信息字典
        """
        with self._lock:
            return {
                'scrapes': self._scrape_count,
                'errors': self._error_count,
                'last_scrape_time': self._last_scrape_time,
                'last_error_type': self._last_error_type,
            }
