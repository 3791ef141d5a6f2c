# -*- coding: utf-8 -*-
"""
Prometheus Collector 实现模块

功能：
- 每次抓取时调用 DigitalOcean Account API
- 把账号字段映射为 Gauge 指标
- 上游失败时保持清零后的指标值（显式输出 0）
"""

import time
import logging
import threading
from typing import Dict, List, Optional

from prometheus_client import Gauge
from prometheus_client.metrics_core import Metric

from collector.interfaces import MetricsCollector
from provider.digitalocean import AccountClient, AccountSnapshot, UpstreamError, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

NAMESPACE = 'digital_ocean'
SUBSYSTEM = 'account'


class AccountCollector(MetricsCollector):
    """
    账号指标收集器

    功能：
    - 管理 4 个账号 Gauge（active, droplet_limit, email_verified, floating_ip_limit）
    - 每次 collect: 清零 -> 调用 API -> 映射字段 -> 输出
    - 并发抓取时用锁串行化整个周期，避免输出不一致的样本
    """

    def __init__(self, client: AccountClient, timeout: float = DEFAULT_TIMEOUT, stats=None):
        """
        初始化账号收集器

        Args:
            client: Account API 客户端
            timeout: 每次抓取调用 API 的超时时间（秒）
            stats: ScrapeStatsCollector（可选，用于记录抓取耗时和错误）
        """
        self.client = client
        self.timeout = timeout
        self.stats = stats
        self._lock = threading.Lock()

        # Gauge 不注册到全局 REGISTRY，由本收集器负责输出
        # 1. digital_ocean_account_active: 账号是否 active
        self.active = Gauge(
            'active',
            'if 1 account is active',
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=None
        )

        # 2. digital_ocean_account_droplet_limit: Droplet 配额
        self.droplet_limit = Gauge(
            'droplet_limit',
            'total number of droplets you can create',
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=None
        )

        # 3. digital_ocean_account_email_verified: 邮箱是否已验证
        self.email_verified = Gauge(
            'email_verified',
            'if 1 email was verified',
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=None
        )

        # 4. digital_ocean_account_floating_ip_limit: Floating IP 配额
        self.floating_ip_limit = Gauge(
            'floating_ip_limit',
            'total number of floating IPs that you can have',
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=None
        )

    def _gauges(self) -> List[Gauge]:
        # 输出顺序固定
        return [self.active, self.droplet_limit, self.email_verified, self.floating_ip_limit]

    def describe(self) -> List[Metric]:
        """返回 4 个 Gauge 的元数据（不访问 API）"""
        metrics = []
        for gauge in self._gauges():
            metrics.extend(gauge.describe())
        return metrics

    def collect(self) -> List[Metric]:
        """
        执行一次抓取周期

        Returns:
            4 个 Gauge 的 Metric 列表；上游失败时值全部为 0
        """
        with self._lock:
            start_time = time.time()
            error_type: Optional[str] = None
            self.reset()

            try:
                snapshot = self.client.fetch_account(self.timeout)
            except UpstreamError as e:
                error_type = e.error_type
                logger.error(f"无法获取有效的 Account API 响应 ({error_type}): {e}")
            else:
                self.apply(snapshot)

            metrics = []
            for gauge in self._gauges():
                metrics.extend(gauge.collect())

            # 与本次账号指标在同一把锁内更新
            if self.stats is not None:
                self.stats.record(time.time() - start_time, error_type)

        return metrics

    def reset(self):
        """把 4 个 Gauge 清零"""
        for gauge in self._gauges():
            gauge.set(0)

    def apply(self, snapshot: AccountSnapshot):
        """
        把账号快照映射到 Gauge

        Args:
            snapshot: Account API 快照
        """
        self.active.set(1 if snapshot.is_active() else 0)
        self.droplet_limit.set(float(snapshot.droplet_limit))
        self.email_verified.set(1 if snapshot.email_verified else 0)
        self.floating_ip_limit.set(float(snapshot.floating_ip_limit))

        logger.debug(f"账号指标已更新: status={snapshot.status}, droplet_limit={snapshot.droplet_limit}, "
                     f"email_verified={snapshot.email_verified}, floating_ip_limit={snapshot.floating_ip_limit}")

    def values(self) -> Dict[str, float]:
        """
        获取当前 Gauge 值

        Returns:
            {指标短名: 值} 字典
        """
        with self._lock:
            return {
                'active': _gauge_value(self.active),
                'droplet_limit': _gauge_value(self.droplet_limit),
                'email_verified': _gauge_value(self.email_verified),
                'floating_ip_limit': _gauge_value(self.floating_ip_limit),
            }


def _gauge_value(gauge: Gauge) -> float:
    """读取无标签 Gauge 的当前值"""
    return gauge.collect()[0].samples[0].value
