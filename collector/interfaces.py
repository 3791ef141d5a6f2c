# -*- coding: utf-8 -*-
"""
采集器接口定义

功能：
- 定义 describe / collect 能力对
- 与 prometheus_client 的自定义 Collector 协议一致，可直接注册到 CollectorRegistry
"""

from abc import ABC, abstractmethod
from typing import Iterable

from prometheus_client.metrics_core import Metric


class MetricsCollector(ABC):
    """
    指标采集器接口

    功能：
    - describe: 返回静态的指标元数据（注册时调用一次）
    - collect: 返回当前指标值（每次抓取调用）
    """

    @abstractmethod
    def describe(self) -> Iterable[Metric]:
        """
        获取指标元数据（名称、帮助文本、类型，不含样本）

        Returns:
            Metric 列表
        """
        pass

    @abstractmethod
    def collect(self) -> Iterable[Metric]:
        """
        采集指标

        Returns:
            Metric 列表（含样本）
        """
        pass
