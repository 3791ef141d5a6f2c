# -*- coding: utf-8 -*-
"""
Prometheus Collector 模块

功能：
- 定义 describe / collect 采集器接口
- 每次抓取时刷新 DigitalOcean 账号指标
- 暴露 exporter 自身的抓取统计指标
"""

from .interfaces import MetricsCollector
from .collector import AccountCollector
from .scrape_stats import ScrapeStatsCollector
