#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DigitalOcean Account Exporter 主程序入口

功能：
- 启动 Flask HTTP 服务器
- 暴露 metrics 端点供 Prometheus 抓取（每次抓取实时调用 Account API）
- 根路径 301 重定向到 metrics 端点
- 暴露 /health 健康检查端点
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from flask import Flask, redirect
from prometheus_client import CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST

from collector import AccountCollector, ScrapeStatsCollector
from config.loader import ConfigError, ExporterConfig, load_exporter_config
from provider.digitalocean import AccountClient

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 减少 Flask 请求日志
logging.getLogger('werkzeug').setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    解析命令行参数

    未指定的参数保持为 None，由配置加载模块决定最终取值
    """
    parser = argparse.ArgumentParser(description='DigitalOcean account exporter for Prometheus')
    parser.add_argument('--listen-address', dest='listen_address', default=None,
                        help='Address on which to expose metrics. (default ":8080")')
    parser.add_argument('--telemetry-path', dest='metrics_path', default=None,
                        help='Path under which to expose metrics. (default "/metrics")')
    parser.add_argument('--config.file', dest='config_file', default=None,
                        help='Optional YAML configuration file.')
    parser.add_argument('--log-level', dest='log_level', default=None,
                        help='Log level: DEBUG, INFO, WARNING, ERROR. (default "INFO")')
    parser.add_argument('--timeout', dest='timeout', type=float, default=None,
                        help='Timeout in seconds for the account API call. (default 3)')
    return parser.parse_args(argv)


def build_registry(client: AccountClient, timeout: float) -> Tuple[CollectorRegistry, AccountCollector, ScrapeStatsCollector]:
    """
    创建 registry 并注册收集器

    不使用 prometheus_client 的全局 REGISTRY，也不注册进程 / 平台默认收集器

    Args:
        client: Account API 客户端
        timeout: 每次抓取的 API 超时（秒）

    Returns:
        (registry, account_collector, scrape_stats) 元组
    """
    registry = CollectorRegistry()
    scrape_stats = ScrapeStatsCollector()
    account_collector = AccountCollector(client, timeout=timeout, stats=scrape_stats)

    # 注册顺序即输出顺序：账号指标在前，抓取统计在后（保证统计包含本次抓取）
    registry.register(account_collector)
    registry.register(scrape_stats)

    return registry, account_collector, scrape_stats


def create_app(registry: CollectorRegistry, metrics_path: str = '/metrics',
               scrape_stats: Optional[ScrapeStatsCollector] = None) -> Flask:
    """
    创建 Flask 应用

    Args:
        registry: 已注册收集器的 CollectorRegistry
        metrics_path: metrics 端点路径
        scrape_stats: 抓取统计（可选，用于 /health）

    Returns:
        Flask 应用
    """
    app = Flask(__name__)

    def metrics():
        """
        Prometheus metrics 端点

        上游失败不会返回 HTTP 错误，指标值为 0
        """
        return generate_latest(registry), 200, {'Content-Type': CONTENT_TYPE_LATEST}

    def index():
        """根路径重定向到 metrics 端点"""
        return redirect(metrics_path, code=301)

    def health():
        """
        健康检查端点

        返回 exporter 的健康状态
        """
        status = {'status': 'healthy'}
        if scrape_stats is not None:
            status['scrape'] = scrape_stats.get_status()
        return status, 200

    app.add_url_rule(metrics_path, 'metrics', metrics)
    app.add_url_rule('/', 'index', index)
    app.add_url_rule('/health', 'health', health)

    return app


def main(argv: Optional[List[str]] = None):
    """
    主函数：启动 Flask 服务器

    功能：
    1. 加载配置（缺少 DO_TOKEN 时退出）
    2. 初始化 Account API 客户端和收集器
    3. 启动 HTTP 服务器
    """
    args = parse_args(argv)

    logger.info("Starting do_exporter")

    try:
        config: ExporterConfig = load_exporter_config(args)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    logger.info(f"配置加载成功: {config!r}")

    client = AccountClient.from_token(config.token, api_url=config.api_url, timeout=config.timeout)
    registry, _, scrape_stats = build_registry(client, config.timeout)
    app = create_app(registry, config.metrics_path, scrape_stats=scrape_stats)

    host, port = config.bind
    logger.info(f"Starting HTTP server on {host}:{port}, metrics path: {config.metrics_path}")
    try:
        app.run(host=host, port=port, debug=False, threaded=True)
    finally:
        client.close()


if __name__ == '__main__':
    main()
