#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
查看采集到的 DigitalOcean 账号指标

功能：
1. 从 metrics 端点获取所有指标（会触发一次 Account API 调用）
2. 提取 digital_ocean_account_* 指标
3. 显示账号状态和抓取统计
"""

import urllib.request
import sys
from typing import Dict, Optional

from prometheus_client.parser import text_string_to_metric_families

DEFAULT_URL = 'http://localhost:8080/metrics'
PREFIX = 'digital_ocean_account_'

ACCOUNT_METRICS = ('active', 'droplet_limit', 'email_verified', 'floating_ip_limit')


def fetch_metrics(url: str = DEFAULT_URL) -> Optional[str]:
    """从 metrics 端点获取指标"""
    try:
        response = urllib.request.urlopen(url, timeout=10)
        return response.read().decode('utf-8')
    except Exception as e:
        print(f"❌ 无法连接到 exporter: {e}")
        print("   请确保 exporter 正在运行: DO_TOKEN=... python3 main.py")
        return None


def parse_metrics(metrics_text: str) -> Dict[str, float]:
    """
    解析 metrics 文本

    Args:
        metrics_text: Prometheus text format

    Returns:
        {去掉前缀的样本名: 值} 字典；带标签的样本名形如 scrape_errors_total{error_type="timeout"}
    """
    values = {}
    for family in text_string_to_metric_families(metrics_text):
        for sample in family.samples:
            if not sample.name.startswith(PREFIX):
                continue
            name = sample.name[len(PREFIX):]
            if sample.labels:
                labels = ','.join(f'{k}="{v}"' for k, v in sorted(sample.labels.items()))
                name = f"{name}{{{labels}}}"
            values[name] = sample.value
    return values


def view_summary(url: str = DEFAULT_URL) -> bool:
    """查看汇总信息"""
    print("=" * 60)
    print("DigitalOcean 账号指标")
    print("=" * 60)

    metrics_text = fetch_metrics(url)
    if not metrics_text:
        return False

    values = parse_metrics(metrics_text)

    print(f"\n账号:")
    for name in ACCOUNT_METRICS:
        value = values.get(name)
        print(f"  - {name}: {'N/A' if value is None else value}")

    errors = {name: value for name, value in values.items() if name.startswith('scrape_errors_total')}
    if errors or 'last_scrape_success' in values:
        print(f"\n抓取统计:")
        if 'last_scrape_success' in values:
            print(f"  - last_scrape_success: {values['last_scrape_success']}")
        for name, value in sorted(errors.items()):
            print(f"  - {name}: {value}")

    if values.get('last_scrape_success') == 0:
        print("\n⚠️  最近一次 Account API 调用失败，账号指标为 0，请查看 exporter 日志")

    return True


def main():
    """主函数"""
    url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_URL
    if url in ('-h', '--help'):
        print("用法:")
        print(f"  python3 view_metrics.py [metrics URL]   # 默认 {DEFAULT_URL}")
        return
    if not view_summary(url):
        sys.exit(1)


if __name__ == '__main__':
    main()
