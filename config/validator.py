# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证 exporter 配置的完整性和正确性
- 检查必填字段
- 验证字段格式和取值范围
"""

from typing import Optional, Tuple

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'WARN', 'ERROR', 'CRITICAL')
STRING_FIELDS = ('listen_address', 'metrics_path', 'log_level', 'api_url')


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    解析监听地址

    支持 ":8080"、"127.0.0.1:8080"、"[::1]:8080" 三种写法，
    省略主机时监听所有地址

    Args:
        address: 监听地址

    Returns:
        (host, port) 元组

    Raises:
        ValueError: 地址格式错误或端口越界
    """
    if not address or ':' not in address:
        raise ValueError(f"监听地址格式错误: {address!r}（应为 host:port 或 :port）")

    host, _, port_str = address.rpartition(':')
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]

    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"监听地址端口不是数字: {address!r}")

    if not 1 <= port <= 65535:
        raise ValueError(f"监听地址端口超出范围 (1-65535): {port}")

    return host or '0.0.0.0', port


def validate_config(config) -> Tuple[bool, Optional[str]]:
    """
    验证配置对象

    Args:
        config: ExporterConfig 对象

    Returns:
        (is_valid, error_message) 元组
    """
    if not config.token:
        return False, "missing DO_TOKEN env variable"

    for field in STRING_FIELDS:
        value = getattr(config, field)
        if not isinstance(value, str):
            return False, f"配置格式错误: '{field}' 必须是字符串，实际为 {value!r}"

    try:
        parse_listen_address(config.listen_address)
    except ValueError as e:
        return False, str(e)

    if not config.metrics_path or not config.metrics_path.startswith('/'):
        return False, f"metrics 路径必须以 '/' 开头: {config.metrics_path!r}"

    if config.metrics_path == '/':
        return False, "metrics 路径不能是 '/'（根路径用于重定向）"

    if not isinstance(config.timeout, (int, float)) or isinstance(config.timeout, bool) or config.timeout <= 0:
        return False, f"timeout 必须是正数: {config.timeout!r}"

    if str(config.log_level).upper() not in VALID_LOG_LEVELS:
        return False, f"无效的日志级别: {config.log_level!r}（可选: {', '.join(VALID_LOG_LEVELS)}）"

    if not config.api_url or not config.api_url.startswith(('http://', 'https://')):
        return False, f"API 地址必须以 http:// 或 https:// 开头: {config.api_url!r}"

    return True, None
