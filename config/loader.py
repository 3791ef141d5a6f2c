# -*- coding: utf-8 -*-
"""
Exporter 配置加载模块

功能：
- 合并命令行参数、YAML 配置文件和环境变量
- 定义清晰的数据结构（ExporterConfig）
- 读取或校验失败时给出明确错误（ConfigError）
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from config.validator import parse_listen_address, validate_config
from provider.digitalocean import DEFAULT_API_URL, DEFAULT_TIMEOUT

TOKEN_ENV = 'DO_TOKEN'
API_URL_ENV = 'DO_API_URL'

DEFAULT_LISTEN_ADDRESS = ':8080'
DEFAULT_METRICS_PATH = '/metrics'
DEFAULT_LOG_LEVEL = 'INFO'

# YAML 配置文件中允许出现的字段
FILE_KEYS = ('listen_address', 'metrics_path', 'timeout', 'log_level', 'api_url')


class ConfigError(ValueError):
    """配置错误（启动时致命）"""


@dataclass
class ExporterConfig:
    """Exporter 配置的数据结构"""
    token: str                                      # DigitalOcean API Token（只从环境变量读取）
    listen_address: str = DEFAULT_LISTEN_ADDRESS    # 监听地址，如 ":8080"
    metrics_path: str = DEFAULT_METRICS_PATH        # metrics 路径
    timeout: float = DEFAULT_TIMEOUT                # Account API 超时（秒）
    log_level: str = DEFAULT_LOG_LEVEL              # 日志级别
    api_url: str = DEFAULT_API_URL                  # API 根地址

    @property
    def bind(self) -> Tuple[str, int]:
        """解析后的 (host, port)"""
        return parse_listen_address(self.listen_address)

    def __repr__(self):
        # 不在日志中泄露 token
        return (f"ExporterConfig(listen_address={self.listen_address!r}, metrics_path={self.metrics_path!r}, "
                f"timeout={self.timeout!r}, log_level={self.log_level!r}, api_url={self.api_url!r})")


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    从 YAML 文件加载配置

    Args:
        config_path: 配置文件路径

    Returns:
        配置字典（只包含 FILE_KEYS 中的字段）

    Raises:
        ConfigError: 文件不存在、无法读取、YAML 解析失败或格式错误
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(f"无法读取配置文件 {config_path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML 解析失败: {e}")

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError("配置格式错误: 配置文件顶层必须是字典类型")

    unknown = sorted(set(data) - set(FILE_KEYS))
    if unknown:
        raise ConfigError(f"配置格式错误: 未知字段 {unknown}（可选: {', '.join(FILE_KEYS)}）")

    return data


def load_exporter_config(args=None, environ: Optional[Mapping[str, str]] = None) -> ExporterConfig:
    """
    加载 exporter 配置

    优先级：命令行参数 > YAML 配置文件 > 默认值；
    Token 只从环境变量 DO_TOKEN 读取

    Args:
        args: argparse.Namespace（未指定的参数为 None）
        environ: 环境变量（默认 os.environ）

    Returns:
        ExporterConfig 对象

    Raises:
        ConfigError: 缺少 Token 或配置不合法
    """
    if environ is None:
        environ = os.environ

    token = environ.get(TOKEN_ENV, '')
    if not token:
        raise ConfigError(f"missing {TOKEN_ENV} env variable")

    file_values: Dict[str, Any] = {}
    config_file = getattr(args, 'config_file', None)
    if config_file:
        file_values = load_config_file(config_file)

    def pick(name: str, default: Any) -> Any:
        value = getattr(args, name, None)
        if value is not None:
            return value
        if file_values.get(name) is not None:
            return file_values[name]
        return default

    config = ExporterConfig(
        token=token,
        listen_address=pick('listen_address', DEFAULT_LISTEN_ADDRESS),
        metrics_path=pick('metrics_path', DEFAULT_METRICS_PATH),
        timeout=pick('timeout', DEFAULT_TIMEOUT),
        log_level=_normalize_log_level(pick('log_level', DEFAULT_LOG_LEVEL)),
        api_url=pick('api_url', environ.get(API_URL_ENV) or DEFAULT_API_URL),
    )

    is_valid, error_message = validate_config(config)
    if not is_valid:
        raise ConfigError(error_message)

    return config


def _normalize_log_level(level: Any) -> str:
    """统一日志级别写法（WARN -> WARNING）"""
    if not isinstance(level, str):
        return level
    level = level.upper()
    if level == 'WARN':
        return 'WARNING'
    return level
