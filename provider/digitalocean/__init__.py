# -*- coding: utf-8 -*-
"""
DigitalOcean Provider 模块

功能：
- 封装 DigitalOcean Account API 调用（GET /v2/account）
- 提供 Bearer Token 认证传输层
- 定义上游调用的错误类型（超时 / 上游错误）
"""

from .account import AccountSnapshot
from .auth import TokenAuth, build_session
from .client import AccountClient, DEFAULT_API_URL, DEFAULT_TIMEOUT
from .errors import UpstreamError, AccountTimeoutError

__all__ = [
    'AccountSnapshot',
    'TokenAuth',
    'build_session',
    'AccountClient',
    'DEFAULT_API_URL',
    'DEFAULT_TIMEOUT',
    'UpstreamError',
    'AccountTimeoutError',
]
