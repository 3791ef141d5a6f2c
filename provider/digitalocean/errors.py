# -*- coding: utf-8 -*-
"""
DigitalOcean 上游调用错误定义

错误分类：
- UpstreamError: 传输、认证、响应解析失败
- AccountTimeoutError: 上游在超时时间内未响应
"""

from typing import Optional


class UpstreamError(Exception):
    """上游调用失败（传输 / 认证 / 反序列化）"""

    error_type = 'upstream'

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        """
        Args:
            message: 错误描述
            cause: 底层异常（可选）
        """
        super().__init__(message)
        self.cause = cause


class AccountTimeoutError(UpstreamError):
    """上游调用超时"""

    error_type = 'timeout'
