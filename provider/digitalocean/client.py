# -*- coding: utf-8 -*-
"""
DigitalOcean Account API 客户端模块

功能：
- 封装 GET /v2/account 调用
- 每次调用都是一次新的网络请求（不重试、不缓存）
- 超时是整个请求的截止时间（连接 + 响应头 + 响应体），不是单次 socket 读取的超时
"""

import json
import time
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Optional

import requests

from .account import AccountSnapshot
from .auth import build_session
from .errors import UpstreamError, AccountTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://api.digitalocean.com'
DEFAULT_TIMEOUT = 3.0  # 秒
ACCOUNT_PATH = '/v2/account'

# 响应体按小块读取，每块之后检查截止时间
CHUNK_SIZE = 64
MAX_WORKERS = 4


class AccountClient:
    """
    DigitalOcean Account API 客户端

    功能：
    - 调用 Account API 获取账号快照
    - 把传输 / 认证 / 解析失败统一转换为 UpstreamError
    - 超过截止时间转换为 AccountTimeoutError
    """

    def __init__(self, session: requests.Session, api_url: str = DEFAULT_API_URL,
                 timeout: float = DEFAULT_TIMEOUT):
        """
        初始化 Account 客户端

        Args:
            session: 已配置认证的 requests.Session（见 build_session）
            api_url: API 根地址
            timeout: 默认超时时间（秒）
        """
        self.session = session
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        # 请求在工作线程中执行，调用方最多等待到截止时间
        self._executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix='do-account')
        logger.debug(f"Account 客户端初始化成功，API: {self.api_url}, 超时: {self.timeout}s")

    @classmethod
    def from_token(cls, token: str, api_url: str = DEFAULT_API_URL,
                   timeout: float = DEFAULT_TIMEOUT) -> 'AccountClient':
        """使用 API Token 直接创建客户端"""
        return cls(build_session(token), api_url=api_url, timeout=timeout)

    @property
    def account_url(self) -> str:
        return f"{self.api_url}{ACCOUNT_PATH}"

    def fetch_account(self, timeout: Optional[float] = None) -> AccountSnapshot:
        """
        获取账号快照（一次网络请求）

        Args:
            timeout: 本次调用的超时时间（秒），None 时使用客户端默认值

        Returns:
            AccountSnapshot 对象

        Raises:
            AccountTimeoutError: 上游未在截止时间内返回完整响应
            UpstreamError: 传输、认证或响应解析失败
        """
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout

        logger.debug(f"调用 DigitalOcean Account API: url={self.account_url}, timeout={timeout}s")
        future = self._executor.submit(self._request, timeout, deadline)
        try:
            snapshot = future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            # 工作线程会在下一次读取后发现截止时间已过并自行退出
            raise AccountTimeoutError(f"Account API 请求超时 ({timeout}s)", cause=e) from e

        logger.debug(f"Account API 响应: status={snapshot.status}, droplet_limit={snapshot.droplet_limit}, "
                     f"email_verified={snapshot.email_verified}, floating_ip_limit={snapshot.floating_ip_limit}")
        return snapshot

    def _request(self, timeout: float, deadline: float) -> AccountSnapshot:
        """执行请求并解析响应（在工作线程中运行）"""
        try:
            response = self.session.get(self.account_url, timeout=timeout, stream=True)
        except requests.Timeout as e:
            raise AccountTimeoutError(f"Account API 请求超时 ({timeout}s): {e}", cause=e) from e
        except requests.RequestException as e:
            raise UpstreamError(f"Account API 请求失败: {e}", cause=e) from e

        try:
            content = _read_body(response, timeout, deadline)
        finally:
            response.close()

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise UpstreamError(
                f"Account API 返回错误状态: {response.status_code} - {_error_message(response, content)}",
                cause=e
            ) from e

        try:
            payload = json.loads(content)
        except ValueError as e:
            raise UpstreamError(f"Account API 响应不是合法 JSON: {e}", cause=e) from e

        try:
            return AccountSnapshot.from_api(payload)
        except ValueError as e:
            raise UpstreamError(f"Account API 响应解析失败: {e}", cause=e) from e

    def close(self):
        """关闭工作线程池和底层 HTTP Session"""
        self._executor.shutdown(wait=False)
        self.session.close()


def _read_body(response: requests.Response, timeout: float, deadline: float) -> bytes:
    """
    分块读取响应体，超过截止时间立即放弃

    Raises:
        AccountTimeoutError: 截止时间已过
        UpstreamError: 读取过程中连接失败
    """
    chunks = []
    try:
        if time.monotonic() > deadline:
            raise AccountTimeoutError(f"Account API 请求超时 ({timeout}s): 响应头超过截止时间")
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise AccountTimeoutError(f"Account API 请求超时 ({timeout}s): 响应体未在截止时间内读完")
            chunks.append(chunk)
    except requests.RequestException as e:
        # requests 把读取超时包装成 ConnectionError
        if isinstance(e, requests.Timeout) or time.monotonic() > deadline:
            raise AccountTimeoutError(f"Account API 请求超时 ({timeout}s): {e}", cause=e) from e
        raise UpstreamError(f"Account API 读取响应失败: {e}", cause=e) from e
    return b''.join(chunks)


def _error_message(response: requests.Response, content: bytes) -> str:
    """从错误响应中提取 API 的 message 字段"""
    try:
        body = json.loads(content)
    except ValueError:
        return response.reason or ''
    if isinstance(body, dict) and body.get('message'):
        return str(body['message'])
    return response.reason or ''
