# -*- coding: utf-8 -*-
"""
DigitalOcean 认证传输层

功能：
- 为每个出站请求附加 Bearer Token
- 构建带认证的 requests.Session（连接池复用）
"""

import requests
from requests.auth import AuthBase


class TokenAuth(AuthBase):
    """
    静态 Token 认证

    DigitalOcean API 使用 OAuth Bearer Token，Token 不会过期刷新，
    所以每次请求直接写入 Authorization 头即可
    """

    def __init__(self, token: str):
        if not token:
            raise ValueError("DigitalOcean token 不能为空")
        self.token = token

    def __call__(self, request):
        request.headers['Authorization'] = f"Bearer {self.token}"
        return request

    def __repr__(self):
        # 不在日志中泄露 token
        return "TokenAuth(token=***)"


def build_session(token: str, user_agent: str = 'do-account-exporter') -> requests.Session:
    """
    构建带认证的 HTTP Session

    Args:
        token: DigitalOcean API Token
        user_agent: User-Agent 头

    Returns:
        已配置认证的 requests.Session
    """
    session = requests.Session()
    session.auth = TokenAuth(token)
    session.headers.update({
        'Accept': 'application/json',
        'User-Agent': user_agent,
    })
    return session
