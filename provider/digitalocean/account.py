# -*- coding: utf-8 -*-
"""
账号快照数据结构

功能：
- 定义一次成功 Account API 响应的不可变快照
- 从 API JSON 响应解析并校验字段
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any


ACTIVE_STATUS = "active"


@dataclass(frozen=True)
class AccountSnapshot:
    """单次 Account API 调用的结果（不可变）"""
    status: str                          # 账号状态，如 "active", "warning", "locked"
    droplet_limit: int                   # 可创建的 Droplet 总数
    email_verified: bool                 # 邮箱是否已验证
    floating_ip_limit: int               # 可持有的 Floating IP 总数
    uuid: Optional[str] = None           # 账号 UUID（仅信息用途，不导出）
    email: Optional[str] = None          # 账号邮箱（仅信息用途，不导出）
    status_message: Optional[str] = None  # 状态说明（仅信息用途，不导出）

    def is_active(self) -> bool:
        """判断账号是否处于 active 状态"""
        return self.status == ACTIVE_STATUS

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'AccountSnapshot':
        """
        从 GET /v2/account 的响应体构建快照

        Args:
            payload: 解析后的 JSON 响应体，形如 {"account": {...}}

        Returns:
            AccountSnapshot 对象

        Raises:
            ValueError: 响应结构不完整或字段类型错误
        """
        if not isinstance(payload, dict):
            raise ValueError("响应格式错误: 响应体必须是 JSON 对象")

        account = payload.get('account')
        if not isinstance(account, dict):
            raise ValueError("响应格式错误: 缺少 'account' 对象")

        status = account.get('status')
        if not isinstance(status, str):
            raise ValueError(f"响应格式错误: 'status' 必须是字符串，实际为 {status!r}")

        email_verified = account.get('email_verified')
        if not isinstance(email_verified, bool):
            raise ValueError(f"响应格式错误: 'email_verified' 必须是布尔值，实际为 {email_verified!r}")

        return cls(
            status=status,
            droplet_limit=_parse_limit(account, 'droplet_limit'),
            email_verified=email_verified,
            floating_ip_limit=_parse_limit(account, 'floating_ip_limit'),
            uuid=account.get('uuid'),
            email=account.get('email'),
            status_message=account.get('status_message'),
        )


def _parse_limit(account: Dict[str, Any], field: str) -> int:
    """解析非负整数配额字段"""
    value = account.get(field)
    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"响应格式错误: '{field}' 必须是整数，实际为 {value!r}")
    if value < 0:
        raise ValueError(f"响应格式错误: '{field}' 不能为负数，实际为 {value}")
    return value
