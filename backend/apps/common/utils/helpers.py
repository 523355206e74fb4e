"""
通用辅助函数：
- 提供掩码、请求体规整等纯工具方法，避免重复代码
- 不包含业务逻辑，便于在各模块安全复用
"""

from __future__ import annotations

from typing import Any

from django.http import QueryDict


def mask_email(email: str) -> str:
    """对邮箱做简单掩码，保护隐私"""
    if "@" not in email:
        return email
    name, domain = email.split("@", 1)
    if len(name) <= 2:
        masked = name[0] + "*" * (len(name) - 1)
    else:
        masked = name[0] + "*" * (len(name) - 2) + name[-1]
    return f"{masked}@{domain}"


def to_payload(data: Any) -> Any:
    """
    将 request.data 规整为普通 dict：
    - QueryDict（表单提交）取每个键的单值
    - JSON 对象原样返回，非对象（列表/字符串）交给 Schema 报错
    """
    if isinstance(data, QueryDict):
        return {key: data.get(key) for key in data.keys()}
    return data
