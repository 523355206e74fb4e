"""
校验工具集合：提供常用字段格式校验
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator, validate_email as django_validate_email
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.common.exceptions import ValidationError

USERNAME_REGEX = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
# BigAutoField 主键上限
ID_MAX = 2**63 - 1


def validate_email(email: str) -> None:
    """校验邮箱格式，不通过抛出 ValidationError，统一邮件输入规则"""
    try:
        django_validate_email(email)
    except DjangoValidationError as exc:
        raise ValidationError(message="邮箱格式不正确") from exc


def validate_username(username: str) -> None:
    """用户名：3-32 位字母、数字、下划线、点或连字符"""
    if not isinstance(username, str) or not USERNAME_REGEX.match(username):
        raise ValidationError(message="用户名需为 3-32 位字母、数字、下划线、点或连字符")


def validate_password_strength(password: str, min_length: int = 8, max_length: int = 64) -> None:
    """
    密码复杂度校验：
    - 长度需在 [min_length, max_length] 区间
    - 必须同时包含字母与数字，防止弱密码
    """
    if not isinstance(password, str):
        raise ValidationError(message="密码必须是字符串")
    if not min_length <= len(password) <= max_length:
        raise ValidationError(message=f"密码长度需在 {min_length}-{max_length} 位之间")
    if not re.search(r"[A-Za-z]", password) or not re.search(r"\d", password):
        raise ValidationError(message="密码需同时包含字母和数字")


def forbid_dangerous_html(value: str, *, field_name: str = "字段") -> None:
    """
    拒绝常见危险 HTML 片段（如 <script>/<iframe>/javascript: 等），降低 XSS 风险
    允许普通文本和 Markdown，但若检测到可执行片段则阻断
    """
    if not value:
        return
    lower = value.lower()
    dangerous_markers = [
        "<script",
        "javascript:",
        "onerror=",
        "onload=",
        "<iframe",
        "<object",
        "<embed",
        "svg/onload",
    ]
    if any(marker in lower for marker in dangerous_markers):
        raise ValidationError(message=f"{field_name} 含有潜在危险的 HTML/脚本片段")


def validate_url_optional(url: Optional[str], *, allow_blank: bool = True) -> None:
    """可选 URL 校验，空值可放过"""
    if allow_blank and not url:
        return
    try:
        URLValidator()(url)
    except DjangoValidationError as exc:
        raise ValidationError(message="URL 格式不正确") from exc


def require_text(value: Any, *, field_name: str, max_length: Optional[int] = None) -> str:
    """必填文本：字符串、去空白后非空、可选长度上限"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message=f"{field_name}不能为空")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(message=f"{field_name}长度不能超过 {max_length} 个字符")
    return value.strip()


def optional_text(value: Any, *, field_name: str, max_length: Optional[int] = None) -> str:
    """可选文本：None 视为空串"""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(message=f"{field_name}必须是字符串")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(message=f"{field_name}长度不能超过 {max_length} 个字符")
    return value


def validate_choice(value: Any, choices: Iterable[str], *, field_name: str) -> str:
    allowed = list(choices)
    if value not in allowed:
        raise ValidationError(message=f"{field_name}取值必须为 {'/'.join(allowed)} 之一")
    return value


def ensure_int(
    value: Any,
    *,
    field_name: str,
    min_value: Optional[int] = None,
    max_value: int = INT_MAX,
) -> int:
    """
    整数校验：拒绝布尔值与浮点数，接受整数或纯数字字符串
    - 默认范围与数据库 IntegerField 一致，超出范围返回 400 而不是写库时报错
    """
    if isinstance(value, bool):
        raise ValidationError(message=f"{field_name}必须是整数")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and re.fullmatch(r"-?[0-9]+", value.strip()):
        text = value.strip()
        if len(text.lstrip("-")) > 19:
            raise ValidationError(message=f"{field_name}超出范围")
        result = int(text)
    else:
        raise ValidationError(message=f"{field_name}必须是整数")
    lower = INT_MIN if min_value is None else min_value
    if result < lower:
        raise ValidationError(message=f"{field_name}不能小于 {lower}")
    if result > max_value:
        raise ValidationError(message=f"{field_name}不能大于 {max_value}")
    return result


def parse_id(value: Any, label: str = "ID") -> int:
    """
    路径参数中的 ID：必须是正整数，否则 400（而不是 404）
    """
    if isinstance(value, int) and not isinstance(value, bool) and 0 < value <= ID_MAX:
        return value
    if isinstance(value, str) and re.fullmatch(r"[0-9]{1,19}", value) and 0 < int(value) <= ID_MAX:
        return int(value)
    raise ValidationError(message=f"{label}格式不正确", extra={"value": str(value)})


def parse_datetime_value(value: Any, *, field_name: str) -> datetime:
    """
    ISO 8601 时间字符串 → 带时区 datetime；无时区信息时按当前时区处理
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(message=f"{field_name}不是合法的时间格式")
    else:
        raise ValidationError(message=f"{field_name}不是合法的时间格式")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def validate_tags(value: Any, *, max_tags: int = 10, max_length: int = 32) -> list[str]:
    """标签列表：字符串数组，去重保序、去空白"""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise ValidationError(message="标签必须是字符串数组")
    tags: list[str] = []
    for tag in value:
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > max_length:
            raise ValidationError(message=f"单个标签长度不能超过 {max_length} 个字符")
        if tag not in tags:
            tags.append(tag)
    if len(tags) > max_tags:
        raise ValidationError(message=f"标签数量不能超过 {max_tags} 个")
    return tags
