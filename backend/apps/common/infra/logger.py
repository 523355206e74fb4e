"""
日志封装：提供统一的日志记录器

- 通过 settings.LOG_PATH 配置日志目录，输出到 {LOG_PATH}/club.log
- 使用 PLAIN 格式，人类可读，便于 grep
- 自动轮转日志文件（按日期）
- 自动注入请求上下文（request_id、user_id、username、ip、path）
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from django.conf import settings as django_settings

_configured = False


class ClubPlainFormatter(logging.Formatter):
    """
    PLAIN 格式化器：

    格式：{timestamp} {level} {logger} {message} [{username}|{user_id}|{ip_address}|{request_path}]

    输出示例：
    2025-11-28 16:57:25 INFO apps.accounts.services 登录成功 [alice|3|127.0.0.1|/api/login]
    """

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录为PLAIN格式"""
        from apps.common.utils.request_context import get_request_context

        ctx = get_request_context()

        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname
        logger_name = record.name
        message = record.getMessage()

        # 构建上下文部分 [username|user_id|ip|path]
        username = ctx.get("username") or "-"
        user_id = str(ctx.get("user_id")) if ctx.get("user_id") is not None else "-"
        ip_address = ctx.get("ip") or "-"
        request_path = ctx.get("path") or "-"

        context_info = f"[{username}|{user_id}|{ip_address}|{request_path}]"

        log_line = f"{timestamp} {level} {logger_name} {message} {context_info}"

        if record.exc_info:
            log_line += "\n" + self.formatException(record.exc_info)

        return log_line


def get_log_path_from_settings() -> str:
    """基于 settings.LOG_PATH 生成日志文件路径，目录不存在时自动创建"""
    log_dir_path = Path(getattr(django_settings, "LOG_PATH", "logs"))
    log_dir_path.mkdir(parents=True, exist_ok=True)
    return str(log_dir_path / "club.log")


def _resolve_level() -> int:
    level_name = str(getattr(django_settings, "LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(force: bool = False, *, level: Optional[int] = None, log_file_path: Optional[str] = None) -> None:
    """
    配置日志系统

    配置内容：
    - 使用PLAIN格式
    - 按日期自动轮转（每天午夜），保留30天历史日志
    - DEBUG 环境额外输出到控制台

    参数：
        force: 是否强制重新配置（默认只配置一次）
    """
    global _configured
    if _configured and not force:
        return

    log_level = level if level is not None else _resolve_level()
    log_file_path = log_file_path if log_file_path is not None else get_log_path_from_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # 关闭并移除之前由本模块挂载的 handler，避免重复输出
    for handler in list(root_logger.handlers):
        if getattr(handler, "_club_handler", False):
            handler.close()
            root_logger.removeHandler(handler)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_file_path,
        when="midnight",
        interval=1,
        backupCount=30,
        encoding="utf-8",
        delay=True,  # 延迟打开文件，避免多进程抢占导致轮转失败
    )
    file_handler.suffix = "%Y-%m-%d"  # 轮转文件后缀：club.log.2025-11-28
    file_handler.setLevel(log_level)

    formatter = ClubPlainFormatter()
    file_handler.setFormatter(formatter)
    file_handler._club_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(file_handler)

    if getattr(django_settings, "DEBUG", False) or os.getenv("LOG_TO_CONSOLE", "False").lower() == "true":
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(formatter)
        console_handler._club_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    获取logger实例

    使用方式：
        logger = get_logger(__name__)
        logger.info("报名成功")
        logger.warning("重复点赞被拒绝")
    """
    if not _configured:
        configure_logging()

    return logging.getLogger(name)


SENSITIVE_KEYS = {"password", "token", "access", "refresh", "secret"}


def sanitize_extra(extra: Optional[dict] = None) -> dict:
    """
    过滤敏感字段，避免在日志中泄露密码/令牌
    """
    if not extra:
        return {}
    sanitized = {}
    for k, v in extra.items():
        if k.lower() in SENSITIVE_KEYS:
            sanitized[k] = "***"
        else:
            sanitized[k] = v
    return sanitized


def logger_extra(extra: Optional[dict] = None) -> dict:
    """封装extra，自动过滤敏感字段"""
    return sanitize_extra(extra)
