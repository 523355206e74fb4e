# apps/common/base/base_service.py

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from apps.common.exceptions import BizError
from apps.common.infra.logger import get_logger

if TYPE_CHECKING:
    from apps.common.storage import ClubStorage

logger = get_logger(__name__)

ServiceReturn = TypeVar("ServiceReturn")


class BaseService(ABC, Generic[ServiceReturn]):
    """
    Service 层业务逻辑基类

    约束：
        - 负责编排业务逻辑，不直接处理 HTTP
        - 使用普通 Python 参数，避免依赖 request
        - 通过 storage 上挂载的 Repo 访问持久化层，不直接调用 ORM
        - 默认在 storage.atomic() 中执行 `perform`
        - 预期内的业务失败使用 BizError；系统异常向上抛出交由全局 500 处理

    标准流程：validate(...) -> perform(...) -> handle_error(...)
    存储注入：
        - 构造时可显式传入 storage（测试中传 MemoryStorage）
        - 未传入时使用 get_storage() 返回的配置默认值
    """

    atomic_enabled: bool = True

    def __init__(self, storage: Optional["ClubStorage"] = None):
        if storage is None:
            from apps.common.storage import get_storage

            storage = get_storage()
        self.storage = storage

    # ------------------------
    # 工具方法
    # ------------------------

    def atomic(self):
        """
        当前 storage 的事务上下文（数据库事务 / 内存快照回滚）
        """
        return self.storage.atomic()

    # ------------------------
    # 子类扩展点
    # ------------------------

    def validate(self, *args, **kwargs) -> None:
        """
        可选的业务预检查钩子（权限、状态等），默认空实现
        """
        return None

    @abstractmethod
    def perform(self, *args, **kwargs) -> ServiceReturn:
        """
        子类必须实现的业务核心逻辑
        """

    def execute(self, *args, **kwargs) -> ServiceReturn:
        """
        Service 对外的统一入口，封装标准流程
        """
        try:
            self.validate(*args, **kwargs)
            if self.atomic_enabled:
                with self.atomic():
                    return self.perform(*args, **kwargs)
            return self.perform(*args, **kwargs)
        except Exception as exc:
            return self.handle_error(exc)

    __call__ = execute

    def handle_error(self, exc: Exception) -> ServiceReturn:
        """
        业务错误继续抛出 BizError，系统异常记录日志后向上抛出交由全局异常处理器
        """
        if isinstance(exc, BizError):
            raise exc
        logger.exception("Service 层出现未捕获的系统异常，向上抛出以按 500 处理", exc_info=exc)
        raise exc


class BaseQueryService(BaseService[ServiceReturn]):
    """
    只读查询服务：不走 execute 流程，直接暴露若干查询方法
    - 由多次读取拼成的结果放在 reading() 中完成，内存存储下不会读到未提交的事务
    """

    atomic_enabled = False

    def reading(self):
        return self.storage.reading()

    def perform(self, *args, **kwargs) -> ServiceReturn:  # pragma: no cover - 查询服务不走 execute
        raise NotImplementedError("查询服务请直接调用具体查询方法")
