# apps/common/base/base_schema.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import MISSING, asdict, dataclass, fields
from typing import Any, ClassVar, Dict, Generic, Iterable, Mapping, Optional, TypeVar

from apps.common.exceptions import ValidationError

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound="BaseSchema[Any]")


@dataclass
class BaseSchema(ABC, Generic[T]):
    """
    业务 Schema / DTO 基类

    目的：
        - 用于 View 与 Service 之间传递结构化数据；
        - 聚合字段校验逻辑，替代零散的 serializer/表单校验；
        - 提供通用的字典化能力

    子类示例：
        @dataclass
        class EventCreateSchema(BaseSchema):
            title: str
            duration: int

            def validate(self):
                if self.duration <= 0:
                    raise ValidationError("活动时长必须为正数")
    """

    #: 是否在 __post_init__ 中自动执行 validate
    auto_validate: ClassVar[bool] = False
    #: 字段别名映射：兼容前端驼峰命名（eventType → event_type）
    ALIASES: ClassVar[dict[str, str]] = {}

    def __post_init__(self):
        if self.auto_validate:
            self.validate()

    # ------------------------
    # 校验钩子
    # ------------------------

    @abstractmethod
    def validate(self) -> None:
        """
        子类实现字段/业务约束校验，出错时抛 ValidationError
        """

    # ------------------------
    # 数据转换
    # ------------------------

    def to_dict(
            self,
            *,
            exclude_none: bool = False,
            exclude: Iterable[str] | None = None,
    ) -> Dict[str, Any]:
        """
        将 Schema 转为 dict，支持过滤 None 或移除指定字段
        """
        data = asdict(self)
        if exclude_none:
            data = {key: value for key, value in data.items() if value is not None}
        if exclude:
            for key in exclude:
                data.pop(key, None)
        return data

    def provided_fields(self) -> Dict[str, Any]:
        """
        PATCH 语义：只返回请求中实际出现的字段
        """
        provided = getattr(self, "_provided", None)
        data = self.to_dict()
        if provided is None:
            return data
        return {key: value for key, value in data.items() if key in provided}

    # ------------------------
    # 构建方法
    # ------------------------

    @classmethod
    def from_dict(
            cls: type[SchemaType],
            data: Any,
            *,
            auto_validate: Optional[bool] = None,
    ) -> SchemaType:
        """
        将外部 payload 转为 Schema；auto_validate 控制是否立即校验

        - 非对象请求体、未知字段、缺失必填字段均抛 ValidationError
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValidationError("请求体必须是 JSON 对象")
        data = dict(data)
        if cls.ALIASES:
            normalized = dict(data)
            for alias, target in cls.ALIASES.items():
                if alias in normalized and target not in normalized:
                    normalized[target] = normalized.pop(alias)
                elif alias in normalized:
                    normalized.pop(alias)
            data = normalized

        declared = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(declared))
        if unknown:
            raise ValidationError(f"未知字段：{', '.join(unknown)}", extra={"fields": unknown})
        missing = [
            name for name, f in declared.items()
            if name not in data and f.default is MISSING and f.default_factory is MISSING
        ]
        if missing:
            raise ValidationError(f"缺少必填字段：{', '.join(missing)}", extra={"fields": missing})

        # 先记录请求中出现的字段，__post_init__ 中的校验才能区分“未传”与“传了 null”
        instance = cls.__new__(cls)
        object.__setattr__(instance, "_provided", frozenset(data))
        instance.__init__(**data)  # type: ignore[misc]
        if auto_validate and not cls.auto_validate:
            instance.validate()
        return instance
