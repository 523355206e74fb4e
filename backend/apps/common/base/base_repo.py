# apps/common/base/base_repo.py

from __future__ import annotations

from abc import ABC
from typing import Any, Generic, Optional, TypeVar

from django.db.models import F, Model, QuerySet

from apps.common.exceptions import NotFoundError

T = TypeVar("T", bound=Model)


class BaseRepo(ABC, Generic[T]):
    """
    Repository（数据访问层）基类：
    - 业务目标：统一封装 Django ORM 读写细节，给 Service 提供稳定接口
    - 模块角色：集中管理 ordering/filter 等查询配置，减少各模块重复 CRUD
    - 与 MemoryRepo 保持同一套方法签名，Service 不感知底层存储
    - 用法示例：class EventRepo(BaseRepo[Event]): model = Event
    """

    #: 子类必须指定对应的模型
    model: type[T]
    #: 集合默认排序（"-field" 表示降序）
    ordering: tuple[str, ...] = ("id",)
    #: get_by_id 未命中时的提示语
    not_found_message: str = "资源不存在"

    # ------------------------
    # QuerySet 构建
    # ------------------------

    def get_queryset(self) -> QuerySet[T]:
        """
        返回默认 QuerySet（已按 ordering 排序）
        """
        if not getattr(self, "model", None):
            raise NotImplementedError("BaseRepo 子类必须声明 model 属性")
        return self.model._default_manager.all().order_by(*self.ordering)

    def filter(self, *, queryset: Optional[QuerySet[T]] = None, **filters) -> QuerySet[T]:
        """
        通用过滤入口，允许注入自定义 QuerySet
        """
        qs = queryset if queryset is not None else self.get_queryset()
        return qs.filter(**filters)

    def list(self, **filters) -> list[T]:
        """
        返回满足条件的对象列表（已排序）
        """
        return list(self.filter(**filters))

    def get_by_id(self, pk: Any) -> T:
        """
        根据主键获取对象，不存在时抛 NotFoundError
        """
        instance = self.get_or_none(pk=pk)
        if instance is None:
            raise NotFoundError(message=self.not_found_message)
        return instance

    def get_or_none(self, **filters) -> Optional[T]:
        """
        返回符合条件的单个对象，未命中则为 None
        """
        return self.filter(**filters).first()

    def exists(self, **filters) -> bool:
        return self.filter(**filters).exists()

    def count(self, **filters) -> int:
        return self.filter(**filters).count()

    # ------------------------
    # 写操作
    # ------------------------

    def create(self, data: dict) -> T:
        return self.model._default_manager.create(**data)

    def update(self, instance: T, data: dict) -> T:
        """
        批量更新字段并保存，返回最新实例
        """
        for field, value in data.items():
            setattr(instance, field, value)
        if data:
            update_fields = list(data.keys())
            # auto_now 字段只有出现在 update_fields 中才会被刷新
            update_fields.extend(
                f.name for f in self.model._meta.concrete_fields
                if getattr(f, "auto_now", False) and f.name not in update_fields
            )
            instance.save(update_fields=update_fields)
        else:
            instance.save()
        return instance

    def delete(self, instance: T) -> None:
        instance.delete()

    def delete_where(self, **filters) -> int:
        """
        按条件批量删除，返回删除的主表记录数
        """
        deleted, per_model = self.model._default_manager.filter(**filters).delete()
        return per_model.get(self.model._meta.label, 0)

    def increment(self, instance: T, field: str, by: int = 1) -> T:
        """
        原子自增计数字段（F 表达式，避免并发丢失更新），随后刷新实例
        """
        self.model._default_manager.filter(pk=instance.pk).update(**{field: F(field) + by})
        instance.refresh_from_db(fields=[field])
        return instance
