# apps/common/base/memory_repo.py

from __future__ import annotations

import copy
import threading
from abc import ABC
from typing import Any, Generic, Optional, TypeVar

from django.db import IntegrityError
from django.db.models import DateTimeField, Model
from django.utils import timezone

from apps.common.exceptions import NotFoundError

T = TypeVar("T", bound=Model)


def _sort_key(value: Any, *, descending: bool = False):
    # None 统一排在最后（降序时同样在最后），避免与其他类型比较报错
    return (value is None) != descending, value if value is not None else 0


class MemoryRepo(ABC, Generic[T]):
    """
    内存版 Repository：
    - 与 BaseRepo 方法签名一致，数据保存在进程内字典
    - 实例为未落库的 Django Model 对象，主键由本仓储自增分配
    - 仅支持等值过滤与 `field__in` 过滤；外键一律用 `<name>_id` 访问
    - snapshot/restore 供 MemoryStorage.atomic() 做事务回滚
    - 读写均持有锁；挂到 MemoryStorage 后与事务共用同一把锁，读不到未提交的中间状态
    """

    model: type[T]
    ordering: tuple[str, ...] = ("id",)
    not_found_message: str = "资源不存在"
    #: 唯一约束（字段组），create 时冲突抛 IntegrityError，与数据库行为一致
    unique_together: tuple[tuple[str, ...], ...] = ()

    def __init__(self):
        self._rows: dict[int, T] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def bind_lock(self, lock) -> None:
        self._lock = lock

    def _values(self) -> list[T]:
        with self._lock:
            return list(self._rows.values())

    # ------------------------
    # 查询
    # ------------------------

    @staticmethod
    def _matches(instance: T, filters: dict) -> bool:
        for key, expected in filters.items():
            if key == "pk":
                key = "id"
            if key.endswith("__in"):
                if getattr(instance, key[:-4]) not in expected:
                    return False
            elif getattr(instance, key) != expected:
                return False
        return True

    def _sorted(self, rows: list[T]) -> list[T]:
        # 多键稳定排序：从最后一个键开始依次排序
        rows = list(rows)
        for key in reversed(self.ordering):
            reverse = key.startswith("-")
            name = key.lstrip("-")
            rows.sort(key=lambda r: _sort_key(getattr(r, name), descending=reverse), reverse=reverse)
        return rows

    def filter(self, **filters) -> list[T]:
        return self._sorted([row for row in self._values() if self._matches(row, filters)])

    def list(self, **filters) -> list[T]:
        return self.filter(**filters)

    def get_by_id(self, pk: Any) -> T:
        with self._lock:
            instance = self._rows.get(pk)
        if instance is None:
            raise NotFoundError(message=self.not_found_message)
        return instance

    def get_or_none(self, **filters) -> Optional[T]:
        rows = self.filter(**filters)
        return rows[0] if rows else None

    def exists(self, **filters) -> bool:
        return any(self._matches(row, filters) for row in self._values())

    def count(self, **filters) -> int:
        return sum(1 for row in self._values() if self._matches(row, filters))

    # ------------------------
    # 写操作
    # ------------------------

    def _touch(self, instance: T, *, creating: bool) -> None:
        now = timezone.now()
        for field in self.model._meta.concrete_fields:
            if not isinstance(field, DateTimeField):
                continue
            if field.auto_now or (creating and field.auto_now_add):
                setattr(instance, field.attname, now)

    def create(self, data: dict) -> T:
        with self._lock:
            return self._insert(data)

    def _insert(self, data: dict) -> T:
        for group in self.unique_together:
            if self.exists(**{name: data.get(name) for name in group}):
                raise IntegrityError(f"UNIQUE constraint failed: {self.model._meta.db_table}.{'/'.join(group)}")
        instance = self.model(**data)
        instance.id = self._next_id
        self._next_id += 1
        self._touch(instance, creating=True)
        self._rows[instance.id] = instance
        return instance

    def update(self, instance: T, data: dict) -> T:
        with self._lock:
            for field, value in data.items():
                setattr(instance, field, value)
            self._touch(instance, creating=False)
        return instance

    def delete(self, instance: T) -> None:
        with self._lock:
            self._rows.pop(instance.id, None)

    def delete_where(self, **filters) -> int:
        with self._lock:
            doomed = [pk for pk, row in self._rows.items() if self._matches(row, filters)]
            for pk in doomed:
                del self._rows[pk]
        return len(doomed)

    def increment(self, instance: T, field: str, by: int = 1) -> T:
        with self._lock:
            setattr(instance, field, getattr(instance, field) + by)
        return instance

    # ------------------------
    # 事务支持
    # ------------------------

    def snapshot(self) -> tuple[dict[int, T], int]:
        with self._lock:
            return {pk: copy.copy(row) for pk, row in self._rows.items()}, self._next_id

    def restore(self, state: tuple[dict[int, T], int]) -> None:
        rows, next_id = state
        # 原地回写字段，已被调用方持有的实例引用也同步回滚
        for pk, saved in rows.items():
            current = self._rows.get(pk)
            if current is not None and current is not saved:
                current.__dict__.update(saved.__dict__)
                rows[pk] = current
        self._rows = rows
        self._next_id = next_id
