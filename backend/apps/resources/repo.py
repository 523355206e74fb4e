from __future__ import annotations

from apps.common.base.base_repo import BaseRepo
from apps.common.base.memory_repo import MemoryRepo

from .models import Resource


class ResourceQueries:
    model = Resource
    ordering = ("-created_at", "-id")
    not_found_message = "资源不存在"

    def by_type(self, resource_type: str) -> list[Resource]:
        return self.list(resource_type=resource_type)


class ResourceRepo(ResourceQueries, BaseRepo[Resource]):
    pass


class MemoryResourceRepo(ResourceQueries, MemoryRepo[Resource]):
    pass
