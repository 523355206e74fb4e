"""学习资源服务：管理员维护，所有人可读"""

from __future__ import annotations

from apps.common.base.base_service import BaseQueryService, BaseService
from apps.common.infra.logger import get_logger, logger_extra

from .models import Resource
from .schemas import ResourceCreateSchema, ResourceUpdateSchema

logger = get_logger(__name__)


def serialize_resource(resource: Resource) -> dict[str, object]:
    return {
        "id": resource.id,
        "title": resource.title,
        "description": resource.description,
        "content": resource.content,
        "resource_type": resource.resource_type,
        "link": resource.link,
        "user_id": resource.user_id,
        "created_at": resource.created_at.isoformat() if resource.created_at else None,
        "updated_at": resource.updated_at.isoformat() if resource.updated_at else None,
    }


class CreateResourceService(BaseService[Resource]):
    def perform(self, operator, schema: ResourceCreateSchema) -> Resource:
        resource = self.storage.resources.create({**schema.to_dict(), "user_id": operator.id})
        logger.info(
            "学习资源已创建",
            extra=logger_extra({"resource_id": resource.id, "type": resource.resource_type, "operator_id": operator.id}),
        )
        return resource


class UpdateResourceService(BaseService[Resource]):
    def perform(self, resource_id: int, schema: ResourceUpdateSchema) -> Resource:
        repo = self.storage.resources
        changes = schema.provided_fields()
        resource = repo.update(repo.get_by_id(resource_id), changes)
        logger.info("学习资源已更新", extra=logger_extra({"resource_id": resource.id, "fields": sorted(changes)}))
        return resource


class DeleteResourceService(BaseService[None]):
    def perform(self, resource_id: int) -> None:
        repo = self.storage.resources
        repo.delete(repo.get_by_id(resource_id))
        logger.info("学习资源已删除", extra=logger_extra({"resource_id": resource_id}))


class ResourceQueryService(BaseQueryService[None]):
    def list_resources(self, resource_type: str | None = None) -> list[Resource]:
        if resource_type:
            return self.storage.resources.by_type(resource_type)
        return self.storage.resources.list()

    def get_resource(self, resource_id: int) -> Resource:
        return self.storage.resources.get_by_id(resource_id)
