"""活动模块的业务服务层

职责：
- 活动的创建、修改、删除（删除时级联清理报名与成绩）
- 成员报名/取消报名，同一活动不可重复报名
- 比赛成绩的登记、修改、删除（仅比赛类活动可登记）
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.db import IntegrityError

from apps.common.base.base_service import BaseQueryService, BaseService
from apps.common.exceptions import AlreadyRegisteredError, NotContestEventError, NotFoundError
from apps.common.infra.logger import get_logger, logger_extra

from .models import ContestResult, Event, EventRegistration
from .schemas import (
    ContestResultCreateSchema,
    ContestResultUpdateSchema,
    EventCreateSchema,
    EventUpdateSchema,
)

logger = get_logger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_event(event: Event, *, registration_count: Optional[int] = None) -> dict[str, object]:
    data: dict[str, object] = {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "event_type": event.event_type,
        "date": _iso(event.date),
        "duration": event.duration,
        "location": event.location,
        "created_by": event.created_by_id,
        "created_at": _iso(event.created_at),
    }
    if registration_count is not None:
        data["registration_count"] = registration_count
    return data


def serialize_registration(registration: EventRegistration) -> dict[str, object]:
    return {
        "id": registration.id,
        "event_id": registration.event_id,
        "user_id": registration.user_id,
        "registered_at": _iso(registration.registered_at),
    }


def serialize_result(result: ContestResult) -> dict[str, object]:
    return {
        "id": result.id,
        "event_id": result.event_id,
        "user_id": result.user_id,
        "score": result.score,
        "position": result.position,
        "created_at": _iso(result.created_at),
    }


class CreateEventService(BaseService[Event]):
    """管理员创建活动"""

    def perform(self, operator, schema: EventCreateSchema) -> Event:
        event = self.storage.events.create(
            {
                "title": schema.title,
                "description": schema.description or "",
                "event_type": schema.event_type,
                "date": schema.date,
                "duration": schema.duration,
                "location": schema.location or "",
                "created_by_id": operator.id,
            }
        )
        logger.info(
            "活动已创建",
            extra=logger_extra({"event_id": event.id, "event_type": event.event_type, "operator_id": operator.id}),
        )
        return event


class UpdateEventService(BaseService[Event]):
    """管理员修改活动（仅更新出现的字段）"""

    def perform(self, event_id: int, schema: EventUpdateSchema) -> Event:
        events = self.storage.events
        event = events.get_by_id(event_id)
        changes = schema.provided_fields()
        for key in ("description", "location"):
            if key in changes and changes[key] is None:
                changes[key] = ""
        event = events.update(event, changes)
        logger.info("活动已更新", extra=logger_extra({"event_id": event.id, "fields": sorted(changes)}))
        return event


class DeleteEventService(BaseService[None]):
    """
    删除活动：同一事务内先清理报名与成绩，再删除活动本身
    """

    def perform(self, event_id: int) -> None:
        event = self.storage.events.get_by_id(event_id)
        registrations = self.storage.registrations.delete_where(event_id=event.id)
        results = self.storage.results.delete_where(event_id=event.id)
        self.storage.events.delete(event)
        logger.info(
            "活动已删除",
            extra=logger_extra({"event_id": event_id, "registrations": registrations, "results": results}),
        )


class RegisterForEventService(BaseService[EventRegistration]):
    """
    活动报名：
    - 已报名直接拒绝（409），不产生重复记录
    - 并发下依赖唯一约束兜底，IntegrityError 同样转换为 409
    """

    def perform(self, user, event_id: int) -> EventRegistration:
        event = self.storage.events.get_by_id(event_id)
        registrations = self.storage.registrations
        if registrations.find(event.id, user.id) is not None:
            logger.warning("重复报名被拒绝", extra=logger_extra({"event_id": event.id, "user_id": user.id}))
            raise AlreadyRegisteredError()
        try:
            with self.atomic():
                registration = registrations.create({"event_id": event.id, "user_id": user.id})
        except IntegrityError as exc:
            logger.warning("重复报名被拒绝（唯一约束）", extra=logger_extra({"event_id": event.id, "user_id": user.id}))
            raise AlreadyRegisteredError() from exc
        logger.info("报名成功", extra=logger_extra({"event_id": event.id, "user_id": user.id}))
        return registration


class CancelRegistrationService(BaseService[None]):
    """取消本人报名，未报名时 404"""

    def perform(self, user, event_id: int) -> None:
        event = self.storage.events.get_by_id(event_id)
        registration = self.storage.registrations.find(event.id, user.id)
        if registration is None:
            raise NotFoundError(message="未报名该活动")
        self.storage.registrations.delete(registration)
        logger.info("已取消报名", extra=logger_extra({"event_id": event.id, "user_id": user.id}))


class RecordResultService(BaseService[ContestResult]):
    """
    登记比赛成绩：
    - 仅比赛类活动可登记
    - 被登记的用户必须存在
    """

    def perform(self, operator, event_id: int, schema: ContestResultCreateSchema) -> ContestResult:
        event = self.storage.events.get_by_id(event_id)
        if not event.is_contest:
            raise NotContestEventError()
        user = self.storage.users.get_by_id(schema.user_id)
        result = self.storage.results.create(
            {
                "event_id": event.id,
                "user_id": user.id,
                "score": schema.score,
                "position": schema.position,
            }
        )
        logger.info(
            "比赛成绩已登记",
            extra=logger_extra(
                {"result_id": result.id, "event_id": event.id, "user_id": user.id, "score": result.score,
                 "operator_id": operator.id}
            ),
        )
        return result


class UpdateResultService(BaseService[ContestResult]):
    def perform(self, result_id: int, schema: ContestResultUpdateSchema) -> ContestResult:
        results = self.storage.results
        result = results.get_by_id(result_id)
        changes = schema.provided_fields()
        result = results.update(result, changes)
        logger.info("比赛成绩已修改", extra=logger_extra({"result_id": result.id, "fields": sorted(changes)}))
        return result


class DeleteResultService(BaseService[None]):
    def perform(self, result_id: int) -> None:
        result = self.storage.results.get_by_id(result_id)
        self.storage.results.delete(result)
        logger.info("比赛成绩已删除", extra=logger_extra({"result_id": result_id, "event_id": result.event_id}))


class EventQueryService(BaseQueryService[None]):
    """
    活动只读查询：列表（附报名人数）、详情、报名名单、成绩榜
    """

    def list_events(self) -> list[dict[str, object]]:
        with self.reading():
            events = self.storage.events.list()
            counts = self.storage.registrations.counts_by_event(e.id for e in events)
        return [serialize_event(e, registration_count=counts.get(e.id, 0)) for e in events]

    def get_event(self, event_id: int) -> dict[str, object]:
        with self.reading():
            event = self.storage.events.get_by_id(event_id)
            return serialize_event(event, registration_count=self.storage.registrations.count(event_id=event.id))

    def list_registrations(self, event_id: int) -> list[EventRegistration]:
        with self.reading():
            event = self.storage.events.get_by_id(event_id)
            return self.storage.registrations.for_event(event.id)

    def list_results(self, event_id: int) -> list[ContestResult]:
        with self.reading():
            event = self.storage.events.get_by_id(event_id)
            return self.storage.results.for_event(event.id)
