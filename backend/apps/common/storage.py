"""
存储后端（Storage）：

- ClubStorage 把各领域 Repo 聚合为一个对象，并提供 atomic() 事务作用域
- DatabaseStorage：Django ORM 仓储 + transaction.atomic()
- MemoryStorage：进程内仓储 + 可重入锁 + 快照回滚，行为与数据库版一致
- reading()：只读查询的作用域；内存版持锁，数据库版无操作
- get_storage() 按 settings.CLUB_STORAGE_BACKEND 返回默认存储，Service 也可显式注入
"""

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext
from functools import lru_cache
from typing import Iterator

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from apps.common.infra.logger import get_logger

logger = get_logger(__name__)

REPO_NAMES = (
    "users",
    "events",
    "registrations",
    "results",
    "adjustments",
    "posts",
    "replies",
    "upvotes",
    "resources",
)


class ClubStorage:
    """所有存储后端的公共接口：一组 Repo + 事务作用域"""

    backend_name: str = ""

    def atomic(self):
        raise NotImplementedError

    def reading(self):
        """多次读取组成一次查询时的一致性作用域，默认无操作"""
        return nullcontext(self)

    def repos(self) -> dict:
        return {name: getattr(self, name) for name in REPO_NAMES}


class DatabaseStorage(ClubStorage):
    backend_name = "database"

    def __init__(self):
        from apps.accounts.repo import UserRepo
        from apps.events.repo import ContestResultRepo, EventRepo, RegistrationRepo
        from apps.forum.repo import ForumPostRepo, ForumReplyRepo, ReplyUpvoteRepo
        from apps.leaderboard.repo import ScoreAdjustmentRepo
        from apps.resources.repo import ResourceRepo

        self.users = UserRepo()
        self.events = EventRepo()
        self.registrations = RegistrationRepo()
        self.results = ContestResultRepo()
        self.adjustments = ScoreAdjustmentRepo()
        self.posts = ForumPostRepo()
        self.replies = ForumReplyRepo()
        self.upvotes = ReplyUpvoteRepo()
        self.resources = ResourceRepo()

    def atomic(self):
        return transaction.atomic()


class MemoryStorage(ClubStorage):
    backend_name = "memory"

    def __init__(self):
        from apps.accounts.repo import MemoryUserRepo
        from apps.events.repo import MemoryContestResultRepo, MemoryEventRepo, MemoryRegistrationRepo
        from apps.forum.repo import MemoryForumPostRepo, MemoryForumReplyRepo, MemoryReplyUpvoteRepo
        from apps.leaderboard.repo import MemoryScoreAdjustmentRepo
        from apps.resources.repo import MemoryResourceRepo

        self.users = MemoryUserRepo()
        self.events = MemoryEventRepo()
        self.registrations = MemoryRegistrationRepo()
        self.results = MemoryContestResultRepo()
        self.adjustments = MemoryScoreAdjustmentRepo()
        self.posts = MemoryForumPostRepo()
        self.replies = MemoryForumReplyRepo()
        self.upvotes = MemoryReplyUpvoteRepo()
        self.resources = MemoryResourceRepo()
        self._lock = threading.RLock()
        self._depth = 0
        for repo in self.repos().values():
            repo.bind_lock(self._lock)

    @contextmanager
    def reading(self) -> Iterator["MemoryStorage"]:
        """
        内存读作用域：与 atomic() 共用同一把锁
        - 进行中的事务提交或回滚之前，读方等待
        - 作用域内的多次读取看到同一份数据
        """
        with self._lock:
            yield self

    @contextmanager
    def atomic(self) -> Iterator["MemoryStorage"]:
        """
        内存事务：
        - 持锁期间其他线程的写操作等待
        - 最外层进入时对全部 Repo 打快照，异常时整体回滚
        """
        with self._lock:
            outermost = self._depth == 0
            snapshots = {name: repo.snapshot() for name, repo in self.repos().items()} if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    for name, state in snapshots.items():
                        getattr(self, name).restore(state)
                    logger.warning("内存存储事务回滚")
                raise
            finally:
                self._depth -= 1


@lru_cache(maxsize=1)
def _shared_memory_storage() -> MemoryStorage:
    return MemoryStorage()


def get_storage() -> ClubStorage:
    """
    返回配置的默认存储：
    - "database"：每次新建（Repo 无状态，数据在数据库）
    - "memory"：进程内单例，保证多次请求看到同一份数据
    """
    backend = getattr(settings, "CLUB_STORAGE_BACKEND", "database")
    if backend == "database":
        return DatabaseStorage()
    if backend == "memory":
        return _shared_memory_storage()
    raise ImproperlyConfigured(f"未知的 CLUB_STORAGE_BACKEND：{backend}")
