from __future__ import annotations

import os
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.accounts.models import User
from apps.common.storage import get_storage

DEMO_MEMBERS = [
    {"username": "johndoe", "email": "john@example.com", "display_name": "John Doe", "level": User.Level.INTERMEDIATE,
     "bio": "算法竞赛爱好者，主攻图论。"},
    {"username": "janesmith", "email": "jane@example.com", "display_name": "Jane Smith", "level": User.Level.ADVANCED,
     "bio": "ICPC 区域赛选手。"},
    {"username": "bobchen", "email": "bob@example.com", "display_name": "Bob Chen", "level": User.Level.BEGINNER,
     "bio": "刚入门，正在刷基础题。"},
]


class Command(BaseCommand):
    help = "创建默认管理员账号；加 --demo 额外创建演示成员、活动、成绩、帖子与学习资源"

    def add_arguments(self, parser):
        parser.add_argument(
            "--admin-password",
            default=os.getenv("CLUB_ADMIN_PASSWORD", "admin123"),
            help="默认管理员密码（默认读取 CLUB_ADMIN_PASSWORD，未设置时为 admin123）",
        )
        parser.add_argument("--demo", action="store_true", help="同时写入演示数据")

    def handle(self, *args, **options):
        storage = get_storage()
        if storage.backend_name == "memory":
            self.stdout.write(self.style.WARNING("当前为内存存储，写入的数据在命令结束后即丢失"))

        with storage.atomic():
            admin = self._ensure_admin(storage, options["admin_password"])
            if options["demo"]:
                self._create_demo_data(storage, admin)

        self.stdout.write(self.style.SUCCESS("初始化完成。"))
        self.stdout.write(self.style.WARNING(f"管理员账号：admin / 密码：{options['admin_password']}"))

    def _ensure_admin(self, storage, password: str) -> User:
        admin = storage.users.get_or_none(username="admin")
        if admin is not None:
            self.stdout.write("管理员账号已存在，跳过创建")
            return admin
        return storage.users.create_user(
            username="admin",
            email="admin@club.example.com",
            password=password,
            display_name="Admin",
            bio="Site administrator",
            role=User.Role.ADMIN,
            level=User.Level.ADVANCED,
            is_staff=True,
        )

    def _create_demo_data(self, storage, admin: User) -> None:
        members = []
        for data in DEMO_MEMBERS:
            user = storage.users.get_or_none(username=data["username"])
            if user is None:
                user = storage.users.create_user(password="password123", **data)
            members.append(user)

        now = timezone.now()
        past_contest = storage.events.create(
            {
                "title": "月度编程赛 #1",
                "description": "90 分钟 5 道题，ACM 赛制。",
                "event_type": "contest",
                "date": now - timedelta(days=14),
                "duration": 90,
                "location": "Lab 301",
                "created_by_id": admin.id,
            }
        )
        storage.events.create(
            {
                "title": "动态规划工作坊",
                "description": "从背包问题到区间 DP。",
                "event_type": "workshop",
                "date": now + timedelta(days=7),
                "duration": 120,
                "location": "Room 204",
                "created_by_id": admin.id,
            }
        )
        for position, (user, score) in enumerate(sorted(zip(members, (180, 240, 90)), key=lambda p: -p[1]), start=1):
            storage.results.create(
                {"event_id": past_contest.id, "user_id": user.id, "score": score, "position": position}
            )
            storage.registrations.create({"event_id": past_contest.id, "user_id": user.id})

        post = storage.posts.create(
            {
                "title": "最短路该用 Dijkstra 还是 SPFA？",
                "content": "边权非负的情况下两者各有什么取舍？",
                "user_id": members[2].id,
                "tags": ["graph", "shortest-path"],
            }
        )
        storage.replies.create(
            {"post_id": post.id, "user_id": members[1].id, "content": "非负边权优先 Dijkstra + 堆，SPFA 最坏 O(VE)。"}
        )

        storage.resources.create(
            {
                "title": "竞赛入门指南",
                "description": "从零开始准备算法竞赛",
                "content": "",
                "resource_type": "guide",
                "link": "https://cp-algorithms.com/",
                "user_id": admin.id,
            }
        )
        self.stdout.write(f"已创建 {len(members)} 名演示成员及活动、成绩、帖子、资源")
