from django.apps import AppConfig


class ForumConfig(AppConfig):
    """论坛模块：帖子、回复、点赞、最佳答案"""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.forum"
    label = "forum"
    verbose_name = "Forum"
