import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Resource",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200, verbose_name="标题")),
                ("description", models.TextField(blank=True, verbose_name="简介")),
                ("content", models.TextField(blank=True, verbose_name="正文")),
                (
                    "resource_type",
                    models.CharField(
                        choices=[("guide", "指南"), ("video", "视频"), ("practice", "练习"), ("career", "职业")],
                        db_index=True,
                        max_length=16,
                        verbose_name="类型",
                    ),
                ),
                ("link", models.URLField(blank=True, max_length=500, verbose_name="链接")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="resources",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="发布人",
                    ),
                ),
            ],
            options={
                "verbose_name": "学习资源",
                "verbose_name_plural": "学习资源",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
