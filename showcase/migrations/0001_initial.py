import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import showcase.models
import showcase.storage_backends


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SkillCategory",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=80, unique=True)),
                (
                    "color",
                    models.CharField(
                        help_text="Hex color, e.g. #10b981",
                        max_length=7,
                        validators=[
                            django.core.validators.RegexValidator("^#[0-9A-Fa-f]{6}$", "Must be a valid hex color code")
                        ],
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "skill categories",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Skill",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=80, unique=True)),
                (
                    "proficiency_level",
                    models.PositiveSmallIntegerField(
                        help_text="1-5 scale",
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(5),
                        ],
                    ),
                ),
                ("years_experience", models.FloatField(validators=[django.core.validators.MaxValueValidator(100)])),
                ("first_used_date", models.DateField()),
                ("icon_name", models.CharField(blank=True, help_text="icon key for the frontend", max_length=80)),
                (
                    "category",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="skills",
                        to="showcase.skillcategory",
                    ),
                ),
            ],
            options={
                "ordering": ["category__name", "-proficiency_level", "name"],
            },
        ),
        migrations.CreateModel(
            name="ProjectCategory",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=80, unique=True)),
            ],
            options={
                "verbose_name_plural": "project categories",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Tag",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=60, unique=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=200)),
                ("slug", models.SlugField(blank=True, max_length=220, unique=True)),
                ("summary", models.TextField()),
                ("description", models.TextField(help_text="Markdown")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True, help_text="Empty for ongoing projects", null=True)),
                ("repository_url", models.URLField(blank=True)),
                ("demo_url", models.URLField(blank=True)),
                ("featured", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("planned", "Planned"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                        ],
                        default="in_progress",
                        max_length=20,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="projects",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "categories",
                    models.ManyToManyField(blank=True, related_name="projects", to="showcase.projectcategory"),
                ),
                ("skills", models.ManyToManyField(blank=True, related_name="projects", to="showcase.skill")),
            ],
            options={
                "ordering": ["-featured", "-start_date", "title"],
            },
        ),
        migrations.CreateModel(
            name="GalleryImage",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "image",
                    models.ImageField(
                        max_length=255,
                        storage=showcase.storage_backends.SupabaseMediaStorage(),
                        upload_to=showcase.models.gallery_upload_path,
                    ),
                ),
                ("storage_path", models.CharField(blank=True, max_length=255)),
                ("image_url", models.URLField(blank=True, max_length=500)),
                ("caption", models.CharField(blank=True, max_length=300)),
                ("alt_text", models.CharField(max_length=200)),
                ("display_order", models.PositiveIntegerField(default=0)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="gallery",
                        to="showcase.project",
                    ),
                ),
            ],
            options={
                "ordering": ["display_order", "created_at"],
            },
        ),
        migrations.CreateModel(
            name="DevlogEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=200)),
                ("content", models.TextField(help_text="Markdown")),
                ("entry_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "milestone_type",
                    models.CharField(
                        blank=True,
                        choices=[("major", "Major"), ("minor", "Minor")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="devlog",
                        to="showcase.project",
                    ),
                ),
                ("tags", models.ManyToManyField(blank=True, related_name="entries", to="showcase.tag")),
            ],
            options={
                "verbose_name_plural": "devlog entries",
                "ordering": ["-entry_date", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="UserSettings",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("address", models.CharField(blank=True, max_length=255)),
                (
                    "phone_number",
                    models.CharField(
                        blank=True,
                        max_length=20,
                        validators=[
                            django.core.validators.RegexValidator(
                                "^\\+?[0-9\\s\\-()]{7,15}$", "Must be a valid phone number"
                            )
                        ],
                    ),
                ),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("linkedin_url", models.URLField(blank=True)),
                ("github_url", models.URLField(blank=True)),
                ("website_1_url", models.CharField(blank=True, max_length=255)),
                ("website_2_url", models.CharField(blank=True, max_length=255)),
                ("about_me", models.TextField(blank=True, help_text="Markdown")),
                ("about_short", models.TextField(blank=True)),
            ],
            options={
                "verbose_name_plural": "user settings",
            },
        ),
    ]
