import uuid
from pathlib import PurePosixPath

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

from .storage_backends import SupabaseMediaStorage

hex_color_validator = RegexValidator(r"^#[0-9A-Fa-f]{6}$", "Must be a valid hex color code")
phone_number_validator = RegexValidator(r"^\+?[0-9\s\-()]{7,15}$", "Must be a valid phone number")


class TimestampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SkillCategory(TimestampedModel):
    name = models.CharField(max_length=80, unique=True)
    color = models.CharField(max_length=7, validators=[hex_color_validator], help_text="Hex color, e.g. #10b981")

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "skill categories"

    def __str__(self):
        return self.name


class Skill(TimestampedModel):
    name = models.CharField(max_length=80, unique=True)
    category = models.ForeignKey(SkillCategory, on_delete=models.PROTECT, related_name="skills")
    proficiency_level = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)], help_text="1-5 scale"
    )
    years_experience = models.FloatField(validators=[MaxValueValidator(100)])
    first_used_date = models.DateField()
    icon_name = models.CharField(max_length=80, blank=True, help_text="icon key for the frontend")

    class Meta:
        ordering = ["category__name", "-proficiency_level", "name"]

    def __str__(self):
        return self.name


class ProjectCategory(TimestampedModel):
    name = models.CharField(max_length=80, unique=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "project categories"

    def __str__(self):
        return self.name


class Project(TimestampedModel):
    class Status(models.TextChoices):
        PLANNED = "planned", "Planned"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="projects",
        blank=True,
        null=True,
    )
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    summary = models.TextField()
    description = models.TextField(help_text="Markdown")
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True, help_text="Empty for ongoing projects")
    repository_url = models.URLField(blank=True)
    demo_url = models.URLField(blank=True)
    featured = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)
    categories = models.ManyToManyField(ProjectCategory, blank=True, related_name="projects")
    skills = models.ManyToManyField(Skill, blank=True, related_name="projects")

    class Meta:
        ordering = ["-featured", "-start_date", "title"]

    def __str__(self):
        return self.title

    def clean(self):
        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "End date cannot be before the start date."})

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(self.title, exclude_pk=self.pk)
        super().save(*args, **kwargs)


def unique_slug(title: str, exclude_pk=None) -> str:
    base = slugify(title)[:200] or "project"
    qs = Project.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    slug, n = base, 2
    while qs.filter(slug=slug).exists():
        slug = f"{base}-{n}"
        n += 1
    return slug


def gallery_upload_path(instance, filename):
    ext = PurePosixPath(filename).suffix.lower().lstrip(".") or "bin"
    return f"projects/{instance.project_id}/{uuid.uuid4()}.{ext}"


class GalleryImage(TimestampedModel):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="gallery")
    image = models.ImageField(upload_to=gallery_upload_path, storage=SupabaseMediaStorage(), max_length=255)
    storage_path = models.CharField(max_length=255, blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    caption = models.CharField(max_length=300, blank=True)
    alt_text = models.CharField(max_length=200)
    display_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["display_order", "created_at"]

    def __str__(self):
        return self.alt_text or self.storage_path

    def save(self, *args, **kwargs):
        # Uploads happen in super().save(); mirror the bucket key and public URL afterwards
        super().save(*args, **kwargs)
        if not self.image:
            return
        path = self.image.name
        url = self.image.url
        if path != self.storage_path or url != self.image_url:
            self.storage_path, self.image_url = path, url
            type(self).objects.filter(pk=self.pk).update(storage_path=path, image_url=url)


class Tag(TimestampedModel):
    name = models.CharField(max_length=60, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class DevlogEntry(TimestampedModel):
    class Milestone(models.TextChoices):
        MAJOR = "major", "Major"
        MINOR = "minor", "Minor"

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="devlog")
    title = models.CharField(max_length=200)
    content = models.TextField(help_text="Markdown")
    entry_date = models.DateField(default=timezone.localdate)
    milestone_type = models.CharField(max_length=10, choices=Milestone.choices, blank=True, null=True)
    tags = models.ManyToManyField(Tag, blank=True, related_name="entries")

    class Meta:
        ordering = ["-entry_date", "-created_at"]
        verbose_name_plural = "devlog entries"

    def __str__(self):
        return f"{self.project.title}: {self.title}"


class UserSettings(TimestampedModel):
    """Site-wide settings shown in the footer, about and contact pages."""

    address = models.CharField(max_length=255, blank=True)
    phone_number = models.CharField(max_length=20, blank=True, validators=[phone_number_validator])
    email = models.EmailField(blank=True)
    linkedin_url = models.URLField(blank=True)
    github_url = models.URLField(blank=True)
    website_1_url = models.CharField(max_length=255, blank=True)
    website_2_url = models.CharField(max_length=255, blank=True)
    about_me = models.TextField(blank=True, help_text="Markdown")
    about_short = models.TextField(blank=True)

    class Meta:
        verbose_name_plural = "user settings"

    def __str__(self):
        return "Site settings"

    def save(self, *args, **kwargs):
        # Enforce singleton: only one row allowed
        if self._state.adding and type(self).objects.exists():
            raise ValidationError("Only one UserSettings instance is allowed. Update the existing row instead.")
        super().save(*args, **kwargs)

    @classmethod
    def load(cls):
        return cls.objects.first()
