from collections.abc import Mapping
from pathlib import PurePosixPath

from django.utils import timezone
from rest_framework import serializers

from .models import (
    DevlogEntry,
    GalleryImage,
    Project,
    ProjectCategory,
    Skill,
    SkillCategory,
    Tag,
    UserSettings,
)
from . import services


class SkillCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = SkillCategory
        fields = ["id", "name", "color", "created_at", "updated_at"]
        extra_kwargs = {"name": {"error_messages": {"blank": "Category name is required"}}}


class SkillSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True)
    related_projects = serializers.SerializerMethodField()

    class Meta:
        model = Skill
        fields = [
            "id",
            "name",
            "category",
            "category_name",
            "proficiency_level",
            "years_experience",
            "first_used_date",
            "icon_name",
            "related_projects",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["related_projects"]
        extra_kwargs = {
            # uniqueness is checked case-insensitively in validate_name
            "name": {"validators": [], "error_messages": {"blank": "Skill name is required"}},
            "category": {"error_messages": {"does_not_exist": "Must be a valid category ID"}},
        }

    def get_related_projects(self, obj: Skill):
        return [str(project.pk) for project in obj.projects.all()]

    def validate_name(self, value):
        value = value.strip()
        qs = Skill.objects.filter(name__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Skill already exists")
        return value

    def validate_years_experience(self, value):
        if value <= 0:
            raise serializers.ValidationError("Years of experience must be positive")
        return value


class SkillGroupSerializer(serializers.ModelSerializer):
    skills = SkillSerializer(many=True, read_only=True)

    class Meta:
        model = SkillCategory
        fields = ["id", "name", "color", "skills"]


class ProjectCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectCategory
        fields = ["id", "name"]
        extra_kwargs = {"name": {"error_messages": {"blank": "Category name is required"}}}


class TagSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tag
        fields = ["id", "name"]
        extra_kwargs = {"name": {"error_messages": {"blank": "Tag name is required"}}}


class TagNamesField(serializers.ListField):
    child = serializers.CharField(max_length=60)

    def to_representation(self, data):
        return [tag.name for tag in data.all()]


class GalleryImageSerializer(serializers.ModelSerializer):
    image = serializers.ImageField(write_only=True, required=False)
    alt_text = serializers.CharField(max_length=200, required=False, allow_blank=True)

    class Meta:
        model = GalleryImage
        fields = [
            "id",
            "project",
            "image",
            "image_url",
            "storage_path",
            "caption",
            "alt_text",
            "display_order",
            "created_at",
        ]
        read_only_fields = ["image_url", "storage_path"]

    def validate(self, attrs):
        if self.instance is None and not attrs.get("image"):
            raise serializers.ValidationError({"image": "An image file is required."})
        alt_text = (attrs.get("alt_text") or "").strip()
        if not alt_text:
            if self.instance is None:
                alt_text = PurePosixPath(attrs["image"].name).stem
            elif "alt_text" in attrs:
                raise serializers.ValidationError({"alt_text": "Alt text is required for accessibility"})
        if alt_text:
            attrs["alt_text"] = alt_text
        return attrs


class DevlogEntrySerializer(serializers.ModelSerializer):
    tags = TagNamesField(required=False)

    class Meta:
        model = DevlogEntry
        fields = [
            "id",
            "project",
            "title",
            "content",
            "entry_date",
            "milestone_type",
            "tags",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {
            "title": {"error_messages": {"blank": "Entry title is required"}},
            "content": {"error_messages": {"blank": "Entry content is required"}},
        }

    def validate_milestone_type(self, value):
        return value or None

    def create(self, validated_data):
        tags = validated_data.pop("tags", None)
        entry = super().create(validated_data)
        if tags is not None:
            services.set_tags(entry, tags)
        return entry

    def update(self, instance, validated_data):
        tags = validated_data.pop("tags", None)
        entry = super().update(instance, validated_data)
        if tags is not None:
            services.set_tags(entry, tags)
        return entry


class ProjectListSerializer(serializers.ModelSerializer):
    categories = serializers.SlugRelatedField(many=True, read_only=True, slug_field="name")
    skills = serializers.SlugRelatedField(many=True, read_only=True, slug_field="name")
    cover_image_url = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "slug",
            "summary",
            "start_date",
            "end_date",
            "repository_url",
            "demo_url",
            "featured",
            "status",
            "categories",
            "skills",
            "cover_image_url",
            "created_at",
            "updated_at",
        ]

    def get_cover_image_url(self, obj: Project):
        # gallery is prefetched and ordered by display_order
        first = next(iter(obj.gallery.all()), None)
        return first.image_url if first else None


class ProjectSkillSerializer(serializers.ModelSerializer):
    class Meta:
        model = Skill
        fields = ["id", "name", "icon_name", "proficiency_level"]


class ProjectDetailSerializer(ProjectListSerializer):
    categories = ProjectCategorySerializer(many=True, read_only=True)
    skills = ProjectSkillSerializer(many=True, read_only=True)
    gallery = GalleryImageSerializer(many=True, read_only=True)
    devlog = DevlogEntrySerializer(many=True, read_only=True)

    class Meta(ProjectListSerializer.Meta):
        fields = ProjectListSerializer.Meta.fields + ["description", "gallery", "devlog"]


class GalleryItemInputSerializer(serializers.Serializer):
    """One entry of the gallery list sent with a project form.

    Existing images are referenced by ``id``; new ones name the multipart
    field holding the file through ``upload``.
    """

    id = serializers.UUIDField(required=False)
    upload = serializers.CharField(required=False)
    caption = serializers.CharField(max_length=300, required=False, allow_blank=True)
    alt_text = serializers.CharField(max_length=200, required=False, allow_blank=True)
    display_order = serializers.IntegerField(min_value=0, required=False)

    def validate(self, attrs):
        has_id, has_upload = "id" in attrs, bool(attrs.get("upload"))
        if has_id == has_upload:
            raise serializers.ValidationError("Provide either an existing image id or an upload field name.")
        if has_id:
            if "alt_text" in attrs and not attrs["alt_text"].strip():
                raise serializers.ValidationError({"alt_text": "Alt text is required for accessibility"})
            return attrs
        upload = self.context.get("files", {}).get(attrs["upload"])
        if upload is None:
            raise serializers.ValidationError({"upload": f"No uploaded file named '{attrs['upload']}'."})
        attrs["file"] = serializers.ImageField().run_validation(upload)
        if not (attrs.get("alt_text") or "").strip():
            attrs["alt_text"] = PurePosixPath(upload.name).stem
        return attrs


class DevlogItemInputSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    title = serializers.CharField(max_length=200, error_messages={"blank": "Entry title is required"})
    content = serializers.CharField(error_messages={"blank": "Entry content is required"})
    entry_date = serializers.DateField(required=False)
    milestone_type = serializers.ChoiceField(
        choices=DevlogEntry.Milestone.choices, required=False, allow_null=True, allow_blank=True
    )
    tags = serializers.ListField(child=serializers.CharField(max_length=60), required=False)

    def validate(self, attrs):
        if "milestone_type" in attrs:
            attrs["milestone_type"] = attrs["milestone_type"] or None
        if "id" not in attrs:
            attrs.setdefault("entry_date", timezone.localdate())
        return attrs


class ProjectWriteSerializer(serializers.ModelSerializer):
    end_date = serializers.DateField(required=False, allow_null=True)
    gallery = GalleryItemInputSerializer(many=True, required=False)
    devlog = DevlogItemInputSerializer(many=True, required=False)

    class Meta:
        model = Project
        fields = [
            "title",
            "slug",
            "summary",
            "description",
            "start_date",
            "end_date",
            "repository_url",
            "demo_url",
            "featured",
            "status",
            "categories",
            "skills",
            "gallery",
            "devlog",
        ]
        extra_kwargs = {
            "title": {"error_messages": {"blank": "Project title is required"}},
            "summary": {"error_messages": {"blank": "Project summary is required"}},
            "description": {"error_messages": {"blank": "Project description is required"}},
            "slug": {"required": False},
            "repository_url": {"error_messages": {"invalid": "Must be a valid URL"}},
            "demo_url": {"error_messages": {"invalid": "Must be a valid URL"}},
        }

    def to_internal_value(self, data):
        if isinstance(data, Mapping) and data.get("end_date") == "":
            data = {**data, "end_date": None}
        return super().to_internal_value(data)

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date cannot be before the start date."})
        self._check_known_ids(attrs, "gallery", "gallery image")
        self._check_known_ids(attrs, "devlog", "devlog entry")
        return attrs

    def _check_known_ids(self, attrs, relation, label):
        items = attrs.get(relation) or []
        ids = {item["id"] for item in items if "id" in item}
        if not ids:
            return
        known = set()
        if self.instance is not None:
            known = set(getattr(self.instance, relation).values_list("id", flat=True))
        unknown = ids - known
        if unknown:
            raise serializers.ValidationError(
                {relation: f"Unknown {label}: {', '.join(sorted(str(pk) for pk in unknown))}"}
            )

    def create(self, validated_data):
        request = self.context.get("request")
        owner = request.user if request is not None and request.user.is_authenticated else None
        return services.create_project(validated_data, owner=owner)

    def update(self, instance, validated_data):
        return services.sync_project(instance, validated_data)


class UserSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserSettings
        fields = [
            "id",
            "address",
            "phone_number",
            "email",
            "linkedin_url",
            "github_url",
            "website_1_url",
            "website_2_url",
            "about_me",
            "about_short",
            "updated_at",
        ]


class AboutSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserSettings
        fields = ["about_me", "about_short"]


class SocialsSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserSettings
        fields = ["phone_number", "email", "github_url", "linkedin_url"]


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    subject = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    message = serializers.CharField(max_length=2000, allow_blank=False)


class DevlogDigestSerializer(serializers.ModelSerializer):
    project_title = serializers.CharField(source="project.title", read_only=True)

    class Meta:
        model = DevlogEntry
        fields = ["id", "project", "project_title", "title", "entry_date", "milestone_type"]


class DashboardSummarySerializer(serializers.Serializer):
    projects = serializers.IntegerField()
    gallery_images = serializers.IntegerField()
    devlog_entries = serializers.IntegerField()
    skills = serializers.IntegerField()
    recent_devlog = DevlogDigestSerializer(many=True)
