import json
import logging
from collections.abc import Mapping

from django.db import transaction
from django.db.models import Prefetch, ProtectedError
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import services
from .exceptions import BackendError, CategoryInUse, ContactDeliveryError
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
from .serializers import (
    AboutSerializer,
    ContactSerializer,
    DashboardSummarySerializer,
    DevlogEntrySerializer,
    GalleryImageSerializer,
    ProjectCategorySerializer,
    ProjectDetailSerializer,
    ProjectListSerializer,
    ProjectWriteSerializer,
    SkillCategorySerializer,
    SkillGroupSerializer,
    SkillSerializer,
    SocialsSerializer,
    TagSerializer,
    UserSettingsSerializer,
)
from .tasks import send_contact_email

logger = logging.getLogger(__name__)

# Multipart form fields that carry JSON-encoded lists
JSON_LIST_FIELDS = ("categories", "skills", "gallery", "devlog")


def project_payload(request) -> dict:
    """Flatten a JSON or multipart project form into a plain dict."""
    data = request.data
    if not isinstance(data, Mapping):
        raise ValidationError({"non_field_errors": ["Expected an object of project fields."]})
    if hasattr(data, "getlist"):
        data = {key: data.get(key) for key in data.keys() if key not in request.FILES}
    else:
        data = dict(data)
    for key in JSON_LIST_FIELDS:
        value = data.get(key)
        if isinstance(value, str):
            try:
                data[key] = json.loads(value) if value.strip() else []
            except json.JSONDecodeError:
                raise ValidationError({key: "Must be a JSON encoded list."})
    return data


class ProjectViewSet(viewsets.ModelViewSet):
    queryset = Project.objects.prefetch_related(
        "categories",
        "skills",
        "gallery",
        Prefetch("devlog", queryset=DevlogEntry.objects.prefetch_related("tags")),
    )
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["status", "featured", "categories__name", "skills__name"]
    search_fields = ["title", "summary", "description"]
    ordering_fields = ["start_date", "title", "created_at"]

    def get_serializer_class(self):
        if self.action == "list":
            return ProjectListSerializer
        if self.action in ("create", "update", "partial_update"):
            return ProjectWriteSerializer
        return ProjectDetailSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["files"] = self.request.FILES
        return context

    def _detail(self, project, status_code=status.HTTP_200_OK):
        project = self.get_queryset().get(pk=project.pk)
        return Response(ProjectDetailSerializer(project, context=self.get_serializer_context()).data, status=status_code)

    @extend_schema(request=ProjectWriteSerializer, responses={201: ProjectDetailSerializer})
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=project_payload(request))
        serializer.is_valid(raise_exception=True)
        project = serializer.save()
        return self._detail(project, status.HTTP_201_CREATED)

    @extend_schema(request=ProjectWriteSerializer, responses={200: ProjectDetailSerializer})
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=project_payload(request), partial=partial)
        serializer.is_valid(raise_exception=True)
        project = serializer.save()
        return self._detail(project)

    def perform_destroy(self, instance):
        services.delete_project(instance)

    @action(detail=False, methods=["get"], url_path=r"slug/(?P<slug>[-\w]+)")
    def by_slug(self, request, slug=None):
        project = self.filter_queryset(self.get_queryset()).filter(slug=slug).first()
        if project is None:
            raise NotFound("Project not found")
        return Response(ProjectDetailSerializer(project, context=self.get_serializer_context()).data)


class GalleryImageViewSet(viewsets.ModelViewSet):
    queryset = GalleryImage.objects.select_related("project")
    serializer_class = GalleryImageSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["project"]
    ordering_fields = ["display_order", "created_at"]

    def _save_upload(self, serializer, project):
        try:
            with transaction.atomic():
                return serializer.save()
        except Exception as exc:  # noqa: BLE001 - storage client raises its own error types
            logger.exception("Gallery upload failed for project %s", project)
            raise BackendError("Image upload failed") from exc

    def perform_create(self, serializer):
        self._save_upload(serializer, serializer.validated_data.get("project"))

    def perform_update(self, serializer):
        image = serializer.instance
        if "image" not in serializer.validated_data:
            serializer.save()
            return
        old_path = image.storage_path or image.image.name
        self._save_upload(serializer, image.project_id)
        # replaced file: drop the previous bucket object once the new one is stored
        if old_path and old_path != image.storage_path:
            services.remove_stored_file(image, path=old_path)

    def perform_destroy(self, instance):
        services.remove_stored_file(instance)
        instance.delete()


class DevlogEntryViewSet(viewsets.ModelViewSet):
    queryset = DevlogEntry.objects.select_related("project").prefetch_related("tags")
    serializer_class = DevlogEntrySerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["project", "milestone_type", "tags__name"]
    search_fields = ["title", "content"]
    ordering_fields = ["entry_date", "created_at"]


class SkillCategoryViewSet(viewsets.ModelViewSet):
    queryset = SkillCategory.objects.all()
    serializer_class = SkillCategorySerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name"]
    ordering_fields = ["name"]

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError as exc:
            raise CategoryInUse() from exc


class SkillViewSet(viewsets.ModelViewSet):
    queryset = Skill.objects.select_related("category").prefetch_related("projects")
    serializer_class = SkillSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["category", "category__name", "proficiency_level"]
    search_fields = ["name", "category__name"]
    ordering_fields = ["name", "proficiency_level", "years_experience", "first_used_date"]

    @extend_schema(responses={200: SkillGroupSerializer(many=True)})
    @action(detail=False, methods=["get"])
    def grouped(self, request):
        categories = SkillCategory.objects.prefetch_related(
            Prefetch("skills", queryset=self.get_queryset())
        )
        return Response(SkillGroupSerializer(categories, many=True, context={"request": request}).data)


class ProjectCategoryViewSet(viewsets.ModelViewSet):
    queryset = ProjectCategory.objects.all()
    serializer_class = ProjectCategorySerializer
    filter_backends = [filters.SearchFilter]
    search_fields = ["name"]


class TagViewSet(viewsets.ModelViewSet):
    queryset = Tag.objects.all()
    serializer_class = TagSerializer
    filter_backends = [filters.SearchFilter]
    search_fields = ["name"]


def _load_settings() -> UserSettings:
    obj = UserSettings.load()
    if obj is None:
        raise NotFound("Settings have not been configured.")
    return obj


class SettingsView(APIView):
    @extend_schema(responses={200: UserSettingsSerializer})
    def get(self, request):
        return Response(UserSettingsSerializer(_load_settings()).data)

    @extend_schema(request=UserSettingsSerializer, responses={200: UserSettingsSerializer})
    def put(self, request):
        return self._submit(request, partial=False)

    @extend_schema(request=UserSettingsSerializer, responses={200: UserSettingsSerializer})
    def patch(self, request):
        return self._submit(request, partial=True)

    def _submit(self, request, partial):
        instance = UserSettings.load()
        serializer = UserSettingsSerializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info("Site settings %s", "updated" if instance else "created")
        return Response(serializer.data)


class AboutView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: AboutSerializer})
    def get(self, request):
        return Response(AboutSerializer(_load_settings()).data)


class SocialsView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: SocialsSerializer})
    def get(self, request):
        return Response(SocialsSerializer(_load_settings()).data)


class ContactView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "contact"
    permission_classes = [AllowAny]

    @extend_schema(request=ContactSerializer, responses={202: None})
    def post(self, request):
        serializer = ContactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            send_contact_email.delay(data["name"], data["email"], data["message"], data["subject"])
        except Exception as exc:  # noqa: BLE001 - broker and email client errors vary
            logger.exception("Failed to dispatch contact email from %s", data["email"])
            raise ContactDeliveryError() from exc
        return Response({"detail": "Message sent successfully!"}, status=status.HTTP_202_ACCEPTED)


class DashboardSummaryView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(responses={200: DashboardSummarySerializer})
    def get(self, request):
        summary = {
            "projects": Project.objects.count(),
            "gallery_images": GalleryImage.objects.count(),
            "devlog_entries": DevlogEntry.objects.count(),
            "skills": Skill.objects.count(),
            "recent_devlog": DevlogEntry.objects.select_related("project")[:5],
        }
        return Response(DashboardSummarySerializer(summary).data)
