"""
URL configuration for devfolio project.

Public reads and admin writes share the same REST resources; write access is
gated by ``showcase.permissions.IsAdminOrReadOnly``.
"""

import os

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from showcase import views as showcase_views

router = routers.DefaultRouter()
router.register(r"projects", showcase_views.ProjectViewSet, basename="project")
router.register(r"gallery", showcase_views.GalleryImageViewSet, basename="gallery")
router.register(r"devlog", showcase_views.DevlogEntryViewSet, basename="devlog")
router.register(r"skills", showcase_views.SkillViewSet, basename="skill")
router.register(r"skill-categories", showcase_views.SkillCategoryViewSet, basename="skill-category")
router.register(r"project-categories", showcase_views.ProjectCategoryViewSet, basename="project-category")
router.register(r"tags", showcase_views.TagViewSet, basename="tag")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health", lambda request: JsonResponse({"status": "ok"}), name="health"),
    path(
        "api/info",
        lambda request: JsonResponse(
            {
                "app": "devfolio",
                "env": os.environ.get("DJANGO_ENV", "dev"),
                "version": "1.0.0",
            }
        ),
        name="info",
    ),
    path("api/", include(router.urls)),
    path("api/settings/", showcase_views.SettingsView.as_view(), name="settings"),
    path("api/settings/about/", showcase_views.AboutView.as_view(), name="settings-about"),
    path("api/settings/socials/", showcase_views.SocialsView.as_view(), name="settings-socials"),
    path("api/contact", showcase_views.ContactView.as_view(), name="contact"),
    path("api/admin/summary", showcase_views.DashboardSummaryView.as_view(), name="admin-summary"),
    path("api/auth/jwt/create", TokenObtainPairView.as_view(), name="jwt-create"),
    path("api/auth/jwt/refresh", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
]
