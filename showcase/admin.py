from django.contrib import admin

from . import services
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


class GalleryImageInline(admin.TabularInline):
    model = GalleryImage
    extra = 0
    fields = ("image", "caption", "alt_text", "display_order", "image_url")
    readonly_fields = ("image_url",)


class DevlogEntryInline(admin.StackedInline):
    model = DevlogEntry
    extra = 0
    fields = ("title", "entry_date", "milestone_type", "content", "tags")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("title", "status", "featured", "start_date", "end_date")
    list_filter = ("status", "featured", "categories")
    search_fields = ("title", "summary", "description")
    prepopulated_fields = {"slug": ("title",)}
    filter_horizontal = ("categories", "skills")
    inlines = [GalleryImageInline, DevlogEntryInline]

    def delete_model(self, request, obj):
        services.delete_project(obj)

    def delete_queryset(self, request, queryset):
        for project in queryset.prefetch_related("gallery"):
            services.delete_project(project)

    def save_formset(self, request, form, formset, change):
        if formset.model is not GalleryImage:
            return super().save_formset(request, form, formset, change)
        images = formset.save(commit=False)
        for image in formset.deleted_objects:
            services.remove_stored_file(image)
            image.delete()
        for image in images:
            image.save()
        formset.save_m2m()


@admin.register(GalleryImage)
class GalleryImageAdmin(admin.ModelAdmin):
    list_display = ("alt_text", "project", "display_order", "image_url")
    list_filter = ("project",)
    readonly_fields = ("storage_path", "image_url")

    def delete_model(self, request, obj):
        services.remove_stored_file(obj)
        obj.delete()

    def delete_queryset(self, request, queryset):
        for image in queryset:
            services.remove_stored_file(image)
        queryset.delete()


@admin.register(DevlogEntry)
class DevlogEntryAdmin(admin.ModelAdmin):
    list_display = ("title", "project", "entry_date", "milestone_type")
    list_filter = ("milestone_type", "project")
    search_fields = ("title", "content")


@admin.register(SkillCategory)
class SkillCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "color")


@admin.register(Skill)
class SkillAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "proficiency_level", "years_experience", "first_used_date")
    list_filter = ("category", "proficiency_level")
    search_fields = ("name",)


admin.site.register(ProjectCategory)
admin.site.register(Tag)


@admin.register(UserSettings)
class UserSettingsAdmin(admin.ModelAdmin):
    list_display = ("email", "phone_number", "github_url", "linkedin_url", "updated_at")

    def has_add_permission(self, request):
        return not UserSettings.objects.exists()
