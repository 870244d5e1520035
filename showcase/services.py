"""Write paths for projects and their gallery/devlog rows.

Saving a project form is a sequence of independent writes: the project row,
new gallery uploads, metadata of kept images, removal of dropped images, then
the same three phases for devlog entries. There is no compensating rollback;
a failure in a fatal phase aborts the request and leaves earlier writes in
place, while per-row failures in the update/delete phases are logged and
skipped.
"""
import logging

from django.db import DatabaseError, transaction

from .exceptions import ProjectSyncError
from .models import DevlogEntry, GalleryImage, Project, Tag

logger = logging.getLogger(__name__)

PROJECT_RELATIONS = ("categories", "skills")
DEVLOG_FIELDS = ("title", "content", "entry_date", "milestone_type")


def set_tags(entry: DevlogEntry, names) -> None:
    tags = []
    for name in names:
        name = name.strip()
        if name:
            tag, _ = Tag.objects.get_or_create(name=name)
            tags.append(tag)
    entry.tags.set(tags)


def create_project(data: dict, owner=None) -> Project:
    data = dict(data)
    gallery = data.pop("gallery", None) or []
    devlog = data.pop("devlog", None) or []
    relations = {name: data.pop(name) for name in PROJECT_RELATIONS if name in data}

    try:
        with transaction.atomic():
            project = Project.objects.create(owner=owner, **data)
            for name, values in relations.items():
                getattr(project, name).set(values)
    except DatabaseError as exc:
        logger.exception("Project creation failed for %r", data.get("title"))
        raise ProjectSyncError("Project creation") from exc
    logger.info("Created project %s (%s)", project.pk, project.slug)

    _add_images(project, _with_positions(gallery))
    _add_devlog(project, devlog)
    return project


def sync_project(project: Project, data: dict) -> Project:
    data = dict(data)
    gallery = data.pop("gallery", None)
    devlog = data.pop("devlog", None)
    relations = {name: data.pop(name) for name in PROJECT_RELATIONS if name in data}

    # Step 1: project fields
    for field, value in data.items():
        setattr(project, field, value)
    try:
        with transaction.atomic():
            project.save()
            for name, values in relations.items():
                getattr(project, name).set(values)
    except DatabaseError as exc:
        logger.exception("Failed to update project %s", project.pk)
        raise ProjectSyncError("Project update") from exc
    logger.info("Updated project %s", project.pk)

    if gallery is not None:
        _sync_gallery(project, _with_positions(gallery))
    if devlog is not None:
        _sync_devlog(project, devlog)
    return project


def delete_project(project: Project) -> None:
    """Delete a project row; gallery and devlog rows cascade.

    Bucket objects are removed first, best effort.
    """
    for image in project.gallery.all():
        remove_stored_file(image)
    project.delete()
    logger.info("Deleted project %s", project.pk)


def _with_positions(items):
    # display_order defaults to the item's position in the submitted list
    return [{"display_order": index, **item} for index, item in enumerate(items)]


def _sync_gallery(project: Project, items) -> None:
    current = {image.pk: image for image in project.gallery.all()}
    kept = [item for item in items if "id" in item]
    kept_ids = {item["id"] for item in kept}

    # Step 2: upload new images
    _add_images(project, [item for item in items if "file" in item])

    # Step 3: update metadata of kept images
    for item in kept:
        changes = {k: item[k] for k in ("caption", "alt_text", "display_order") if k in item}
        try:
            with transaction.atomic():
                GalleryImage.objects.filter(pk=item["id"], project=project).update(**changes)
        except DatabaseError:
            logger.exception("Failed to update gallery image %s", item["id"])

    # Step 4: delete removed images
    for pk, image in current.items():
        if pk in kept_ids:
            continue
        remove_stored_file(image)
        try:
            with transaction.atomic():
                image.delete()
        except DatabaseError:
            logger.exception("Failed to delete gallery image record %s", pk)
        else:
            logger.info("Removed gallery image %s from project %s", pk, project.pk)


def _add_images(project: Project, items) -> None:
    if not items:
        return
    logger.info("Processing %d new gallery images for project %s", len(items), project.pk)
    for item in items:
        upload = item["file"]
        image = GalleryImage(
            project=project,
            image=upload,
            caption=item.get("caption", ""),
            alt_text=item["alt_text"],
            display_order=item["display_order"],
        )
        try:
            with transaction.atomic():
                image.save()
        except Exception as exc:  # noqa: BLE001 - storage client raises its own error types
            logger.exception("Image upload failed for %s (project %s)", upload.name, project.pk)
            raise ProjectSyncError("Gallery processing") from exc


def remove_stored_file(image: GalleryImage, path: str = None) -> None:
    path = path or image.storage_path or image.image.name
    if not path:
        return
    try:
        image.image.storage.delete(path)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to delete image from storage: %s", path)


def _sync_devlog(project: Project, items) -> None:
    current_ids = set(project.devlog.values_list("id", flat=True))
    kept = [item for item in items if "id" in item]
    kept_ids = {item["id"] for item in kept}

    # Step 5: insert new entries
    _add_devlog(project, [item for item in items if "id" not in item])

    # Step 6: update kept entries
    for item in kept:
        try:
            with transaction.atomic():
                entry = DevlogEntry.objects.get(pk=item["id"], project=project)
                for field in DEVLOG_FIELDS:
                    if field in item:
                        setattr(entry, field, item[field])
                entry.save()
                if "tags" in item:
                    set_tags(entry, item["tags"])
        except (DatabaseError, DevlogEntry.DoesNotExist):
            logger.exception("Failed to update devlog entry %s", item["id"])

    # Step 7: delete removed entries
    for pk in current_ids - kept_ids:
        try:
            with transaction.atomic():
                DevlogEntry.objects.filter(pk=pk).delete()
        except DatabaseError:
            logger.exception("Failed to delete devlog entry %s", pk)


def _add_devlog(project: Project, items) -> None:
    if not items:
        return
    logger.info("Processing %d new devlog entries for project %s", len(items), project.pk)
    try:
        with transaction.atomic():
            for item in items:
                entry = DevlogEntry.objects.create(
                    project=project, **{field: item[field] for field in DEVLOG_FIELDS if field in item}
                )
                set_tags(entry, item.get("tags") or [])
    except DatabaseError as exc:
        logger.exception("Devlog creation failed for project %s", project.pk)
        raise ProjectSyncError("Devlog processing") from exc
