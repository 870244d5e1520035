import datetime
import io
import json

import pytest
from django.core.files.base import ContentFile
from django.core.management import call_command

from showcase.management.commands.seed_skills import DEFAULT_CATEGORIES, DEFAULT_SKILLS
from showcase.models import DevlogEntry, Skill, SkillCategory
from showcase.storage_backends import SupabaseMediaStorage

pytestmark = pytest.mark.django_db


def test_grouped_skills_lists_each_category_with_its_skills(api_client, skill, project):
    project.skills.add(skill)
    SkillCategory.objects.create(name="frontend", color="#61DAFB")

    resp = api_client.get("/api/skills/grouped/")
    assert resp.status_code == 200
    groups = {group["name"]: group for group in resp.json()}
    assert groups["frontend"]["skills"] == []
    backend = groups["backend"]
    assert backend["color"] == "#092E20"
    assert [s["name"] for s in backend["skills"]] == ["Django"]
    assert backend["skills"][0]["related_projects"] == [str(project.pk)]


def test_admin_creates_skill(admin_client, skill_category):
    resp = admin_client.post(
        "/api/skills/",
        {
            "name": "FastAPI",
            "category": str(skill_category.pk),
            "proficiency_level": 3,
            "years_experience": 1.5,
            "first_used_date": "2023-05-01",
            "icon_name": "fastapi",
        },
        format="json",
    )
    assert resp.status_code == 201, resp.json()
    body = resp.json()
    assert body["category_name"] == "backend"
    assert body["related_projects"] == []


def test_duplicate_skill_name_is_rejected_case_insensitively(admin_client, skill):
    resp = admin_client.post(
        "/api/skills/",
        {
            "name": "django",
            "category": str(skill.category_id),
            "proficiency_level": 2,
            "years_experience": 1,
            "first_used_date": "2022-01-01",
        },
        format="json",
    )
    assert resp.status_code == 400
    assert resp.json()["name"] == ["Skill already exists"]


def test_skill_update_keeps_its_own_name(admin_client, skill):
    resp = admin_client.patch(f"/api/skills/{skill.pk}/", {"name": "Django", "proficiency_level": 5}, format="json")
    assert resp.status_code == 200, resp.json()
    skill.refresh_from_db()
    assert skill.proficiency_level == 5


def test_anonymous_cannot_create_skill(api_client, skill_category):
    resp = api_client.post("/api/skill-categories/", {"name": "ops", "color": "#000000"}, format="json")
    assert resp.status_code in (401, 403)
    assert not SkillCategory.objects.filter(name="ops").exists()


def test_category_with_skills_cannot_be_deleted(admin_client, skill):
    resp = admin_client.delete(f"/api/skill-categories/{skill.category_id}/")
    assert resp.status_code == 409
    assert SkillCategory.objects.filter(pk=skill.category_id).exists()


def test_empty_category_can_be_deleted(admin_client, skill_category):
    resp = admin_client.delete(f"/api/skill-categories/{skill_category.pk}/")
    assert resp.status_code == 204


def test_skill_filter_by_category_name(api_client, skill):
    other = SkillCategory.objects.create(name="frontend", color="#61DAFB")
    Skill.objects.create(
        name="React", category=other, proficiency_level=4, years_experience=4, first_used_date=datetime.date(2021, 6, 1)
    )
    resp = api_client.get("/api/skills/", {"category__name": "frontend"})
    assert [s["name"] for s in resp.json()] == ["React"]


def test_jwt_token_grants_admin_writes(api_client, admin_user):
    resp = api_client.post(
        "/api/auth/jwt/create", {"username": "owner", "password": "s3cret-pass"}, format="json"
    )
    assert resp.status_code == 200
    access = resp.json()["access"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    resp = api_client.post("/api/skill-categories/", {"name": "ops", "color": "#123abc"}, format="json")
    assert resp.status_code == 201


def test_jwt_token_for_non_staff_user_is_read_only(api_client, django_user_model):
    django_user_model.objects.create_user(username="visitor", password="s3cret-pass")
    access = api_client.post(
        "/api/auth/jwt/create", {"username": "visitor", "password": "s3cret-pass"}, format="json"
    ).json()["access"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    assert api_client.get("/api/skills/").status_code == 200
    resp = api_client.post("/api/skill-categories/", {"name": "ops", "color": "#123abc"}, format="json")
    assert resp.status_code == 403


def test_seed_skills_is_idempotent():
    out = io.StringIO()
    call_command("seed_skills", stdout=out)
    call_command("seed_skills", stdout=out)

    assert Skill.objects.count() == len(DEFAULT_SKILLS)
    assert SkillCategory.objects.count() == len(DEFAULT_CATEGORIES)
    assert SkillCategory.objects.get(name="database").color == "#336791"
    assert f"created=0 updated={len(DEFAULT_SKILLS)}" in out.getvalue()


def test_seed_skills_reset_drops_unlisted_skills(tmp_path, skill):
    source = tmp_path / "skills.json"
    source.write_text(
        json.dumps([{"name": "Go", "category": "backend", "proficiency_level": 2, "first_used_date": "2024-02-01"}]),
        encoding="utf-8",
    )
    call_command("seed_skills", file=str(source), reset=True, stdout=io.StringIO())

    assert list(Skill.objects.values_list("name", flat=True)) == ["Go"]
    assert Skill.objects.get(name="Go").category == skill.category


def test_dashboard_summary_for_admin(admin_client, project, skill):
    DevlogEntry.objects.create(
        project=project, title="Kickoff", content="Started.", entry_date=datetime.date(2024, 1, 11)
    )
    resp = admin_client.get("/api/admin/summary")
    assert resp.status_code == 200
    body = resp.json()
    assert body["projects"] == 1
    assert body["skills"] == 1
    assert body["devlog_entries"] == 1
    assert body["gallery_images"] == 0
    assert body["recent_devlog"][0]["project_title"] == "Terminal Portfolio"


def test_dashboard_summary_requires_staff(api_client, django_user_model):
    assert api_client.get("/api/admin/summary").status_code in (401, 403)
    api_client.force_authenticate(django_user_model.objects.create_user(username="visitor", password="x"))
    assert api_client.get("/api/admin/summary").status_code == 403


def test_storage_backend_saves_and_resolves_public_url(bucket):
    storage = SupabaseMediaStorage()
    name = storage.save("projects/abc/cover.png", ContentFile(b"png-bytes", name="cover.png"))

    assert name == "projects/abc/cover.png"
    assert bucket.objects[name] == b"png-bytes"
    assert storage.exists(name)
    assert not storage.exists("projects/abc/missing.png")
    assert storage.url(name) == "https://example.supabase.co/storage/v1/object/public/images/projects/abc/cover.png"

    storage.delete(name)
    assert name not in bucket.objects


def test_health_endpoint(api_client):
    assert api_client.get("/api/health").json() == {"status": "ok"}


def test_skill_list_related_projects_use_one_prefetch_query(api_client, skill_category, project, django_assert_num_queries):
    for name in ("Flask", "Celery", "Redis"):
        project.skills.add(
            Skill.objects.create(
                name=name, category=skill_category, proficiency_level=3, years_experience=2,
                first_used_date=datetime.date(2022, 1, 1),
            )
        )
    # skills with their category, then one prefetch for all related projects
    with django_assert_num_queries(2):
        resp = api_client.get("/api/skills/")
    assert [s["related_projects"] for s in resp.json()] == [[str(project.pk)]] * 3
