"""
Pytest configuration and shared fixtures.

The Supabase client is replaced by an in-memory fake so uploads, public URLs
and removals can be asserted without network access.
"""
import datetime
import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient

from showcase import storage_backends
from showcase.models import Project, Skill, SkillCategory


class FakeBucket:
    def __init__(self):
        self.objects = {}
        self.fail_uploads = False
        self.fail_removes = False

    def upload(self, path, data, file_options=None):
        if self.fail_uploads:
            raise RuntimeError("bucket unavailable")
        self.objects[path] = data
        return {"Key": path}

    def remove(self, paths):
        if self.fail_removes:
            raise RuntimeError("bucket unavailable")
        for path in paths:
            self.objects.pop(path, None)
        return []

    def list(self, path=None, options=None):
        prefix = f"{path.rstrip('/')}/" if path else ""
        return [
            {"name": key[len(prefix):]}
            for key in self.objects
            if key.startswith(prefix) and "/" not in key[len(prefix):]
        ]

    def download(self, path):
        return self.objects[path]


class FakeStorageApi:
    def __init__(self, bucket):
        self.bucket = bucket
        self.requested = []

    def from_(self, name):
        self.requested.append(name)
        return self.bucket


class FakeClient:
    def __init__(self):
        self.storage = FakeStorageApi(FakeBucket())


@pytest.fixture(autouse=True)
def bucket(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(storage_backends, "_supabase_client", client)
    return client.storage.bucket


def make_png(name="shot.png", color=(16, 185, 129)):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return SimpleUploadedFile(name, buf.getvalue(), content_type="image/png")


@pytest.fixture
def png():
    return make_png


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_user(
        username="owner", email="owner@example.com", password="s3cret-pass", is_staff=True
    )


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(admin_user)
    return client


@pytest.fixture
def skill_category(db):
    return SkillCategory.objects.create(name="backend", color="#092E20")


@pytest.fixture
def skill(skill_category):
    return Skill.objects.create(
        name="Django",
        category=skill_category,
        proficiency_level=4,
        years_experience=3.5,
        first_used_date=datetime.date(2021, 3, 1),
    )


@pytest.fixture
def project(db):
    return Project.objects.create(
        title="Terminal Portfolio",
        summary="A portfolio that looks like a terminal.",
        description="# Terminal Portfolio\n\nBuilt with **markdown**.",
        start_date=datetime.date(2024, 1, 10),
    )
