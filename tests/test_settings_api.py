import pytest
from django.core.exceptions import ValidationError

from showcase.models import UserSettings

pytestmark = pytest.mark.django_db


@pytest.fixture
def site_settings(db):
    return UserSettings.objects.create(
        address="221B Baker Street",
        phone_number="+44 20 7946 0958",
        email="me@example.com",
        github_url="https://github.com/example",
        linkedin_url="https://www.linkedin.com/in/example",
        about_me="## Hello\n\nI build things.",
        about_short="Builder of things.",
    )


def test_settings_missing_returns_generic_404(api_client):
    resp = api_client.get("/api/settings/")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Settings have not been configured."
    assert api_client.get("/api/settings/about/").status_code == 404


def test_fetch_settings(api_client, site_settings):
    resp = api_client.get("/api/settings/")
    assert resp.status_code == 200
    assert resp.json()["address"] == "221B Baker Street"
    assert resp.json()["id"] == str(site_settings.pk)


def test_fetch_about_me(api_client, site_settings):
    resp = api_client.get("/api/settings/about/")
    assert resp.json() == {"about_me": "## Hello\n\nI build things.", "about_short": "Builder of things."}


def test_fetch_socials_returns_contact_subset(api_client, site_settings):
    resp = api_client.get("/api/settings/socials/")
    assert resp.json() == {
        "phone_number": "+44 20 7946 0958",
        "email": "me@example.com",
        "github_url": "https://github.com/example",
        "linkedin_url": "https://www.linkedin.com/in/example",
    }


def test_anonymous_cannot_submit_settings(api_client, site_settings):
    resp = api_client.patch("/api/settings/", {"about_short": "hacked"}, format="json")
    assert resp.status_code in (401, 403)
    site_settings.refresh_from_db()
    assert site_settings.about_short == "Builder of things."


def test_first_submit_creates_the_settings_row(admin_client):
    resp = admin_client.put("/api/settings/", {"email": "new@example.com", "about_me": "Hi"}, format="json")
    assert resp.status_code == 200, resp.json()
    assert UserSettings.objects.count() == 1
    assert UserSettings.load().email == "new@example.com"


def test_submit_updates_the_existing_row(admin_client, site_settings):
    resp = admin_client.patch("/api/settings/", {"about_short": "Now shorter."}, format="json")
    assert resp.status_code == 200
    assert resp.json()["about_short"] == "Now shorter."
    assert resp.json()["address"] == "221B Baker Street"
    assert UserSettings.objects.count() == 1


def test_submit_rejects_invalid_phone_number(admin_client, site_settings):
    resp = admin_client.patch("/api/settings/", {"phone_number": "phone"}, format="json")
    assert resp.status_code == 400
    assert resp.json()["phone_number"] == ["Must be a valid phone number"]


def test_settings_row_is_a_singleton(site_settings):
    with pytest.raises(ValidationError):
        UserSettings.objects.create(email="second@example.com")
