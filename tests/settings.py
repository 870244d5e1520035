from devfolio.settings import *  # noqa: F401,F403
from devfolio.settings import REST_FRAMEWORK

DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SUPABASE_PROJECT_URL = "https://example.supabase.co"
SUPABASE_SERVICE_ROLE_KEY = "test-service-role-key"
SUPABASE_BUCKET = "images"

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "site@example.com"
CONTACT_RECIPIENT = "owner@example.com"
EMAILJS_SERVICE_ID = ""
EMAILJS_TEMPLATE_ID = ""
EMAILJS_PUBLIC_KEY = ""
EMAILJS_PRIVATE_KEY = ""

CELERY_BROKER_URL = "memory://"
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

REST_FRAMEWORK = {**REST_FRAMEWORK, "DEFAULT_THROTTLE_RATES": {"contact": "1000/minute"}}
