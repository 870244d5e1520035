import logging
from datetime import datetime, timezone

import requests
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


def _emailjs_configured() -> bool:
    return all(
        getattr(settings, key, "")
        for key in ("EMAILJS_SERVICE_ID", "EMAILJS_TEMPLATE_ID", "EMAILJS_PUBLIC_KEY")
    )


def _send_via_emailjs(name: str, email: str, subject: str, message: str) -> None:
    payload = {
        "service_id": settings.EMAILJS_SERVICE_ID,
        "template_id": settings.EMAILJS_TEMPLATE_ID,
        "user_id": settings.EMAILJS_PUBLIC_KEY,
        "template_params": {"name": name, "email": email, "subject": subject, "message": message},
    }
    if getattr(settings, "EMAILJS_PRIVATE_KEY", ""):
        payload["accessToken"] = settings.EMAILJS_PRIVATE_KEY
    resp = requests.post(EMAILJS_SEND_URL, json=payload, timeout=10)
    if resp.status_code != 200:
        raise RuntimeError(f"EmailJS send failed: {resp.status_code} {resp.text[:300]}")


@shared_task
def send_contact_email(name: str, email: str, message: str, subject: str = "") -> str:
    try:
        if _emailjs_configured():
            _send_via_emailjs(name, email, subject, message)
        else:
            recipient = getattr(settings, "CONTACT_RECIPIENT", "") or settings.DEFAULT_FROM_EMAIL
            send_mail(
                f"Portfolio contact from {name}: {subject}" if subject else f"Portfolio contact from {name}",
                f"From: {name} <{email}>\n\n{message}",
                settings.DEFAULT_FROM_EMAIL,
                [recipient],
            )
    except Exception:
        logger.exception("Contact email from %s could not be delivered", email)
        raise
    logger.info("Contact email from %s delivered", email)
    return f"sent:{datetime.now(timezone.utc).isoformat()}"
