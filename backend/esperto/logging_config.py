"""
Logging setup and helpers for keeping personal data out of logs and audit rows.
"""
import logging
import re
from typing import Any

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PROTECTED = "***PROTECTED***"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # APScheduler is chatty at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def mask_email(email: str | None) -> str:
    """Keep the first three characters of the local part and the domain."""
    if not email or "@" not in email:
        return "***"

    username, domain = email.split("@", 1)
    masked_username = username[:3] + "***" if len(username) > 3 else "***"
    return f"{masked_username}@{domain}"


def mask_sensitive_data(data: Any) -> Any:
    """
    Recursively mask personal and billing data.

    - strings: embedded email addresses are masked
    - dict keys containing 'email': value masked as an email
    - dict keys containing 'customer' or 'stripe': value replaced entirely
    """
    if not data:
        return data

    if isinstance(data, str):
        return EMAIL_PATTERN.sub(lambda m: mask_email(m.group(0)), data)

    if isinstance(data, (list, tuple)):
        return [mask_sensitive_data(item) for item in data]

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if "email" in lowered:
                masked[key] = mask_email(value) if isinstance(value, str) else value
            elif "customer" in lowered or "stripe" in lowered:
                masked[key] = PROTECTED
            else:
                masked[key] = mask_sensitive_data(value)
        return masked

    return data
