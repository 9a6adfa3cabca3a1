from typing import Optional


def email_in_domain(email: Optional[str], domain: str) -> bool:
    """True if ``email`` belongs to ``domain`` (case-insensitive suffix match on '@domain')."""
    if not email or not domain:
        return False
    return email.strip().lower().endswith(f"@{domain.strip().lstrip('@').lower()}")


def is_staff_login_allowed(email: Optional[str], email_verified: bool, domain: str) -> bool:
    return email_verified and email_in_domain(email, domain)
