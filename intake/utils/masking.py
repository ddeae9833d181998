"""Helpers that hide client contact details before they reach the logs."""

import re

_NON_DIGIT_RE = re.compile(r"\D")


def mask_email(email: str) -> str:
    """
    Keep the first letter of the mailbox and of the mail host.

    Example: jane.doe@portlandvet.com -> j***@p***.com

    Args:
        email: Address as typed into the intake form

    Returns:
        Masked address, or ``***`` when it is not a single ``local@host`` address
    """
    local, at, domain = (email or "").strip().partition("@")
    if not at or "@" in domain:
        return "***"

    host, dot, suffix = domain.partition(".")
    masked_local = f"{local[0]}***" if local else "***"
    masked_domain = f"{host[0]}***{dot}{suffix}" if host and dot else "***"
    return f"{masked_local}@{masked_domain}"


def mask_phone(phone: str) -> str:
    """
    Keep only the last four digits of a phone number.

    Separators are ignored and a leading ``+`` is preserved.
    Example: (207) 555-1234 -> ***1234
    """
    digits = _NON_DIGIT_RE.sub("", phone or "")
    if len(digits) < 4:
        return "***"
    prefix = "+" if phone.strip().startswith("+") else ""
    return f"{prefix}***{digits[-4:]}"
