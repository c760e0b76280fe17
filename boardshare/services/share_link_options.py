"""Normalization of share-link creation options.

Resolves the expiry selector offered by the share dialog, normalizes the
email-domain restriction, and matches a user's email against it.
"""

import re
from datetime import UTC, datetime, timedelta

from boardshare.core.errors import ValidationError

# Preset expiry selectors offered by the share dialog.
_EXPIRY_PRESETS: dict[str, timedelta] = {
    "1day": timedelta(days=1),
    "7days": timedelta(days=7),
    "30days": timedelta(days=30),
}
_NEVER = "never"

# "@" followed by dot-separated labels and a final alphabetic TLD of 2+ chars.
# Labels are non-empty and neither start nor end with a hyphen.
_DOMAIN_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
_DOMAIN_PATTERN = re.compile(rf"^@(?:{_DOMAIN_LABEL}\.)+[A-Za-z]{{2,}}$")


def resolve_expiry(expires_in: str | None, now: datetime) -> datetime | None:
    """Turn an expiry selector into an absolute expiry instant.

    Accepted selectors:
    - None, "" or "never": no expiry
    - "1day", "7days", "30days": relative to ``now``
    - an ISO-8601 timestamp: kept only if strictly after ``now``; a past
      timestamp yields no expiry. Naive timestamps are read as UTC.

    Args:
        expires_in: Selector from the create request.
        now: Timezone-aware current instant.

    Returns:
        Expiry instant, or None for a link that never expires.

    Raises:
        ValidationError: If the selector is neither a preset nor a timestamp.
    """
    selector = (expires_in or "").strip()
    if not selector or selector == _NEVER:
        return None

    preset = _EXPIRY_PRESETS.get(selector)
    if preset is not None:
        return now + preset

    try:
        custom = datetime.fromisoformat(selector)
    except ValueError:
        raise ValidationError(
            f"Invalid expiry: '{selector}'",
            details=[{"field": "expires_in", "valid": [_NEVER, *_EXPIRY_PRESETS]}],
        ) from None

    if custom.tzinfo is None:
        custom = custom.replace(tzinfo=UTC)
    return custom if custom > now else None


def normalize_domain(value: str | None) -> str | None:
    """Normalize an email-domain restriction to the "@example.com" form.

    Args:
        value: Raw restriction, with or without a leading "@".

    Returns:
        The restriction with a leading "@", or None when blank.

    Raises:
        ValidationError: If the value is not a plausible domain.
    """
    domain = (value or "").strip()
    if not domain:
        return None
    if not domain.startswith("@"):
        domain = "@" + domain
    if not _DOMAIN_PATTERN.match(domain):
        raise ValidationError(
            "Invalid domain format. Use format like @company.com",
            details=[{"field": "restrict_domain"}],
        )
    return domain


def email_domain_matches(email: str | None, restrict_domain: str) -> bool:
    """Check whether an email address belongs to the restricted domain.

    The domain is everything after the last "@". Comparison is
    case-insensitive and exact: subdomains do not match.
    """
    if not email or "@" not in email:
        return False
    user_domain = "@" + email.rsplit("@", 1)[1]
    return user_domain.lower() == restrict_domain.lower()
