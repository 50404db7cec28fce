"""Shared validation utilities"""

import re
from typing import Optional
from urllib.parse import urlparse

from ..config import ALLOWED_IMAGE_HOSTS


def is_allowed_image_url(url: Optional[str], allowed_hosts: Optional[list[str]] = None) -> bool:
    """
    Check that an image URL points at an approved image host.

    The host must equal an allowed domain or be a subdomain of it
    (``i.imgur.com`` passes for ``imgur.com``).
    """
    if not url:
        return False
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    hostname = parsed.hostname.lower()
    return any(
        hostname == host or hostname.endswith(f".{host}")
        for host in (allowed_hosts if allowed_hosts is not None else ALLOWED_IMAGE_HOSTS)
    )


def require_text(value: Optional[str], field_name: str) -> str:
    """Strip a required text field, rejecting blank values"""
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{field_name} is required")
    return value


def slugify_filename(value: str) -> str:
    """Lower-case a title and replace anything but letters and digits with underscores"""
    return re.sub(r"[^a-z0-9]", "_", value, flags=re.IGNORECASE).lower()
