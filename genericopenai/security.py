from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlparse


_HOSTNAME_PATTERN = re.compile(r"^[A-Za-z0-9.-]+$")


def sanitize_text_input(value: object, field_name: str, *, max_length: int = 8000) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    cleaned = value.replace("\x00", "").strip()
    if not cleaned:
        raise ValueError(f"{field_name} must be a non-empty string")
    if len(cleaned) > max_length:
        raise ValueError(f"{field_name} is too long")
    return cleaned


def validate_host(host: str) -> bool:
    if host in {"localhost", "127.0.0.1", "::1"}:
        return True

    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass

    if not _HOSTNAME_PATTERN.match(host):
        return False

    if host.startswith("-") or host.endswith("-") or ".." in host:
        return False

    return True


def validate_url(url: str) -> bool:
    """Accept absolute http(s) URLs with a well-formed host."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False
    if parsed.scheme not in {"http", "https"} or not hostname:
        return False
    return validate_host(hostname)
