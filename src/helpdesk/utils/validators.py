"""Input validation helpers shared by models and services."""

import ipaddress
import re
from typing import Optional
from urllib.parse import urlparse

_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_NON_DIGITS = re.compile(r"\D")


def only_digits(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_valid_email(email: str) -> bool:
    """Simplified RFC 5322 check plus the local/domain length rules."""
    if not email or not isinstance(email, str):
        return False
    trimmed = email.strip()
    if len(trimmed) < 5 or len(trimmed) > 254:
        return False
    if trimmed.count("@") != 1 or not _EMAIL_RE.match(trimmed):
        return False

    local, domain = trimmed.split("@")
    if not local or len(local) > 64:
        return False
    if local.startswith(".") or local.endswith(".") or ".." in local:
        return False
    if not domain or len(domain) > 253 or "." not in domain:
        return False
    if domain.startswith(".") or domain.endswith(".") or ".." in domain:
        return False
    return len(domain.rsplit(".", 1)[-1]) >= 2


def is_valid_cpf(cpf: str) -> bool:
    """Validate a Brazilian CPF (formatted or not) including both check digits."""
    digits = only_digits(cpf)
    if len(digits) != 11 or digits == digits[0] * 11:
        return False

    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        check = 11 - (total % 11)
        if check >= 10:
            check = 0
        if check != int(digits[position]):
            return False
    return True


def is_valid_phone(phone: str) -> bool:
    """Brazilian phone: 10 or 11 digits with an area code (DDD) between 11 and 99."""
    digits = only_digits(phone)
    if len(digits) not in (10, 11):
        return False
    return 11 <= int(digits[:2]) <= 99


def webhook_url_error(url: str, allow_http: bool = True) -> Optional[str]:
    """
    Return why a webhook destination is unsafe, or None when it is acceptable.

    Blocks non-HTTP schemes, localhost and private, loopback, link-local
    (cloud metadata) or unique-local addresses.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "Invalid URL format"

    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        if parsed.scheme and parsed.scheme not in ("http", "https"):
            return "Only HTTP/HTTPS protocols are allowed"
        return "Invalid URL format"
    if parsed.scheme == "http" and not allow_http:
        return "Only HTTPS URLs are allowed in production"

    host = parsed.hostname.lower()
    if host == "localhost" or host.endswith(".localhost"):
        return "Cannot use localhost or private network addresses"
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return None
    if (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    ):
        return "Cannot use localhost or private network addresses"
    return None
