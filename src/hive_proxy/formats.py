"""
String Format Checks

Structural checks behind the `format` keyword of string schema nodes.
Each check is a plain predicate over an already type-checked string; the
validator layer turns a False result into a `string_format` violation.

Formats outside FORMAT_CHECKS are accepted without validation.
"""

import ipaddress
import re
from datetime import date
from typing import Callable
from urllib.parse import urlsplit


EMAIL_PATTERN = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9_'+\-.]*[A-Za-z0-9_+-]"
    r"@(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"
)

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

DATE_PATTERN = re.compile(r"^([0-9]{4}-[0-9]{2}-[0-9]{2})$")

TIME_PATTERN = re.compile(r"^(?:[01][0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9](?:\.[0-9]+)?$")

# Seconds are optional, the zone designator is not.
DATETIME_PATTERN = re.compile(
    r"^([0-9]{4}-[0-9]{2}-[0-9]{2})"
    r"T(?:[01][0-9]|2[0-3]):[0-5][0-9](?::[0-5][0-9](?:\.[0-9]+)?)?"
    r"(?:Z|[+-](?:[01][0-9]|2[0-3]):[0-5][0-9])$"
)


def _is_calendar_date(text: str) -> bool:
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def is_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value) is not None


def is_url(value: str) -> bool:
    """Absolute URL with both a scheme and an authority."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def is_uuid(value: str) -> bool:
    return UUID_PATTERN.fullmatch(value) is not None


def is_datetime(value: str) -> bool:
    match = DATETIME_PATTERN.fullmatch(value)
    return match is not None and _is_calendar_date(match.group(1))


def is_date(value: str) -> bool:
    match = DATE_PATTERN.fullmatch(value)
    return match is not None and _is_calendar_date(match.group(1))


def is_time(value: str) -> bool:
    return TIME_PATTERN.fullmatch(value) is not None


def is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    # ipaddress accepts a "%scope" zone suffix
    if "%" in value:
        return False
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def is_ip(value: str) -> bool:
    return is_ipv4(value) or is_ipv6(value)


FORMAT_CHECKS: dict[str, Callable[[str], bool]] = {
    "email": is_email,
    "url": is_url,
    "uri": is_url,
    "uuid": is_uuid,
    "date-time": is_datetime,
    "datetime": is_datetime,
    "date": is_date,
    "time": is_time,
    "ipv4": is_ipv4,
    "ipv6": is_ipv6,
    "ip": is_ip,
}


def is_known_format(name: str) -> bool:
    return name in FORMAT_CHECKS


def check_format(name: str, value: str) -> bool:
    """
    Check `value` against the named format.

    Returns:
        True when the value conforms, or when the format is not one we know.
    """
    checker = FORMAT_CHECKS.get(name)
    if checker is None:
        return True
    return checker(value)
