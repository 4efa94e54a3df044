from __future__ import annotations

import ipaddress
import re
from typing import Optional


_HOSTNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_ip_address(value: str) -> bool:
    """Dotted-quad IPv4 only; leading zeros are rejected by `ipaddress`."""
    if not isinstance(value, str):
        return False
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_valid_subnet_mask(value: str) -> bool:
    """A mask is valid when its bits are all ones followed by all zeros."""
    if not is_valid_ip_address(value):
        return False
    bits = int(ipaddress.IPv4Address(value))
    inverted = ~bits & 0xFFFFFFFF
    return (inverted & (inverted + 1)) == 0


def validate_ip_address(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not is_valid_ip_address(value):
        raise ValueError(f"Invalid IP address: {value!r}")
    return value


def validate_subnet_mask(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not is_valid_subnet_mask(value):
        raise ValueError(f"Invalid subnet mask: {value!r}")
    return value


def validate_hostname(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not _HOSTNAME_RE.fullmatch(value):
        raise ValueError("Hostname contains invalid characters")
    return value
