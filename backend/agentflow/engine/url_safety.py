# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
URL Safety Validator

Decides whether a URL taken from user-authored node configuration may be
requested by the engine. Blocks loopback, private, link-local and cloud
metadata targets (SSRF). Every outbound call the engine makes goes through
is_allowed_url first.
"""

import ipaddress
import re
import socket
from typing import Any, Optional

import httpx

ALLOWED_SCHEMES = {"http", "https"}

PRIVATE_HOST_PATTERNS = [
    re.compile(r"^localhost$", re.IGNORECASE),
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^169\.254\."),
    re.compile(r"^0\."),
    re.compile(r"^::1$"),
    re.compile(r"^fc00:", re.IGNORECASE),
    re.compile(r"^fe80:", re.IGNORECASE),
    re.compile(r"\.local$", re.IGNORECASE),
    re.compile(r"\.internal$", re.IGNORECASE),
    re.compile(r"^metadata\.", re.IGNORECASE),
    re.compile(r"^169\.254\.169\.254$"),
]

# Numeric IPv4 forms resolvers accept: 2130706433, 0x7f000001, 0177.1, 127.1
IPV4_NUMBER_HOST = re.compile(r"^(0x[0-9a-f]+|[0-9]+)(\.(0x[0-9a-f]+|[0-9]+)){0,3}$", re.ASCII)


def _is_forbidden_ip(hostname: str) -> bool:
    """True if hostname is an IP literal outside the public address space"""
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
        or address.is_multicast
    )


def _canonical_ipv4(hostname: str) -> Optional[str]:
    """Dotted-quad form of a decimal, hex, octal or short IPv4 host; None if out of range"""
    try:
        return str(ipaddress.IPv4Address(socket.inet_aton(hostname)))
    except OSError:
        return None


def is_allowed_url(url: Any) -> bool:
    """
    Check whether the engine may send a request to url.

    Malformed input is rejected, never raised.

    Examples:
        >>> is_allowed_url("https://api.example.com/hook")
        True
        >>> is_allowed_url("http://169.254.169.254/latest/meta-data")
        False
    """
    if not isinstance(url, str) or not url.strip():
        return False

    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, ValueError, TypeError):
        return False

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False

    hostname = parsed.host.lower().rstrip(".")
    if not hostname:
        return False

    if IPV4_NUMBER_HOST.match(hostname):
        hostname = _canonical_ipv4(hostname)
        if hostname is None:
            return False

    for pattern in PRIVATE_HOST_PATTERNS:
        if pattern.search(hostname):
            return False

    return not _is_forbidden_ip(hostname)
