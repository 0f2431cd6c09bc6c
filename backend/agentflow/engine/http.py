# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Outbound HTTP client used by node actions.

The client re-checks every request URL against the URL safety policy, so a
handler that forgets the check still cannot reach an internal address.
Redirects are never followed.
"""

from typing import Optional

import httpx

from .exceptions import DisallowedURLError
from .url_safety import is_allowed_url


async def enforce_url_policy(request: httpx.Request) -> None:
    """httpx request hook: refuse requests to forbidden targets"""
    url = str(request.url)
    if not is_allowed_url(url):
        raise DisallowedURLError(url)


def create_http_client(
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build the shared AsyncClient for webhook actions.

    Args:
        timeout: Per-operation httpx timeout in seconds
        transport: Optional transport (tests pass an httpx.MockTransport)
    """
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=False,
        event_hooks={"request": [enforce_url_policy]},
        transport=transport,
    )
