from __future__ import annotations

import asyncio
import socket
from typing import Any

import httpx

from ..config import PROVIDER_TIMEOUT_SECONDS, logger
from .errors import MalformedProviderPayload, ProviderHttpError, ProviderTimeout


async def _resolve_host(hostname: str) -> str:
    """Resolve ``hostname`` to its first IPv4 address."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(
        hostname, None, family=socket.AF_INET, type=socket.SOCK_STREAM
    )
    if not infos:
        raise socket.gaierror(f"No IPv4 address for {hostname}")
    return infos[0][4][0]


async def _pinned_get(
    url: str, headers: dict[str, str], timeout: float
) -> httpx.Response:
    """
    GET ``url`` with the connection pinned to an address resolved up front.

    Containerised resolvers fail intermittently inside the HTTP stack, so the
    hostname is resolved once here. The request is sent to the IP while the
    Host header and TLS server name keep the original hostname, which keeps
    virtual hosting and certificate verification intact. When resolution
    fails the request goes out unmodified.
    """
    target = httpx.URL(url)
    request_url: httpx.URL | str = url
    request_headers = dict(headers)
    extensions: dict[str, Any] = {}
    pinned = False

    hostname = target.host
    if hostname:
        try:
            address = await _resolve_host(hostname)
        except OSError as exc:
            logger.debug(
                f"[FETCH] DNS lookup for {hostname} failed ({exc}); using default resolver"
            )
        else:
            pinned = True
            request_url = target.copy_with(host=address)
            request_headers["Host"] = (
                f"{hostname}:{target.port}" if target.port else hostname
            )
            if target.scheme == "https":
                extensions["sni_hostname"] = hostname

    # httpx reuses request extensions on redirects; pinned requests follow
    # them through the unpinned path instead.
    async with httpx.AsyncClient(
        timeout=timeout, follow_redirects=not pinned
    ) as client:
        response = await client.get(
            request_url, headers=request_headers, extensions=extensions
        )
        if pinned and response.has_redirect_location:
            location = target.join(response.headers["Location"])
            logger.debug(f"[FETCH] {url} redirected to {location}; following unpinned")
            response = await client.get(
                location, headers=dict(headers), follow_redirects=True
            )
        return response


async def fetch_json(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float = PROVIDER_TIMEOUT_SECONDS,
) -> Any:
    """Fetch ``url`` once and return the decoded JSON body.

    The whole call, DNS lookup included, is raced against ``timeout``; a slow
    provider is abandoned with :class:`ProviderTimeout`. Transport failures
    and non-2xx statuses raise :class:`ProviderHttpError`, and a body that is
    not JSON raises :class:`MalformedProviderPayload`. There are no retries.
    """
    logger.debug(f"[FETCH] GET {url}")
    try:
        response = await asyncio.wait_for(
            _pinned_get(url, headers or {}, timeout), timeout=timeout
        )
    except asyncio.TimeoutError:
        raise ProviderTimeout(url, timeout) from None
    except httpx.TimeoutException:
        raise ProviderTimeout(url, timeout) from None
    except httpx.HTTPError as exc:
        raise ProviderHttpError(url, f"Request error: {exc}") from exc

    logger.debug(f"[FETCH] GET {url} -> {response.status_code}")
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError:
        raise ProviderHttpError(
            url, f"HTTP {response.status_code}", response.status_code
        ) from None

    try:
        return response.json()
    except ValueError as exc:
        raise MalformedProviderPayload(url, "Response body is not valid JSON") from exc
