"""Proxy header handling for building public short URLs."""

from typing import Mapping, Optional


def _lookup(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name and value:
            return value.strip()
    return None


def build_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Work out the public scheme://host for short URLs.
    
    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host
    2. Request scheme + Host header
    3. Configured base URL
    """
    proto = _lookup(headers, "x-forwarded-proto")
    host = _lookup(headers, "x-forwarded-host")
    if proto and host:
        # Proxies may append a chain: "https, http"
        return f"{proto.split(',')[0].strip()}://{host.split(',')[0].strip()}"
    
    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"
    
    return fallback_base_url.rstrip("/")


def resolve_path_prefix(headers: Mapping[str, str], configured_prefix: str = "") -> str:
    """Path prefix from X-Forwarded-Prefix, else the configured one.
    
    Returns a normalized prefix with a leading slash and no trailing
    slash (e.g. '/s'), or '' when neither is set.
    """
    prefix = _lookup(headers, "x-forwarded-prefix") or configured_prefix or ""
    prefix = prefix.strip().strip("/")
    return "/" + prefix if prefix else ""
