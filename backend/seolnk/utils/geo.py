import ipaddress
import logging
import re
from functools import lru_cache
from typing import Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

# Private IP patterns
PRIVATE_IP_PATTERNS = [
    re.compile(r'^127\.'),  # Loopback
    re.compile(r'^10\.'),  # Class A private
    re.compile(r'^172\.(1[6-9]|2[0-9]|3[0-1])\.'),  # Class B private
    re.compile(r'^192\.168\.'),  # Class C private
    re.compile(r'^169\.254\.'),  # Link-local
    re.compile(r'^::1$'),  # IPv6 loopback
    re.compile(r'^fc00:', re.IGNORECASE),  # IPv6 unique local
    re.compile(r'^fe80:', re.IGNORECASE),  # IPv6 link-local
]


def is_private_ip(ip: str) -> bool:
    """Check if IP address is private/local"""
    if not ip:
        return True
    for pattern in PRIVATE_IP_PATTERNS:
        if pattern.match(ip):
            return True
    return False


def is_lookup_candidate(ip: str) -> bool:
    """Only real, public addresses are sent to the geo service"""
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return False
    return not is_private_ip(ip)


# LRU cache for geo data (max 10000 entries)
@lru_cache(maxsize=10000)
def _get_country_cached(ip: str) -> Optional[str]:
    """
    Get country code from ip-api.com with caching.
    Returns None when the service does not know the address. Transport
    and decoding errors propagate so that failures are not cached.
    """
    with httpx.Client(timeout=settings.GEO_LOOKUP_TIMEOUT) as client:
        response = client.get(
            f"http://ip-api.com/json/{ip}",
            params={"fields": "status,countryCode"}
        )
        response.raise_for_status()
        data = response.json()

    if data.get("status") == "success":
        return data.get("countryCode")
    return None


def get_country_code(ip: str) -> Optional[str]:
    """
    Get ISO country code for IP address with LRU caching.
    Uses ip-api.com (free, 45 req/min limit).
    """
    if not settings.GEO_LOOKUP_ENABLED or not is_lookup_candidate(ip):
        return None

    try:
        return _get_country_cached(ip)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Geo lookup failed for %s: %s", ip, e)
        return None
