from typing import Optional, Sequence, Tuple
from urllib.parse import urlsplit


DIRECT = "Direct"
UNKNOWN_COUNTRY = "Unknown"
DEFAULT_DEVICE = "desktop"

# Checked in order, first match wins. Tablet must come before mobile:
# many tablet user agents also contain "Mobile".
DEVICE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("tablet", ("tablet", "ipad")),
    ("mobile", ("mobile",)),
)


def classify_device(
    user_agent: Optional[str],
    rules: Sequence[Tuple[str, Sequence[str]]] = DEVICE_RULES,
    default: str = DEFAULT_DEVICE
) -> str:
    """
    Map a raw user agent to a coarse device category.

    Args:
        user_agent: Raw User-Agent header, may be empty or None
        rules: Ordered (category, substrings) pairs
        default: Category used when no rule matches

    Returns:
        Device category name
    """
    ua = (user_agent or "").lower()
    if not ua:
        return default

    for category, needles in rules:
        if any(needle in ua for needle in needles):
            return category

    return default


def normalize_referrer(referrer: Optional[str]) -> str:
    """
    Turn a raw referrer into a leaderboard label.

    Empty and "unknown" referrers become "Direct", URLs are reduced to
    their hostname, anything unparseable is returned as is.
    """
    if referrer is None:
        return DIRECT

    value = referrer.strip()
    if not value or value == "unknown":
        return DIRECT

    if value.startswith("http"):
        try:
            hostname = urlsplit(value).hostname
        except ValueError:
            return referrer
        if hostname:
            return hostname

    return referrer


def country_label(country_code: Optional[str]) -> str:
    """Country code as shown on leaderboards"""
    if not country_code or not country_code.strip():
        return UNKNOWN_COUNTRY
    return country_code.strip().upper()
