"""
HTML extraction helpers for the scraping strategy.

Profile pages are noisy and change often, so extraction is deliberately
forgiving: reduce the page to text, try label patterns in order and take the
first number that follows.
"""

import re
from typing import Any, Iterable, Mapping, Optional

from bs4 import BeautifulSoup

from app.platforms.base import MAX_STORED_INT


NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")


def page_text(html: str) -> str:
    """Visible text of an HTML document, whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return " ".join(soup.get_text(separator=" ").split())


def has_absence_marker(html: str, markers: Iterable[str]) -> bool:
    lowered = html.lower()
    return any(marker.lower() in lowered for marker in markers)


def parse_number(raw: str) -> Optional[int | float]:
    match = NUMBER.search(raw)
    if not match:
        return None
    cleaned = match.group(0).replace(",", "")
    # Digit runs MongoDB cannot store are page noise, not metrics
    if len(cleaned.split(".")[0]) > len(str(MAX_STORED_INT)):
        return None
    if "." in cleaned:
        value = float(cleaned)
        value = int(value) if value.is_integer() else value
    else:
        value = int(cleaned)
    return value if value <= MAX_STORED_INT else None


def extract_number(patterns: Iterable[str], *sources: str) -> Optional[int | float]:
    """First number captured, trying each pattern (in order) against every source."""
    for pattern in patterns:
        for source in sources:
            match = re.search(pattern, source, re.IGNORECASE)
            if not match:
                continue
            value = parse_number(match.group(1) if match.groups() else match.group(0))
            if value is not None:
                return value
    return None


def extract_fields(
    html: str,
    fields: Mapping[str, Iterable[str]],
    defaults: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Apply per-metric label patterns to a profile page.

    Patterns are tried against the visible text first and the raw HTML second
    (some platforms only expose numbers inside embedded JSON). Metrics that
    match nothing keep their default.
    """
    text = page_text(html)
    extracted: dict[str, Any] = {}

    for name, patterns in fields.items():
        value = extract_number(patterns, text, html)
        if value is None:
            value = defaults.get(name, 0)
        extracted[name] = value

    return extracted
