"""Landing page fetch and markup evidence checks."""
from __future__ import annotations

import logging
import re

import httpx

from .models import HtmlAnalysis

logger = logging.getLogger(__name__)

MAX_HTML_CHARS = 200_000

_PASSWORD_INPUT_RE = re.compile(r"<input\b[^>]*\btype\s*=\s*[\"']?password\b", re.IGNORECASE)
_IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_SECURITY_ICON_RE = re.compile(
    r"<(?:img|svg|i|span|div)\b[^>]*"
    r"(?:padlock|fa-lock|lock-icon|secure-seal|security-badge|(?<![a-z])ssl(?![a-z])|verisign|norton|mcafee|trustwave)"
    r"[^>]*>",
    re.IGNORECASE,
)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


async def fetch_page_html(http: httpx.AsyncClient, hostname: str, *, timeout: float) -> str | None:
    """Raw HTML of https://<hostname>/, or None when it can't be fetched."""
    try:
        res = await http.get(f"https://{hostname}/", timeout=timeout)
    except httpx.HTTPError as e:
        logger.info("Could not fetch page for %s: %s", hostname, e)
        return None
    if "text/html" not in res.headers.get("content-type", "").lower():
        return None
    return res.text[:MAX_HTML_CHARS]


def _squash(text: str) -> str:
    return _NON_ALNUM_RE.sub("", text.lower())


def analyze_html(html: str, brand: str | None = None) -> HtmlAnalysis:
    brand_images = False
    token = _squash(brand) if brand else ""
    if token:
        brand_images = any(token in _squash(tag) for tag in _IMG_RE.findall(html))
    return HtmlAnalysis(
        login_fields=bool(_PASSWORD_INPUT_RE.search(html)),
        brand_images=brand_images,
        security_icons=bool(_SECURITY_ICON_RE.search(html)),
    )


class PageInspector:
    def __init__(self, http: httpx.AsyncClient, *, timeout: float = 8.0):
        self._http = http
        self._timeout = timeout

    async def fetch(self, hostname: str) -> str | None:
        return await fetch_page_html(self._http, hostname, timeout=self._timeout)
