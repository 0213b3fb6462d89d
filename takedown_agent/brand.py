from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Protocol

import httpx

from .errors import UpstreamUnavailable
from .llm import CompletionModel
from .models import DetectedBrand
from .page import fetch_page_html

logger = logging.getLogger(__name__)

STATIC_CONFIDENCE = 0.9
MIN_MODEL_CONFIDENCE = 0.5

BRAND_CATEGORIES = (
    "Banking",
    "Airlines",
    "E-commerce",
    "Social Media",
    "Streaming",
    "Delivery",
    "Telecommunications",
    "Payment",
    "Technology",
)


def _word(pattern: str) -> str:
    """``pattern`` not glued to other letters, so "chase" skips "purchase"."""
    return rf"(?<![a-z])(?:{pattern})(?![a-z])"


# Ordered: first match wins. Short names are anchored with _word().
COMMON_BRANDS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    ("PayPal", re.compile(r"paypal", re.I), "Payment"),
    ("Microsoft", re.compile(r"microsoft|office365|outlook|hotmail", re.I), "Technology"),
    ("Google", re.compile(r"google|gmail", re.I), "Technology"),
    ("Apple", re.compile(_word(r"apple(?:id)?") + r"|icloud", re.I), "Technology"),
    ("Amazon", re.compile(r"amazon", re.I), "E-commerce"),
    ("Mercado Livre", re.compile(r"mercadoli[vb]re", re.I), "E-commerce"),
    ("Facebook", re.compile(r"facebook|instagram|whatsapp", re.I), "Social Media"),
    ("Netflix", re.compile(r"netflix", re.I), "Streaming"),
    ("Spotify", re.compile(r"spotify", re.I), "Streaming"),
    ("Bank of America", re.compile(r"bankofamerica|" + _word("bofa"), re.I), "Banking"),
    ("Chase", re.compile(_word("chase"), re.I), "Banking"),
    ("Itau", re.compile(_word("itau"), re.I), "Banking"),
    ("DHL", re.compile(_word("dhl"), re.I), "Delivery"),
    ("FedEx", re.compile(r"fedex", re.I), "Delivery"),
    ("LATAM Airlines", re.compile(_word("latam"), re.I), "Airlines"),
    ("Delta", re.compile(_word(r"delta-?air(?:lines)?"), re.I), "Airlines"),
    ("Vodafone", re.compile(r"vodafone", re.I), "Telecommunications"),
)


class BrandDetector(Protocol):
    async def detect(self, hostname: str) -> DetectedBrand | None: ...


def matching_brands(text: str) -> list[tuple[str, str]]:
    """All (brand, category) pairs from the static table that match ``text``."""
    return [(name, category) for name, pattern, category in COMMON_BRANDS if pattern.search(text)]


class StaticBrandDetector:
    async def detect(self, hostname: str) -> DetectedBrand | None:
        for name, pattern, category in COMMON_BRANDS:
            if pattern.search(hostname):
                return DetectedBrand(name=name, confidence=STATIC_CONFIDENCE, category=category)
        return None


_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def extract_page_text(html: str, *, limit: int = 1500) -> tuple[str | None, str | None]:
    """(title, visible-text snippet) from raw HTML."""
    if not html:
        return None, None
    title = None
    m = _TITLE_RE.search(html)
    if m:
        title = _WS_RE.sub(" ", m.group(1)).strip()[:200] or None
    body = _SCRIPT_STYLE_RE.sub(" ", html)
    body = _TAG_RE.sub(" ", body)
    snippet = _WS_RE.sub(" ", body).strip()[:limit]
    return title, snippet or None


def hostname_tokens(hostname: str) -> list[str]:
    labels = hostname.lower().split(".")[:-1]
    tokens: list[str] = []
    for label in labels:
        for tok in re.split(r"[-_\d]+", label):
            if len(tok) >= 3 and tok not in ("www", "com", "net", "org") and tok not in tokens:
                tokens.append(tok)
    return tokens


def _normalize_category(raw: Any) -> str:
    value = str(raw or "").strip().lower()
    for category in BRAND_CATEGORIES:
        if value == category.lower():
            return category
    aliases = {
        "bank": "Banking",
        "financial": "Banking",
        "finance": "Banking",
        "airline": "Airlines",
        "ecommerce": "E-commerce",
        "retail": "E-commerce",
        "social": "Social Media",
        "social network": "Social Media",
        "entertainment": "Streaming",
        "shipping": "Delivery",
        "logistics": "Delivery",
        "telecom": "Telecommunications",
        "payments": "Payment",
        "tech": "Technology",
    }
    return aliases.get(value, "Other")


def normalize_brand_reply(raw: Any) -> DetectedBrand | None:
    """Model reply -> DetectedBrand, or None when no confident brand is named."""
    if not isinstance(raw, dict):
        return None
    name = str(raw.get("brand") or "").strip()
    if not name or name.lower() in ("none", "null", "unknown", "n/a"):
        return None
    try:
        confidence = float(raw.get("confidence"))
    except (TypeError, ValueError):
        return None
    confidence = max(0.0, min(1.0, confidence))
    if confidence < MIN_MODEL_CONFIDENCE:
        return None
    return DetectedBrand(name=name[:80], confidence=confidence, category=_normalize_category(raw.get("category")))


def _build_prompt(hostname: str, title: str | None, snippet: str | None, candidates: list[str]) -> str:
    categories = ", ".join(BRAND_CATEGORIES)
    return f"""You are a phishing analyst. Decide which legitimate brand, if any, the website below is impersonating.

Hostname: {hostname}
Page title: {title or 'Not available'}
Candidate brands found locally: {', '.join(candidates) if candidates else 'none'}

Page text (truncated):
{snippet or 'Not available'}

Respond with ONLY valid JSON (no markdown, no code blocks):

{{
  "brand": "<impersonated brand name, or null if none>",
  "confidence": <number between 0 and 1>,
  "category": "<one of: {categories}, Other>"
}}"""


class ModelBrandDetector:
    """Asks a text-completion model which brand a hostname impersonates."""

    def __init__(self, model: CompletionModel, http: httpx.AsyncClient, *, timeout: float = 8.0):
        self._model = model
        self._http = http
        self._timeout = timeout

    async def _page_text(self, hostname: str) -> tuple[str | None, str | None]:
        html = await fetch_page_html(self._http, hostname, timeout=self._timeout / 2)
        return extract_page_text(html or "")

    def _candidates(self, hostname: str, title: str | None) -> list[str]:
        candidates = [name for name, _ in matching_brands(f"{hostname} {title or ''}")]
        for tok in hostname_tokens(hostname):
            if tok not in (c.lower() for c in candidates):
                candidates.append(tok)
        return candidates[:10]

    async def _detect(self, hostname: str) -> DetectedBrand | None:
        title, snippet = await self._page_text(hostname)
        prompt = _build_prompt(hostname, title, snippet, self._candidates(hostname, title))
        reply = await self._model.complete_json(prompt, max_output_tokens=256)
        return normalize_brand_reply(reply)

    async def detect(self, hostname: str) -> DetectedBrand | None:
        try:
            return await asyncio.wait_for(self._detect(hostname), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Brand detection for %s timed out after %.1fs", hostname, self._timeout)
        except UpstreamUnavailable as e:
            logger.warning("Brand detection for %s failed: %s", hostname, e)
        return None
