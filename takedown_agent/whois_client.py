from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx

from .errors import FetchFailure
from .models import NA, WhoisInfo
from .retry import Sleep, linear_backoff, retry_async
from .upstream import request_json

logger = logging.getLogger(__name__)

WHOIS_API_URL = "https://www.whoisxmlapi.com/whoisserver/WhoisService"

_ABUSE_EMAIL_RE = re.compile(
    r"Registrar Abuse Contact Email:\s*([A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,})",
    re.IGNORECASE,
)
_EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)


def _first_str(*values: Any) -> str | None:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _abuse_email(record: dict[str, Any], registry: dict[str, Any], raw_text: str) -> str | None:
    direct = _first_str(
        record.get("registrarAbuseContactEmail"),
        registry.get("registrarAbuseContactEmail"),
        record.get("contactEmail"),
        registry.get("contactEmail"),
    )
    if direct and _EMAIL_RE.match(direct):
        return direct.lower()
    m = _ABUSE_EMAIL_RE.search(raw_text)
    return m.group(1).lower() if m else None


def parse_whois_record(hostname: str, data: Any) -> WhoisInfo:
    """Map a WhoisXML API response onto WhoisInfo, filling gaps with N/A."""
    if not isinstance(data, dict):
        raise ValueError("WHOIS response is not a JSON object")

    error = data.get("ErrorMessage")
    if isinstance(error, dict):
        raise ValueError(str(error.get("msg") or "WHOIS API returned an error"))

    record = data.get("WhoisRecord")
    if not isinstance(record, dict):
        raise ValueError("WHOIS response has no WhoisRecord")
    registry = record.get("registryData") if isinstance(record.get("registryData"), dict) else {}

    raw_text = _first_str(
        record.get("rawText"), record.get("strippedText"), registry.get("rawText"), registry.get("strippedText")
    ) or ""

    return WhoisInfo(
        domain_name=_first_str(record.get("domainName"), hostname) or NA,
        registrar=_first_str(record.get("registrarName"), registry.get("registrarName")) or NA,
        creation_date=_first_str(record.get("createdDate"), registry.get("createdDate")) or NA,
        expiration_date=_first_str(record.get("expiresDate"), registry.get("expiresDate")) or NA,
        abuse_email=_abuse_email(record, registry, raw_text) or NA,
        raw_text=raw_text or NA,
    )


class WhoisClient:
    source = "whois"

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str | None,
        *,
        timeout: float = 8.0,
        attempts: int = 3,
        backoff_s: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self._http = http
        self._api_key = api_key
        self._timeout = timeout
        self._attempts = attempts
        self._backoff = linear_backoff(backoff_s)
        self._sleep = sleep

    async def _fetch_once(self, hostname: str) -> Any:
        return await request_json(
            self._http,
            self.source,
            "GET",
            WHOIS_API_URL,
            params={
                "apiKey": self._api_key,
                "domainName": hostname,
                "outputFormat": "JSON",
            },
            timeout=self._timeout,
        )

    async def fetch(self, hostname: str) -> WhoisInfo:
        """WHOIS record for the hostname; 5xx responses are retried."""
        if not self._api_key:
            raise FetchFailure(self.source, "upstream_4xx", "WHOIS_API_KEY is not configured")

        data = await retry_async(
            lambda: self._fetch_once(hostname),
            attempts=self._attempts,
            backoff=self._backoff,
            retryable=lambda e: isinstance(e, FetchFailure) and e.retryable,
            sleep=self._sleep,
            label=f"WHOIS lookup for {hostname}",
        )
        try:
            return parse_whois_record(hostname, data)
        except ValueError as e:
            raise FetchFailure(self.source, "parse", str(e)) from e

    async def lookup(self, hostname: str) -> WhoisInfo:
        try:
            return await self.fetch(hostname)
        except FetchFailure as e:
            if e.body:
                logger.warning("WHOIS lookup for %s failed: %s; body: %s", hostname, e, e.body[:300])
            else:
                logger.warning("WHOIS lookup for %s failed: %s", hostname, e)
            return WhoisInfo(domain_name=hostname)
