from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from .errors import FetchFailure
from .models import RECORD_TYPES, empty_record_set
from .upstream import request_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DohProvider:
    name: str
    url: str


# Priority order for address lookups.
DOH_PROVIDERS = (
    DohProvider("google", "https://dns.google/resolve"),
    DohProvider("cloudflare", "https://cloudflare-dns.com/dns-query"),
    DohProvider("quad9", "https://dns.quad9.net:5053/dns-query"),
)

RECORD_TYPE_CODES = {
    "A": 1,
    "NS": 2,
    "CNAME": 5,
    "SOA": 6,
    "PTR": 12,
    "MX": 15,
    "TXT": 16,
    "AAAA": 28,
    "SRV": 33,
}


def _answer_values(data: object, rtype: str) -> list[str]:
    if not isinstance(data, dict):
        raise ValueError("DoH response is not a JSON object")

    answers = data.get("Answer") or []
    code = RECORD_TYPE_CODES[rtype]
    values: list[str] = []
    for answer in answers:
        if not isinstance(answer, dict):
            continue
        # CNAME chains show up in the answer section of other record types.
        if "type" in answer and answer.get("type") != code:
            continue
        value = str(answer.get("data") or "").strip()
        if rtype == "TXT":
            value = value.strip('"')
        if value:
            values.append(value)
    return values


class DnsClient:
    source = "dns"

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        providers: tuple[DohProvider, ...] = DOH_PROVIDERS,
        timeout: float = 8.0,
    ):
        if not providers:
            raise ValueError("at least one DoH provider is required")
        self._http = http
        self._providers = providers
        self._timeout = timeout

    async def query(self, hostname: str, rtype: str, provider: DohProvider | None = None) -> list[str]:
        """Values of one record type; ``[]`` when the name has no such record."""
        provider = provider or self._providers[0]
        data = await request_json(
            self._http,
            f"{self.source}:{provider.name}",
            "GET",
            provider.url,
            params={"name": hostname, "type": rtype},
            headers={"accept": "application/dns-json"},
            timeout=self._timeout,
        )
        try:
            return _answer_values(data, rtype)
        except ValueError as e:
            raise FetchFailure(f"{self.source}:{provider.name}", "parse", str(e)) from e

    async def _query_or_empty(self, hostname: str, rtype: str) -> list[str]:
        try:
            return await self.query(hostname, rtype)
        except FetchFailure as e:
            logger.warning("DNS %s lookup for %s failed: %s", rtype, hostname, e)
            return []

    async def fetch(self, hostname: str) -> dict[str, list[str]]:
        """All record types from the primary provider, queried concurrently."""
        results = await asyncio.gather(*(self._query_or_empty(hostname, rtype) for rtype in RECORD_TYPES))
        records = empty_record_set()
        records.update(zip(RECORD_TYPES, results))
        return records

    async def lookup(self, hostname: str) -> dict[str, list[str]]:
        return await self.fetch(hostname)

    async def resolve_addresses(self, hostname: str) -> list[str]:
        """First non-empty A answer, trying each provider in priority order."""
        for provider in self._providers:
            try:
                addresses = await self.query(hostname, "A", provider)
            except FetchFailure as e:
                logger.warning("Address lookup for %s via %s failed: %s", hostname, provider.name, e)
                continue
            if addresses:
                return addresses
            logger.info("No A records for %s from %s", hostname, provider.name)
        return []
