from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

import httpx

from .brand import BrandDetector, ModelBrandDetector, StaticBrandDetector
from .config import Settings
from .dns_client import DnsClient
from .errors import NoAddressResolved
from .ip_intel import IpIntelClient
from .llm import CompletionModel
from .models import AnalysisResult, DetectedBrand, IpInfo, ReportSubject, WhoisInfo
from .page import PageInspector, analyze_html
from .report import render_reports
from .scoring import derive_indicators, risk_level, risk_score
from .whois_client import WhoisClient

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DnsAdapter(Protocol):
    async def lookup(self, hostname: str) -> dict[str, list[str]]: ...

    async def resolve_addresses(self, hostname: str) -> list[str]: ...


class WhoisAdapter(Protocol):
    async def lookup(self, hostname: str) -> WhoisInfo: ...


class IpIntelAdapter(Protocol):
    async def lookup(self, ip: str) -> IpInfo: ...


class PageAdapter(Protocol):
    async def fetch(self, hostname: str) -> str | None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Aggregator:
    """Runs every adapter for one hostname and assembles the AnalysisResult."""

    def __init__(
        self,
        *,
        dns: DnsAdapter,
        whois: WhoisAdapter,
        ip_intel: IpIntelAdapter,
        brand_detector: BrandDetector,
        page: PageAdapter | None = None,
        clock: Clock = _utcnow,
    ):
        self.dns = dns
        self.whois = whois
        self.ip_intel = ip_intel
        self.brand_detector = brand_detector
        self.page = page
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, http: httpx.AsyncClient, model: CompletionModel | None = None
    ) -> "Aggregator":
        timeout = settings.upstream_timeout_s
        brand_detector: BrandDetector
        if settings.brand_strategy == "model" and model is not None:
            brand_detector = ModelBrandDetector(model, http, timeout=timeout)
        else:
            if settings.brand_strategy == "model":
                logger.warning("Model brand detection requested but GEMINI_API_KEY is not set; using static table")
            brand_detector = StaticBrandDetector()

        return cls(
            dns=DnsClient(http, timeout=timeout),
            whois=WhoisClient(
                http,
                settings.whois_api_key,
                timeout=timeout,
                attempts=settings.whois_attempts,
                backoff_s=settings.whois_backoff_s,
            ),
            ip_intel=IpIntelClient(http, settings.ipapi_key, timeout=timeout),
            brand_detector=brand_detector,
            page=PageInspector(http, timeout=timeout) if settings.inspect_pages else None,
        )

    async def _detect_brand(self, hostname: str) -> DetectedBrand | None:
        return await self.brand_detector.detect(hostname)

    async def _fetch_page(self, hostname: str) -> str | None:
        if self.page is None:
            return None
        return await self.page.fetch(hostname)

    async def aggregate(self, hostname: str, url: str | None = None) -> AnalysisResult:
        records_task = asyncio.create_task(self.dns.lookup(hostname))
        whois_task = asyncio.create_task(self.whois.lookup(hostname))
        brand_task = asyncio.create_task(self._detect_brand(hostname))
        page_task = asyncio.create_task(self._fetch_page(hostname))
        pending = (records_task, whois_task, brand_task, page_task)

        try:
            addresses = await self.dns.resolve_addresses(hostname)
            if not addresses:
                raise NoAddressResolved(hostname)
            ip = addresses[0]
            ip_info = await self.ip_intel.lookup(ip)
            dns_records, whois_info, brand, html = await asyncio.gather(*pending)
        except BaseException:
            for task in pending:
                task.cancel()
            raise

        now = self._clock()
        indicators = derive_indicators(hostname, whois_info, brand, now=now)
        html_analysis = analyze_html(html, brand.name if brand else None) if html else None

        subject = ReportSubject(
            url=url or hostname,
            hostname=hostname,
            ip=ip,
            whois_info=whois_info,
            ip_info=ip_info,
            dns_records=dns_records,
            detected_brand=brand,
            brand_category=brand.category if brand else None,
            phishing_indicators=indicators,
            html_analysis=html_analysis,
        )
        takedown_text, analysis_report = render_reports(subject)

        logger.info(
            "Analyzed %s: ip=%s brand=%s indicators=%d",
            hostname, ip, brand.name if brand else None, len(indicators),
        )
        return AnalysisResult(
            **subject.model_dump(),
            risk_score=risk_score(brand),
            risk_level=risk_level(indicators),
            takedown_text=takedown_text,
            analysis_report=analysis_report,
            analyzed_at=now.isoformat(),
        )
