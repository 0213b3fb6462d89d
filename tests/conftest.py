"""Shared fixtures: fake adapters, mock HTTP transports and a fixed clock."""

from datetime import datetime, timezone

import httpx
import pytest

from takedown_agent.aggregator import Aggregator
from takedown_agent.models import (
    AsnInfo,
    DetectedBrand,
    IpInfo,
    WhoisInfo,
    empty_record_set,
)

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeDns:
    def __init__(self, addresses=("203.0.113.10",), records=None):
        self.addresses = list(addresses)
        self.records = records if records is not None else {
            **empty_record_set(),
            "A": list(addresses),
            "NS": ["ns1.cloudflare.com.", "ns2.cloudflare.com."],
        }
        self.calls = []

    async def lookup(self, hostname):
        self.calls.append(("lookup", hostname))
        return {k: list(v) for k, v in self.records.items()}

    async def resolve_addresses(self, hostname):
        self.calls.append(("resolve_addresses", hostname))
        return list(self.addresses)


class FakeWhois:
    def __init__(self, info=None):
        self.info = info
        self.calls = []

    async def lookup(self, hostname):
        self.calls.append(hostname)
        return self.info or WhoisInfo(domain_name=hostname)


class FakeIpIntel:
    def __init__(self, info=None):
        self.info = info
        self.calls = []

    async def lookup(self, ip):
        self.calls.append(ip)
        return self.info or IpInfo(ip=ip)


class FakeBrand:
    def __init__(self, brand=None):
        self.brand = brand
        self.calls = []

    async def detect(self, hostname):
        self.calls.append(hostname)
        return self.brand


class FakePage:
    def __init__(self, html=None):
        self.html = html
        self.calls = []

    async def fetch(self, hostname):
        self.calls.append(hostname)
        return self.html


class FakeModel:
    """Stands in for GeminiClient; records prompts and replays canned replies."""

    def __init__(self, json_reply=None, text_reply="", error=None):
        self.json_reply = json_reply or {}
        self.text_reply = text_reply
        self.error = error
        self.prompts = []

    async def complete(self, prompt, *, max_output_tokens=1024, temperature=0.2):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.text_reply

    async def complete_json(self, prompt, *, max_output_tokens=1024):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.json_reply


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def mock_http():
    """Build an httpx.AsyncClient whose requests are answered by ``handler``."""

    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def no_sleep():
    """Async sleep replacement that records requested delays."""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def paypal_brand():
    return DetectedBrand(name="PayPal", confidence=0.9, category="Payment")


@pytest.fixture
def full_whois():
    return WhoisInfo(
        domain_name="paypal-secure-login.xyz",
        registrar="NameCheap, Inc.",
        creation_date="2025-05-20T10:00:00Z",
        expiration_date="2026-05-20T10:00:00Z",
        abuse_email="abuse@namecheap.com",
        raw_text="Domain Name: PAYPAL-SECURE-LOGIN.XYZ",
    )


@pytest.fixture
def full_ip_info():
    return IpInfo(
        ip="203.0.113.10",
        abuse_contact="abuse@hostco.example",
        asn=AsnInfo(
            asn="AS64500",
            org="HostCo LLC",
            route="203.0.113.0/24",
            country="US",
            descr="HOSTCO, US",
            abuser_score="0.01 (Low)",
        ),
    )


@pytest.fixture
def make_aggregator(fixed_now):
    def _make(*, dns=None, whois=None, ip_intel=None, brand=None, page=None):
        return Aggregator(
            dns=dns or FakeDns(),
            whois=whois or FakeWhois(),
            ip_intel=ip_intel or FakeIpIntel(),
            brand_detector=brand or FakeBrand(),
            page=page,
            clock=lambda: fixed_now,
        )

    return _make
