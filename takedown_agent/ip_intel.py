from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import FetchFailure
from .models import NA, AsnInfo, IpInfo
from .upstream import request_json

logger = logging.getLogger(__name__)

IPAPI_URL = "https://api.ipapi.is"


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return NA
    s = str(value).strip()
    return s or NA


def parse_ip_intel(ip: str, data: Any) -> IpInfo:
    if not isinstance(data, dict):
        raise ValueError("IP intelligence response is not a JSON object")
    if data.get("error"):
        raise ValueError(str(data["error"]))

    asn = data.get("asn") if isinstance(data.get("asn"), dict) else {}
    abuse = data.get("abuse") if isinstance(data.get("abuse"), dict) else {}

    asn_number = _text(asn.get("asn"))
    if asn_number != NA and not asn_number.upper().startswith("AS"):
        asn_number = f"AS{asn_number}"

    country = _text(asn.get("country"))
    if country != NA:
        country = country.upper()

    abuse_contact = _text(abuse.get("email"))
    if abuse_contact == NA:
        abuse_contact = _text(asn.get("abuse"))

    return IpInfo(
        ip=_text(data.get("ip")) if data.get("ip") else ip,
        abuse_contact=abuse_contact,
        asn=AsnInfo(
            asn=asn_number,
            org=_text(asn.get("org")),
            route=_text(asn.get("route")),
            country=country,
            descr=_text(asn.get("descr")),
            abuser_score=_text(asn.get("abuser_score")),
        ),
    )


class IpIntelClient:
    source = "ip_intel"

    def __init__(self, http: httpx.AsyncClient, api_key: str | None = None, *, timeout: float = 8.0):
        self._http = http
        self._api_key = api_key
        self._timeout = timeout

    async def fetch(self, ip: str) -> IpInfo:
        payload: dict[str, str] = {"q": ip}
        if self._api_key:
            payload["key"] = self._api_key
        data = await request_json(self._http, self.source, "POST", IPAPI_URL, json=payload, timeout=self._timeout)
        try:
            return parse_ip_intel(ip, data)
        except ValueError as e:
            raise FetchFailure(self.source, "parse", str(e)) from e

    async def lookup(self, ip: str) -> IpInfo:
        # No retry: one attempt, then sentinels.
        try:
            return await self.fetch(ip)
        except FetchFailure as e:
            logger.warning("IP intelligence lookup for %s failed: %s", ip, e)
            return IpInfo(ip=ip)
