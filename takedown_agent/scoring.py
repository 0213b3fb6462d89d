from __future__ import annotations

from datetime import datetime, timezone

from .models import NA, DetectedBrand, RiskLevel, WhoisInfo

BASE_RISK_SCORE = 0.5
BRAND_RISK_SCORE = 0.9

RECENT_REGISTRATION_DAYS = 30
SUSPICIOUS_TLDS = (".xyz", ".top", ".work", ".date", ".loan", ".agency")

RECENTLY_REGISTERED = "recently registered domain"
SUSPICIOUS_TLD = "suspicious top-level domain"

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %Z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d-%b-%Y",
    "%Y.%m.%d",
)


def risk_score(brand: DetectedBrand | None) -> float:
    return BRAND_RISK_SCORE if brand is not None else BASE_RISK_SCORE


def risk_level(indicators: list[str]) -> RiskLevel:
    if len(indicators) > 5:
        return "high"
    if len(indicators) < 3:
        return "low"
    return "medium"


def parse_registry_date(value: str | None) -> datetime | None:
    """Parse the date formats WHOIS registries commonly return; naive -> UTC."""
    if not value or value == NA:
        return None
    text = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def domain_age_days(whois: WhoisInfo, now: datetime) -> int | None:
    created = parse_registry_date(whois.creation_date)
    if created is None:
        return None
    days = int((now - created).total_seconds() // 86400)
    return days if days >= 0 else None


def impersonation_indicator(brand: DetectedBrand) -> str:
    return f"potential {brand.name} impersonation"


def derive_indicators(
    hostname: str, whois: WhoisInfo, brand: DetectedBrand | None, *, now: datetime
) -> list[str]:
    indicators: list[str] = []

    age = domain_age_days(whois, now)
    if age is not None and age < RECENT_REGISTRATION_DAYS:
        indicators.append(RECENTLY_REGISTERED)

    if hostname.lower().endswith(SUSPICIOUS_TLDS):
        indicators.append(SUSPICIOUS_TLD)

    if brand is not None:
        indicators.append(impersonation_indicator(brand))

    return indicators
