"""Tests for risk scoring and indicator derivation."""

from datetime import datetime, timezone

import pytest

from takedown_agent.models import DetectedBrand, WhoisInfo
from takedown_agent.scoring import (
    derive_indicators,
    domain_age_days,
    parse_registry_date,
    risk_level,
    risk_score,
)

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)
BRAND = DetectedBrand(name="PayPal", confidence=0.9, category="Payment")


class TestRiskScore:
    """Tests for the two-level risk score."""

    def test_brand_detected(self):
        assert risk_score(BRAND) == 0.9

    def test_no_brand(self):
        assert risk_score(None) == 0.5

    def test_low_confidence_brand_still_scores_high(self):
        assert risk_score(DetectedBrand(name="X", confidence=0.5, category="Other")) == 0.9


class TestRiskLevel:
    """Tests for risk_level()."""

    @pytest.mark.parametrize(
        "count, expected",
        [(0, "low"), (2, "low"), (3, "medium"), (5, "medium"), (6, "high")],
    )
    def test_thresholds(self, count, expected):
        assert risk_level(["x"] * count) == expected


class TestParseRegistryDate:
    """Tests for parse_registry_date()."""

    @pytest.mark.parametrize(
        "value",
        [
            "2025-05-20T10:00:00Z",
            "2025-05-20T10:00:00+00:00",
            "2025-05-20 10:00:00 UTC",
            "2025-05-20",
            "20-May-2025",
        ],
    )
    def test_common_formats(self, value):
        parsed = parse_registry_date(value)

        assert parsed.date().isoformat() == "2025-05-20"
        assert parsed.tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "N/A", "sometime last year"])
    def test_unparseable(self, value):
        assert parse_registry_date(value) is None

    def test_domain_age_days(self):
        assert domain_age_days(WhoisInfo(creation_date="2025-05-20T00:00:00Z"), NOW) == 12
        assert domain_age_days(WhoisInfo(), NOW) is None


class TestDeriveIndicators:
    """Tests for derive_indicators()."""

    def test_all_rules_in_order(self):
        whois = WhoisInfo(creation_date="2025-05-25T00:00:00Z")

        indicators = derive_indicators("paypal-secure-login.xyz", whois, BRAND, now=NOW)

        assert indicators == [
            "recently registered domain",
            "suspicious top-level domain",
            "potential PayPal impersonation",
        ]

    def test_old_domain_on_ordinary_tld(self):
        whois = WhoisInfo(creation_date="2010-01-01")

        assert derive_indicators("example.com", whois, None, now=NOW) == []

    def test_unknown_creation_date_adds_nothing(self):
        assert derive_indicators("example.com", WhoisInfo(), None, now=NOW) == []

    @pytest.mark.parametrize("tld", [".xyz", ".top", ".work", ".date", ".loan", ".agency"])
    def test_each_suspicious_tld(self, tld):
        assert derive_indicators(f"login{tld}", WhoisInfo(), None, now=NOW) == ["suspicious top-level domain"]

    def test_tld_must_be_a_suffix(self):
        assert derive_indicators("xyz.example.com", WhoisInfo(), None, now=NOW) == []
