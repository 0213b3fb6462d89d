"""Tests for the takedown notice and analysis report templates."""

import pytest

from takedown_agent.models import DetectedBrand, HtmlAnalysis, ReportSubject
from takedown_agent.report import (
    CATEGORY_CONTEXT,
    DEFAULT_CONTEXT,
    category_context,
    evidence_lines,
    render_analysis_report,
    render_reports,
    render_takedown_notice,
)


@pytest.fixture
def subject(full_whois, full_ip_info, paypal_brand):
    return ReportSubject(
        url="https://paypal-secure-login.xyz/login",
        hostname="paypal-secure-login.xyz",
        ip="203.0.113.10",
        whois_info=full_whois,
        ip_info=full_ip_info,
        detected_brand=paypal_brand,
        brand_category="Payment",
        phishing_indicators=["suspicious top-level domain", "potential PayPal impersonation"],
    )


class TestCategoryContext:
    """Tests for the category branch."""

    @pytest.mark.parametrize(
        "category",
        ["Banking", "Airlines", "E-commerce", "Social Media", "Streaming", "Delivery", "Telecommunications"],
    )
    def test_known_categories_have_their_own_sentence(self, category):
        assert category_context(category) == CATEGORY_CONTEXT[category]
        assert category_context(category) != DEFAULT_CONTEXT

    @pytest.mark.parametrize("category", [None, "", "Payment", "Gardening"])
    def test_other_categories_use_default(self, category):
        assert category_context(category) == DEFAULT_CONTEXT


class TestTakedownNotice:
    """Tests for render_takedown_notice()."""

    def test_includes_domain_brand_and_indicators(self, subject):
        text = render_takedown_notice(subject)

        assert "Subject: Phishing report and takedown request - paypal-secure-login.xyz" in text
        assert "Domain: paypal-secure-login.xyz" in text
        assert "IP Address: 203.0.113.10" in text
        assert "Targeted Brand: PayPal" in text
        assert "Category: Payment" in text
        assert "- suspicious top-level domain" in text
        assert "- potential PayPal impersonation" in text
        assert "- Registrar: NameCheap, Inc." in text
        assert "- Hosting Abuse Contact: abuse@hostco.example" in text
        assert DEFAULT_CONTEXT in text

    def test_banking_brand_uses_banking_context(self, subject):
        banking = subject.model_copy(update={
            "detected_brand": DetectedBrand(name="Chase", confidence=0.9, category="Banking"),
            "brand_category": "Banking",
        })

        assert CATEGORY_CONTEXT["Banking"] in render_takedown_notice(banking)

    def test_missing_data_renders_sentinels(self):
        text = render_takedown_notice(ReportSubject(hostname="example.com"))

        assert "None" not in text
        assert "IP Address: N/A" in text
        assert "- Registration Date: N/A" in text
        assert "- ASN: N/A (N/A)" in text
        assert "Targeted Brand" not in text
        assert "No automated indicators were triggered" in text

    def test_page_evidence_is_listed_with_indicators(self, subject):
        with_page = subject.model_copy(update={"html_analysis": HtmlAnalysis(login_fields=True, security_icons=True)})

        text = render_takedown_notice(with_page)

        assert "- suspicious top-level domain" in text
        assert "- Unauthorized login form detected on the page" in text
        assert "- Misuse of security seals or padlock icons" in text
        assert "brand's images" not in text

    def test_page_evidence_alone_replaces_placeholder(self):
        subject = ReportSubject(hostname="example.com", html_analysis=HtmlAnalysis(login_fields=True))

        text = render_takedown_notice(subject)

        assert "No automated indicators were triggered" not in text
        assert "- Unauthorized login form detected on the page" in text

    def test_brand_without_category_uses_default_context(self):
        subject = ReportSubject(hostname="example.com", detected_brand=DetectedBrand(name="Netflix", confidence=1.0))

        text = render_takedown_notice(subject)

        assert "Targeted Brand: Netflix" in text
        assert "Category:" not in text
        assert DEFAULT_CONTEXT in text


class TestEvidenceLines:
    """Tests for evidence_lines()."""

    def test_no_analysis(self):
        assert evidence_lines(None) == []

    def test_only_positive_checks(self):
        assert evidence_lines(HtmlAnalysis(brand_images=True)) == ["Unauthorized use of the brand's images"]


class TestAnalysisReport:
    """Tests for render_analysis_report()."""

    def test_summary_section(self, subject):
        report = render_analysis_report(subject)

        assert "Domain Analysis Report: paypal-secure-login.xyz" in report
        assert "- Risk Score: 0.90" in report
        assert "- Risk Level: LOW" in report
        assert "- Detected Brand: PayPal (Payment, confidence 0.90)" in report
        assert "- Indicators Found: 2" in report

    @pytest.mark.parametrize("count, label", [(2, "LOW"), (4, "MEDIUM"), (6, "HIGH")])
    def test_risk_label_follows_indicator_count(self, subject, count, label):
        report = render_analysis_report(subject.model_copy(update={"phishing_indicators": ["x"] * count}))

        assert f"- Risk Level: {label}" in report

    def test_dns_section_lists_every_type(self):
        subject = ReportSubject(hostname="example.com", dns_records={
            "A": ["192.0.2.1"], "AAAA": [], "MX": ["10 mx.example.com."], "NS": [],
            "TXT": [], "SOA": [], "PTR": [], "SRV": [], "CNAME": [],
        })

        report = render_analysis_report(subject)

        assert "- A: 192.0.2.1" in report
        assert "- MX: 10 mx.example.com." in report
        assert "- CNAME: N/A" in report
        assert "- Detected Brand: None detected" in report
        assert "- Risk Score: 0.50" in report

    def test_rendering_is_deterministic(self, subject):
        assert render_reports(subject) == render_reports(subject)
