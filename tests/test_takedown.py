"""Tests for /generate-takedown rendering and drafting."""

import asyncio

import pytest

from conftest import FakeModel
from takedown_agent.errors import UpstreamModelError
from takedown_agent.models import DetectedBrand, GenerateTakedownRequest, HtmlAnalysis, ReportSubject
from takedown_agent.takedown import apply_overrides, generate_model_takedown, render_takedown_request


@pytest.fixture
def request_body(full_whois, full_ip_info):
    return GenerateTakedownRequest(
        analysis=ReportSubject(
            hostname="secure-login.xyz",
            ip="203.0.113.10",
            whois_info=full_whois,
            ip_info=full_ip_info,
            phishing_indicators=["suspicious top-level domain"],
        ),
    )


class TestApplyOverrides:
    """Tests for apply_overrides()."""

    def test_no_overrides_returns_analysis(self, request_body):
        assert apply_overrides(request_body) is request_body.analysis

    def test_brand_override_adds_brand(self, request_body):
        req = request_body.model_copy(update={"detected_brand": "Netflix"})

        subject = apply_overrides(req)

        assert subject.detected_brand.name == "Netflix"
        assert subject.detected_brand.confidence == 1.0
        assert subject.detected_brand.category is None
        assert subject.brand_category is None

    def test_brand_override_keeps_existing_category(self, request_body):
        analysis = request_body.analysis.model_copy(update={
            "detected_brand": DetectedBrand(name="Chase", confidence=0.9, category="Banking"),
            "brand_category": "Banking",
        })
        req = request_body.model_copy(update={"analysis": analysis, "detected_brand": "Itau"})

        subject = apply_overrides(req)

        assert subject.detected_brand.name == "Itau"
        assert subject.brand_category == "Banking"

    def test_html_analysis_override(self, request_body):
        req = request_body.model_copy(update={"html_analysis": HtmlAnalysis(login_fields=True)})

        assert apply_overrides(req).html_analysis.login_fields

    def test_indicator_override_replaces_list(self, request_body):
        req = request_body.model_copy(update={"phishing_indicators": ["credential form on landing page"]})

        assert apply_overrides(req).phishing_indicators == ["credential form on landing page"]


class TestRenderTakedownRequest:
    """Tests for the template path."""

    def test_renders_notice_with_overrides(self, request_body):
        req = request_body.model_copy(update={"detected_brand": "PayPal"})

        text = render_takedown_request(req)

        assert "Domain: secure-login.xyz" in text
        assert "Targeted Brand: PayPal" in text
        assert "- suspicious top-level domain" in text

    def test_brand_override_without_category_has_no_category_line(self, request_body):
        text = render_takedown_request(request_body.model_copy(update={"detected_brand": "Netflix"}))

        assert "Targeted Brand: Netflix" in text
        assert "Category:" not in text
        assert "Unknown" not in text


class TestGenerateModelTakedown:
    """Tests for the model-assisted path."""

    def test_returns_model_text(self, request_body):
        model = FakeModel(text_reply="  To: abuse@namecheap.com\nSubject: Phishing...  ")

        text = asyncio.run(generate_model_takedown(request_body, model))

        assert text.startswith("To: abuse@namecheap.com")
        prompt = model.prompts[0]
        assert "secure-login.xyz" in prompt
        assert "203.0.113.10" in prompt
        assert "- Severity: HIGH" in prompt
        assert "- Abuse email: abuse@namecheap.com" in prompt

    def test_page_evidence_in_prompt(self, request_body):
        req = request_body.model_copy(update={"html_analysis": HtmlAnalysis(brand_images=True, security_icons=True)})
        model = FakeModel(text_reply="Dear Abuse Team")

        asyncio.run(generate_model_takedown(req, model))

        prompt = model.prompts[0]
        assert "- suspicious top-level domain" in prompt
        assert "- Unauthorized use of the brand's images" in prompt
        assert "- Misuse of security seals or padlock icons" in prompt
        assert "login form" not in prompt

    def test_requires_model(self, request_body):
        with pytest.raises(UpstreamModelError):
            asyncio.run(generate_model_takedown(request_body, None))

    def test_empty_reply_is_an_error(self, request_body):
        with pytest.raises(UpstreamModelError):
            asyncio.run(generate_model_takedown(request_body, FakeModel(text_reply="   ")))
