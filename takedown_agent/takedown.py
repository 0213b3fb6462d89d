from __future__ import annotations

import logging

from .errors import UpstreamModelError
from .llm import CompletionModel
from .models import NA, DetectedBrand, GenerateTakedownRequest, ReportSubject
from .report import evidence_lines, render_takedown_notice

logger = logging.getLogger(__name__)


def apply_overrides(req: GenerateTakedownRequest) -> ReportSubject:
    """The request's analysis with any overrides applied."""
    subject = req.analysis
    update: dict = {}

    if req.detected_brand:
        current = subject.detected_brand
        category = subject.brand_category or (current.category if current else None)
        if current is None or current.name != req.detected_brand:
            update["detected_brand"] = DetectedBrand(
                name=req.detected_brand,
                confidence=1.0,
                category=category,
            )
            update["brand_category"] = category

    if req.phishing_indicators is not None:
        update["phishing_indicators"] = list(req.phishing_indicators)

    if req.html_analysis is not None:
        update["html_analysis"] = req.html_analysis

    return subject.model_copy(update=update) if update else subject


def render_takedown_request(req: GenerateTakedownRequest) -> str:
    return render_takedown_notice(apply_overrides(req))


def _build_prompt(subject: ReportSubject, severity: str) -> str:
    brand = subject.detected_brand.name if subject.detected_brand else None
    found = subject.phishing_indicators + evidence_lines(subject.html_analysis)
    indicators = "\n".join(f"- {i}" for i in found) or "- Malicious activity detected"
    abuse_to = subject.whois_info.abuse_email
    if abuse_to == NA:
        abuse_to = subject.ip_info.abuse_contact

    return f"""Write a professional phishing notification and takedown request email.
The tone must be courteous, direct and professional from start to finish.

Expected format:
To: [abuse email]
Subject: Phishing Notification and Takedown Request - [domain]

Dear Sir or Madam,

[INTRODUCTION: courteous, professional opening]

[NOTIFICATION: report the malicious site, stating it is phishing aimed at the brand {brand or 'identified'}.
Include the domain ({subject.hostname}) and IP ({subject.ip})]

[EVIDENCE: list the phishing indicators detected:
{indicators}]

[REQUEST: ask for immediate removal of the content/site because of the risk to consumers]

[CLOSING: thank them for their attention and offer further assistance]

Kind regards,
[Signature]

AVAILABLE DATA:
- Domain: {subject.hostname}
- IP: {subject.ip}
- Registrar: {subject.whois_info.registrar}
- Affected brand: {brand or NA}
- Severity: {severity}
- Hosting provider: {subject.ip_info.asn.org}
- Abuse email: {abuse_to}

Reply with the email text only."""


async def generate_model_takedown(req: GenerateTakedownRequest, model: CompletionModel | None) -> str:
    if model is None:
        raise UpstreamModelError("Text-completion model is not configured (set GEMINI_API_KEY)")
    subject = apply_overrides(req)
    prompt = _build_prompt(subject, (req.severity or "HIGH").upper())
    text = (await model.complete(prompt, max_output_tokens=800, temperature=0.7)).strip()
    if not text:
        raise UpstreamModelError("Model returned an empty takedown text")
    logger.info("Generated model takedown text for %s (%d chars)", subject.hostname, len(text))
    return text
