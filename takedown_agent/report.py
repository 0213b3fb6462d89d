"""
Takedown notice and analysis report templates.

Both renderers are pure functions of a ReportSubject: no I/O, no clock.
"""
from __future__ import annotations

from .models import NA, HtmlAnalysis, ReportSubject
from .scoring import risk_level, risk_score

CATEGORY_CONTEXT = {
    "Banking": (
        "The site imitates a financial institution and is likely harvesting online banking "
        "credentials and card data from the institution's customers."
    ),
    "Airlines": (
        "The site imitates an airline and is likely collecting passenger details and payment "
        "data through fake bookings, refunds or loyalty-programme offers."
    ),
    "E-commerce": (
        "The site imitates an online retailer and is likely collecting shopper accounts and "
        "payment card data through fake orders or promotions."
    ),
    "Social Media": (
        "The site imitates a social network and is likely hijacking user accounts through a "
        "counterfeit login page."
    ),
    "Streaming": (
        "The site imitates a streaming service and is likely collecting subscriber credentials "
        "and billing details under a fake payment-failure or renewal notice."
    ),
    "Delivery": (
        "The site imitates a parcel delivery service and is likely collecting personal and "
        "payment data under the pretext of customs fees or a failed delivery."
    ),
    "Telecommunications": (
        "The site imitates a telecommunications provider and is likely collecting customer "
        "account credentials and billing information."
    ),
}
DEFAULT_CONTEXT = (
    "The site shows characteristics of a phishing page designed to deceive visitors into "
    "disclosing credentials or personal information."
)

RISK_LABELS = {"high": "HIGH", "medium": "MEDIUM", "low": "LOW"}

PAGE_EVIDENCE = (
    ("login_fields", "Unauthorized login form detected on the page"),
    ("brand_images", "Unauthorized use of the brand's images"),
    ("security_icons", "Misuse of security seals or padlock icons"),
)


def _or_na(value: str | None) -> str:
    return value if value else NA


def category_context(category: str | None) -> str:
    return CATEGORY_CONTEXT.get(category or "", DEFAULT_CONTEXT)


def _category(subject: ReportSubject) -> str | None:
    if subject.brand_category:
        return subject.brand_category
    return subject.detected_brand.category if subject.detected_brand else None


def evidence_lines(html: HtmlAnalysis | None) -> list[str]:
    if html is None:
        return []
    return [text for attr, text in PAGE_EVIDENCE if getattr(html, attr)]


def _indicator_lines(subject: ReportSubject) -> list[str]:
    found = subject.phishing_indicators + evidence_lines(subject.html_analysis)
    if not found:
        return ["- No automated indicators were triggered; manual review requested"]
    return [f"- {i}" for i in found]


def render_takedown_notice(subject: ReportSubject) -> str:
    whois = subject.whois_info
    asn = subject.ip_info.asn
    brand = subject.detected_brand
    category = _category(subject)

    lines = [
        f"Subject: Phishing report and takedown request - {subject.hostname}",
        "",
        "Dear Abuse Team,",
        "",
        "I am writing to report a potentially malicious website that requires immediate attention:",
        "",
        f"Domain: {subject.hostname}",
        f"IP Address: {_or_na(subject.ip)}",
    ]
    if brand is not None:
        lines.append(f"Targeted Brand: {brand.name}")
    if category:
        lines.append(f"Category: {category}")

    lines += [
        "",
        category_context(category),
        "",
        "Risk Indicators:",
        *_indicator_lines(subject),
        "",
        "Domain Information:",
        f"- Registrar: {_or_na(whois.registrar)}",
        f"- Registration Date: {_or_na(whois.creation_date)}",
        f"- Expiration Date: {_or_na(whois.expiration_date)}",
        f"- Registrar Abuse Contact: {_or_na(whois.abuse_email)}",
        "",
        "Hosting Information:",
        f"- ASN: {_or_na(asn.asn)} ({_or_na(asn.org)})",
        f"- Network: {_or_na(asn.route)}",
        f"- Country: {_or_na(asn.country)}",
        f"- Hosting Abuse Contact: {_or_na(subject.ip_info.abuse_contact)}",
        "",
        "Please take appropriate action to investigate and mitigate any potential threats "
        "associated with this domain, including suspending the site and preserving related logs.",
        "",
        "Best regards,",
        "Security Team",
    ]
    return "\n".join(lines)


def _dns_lines(records: dict[str, list[str]]) -> list[str]:
    lines = []
    for rtype, values in records.items():
        lines.append(f"- {rtype}: {', '.join(values) if values else NA}")
    return lines


def render_analysis_report(subject: ReportSubject) -> str:
    whois = subject.whois_info
    asn = subject.ip_info.asn
    brand = subject.detected_brand
    level = risk_level(subject.phishing_indicators)

    if brand is not None:
        brand_line = f"{brand.name} ({_or_na(_category(subject))}, confidence {brand.confidence:.2f})"
    else:
        brand_line = "None detected"

    lines = [
        f"Domain Analysis Report: {subject.hostname}",
        "",
        "Summary",
        f"- Risk Score: {risk_score(brand):.2f}",
        f"- Risk Level: {RISK_LABELS[level]}",
        f"- Detected Brand: {brand_line}",
        f"- Indicators Found: {len(subject.phishing_indicators)}",
        "",
        "Assessment",
        category_context(_category(subject)) if brand is not None else "No brand impersonation was detected.",
        "",
        "Phishing Indicators",
        *_indicator_lines(subject),
        "",
        "Registration",
        f"- Domain: {_or_na(whois.domain_name)}",
        f"- Registrar: {_or_na(whois.registrar)}",
        f"- Created: {_or_na(whois.creation_date)}",
        f"- Expires: {_or_na(whois.expiration_date)}",
        f"- Abuse Email: {_or_na(whois.abuse_email)}",
        "",
        "Network",
        f"- IP Address: {_or_na(subject.ip)}",
        f"- ASN: {_or_na(asn.asn)}",
        f"- Organization: {_or_na(asn.org)}",
        f"- Route: {_or_na(asn.route)}",
        f"- Country: {_or_na(asn.country)}",
        f"- Abuse Contact: {_or_na(subject.ip_info.abuse_contact)}",
        "",
        "DNS Records",
        *_dns_lines(subject.dns_records),
    ]
    return "\n".join(lines)


def render_reports(subject: ReportSubject) -> tuple[str, str]:
    return render_takedown_notice(subject), render_analysis_report(subject)
