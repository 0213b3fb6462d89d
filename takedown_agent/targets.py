"""Takedown target recommendation for an already-analyzed domain."""
from __future__ import annotations

import logging

from .errors import UpstreamModelError
from .llm import CompletionModel
from .models import (
    NA,
    AffectedBrand,
    Entity,
    EntityTier,
    IntelligentAnalysis,
    IntelligentAnalysisRequest,
    Severity,
    SuggestedTemplate,
    ThreatAssessment,
)

logger = logging.getLogger(__name__)

_TIER_RANK: dict[str, int] = {"HIGH": 1, "MEDIUM_HIGH": 2, "MEDIUM": 3, "MEDIUM_LOW": 4, "LOW": 5}

_TEMPLATE_TYPES = {
    "HOSTING": "hosting_abuse",
    "REGISTRAR": "registrar_abuse",
    "DNS": "dns_provider_abuse",
}

_RECOMMENDATIONS: dict[str, str] = {
    "HIGH": "Submit the takedown request immediately and notify the impersonated brand.",
    "MEDIUM": "Submit the takedown request and keep monitoring the domain.",
    "LOW": "Keep the domain under observation; escalate if new indicators appear.",
}


def _known(value: str | None) -> bool:
    return bool(value) and value != NA


def dns_provider(ns_records: list[str]) -> str | None:
    """Registrable domain of the first nameserver, e.g. ns1.cloudflare.com. -> cloudflare.com."""
    for ns in ns_records:
        labels = [p for p in ns.strip().rstrip(".").lower().split(".") if p]
        if len(labels) >= 2:
            return ".".join(labels[-2:])
    return None


def candidate_entities(req: IntelligentAnalysisRequest) -> list[Entity]:
    """Hosting, registrar and DNS parties that could act on a takedown, best first."""
    entities: list[Entity] = []

    asn = req.ip_info.asn
    hosting_name = asn.org if _known(asn.org) else asn.descr
    if _known(hosting_name):
        contact = req.ip_info.abuse_contact
        tier: EntityTier = "HIGH" if _known(contact) else "MEDIUM"
        entities.append(Entity(
            name=hosting_name,
            type="HOSTING",
            tier=tier,
            contact_info=contact if _known(contact) else NA,
            priority=0,
            reason=f"Hosts {req.domain} at {req.ip_info.ip} ({asn.asn})",
        ))

    if _known(req.whois.registrar):
        contact = req.whois.abuse_email
        tier = "MEDIUM_HIGH" if _known(contact) else "MEDIUM_LOW"
        entities.append(Entity(
            name=req.whois.registrar,
            type="REGISTRAR",
            tier=tier,
            contact_info=contact if _known(contact) else NA,
            priority=0,
            reason=f"Registrar of record for {req.domain}; can suspend the domain",
        ))

    provider = dns_provider(req.dns_records.get("NS", []))
    if provider:
        entities.append(Entity(
            name=provider,
            type="DNS",
            tier="MEDIUM_LOW" if provider in req.domain else "MEDIUM",
            contact_info=NA,
            priority=0,
            reason=f"Authoritative DNS provider for {req.domain}",
        ))

    entities.sort(key=lambda e: _TIER_RANK[e.tier])
    return [e.model_copy(update={"priority": i}) for i, e in enumerate(entities, start=1)]


def threat_severity(req: IntelligentAnalysisRequest) -> Severity:
    if req.detected_brand is not None:
        return "HIGH"
    if req.indicators:
        return "MEDIUM"
    return "LOW"


def _fallback_target(domain: str) -> Entity:
    return Entity(
        name=NA,
        type="REGISTRAR",
        tier="LOW",
        contact_info=NA,
        priority=1,
        reason=f"No hosting, registrar or DNS contact could be determined for {domain}",
    )


def _build_prompt(req: IntelligentAnalysisRequest, candidates: list[Entity]) -> str:
    brand = req.detected_brand.name if req.detected_brand else "none detected"
    listing = "\n".join(
        f"- {e.name} ({e.type}, contact: {e.contact_info}, tier: {e.tier})" for e in candidates
    )
    return f"""You are helping a brand-protection analyst choose where to send a phishing takedown request.

Domain: {req.domain}
Impersonated brand: {brand}
Indicators: {', '.join(req.indicators) or 'none'}

Candidate recipients:
{listing}

Pick the recipient most likely to remove the site quickly. Respond with ONLY valid JSON:

{{
  "primaryTarget": "<exact name of one candidate>",
  "reason": "<one sentence>",
  "recommendation": "<one sentence on next steps>"
}}"""


async def recommend_targets(
    req: IntelligentAnalysisRequest, model: CompletionModel | None = None
) -> IntelligentAnalysis:
    candidates = candidate_entities(req)
    severity = threat_severity(req)
    recommendation = _RECOMMENDATIONS[severity]

    if model is not None and len(candidates) > 1:
        reply = await model.complete_json(_build_prompt(req, candidates), max_output_tokens=300)
        choice = str(reply.get("primaryTarget") or "").strip()
        picked = next((e for e in candidates if e.name.lower() == choice.lower()), None)
        if picked is None:
            raise UpstreamModelError(f"Model picked an unknown takedown target: {choice!r}")
        reason = str(reply.get("reason") or "").strip() or picked.reason
        candidates = [picked.model_copy(update={"reason": reason})] + [e for e in candidates if e is not picked]
        candidates = [e.model_copy(update={"priority": i}) for i, e in enumerate(candidates, start=1)]
        recommendation = str(reply.get("recommendation") or "").strip() or recommendation

    primary = candidates[0] if candidates else _fallback_target(req.domain)
    alternatives = candidates[1:]

    customizations = {
        "domain": req.domain,
        "recipient": primary.name,
        "contact": primary.contact_info,
        "severity": severity,
    }
    affected = None
    if req.detected_brand is not None:
        brand = req.detected_brand
        affected = AffectedBrand(name=brand.name, type=brand.category or "Other", confidence=brand.confidence)
        customizations["brand"] = brand.name
        customizations["brandCategory"] = affected.type

    logger.info("Primary takedown target for %s: %s (%s)", req.domain, primary.name, primary.type)
    return IntelligentAnalysis(
        affected_brand=affected,
        primary_target=primary,
        alternative_targets=alternatives,
        threat_assessment=ThreatAssessment(
            severity=severity,
            indicators=list(req.indicators),
            recommendation=recommendation,
        ),
        suggested_template=SuggestedTemplate(
            type=_TEMPLATE_TYPES[primary.type],
            customizations=customizations,
        ),
    )
