from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

NA = "N/A"

RECORD_TYPES = ("A", "AAAA", "MX", "NS", "TXT", "SOA", "PTR", "SRV", "CNAME")

RiskLevel = Literal["low", "medium", "high"]


def empty_record_set() -> dict[str, list[str]]:
    return {rtype: [] for rtype in RECORD_TYPES}


class AnalyzeRequest(BaseModel):
    url: str = Field(..., min_length=1)


class _SentinelModel(BaseModel):
    """Text fields default to N/A; explicit nulls from clients mean the same."""

    @model_validator(mode="before")
    @classmethod
    def _nulls_to_na(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: NA if v is None else v for k, v in data.items()}
        return data


class WhoisInfo(_SentinelModel):
    domain_name: str = NA
    registrar: str = NA
    creation_date: str = NA
    expiration_date: str = NA
    abuse_email: str = Field(NA, validation_alias=AliasChoices("abuse_email", "registrar_abuse_contact_email"))
    raw_text: str = NA


class AsnInfo(_SentinelModel):
    asn: str = NA
    org: str = NA
    route: str = NA
    country: str = NA
    descr: str = NA
    abuser_score: str = NA

    @field_validator("asn", "abuser_score", mode="before")
    @classmethod
    def _number_to_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class IpInfo(_SentinelModel):
    ip: str = NA
    abuse_contact: str = NA
    asn: AsnInfo = Field(default_factory=AsnInfo)

    @field_validator("asn", mode="before")
    @classmethod
    def _null_asn(cls, v: Any) -> Any:
        return {} if v == NA else v


class DetectedBrand(BaseModel):
    name: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    category: str | None = None


class HtmlAnalysis(BaseModel):
    """Evidence found in the landing page markup."""

    model_config = ConfigDict(populate_by_name=True)

    login_fields: bool = Field(False, alias="loginFields")
    brand_images: bool = Field(False, alias="brandImages")
    security_icons: bool = Field(False, alias="securityIcons")


class ReportSubject(BaseModel):
    """Everything the report templates read from an analysis."""

    url: str = ""
    hostname: str = Field(..., min_length=1)
    ip: str = NA
    whois_info: WhoisInfo = Field(default_factory=WhoisInfo)
    ip_info: IpInfo = Field(default_factory=IpInfo)
    dns_records: dict[str, list[str]] = Field(default_factory=empty_record_set)
    detected_brand: DetectedBrand | None = None
    brand_category: str | None = None
    phishing_indicators: list[str] = Field(default_factory=list)
    html_analysis: HtmlAnalysis | None = None


class AnalysisResult(ReportSubject):
    model_config = ConfigDict(frozen=True)

    risk_score: float
    risk_level: RiskLevel
    takedown_text: str
    analysis_report: str

    # metadata
    analyzed_at: str


class GenerateTakedownRequest(BaseModel):
    analysis: ReportSubject
    # Optional overrides applied on top of the analysis
    detected_brand: str | None = None
    phishing_indicators: list[str] | None = None
    html_analysis: HtmlAnalysis | None = None
    severity: str | None = None
    mode: Literal["template", "model"] = "template"


class TakedownTextResponse(BaseModel):
    takedown_text: str


class ModelTakedownResponse(BaseModel):
    text: str


EntityType = Literal["HOSTING", "REGISTRAR", "DNS"]
EntityTier = Literal["HIGH", "MEDIUM_HIGH", "MEDIUM", "MEDIUM_LOW", "LOW"]
Severity = Literal["HIGH", "MEDIUM", "LOW"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IntelligentAnalysisRequest(_CamelModel):
    domain: str = Field(..., min_length=1)
    whois: WhoisInfo = Field(default_factory=WhoisInfo)
    ip_info: IpInfo = Field(..., alias="ipInfo")
    dns_records: dict[str, list[str]] = Field(default_factory=empty_record_set)
    detected_brand: DetectedBrand | None = Field(None, alias="detectedBrand")
    indicators: list[str] = Field(default_factory=list)


class Entity(_CamelModel):
    name: str
    type: EntityType
    tier: EntityTier
    contact_info: str = Field(NA, alias="contactInfo")
    priority: int
    reason: str | None = None


class ThreatAssessment(BaseModel):
    severity: Severity
    indicators: list[str]
    recommendation: str


class AffectedBrand(BaseModel):
    name: str
    type: str
    confidence: float


class SuggestedTemplate(BaseModel):
    type: str
    customizations: dict[str, str]


class IntelligentAnalysis(_CamelModel):
    affected_brand: AffectedBrand | None = Field(None, alias="affectedBrand")
    primary_target: Entity = Field(..., alias="primaryTarget")
    alternative_targets: list[Entity] = Field(default_factory=list, alias="alternativeTargets")
    threat_assessment: ThreatAssessment = Field(..., alias="threatAssessment")
    suggested_template: SuggestedTemplate = Field(..., alias="suggestedTemplate")
