from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Mapping

from pydantic import Field

from .page import (
    AboutSection,
    CaseStudiesSection,
    CtaSection,
    ExpertiseSection,
    FaqSection,
    FooterSection,
    HeroSection,
    PageModel,
    PricingSection,
    ProblemStatementSection,
    ProcessSection,
    SectionKind,
    ServicesSection,
)


class SegmentKind(str, Enum):
    identity = "identity"
    service_offering = "serviceOffering"
    credibility = "credibility"
    conversion = "conversion"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SegmentBase(PageModel):
    version: int = 1
    generated_at: str = Field(default_factory=_now_iso)


class IdentitySegment(SegmentBase):
    title: str
    description: str
    name: str
    tagline: str
    hero: HeroSection
    problem_statement: ProblemStatementSection | None = None
    segment_type: Literal["identity"] = "identity"


class ServiceOfferingSegment(SegmentBase):
    services: ServicesSection
    process: ProcessSection | None = None
    pricing: PricingSection | None = None
    segment_type: Literal["serviceOffering"] = "serviceOffering"


class CredibilitySegment(SegmentBase):
    case_studies: CaseStudiesSection | None = None
    expertise: ExpertiseSection | None = None
    about: AboutSection | None = None
    segment_type: Literal["credibility"] = "credibility"


class ConversionSegment(SegmentBase):
    faq: FaqSection | None = None
    cta: CtaSection | None = None
    footer: FooterSection | None = None
    segment_type: Literal["conversion"] = "conversion"


Segment = IdentitySegment | ServiceOfferingSegment | CredibilitySegment | ConversionSegment


class SegmentStore(PageModel):
    identity: IdentitySegment | None = None
    service_offering: ServiceOfferingSegment | None = None
    credibility: CredibilitySegment | None = None
    conversion: ConversionSegment | None = None


SEGMENT_MODELS: Mapping[SegmentKind, type[SegmentBase]] = {
    SegmentKind.identity: IdentitySegment,
    SegmentKind.service_offering: ServiceOfferingSegment,
    SegmentKind.credibility: CredibilitySegment,
    SegmentKind.conversion: ConversionSegment,
}

SEGMENT_SECTIONS: Mapping[SegmentKind, tuple[SectionKind, ...]] = {
    SegmentKind.identity: (SectionKind.hero, SectionKind.problem_statement),
    SegmentKind.service_offering: (SectionKind.services, SectionKind.process, SectionKind.pricing),
    SegmentKind.credibility: (SectionKind.case_studies, SectionKind.expertise, SectionKind.about),
    SegmentKind.conversion: (SectionKind.faq, SectionKind.cta, SectionKind.footer),
}

SEGMENT_FILENAMES: Mapping[SegmentKind, str] = {
    SegmentKind.identity: "identity-segment.json",
    SegmentKind.service_offering: "service-offering-segment.json",
    SegmentKind.credibility: "credibility-segment.json",
    SegmentKind.conversion: "conversion-segment.json",
}


def segment_for_section(kind: SectionKind) -> SegmentKind:
    for segment_kind, sections in SEGMENT_SECTIONS.items():
        if kind in sections:
            return segment_kind
    raise KeyError(kind)


__all__ = [
    "SegmentKind",
    "SegmentBase",
    "IdentitySegment",
    "ServiceOfferingSegment",
    "CredibilitySegment",
    "ConversionSegment",
    "Segment",
    "SegmentStore",
    "SEGMENT_MODELS",
    "SEGMENT_SECTIONS",
    "SEGMENT_FILENAMES",
    "segment_for_section",
]
