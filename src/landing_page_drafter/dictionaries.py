from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from pydantic import BaseModel

from .errors import UnknownSectionKindError
from .models.page import (
    AboutSection,
    CaseStudiesSection,
    CtaSection,
    ExpertiseSection,
    FaqSection,
    FooterSection,
    HeroSection,
    PricingSection,
    ProblemStatementSection,
    ProcessSection,
    SectionKind,
    ServicesSection,
)
from .prompts import SECTION_GENERATION_TEMPLATE


@dataclass(frozen=True)
class SectionDefinition:
    kind: SectionKind
    label: str
    model: type[BaseModel]
    guidance: str
    prompt_template: str = SECTION_GENERATION_TEMPLATE
    # Backfilled under whatever the backend returns; only set for always-present sections
    default_content: Mapping[str, Any] | None = field(default=None)
    required: bool = False


DEFAULT_HERO: Mapping[str, Any] = {
    "headline": "Professional Services",
    "subheading": "Expert assistance for your needs",
    "ctaText": "Contact Me",
    "ctaLink": "#contact",
}

DEFAULT_SERVICES: Mapping[str, Any] = {
    "title": "Services",
    "items": [
        {
            "title": "Professional Service",
            "description": "Expert assistance in this field",
        }
    ],
}

DEFAULT_PAGE_FIELDS: Mapping[str, str] = {
    "title": "Professional Services",
    "description": "Professional services and expertise",
    "name": "Professional",
    "tagline": "Expert Professional Services",
}

# Requested from the backend when generating a fresh page
FULL_SECTION_ORDER: Sequence[SectionKind] = tuple(SectionKind)

# Used when the backend returns no usable sectionOrder
DEFAULT_SECTION_ORDER: Sequence[SectionKind] = (
    SectionKind.hero,
    SectionKind.services,
    SectionKind.about,
    SectionKind.cta,
    SectionKind.footer,
)


SECTION_REGISTRY: Mapping[SectionKind, SectionDefinition] = {
    SectionKind.hero: SectionDefinition(
        kind=SectionKind.hero,
        label="Hero",
        model=HeroSection,
        guidance=(
            "A headline stating the main outcome for the audience, a one-sentence "
            "subheading and a short call-to-action text with its link."
        ),
        default_content=DEFAULT_HERO,
        required=True,
    ),
    SectionKind.problem_statement: SectionDefinition(
        kind=SectionKind.problem_statement,
        label="Problem Statement",
        model=ProblemStatementSection,
        guidance="Name the audience's core problem in a title, a short description and up to four bullet points.",
    ),
    SectionKind.services: SectionDefinition(
        kind=SectionKind.services,
        label="Services",
        model=ServicesSection,
        guidance="3-5 services, each with a title and a benefit-led description.",
        default_content=DEFAULT_SERVICES,
        required=True,
    ),
    SectionKind.process: SectionDefinition(
        kind=SectionKind.process,
        label="Process",
        model=ProcessSection,
        guidance="3-5 numbered steps describing how an engagement runs, from first contact to delivery.",
    ),
    SectionKind.case_studies: SectionDefinition(
        kind=SectionKind.case_studies,
        label="Case Studies",
        model=CaseStudiesSection,
        guidance="2-3 case studies with challenge, approach and results. Do not invent client names.",
    ),
    SectionKind.expertise: SectionDefinition(
        kind=SectionKind.expertise,
        label="Expertise",
        model=ExpertiseSection,
        guidance="3-5 areas of expertise, each with a one-line description.",
    ),
    SectionKind.about: SectionDefinition(
        kind=SectionKind.about,
        label="About",
        model=AboutSection,
        guidance="A short first-person background paragraph focused on what the reader gains.",
    ),
    SectionKind.pricing: SectionDefinition(
        kind=SectionKind.pricing,
        label="Pricing",
        model=PricingSection,
        guidance="1-3 packages with name, description and features. Leave price empty when unknown.",
    ),
    SectionKind.faq: SectionDefinition(
        kind=SectionKind.faq,
        label="FAQ",
        model=FaqSection,
        guidance="3-7 questions a prospect asks before getting in touch, with direct answers.",
    ),
    SectionKind.cta: SectionDefinition(
        kind=SectionKind.cta,
        label="Call to Action",
        model=CtaSection,
        guidance="A closing title, an optional subtitle and one button text that matches the desired action.",
    ),
    SectionKind.footer: SectionDefinition(
        kind=SectionKind.footer,
        label="Footer",
        model=FooterSection,
        guidance="Copyright text, contact details and a few navigation links.",
    ),
}


REQUIRED_SECTION_KINDS: frozenset[SectionKind] = frozenset(
    kind for kind, definition in SECTION_REGISTRY.items() if definition.required
)


def resolve_section_kind(kind: SectionKind | str) -> SectionKind:
    if isinstance(kind, SectionKind):
        return kind
    try:
        return SectionKind(kind)
    except ValueError:
        raise UnknownSectionKindError(kind) from None


def get_section_definition(kind: SectionKind | str) -> SectionDefinition:
    return SECTION_REGISTRY[resolve_section_kind(kind)]


__all__ = [
    "SectionDefinition",
    "SECTION_REGISTRY",
    "REQUIRED_SECTION_KINDS",
    "DEFAULT_HERO",
    "DEFAULT_SERVICES",
    "DEFAULT_PAGE_FIELDS",
    "DEFAULT_SECTION_ORDER",
    "FULL_SECTION_ORDER",
    "resolve_section_kind",
    "get_section_definition",
]
