from __future__ import annotations

from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SectionKind(str, Enum):
    hero = "hero"
    problem_statement = "problemStatement"
    services = "services"
    process = "process"
    case_studies = "caseStudies"
    expertise = "expertise"
    about = "about"
    pricing = "pricing"
    faq = "faq"
    cta = "cta"
    footer = "footer"


class PageModel(BaseModel):
    """Base for page documents: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HeroSection(PageModel):
    headline: str
    subheading: str
    cta_text: str
    cta_link: str = "#contact"
    image_url: str | None = None
    title: str | None = None
    enabled: bool = True


class ProblemStatementSection(PageModel):
    title: str
    description: str
    bullet_points: list[str] | None = None
    enabled: bool = True


class ServiceItem(PageModel):
    title: str
    description: str
    icon: str | None = None
    details: str | None = None


class ServicesSection(PageModel):
    title: str = "Services"
    introduction: str | None = None
    items: list[ServiceItem]
    enabled: bool = True


class ProcessStep(PageModel):
    step: int
    title: str
    description: str


class ProcessSection(PageModel):
    title: str = "How I Work"
    introduction: str | None = None
    steps: list[ProcessStep]
    enabled: bool = True


class CaseStudyItem(PageModel):
    title: str
    challenge: str
    approach: str
    results: str
    client: str | None = None
    image_url: str | None = None


class ClientLogo(PageModel):
    name: str
    image_url: str | None = None


class CaseStudiesSection(PageModel):
    title: str = "Selected Projects"
    introduction: str | None = None
    items: list[CaseStudyItem]
    client_logos: list[ClientLogo] | None = None
    enabled: bool = True


class ExpertiseItem(PageModel):
    title: str
    description: str | None = None


class ExpertiseSection(PageModel):
    title: str = "Expertise"
    introduction: str | None = None
    items: list[ExpertiseItem] = Field(min_length=3, max_length=5)
    enabled: bool = True


class AboutSection(PageModel):
    title: str = "About Me"
    content: str
    image_url: str | None = None
    cta_text: str | None = None
    cta_link: str | None = None
    enabled: bool = True


class PricingTier(PageModel):
    name: str
    price: str | None = None
    description: str
    features: list[str]
    is_featured: bool = False
    cta_text: str = "Contact Me"
    cta_link: str = "#contact"


class PricingSection(PageModel):
    title: str = "Packages & Pricing"
    introduction: str | None = None
    tiers: list[PricingTier]
    # Optional for most pages
    enabled: bool = False


class FaqItem(PageModel):
    question: str
    answer: str


class FaqSection(PageModel):
    title: str = "Frequently Asked Questions"
    introduction: str | None = None
    items: list[FaqItem] = Field(min_length=3, max_length=7)
    enabled: bool = True


class CtaSection(PageModel):
    title: str = "Ready to Get Started?"
    subtitle: str | None = None
    button_text: str = "Contact Me"
    button_link: str = "#contact"
    enabled: bool = True


class SocialLink(PageModel):
    platform: str
    url: str
    icon: str | None = None


class ContactDetails(PageModel):
    email: str | None = None
    phone: str | None = None
    social: list[SocialLink] | None = None


class FooterLink(PageModel):
    text: str
    url: str


class FooterSection(PageModel):
    title: str | None = None
    contact_details: ContactDetails | None = None
    copyright_text: str | None = None
    links: list[FooterLink] | None = None
    enabled: bool = True


class LandingPage(PageModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    name: str = Field(min_length=1)
    tagline: str = Field(min_length=1)

    # Defines which sections are rendered and in what order
    section_order: list[SectionKind] = Field(min_length=1)

    hero: HeroSection
    services: ServicesSection
    problem_statement: ProblemStatementSection | None = None
    process: ProcessSection | None = None
    case_studies: CaseStudiesSection | None = None
    expertise: ExpertiseSection | None = None
    about: AboutSection | None = None
    pricing: PricingSection | None = None
    faq: FaqSection | None = None
    cta: CtaSection | None = None
    footer: FooterSection | None = None

    @model_validator(mode="after")
    def _ordered_sections_present(self) -> "LandingPage":
        missing = [kind.value for kind in self.section_order if self.get_section(kind) is None]
        if missing:
            raise ValueError(f"sectionOrder references missing sections: {', '.join(missing)}")
        return self

    def get_section(self, kind: SectionKind) -> PageModel | None:
        return getattr(self, section_attr(kind))

    def set_section(self, kind: SectionKind, section: PageModel) -> None:
        setattr(self, section_attr(kind), section)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LandingPageDraft(PageModel):
    """Lenient whole-page shape requested from the backend.

    Every field is optional and sections stay raw; defaulting and per-section
    validation happen when the draft is finalized into a ``LandingPage``.
    """

    title: str | None = None
    description: str | None = None
    name: str | None = None
    tagline: str | None = None
    section_order: list[str] | None = None
    hero: dict[str, Any] | None = None
    problem_statement: dict[str, Any] | None = None
    services: dict[str, Any] | None = None
    process: dict[str, Any] | None = None
    case_studies: dict[str, Any] | None = None
    expertise: dict[str, Any] | None = None
    about: dict[str, Any] | None = None
    pricing: dict[str, Any] | None = None
    faq: dict[str, Any] | None = None
    cta: dict[str, Any] | None = None
    footer: dict[str, Any] | None = None


def section_attr(kind: SectionKind) -> str:
    return kind.name


def ordered_kinds(values: Sequence[str]) -> tuple[list[SectionKind], list[str]]:
    """Split raw section names into known kinds (deduplicated, in order) and unknown names."""
    kinds: list[SectionKind] = []
    unknown: list[str] = []
    for value in values:
        try:
            kind = SectionKind(value)
        except ValueError:
            unknown.append(value)
            continue
        if kind not in kinds:
            kinds.append(kind)
    return kinds, unknown


__all__ = [
    "SectionKind",
    "PageModel",
    "HeroSection",
    "ProblemStatementSection",
    "ServiceItem",
    "ServicesSection",
    "ProcessStep",
    "ProcessSection",
    "CaseStudyItem",
    "ClientLogo",
    "CaseStudiesSection",
    "ExpertiseItem",
    "ExpertiseSection",
    "AboutSection",
    "PricingTier",
    "PricingSection",
    "FaqItem",
    "FaqSection",
    "CtaSection",
    "SocialLink",
    "ContactDetails",
    "FooterLink",
    "FooterSection",
    "LandingPage",
    "LandingPageDraft",
    "section_attr",
    "ordered_kinds",
]
