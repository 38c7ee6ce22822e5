from __future__ import annotations

import re
from copy import deepcopy
from typing import Any, Mapping

from .models.page import SectionKind

_PLACEHOLDERS: Mapping[SectionKind, Mapping[str, Any]] = {
    SectionKind.hero: {
        "headline": "Welcome to Our Website",
        "subheading": "This section is currently being updated",
        "ctaText": "Learn More",
        "ctaLink": "#about",
    },
    SectionKind.problem_statement: {
        "description": "This section will outline key challenges we address.",
    },
    SectionKind.services: {
        "items": [
            {
                "title": "Service Example",
                "description": "This is a placeholder for service content. Please regenerate this section for actual services.",
            }
        ],
    },
    SectionKind.process: {
        "steps": [
            {
                "step": 1,
                "title": "Step Example",
                "description": "This is a placeholder for process steps. Please regenerate this section.",
            }
        ],
    },
    SectionKind.case_studies: {
        "items": [
            {
                "title": "Case Study Example",
                "challenge": "This is a placeholder for case study content.",
                "approach": "Placeholder approach",
                "results": "Placeholder result",
            }
        ],
    },
    SectionKind.expertise: {
        "items": [
            {"title": "Expertise Example", "description": "This is a placeholder for expertise content."},
            {"title": "Expertise Example", "description": "This is a placeholder for expertise content."},
            {"title": "Expertise Example", "description": "This is a placeholder for expertise content."},
        ],
    },
    SectionKind.about: {
        "content": "This is a placeholder for the about section content. Please regenerate this section.",
    },
    SectionKind.pricing: {
        "tiers": [
            {
                "name": "Basic",
                "price": "Contact for pricing",
                "description": "Placeholder package",
                "features": ["Feature 1", "Feature 2"],
                "ctaText": "Contact Us",
                "ctaLink": "#contact",
            }
        ],
    },
    SectionKind.faq: {
        "items": [
            {
                "question": "What services do you offer?",
                "answer": "This is a placeholder for FAQ content. Please regenerate this section for actual FAQs.",
            },
            {
                "question": "How do we get started?",
                "answer": "This is a placeholder for FAQ content. Please regenerate this section for actual FAQs.",
            },
            {
                "question": "How can I get in touch?",
                "answer": "This is a placeholder for FAQ content. Please regenerate this section for actual FAQs.",
            },
        ],
    },
    SectionKind.cta: {
        "title": "Ready to Get Started?",
        "buttonText": "Contact Us",
        "buttonLink": "#contact",
    },
    SectionKind.footer: {
        "copyrightText": "© Company Name",
        "contactDetails": {"email": "contact@example.com", "phone": "", "social": []},
        "links": [
            {"text": "Home", "url": "/"},
            {"text": "Contact", "url": "#contact"},
        ],
    },
}


class FallbackContentProvider:
    """Deterministic placeholder content for sections that could not be generated.

    Every placeholder is disabled, so a page carrying it still renders but hides
    the section until it is regenerated.
    """

    def get_fallback_content(self, section_kind: SectionKind | str) -> dict[str, Any]:
        name = section_kind.value if isinstance(section_kind, SectionKind) else str(section_kind)
        content: dict[str, Any] = {"title": format_section_name(name)}

        try:
            kind = SectionKind(name)
        except ValueError:
            kind = None
        if kind is not None:
            content.update(deepcopy(_PLACEHOLDERS[kind]))

        content["enabled"] = False
        return content


def format_section_name(section_name: str) -> str:
    """``caseStudies`` / ``case-studies`` -> ``Case Studies``."""
    spaced = re.sub(r"([A-Z])", r" \1", section_name.replace("-", " ").replace("_", " "))
    return " ".join(word[:1].upper() + word[1:].lower() for word in spaced.split())


__all__ = ["FallbackContentProvider", "format_section_name"]
