"""Prompt templates for landing page generation, review and quality scoring.

Templates are Jinja2 sources rendered with :func:`render_prompt`. The brand
guidelines block is only present when an identity is supplied.
"""

from __future__ import annotations

from typing import Any, Mapping

from jinja2 import Environment, Template

from .models.identity import BrandIdentity

_ENV = Environment(
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
)

RETRY_MESSAGE = (
    "IMPORTANT: Previous generation attempt failed schema validation. "
    "Please ensure the response follows the required schema structure exactly."
)


LANDING_PAGE_GENERATION_TEMPLATE = """\
You are a conversion copywriter. Create a compelling, outcome-focused landing page
{% if identity %}for {{ identity.name }} ({{ identity.tagline }}).{% else %}for a professional services business.{% endif %}

The landing page should include these sections, in this order:
{% for section in section_order %}
- {{ section }}
{% endfor %}

Rules:
- Lead with the outcomes the audience cares about, not with features.
- The hero needs a headline, a subheading and a call-to-action text.
- Services should list 3-5 concrete offerings with short descriptions.
- FAQ sections need 3-7 questions; expertise sections 3-5 items.
- Keep copy concise and specific. Do not invent clients, numbers or awards.
- Return "sectionOrder" with the section names you produced.
{% if brand_guidelines %}

{{ brand_guidelines }}
{% endif %}
"""


LANDING_PAGE_REVIEW_TEMPLATE = """\
You are a professional editor for landing page content. Review the landing page
below and return an improved version with the same structure.

Editorial goals:
- One consistent voice and tone across every section.
- Remove repetition between sections; each section should add something new.
- Tighten headlines and calls-to-action; keep claims specific and credible.
- Keep every section that is present and keep "sectionOrder" unchanged unless a
  section is empty.
{% if brand_guidelines %}

{{ brand_guidelines }}
{% endif %}

Landing page (JSON):
{{ page_json }}
"""


SECTION_GENERATION_TEMPLATE = """\
Write the "{{ section_type }}" section of the landing page for {{ name }}.
{% if not simplify %}

Page title: {{ title }}
Tagline: {{ tagline }}
Description: {{ description }}
Other sections on the page: {{ other_sections | join(", ") }}
{% endif %}

Section guidance: {{ guidance }}

Current section content (JSON, may be incomplete):
{{ current_section_json }}
{% if feedback %}

Reviewer feedback to address:
{{ feedback }}
{% endif %}
{% if brand_guidelines %}

{{ brand_guidelines }}
{% endif %}
{% if is_retry %}

{{ retry_message }}
{% endif %}
"""


SECTION_QUALITY_ASSESSMENT_TEMPLATE = """\
You are reviewing the "{{ section_type }}" section of a landing page.

Score it on two axes from 0 to 10:
- qualityScore: clarity, specificity and persuasiveness of the copy.
- confidenceScore: how confident you are that this section belongs on the page
  and serves the audience.
combinedScore is the average of the two. Justify both scores in one or two
sentences each and list concrete suggestedImprovements.
{% if identity %}

Judge the section against this brand:
Name: {{ identity.name }}
Industry: {{ identity.industry or "Not specified" }}
Formality: {{ identity.tone.formality }}; personality: {{ identity.tone.personality | join(", ") }}
Target audience: {{ identity.values.target_audience | join(", ") }}
Pain points: {{ identity.values.pain_points | join(", ") }}
Desired action: {{ identity.values.desired_action }}
{% endif %}

Section content (JSON):
{{ section_content }}
"""


def render_prompt(template: str, data: Mapping[str, Any]) -> str:
    compiled: Template = _ENV.from_string(template)
    return compiled.render(**data).strip() + "\n"


def build_brand_guidelines(identity: BrandIdentity) -> str:
    tone = identity.tone
    style = identity.content_style
    values = identity.values

    tone_description = (
        f"Tone: {tone.formality} and {tone.emotion}. "
        f"Personality traits: {', '.join(tone.personality) or 'not specified'}."
    )
    style_description = (
        f"Style: {style.writing_style}. Use {style.sentence_length} sentences and "
        f"{style.vocab_level} vocabulary."
        + (" Include industry-specific terminology." if style.use_jargon else " Avoid jargon.")
        + (" Include appropriate humor." if style.use_humor else " Maintain serious tone.")
        + (" Use storytelling elements." if style.use_stories else " Focus on facts.")
    )
    values_description = (
        f"Core values: {', '.join(values.core_values)}. "
        f"Target audience: {', '.join(values.target_audience)}. "
        f"Pain points to address: {', '.join(values.pain_points)}. "
        f"Desired action: {values.desired_action}."
    )

    return "\n".join(
        [
            "BRAND IDENTITY GUIDELINES:",
            "",
            tone_description,
            "",
            style_description,
            "",
            values_description,
            "",
            f"NAME: {identity.name}",
            f"TAGLINE: {identity.tagline}",
            f"UNIQUE VALUE: {identity.unique_value or 'Not specified'}",
            "",
            "Please ensure all content follows these brand guidelines consistently.",
        ]
    )


__all__ = [
    "RETRY_MESSAGE",
    "LANDING_PAGE_GENERATION_TEMPLATE",
    "LANDING_PAGE_REVIEW_TEMPLATE",
    "SECTION_GENERATION_TEMPLATE",
    "SECTION_QUALITY_ASSESSMENT_TEMPLATE",
    "render_prompt",
    "build_brand_guidelines",
]
