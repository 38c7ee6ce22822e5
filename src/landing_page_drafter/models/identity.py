from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IdentityModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BrandTone(IdentityModel):
    formality: str = Field(default="professional", description="e.g. formal, conversational, casual")
    personality: tuple[str, ...] = Field(default_factory=tuple)
    emotion: str = Field(default="confident", description="Emotional register of the copy")


class ContentStyle(IdentityModel):
    writing_style: str = "clear and direct"
    sentence_length: Literal["short", "medium", "long", "varied"] = "medium"
    vocab_level: Literal["simple", "moderate", "advanced"] = "moderate"
    use_jargon: bool = False
    use_humor: bool = False
    use_stories: bool = False


class BrandValues(IdentityModel):
    core_values: tuple[str, ...] = Field(default_factory=tuple)
    target_audience: tuple[str, ...] = Field(default_factory=tuple)
    pain_points: tuple[str, ...] = Field(default_factory=tuple)
    desired_action: str = "Get in touch"


class BrandIdentity(IdentityModel):
    name: str
    tagline: str
    description: str | None = None
    unique_value: str | None = None
    occupation: str | None = None
    industry: str | None = None
    tone: BrandTone = Field(default_factory=BrandTone)
    content_style: ContentStyle = Field(default_factory=ContentStyle)
    values: BrandValues = Field(default_factory=BrandValues)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Jane Doe Consulting",
                "tagline": "Data platforms that ship",
                "uniqueValue": "Ten years of production data engineering",
                "occupation": "Data engineering consultant",
                "industry": "Software",
                "tone": {
                    "formality": "conversational",
                    "personality": ["pragmatic", "warm"],
                    "emotion": "confident",
                },
                "contentStyle": {
                    "writingStyle": "plain and concrete",
                    "sentenceLength": "short",
                    "vocabLevel": "moderate",
                    "useJargon": False,
                    "useHumor": True,
                    "useStories": True,
                },
                "values": {
                    "coreValues": ["clarity", "reliability"],
                    "targetAudience": ["startup CTOs"],
                    "painPoints": ["fragile pipelines"],
                    "desiredAction": "Book a discovery call",
                },
            }
        },
    )


__all__ = ["BrandIdentity", "BrandTone", "ContentStyle", "BrandValues"]
