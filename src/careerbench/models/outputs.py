"""Structured outputs produced by AI capabilities.

Every field has a default so that unknown or missing keys in model output
never fail deserialization; business rules are enforced separately by the
response validator.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ResumeSectionItem(_CamelModel):
    heading: str = ""
    subheading: Optional[str] = None
    bullets: list[str] = Field(default_factory=list)


class ResumeSection(_CamelModel):
    title: str = ""
    items: list[ResumeSectionItem] = Field(default_factory=list)


class ResumeSuggestions(_CamelModel):
    """Reorganized resume content tailored to a job."""

    summary: Optional[str] = None
    headline: Optional[str] = None
    sections: list[ResumeSection] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)


class CoverLetter(_CamelModel):
    """Generated cover letter split into its parts."""

    subject: Optional[str] = None
    greeting: Optional[str] = None
    body_paragraphs: list[str] = Field(default_factory=list)
    closing: Optional[str] = None
    signature: Optional[str] = None


class SkillGap(_CamelModel):
    skill: str = ""
    importance: str = ""  # high, medium, low
    reason: str = ""


class SkillSuggestions(_CamelModel):
    """Skill gap analysis between a profile and a job."""

    missing_skills: list[str] = Field(default_factory=list)
    skill_gaps: list[SkillGap] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ParsedJob(_CamelModel):
    """Structured fields extracted from a job posting."""

    title_suggestion: Optional[str] = None
    company_suggestion: Optional[str] = None
    seniority: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    responsibilities: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)
    nice_to_have_skills: list[str] = Field(default_factory=list)
    domain_tags: list[str] = Field(default_factory=list)
    seniority_score: Optional[float] = None
    remote_friendly: Optional[bool] = None
